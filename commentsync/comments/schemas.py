"""Pydantic schemas for the comments wire format.

Request/Response models with validation for:
- Comment payloads (camelCase JSON with ``_id`` identifiers)
- The ``{success, message, data, errors}`` response envelope
- Cursor-paginated pages
- Realtime event payloads
"""

from datetime import datetime
from typing import Any

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)

from .models import (
    MAX_CONTENT_LENGTH,
    Author,
    Comment,
    Page,
    ReactionType,
    ViewerReaction,
)


# ==============================================================================
# Response Schemas
# ==============================================================================


class AuthorSchema(BaseModel):
    """Author information in a comment payload."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(alias="_id")
    first_name: str = Field(default="", alias="firstName")
    last_name: str = Field(default="", alias="lastName")
    email: str | None = None

    def to_entity(self) -> Author:
        return Author(
            id=self.id,
            first_name=self.first_name,
            last_name=self.last_name,
            email=self.email,
        )


class CommentSchema(BaseModel):
    """A single comment as sent by the server."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(alias="_id")
    content: str
    author: AuthorSchema
    likes_count: int = Field(default=0, ge=0, alias="likesCount")
    dislikes_count: int = Field(default=0, ge=0, alias="dislikesCount")
    user_reaction: ReactionType | None = Field(default=None, alias="userReaction")
    parent_comment: str | None = Field(default=None, alias="parentComment")
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")

    @field_validator("user_reaction", mode="before")
    @classmethod
    def normalize_reaction(cls, v: Any) -> Any:
        """Map the explicit ``none`` reaction to no reaction."""
        if v in ("", "none"):
            return None
        return v

    @field_validator("parent_comment", mode="before")
    @classmethod
    def unwrap_parent(cls, v: Any) -> Any:
        """Accept a populated parent document as well as a bare id."""
        if isinstance(v, dict):
            return v.get("_id")
        return v

    def to_entity(self) -> Comment:
        """Create the Comment entity from this payload."""
        return Comment(
            id=self.id,
            content=self.content,
            author=self.author.to_entity(),
            like_count=self.likes_count,
            dislike_count=self.dislikes_count,
            viewer_reaction=(
                ViewerReaction(self.user_reaction.value)
                if self.user_reaction
                else ViewerReaction.NONE
            ),
            parent_id=self.parent_comment,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


class CommentPageSchema(BaseModel):
    """Paginated list of comments."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    items: list[CommentSchema] = Field(default_factory=list, alias="data")
    next_cursor: str | None = Field(default=None, alias="nextCursor")
    has_more: bool = Field(default=False, alias="hasMore")

    def to_page(self) -> Page:
        """Create a Page, treating ``hasMore`` as authoritative.

        A missing cursor still ends the stream: without one the next request
        would restart from the first page.
        """
        return Page(
            items=[item.to_entity() for item in self.items],
            next_cursor=self.next_cursor,
            has_more=self.has_more and self.next_cursor is not None,
        )


class ApiEnvelope(BaseModel):
    """Response envelope wrapping every API payload."""

    model_config = ConfigDict(extra="ignore")

    success: bool = True
    message: str = ""
    data: Any = None
    errors: dict[str, list[str]] | None = None


# ==============================================================================
# Request Schemas
# ==============================================================================


def _validate_content(v: str) -> str:
    v = v.strip()
    if not v:
        msg = "Content cannot be empty"
        raise ValueError(msg)
    if len(v) > MAX_CONTENT_LENGTH:
        msg = f"Content cannot exceed {MAX_CONTENT_LENGTH} characters"
        raise ValueError(msg)
    return v


class CreateCommentRequest(BaseModel):
    """Request to create a comment or a reply."""

    model_config = ConfigDict(populate_by_name=True)

    content: str
    parent_comment_id: str | None = Field(default=None, alias="parentCommentId")

    @field_validator("content")
    @classmethod
    def validate_content(cls, v: str) -> str:
        """Strip whitespace and validate content."""
        return _validate_content(v)


class UpdateCommentRequest(BaseModel):
    """Request to update a comment."""

    content: str

    @field_validator("content")
    @classmethod
    def validate_content(cls, v: str) -> str:
        """Strip whitespace and validate content."""
        return _validate_content(v)


class ToggleReactionRequest(BaseModel):
    """Request to toggle a reaction on a comment."""

    type: ReactionType


# ==============================================================================
# Realtime Event Payloads
# ==============================================================================


class CommentEventPayload(BaseModel):
    """Payload of create/update/reaction events."""

    model_config = ConfigDict(extra="ignore")

    comment: CommentSchema


class CommentDeletedPayload(BaseModel):
    """Payload of delete events."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    comment_id: str = Field(validation_alias=AliasChoices("commentId", "id", "_id"))


class ReplyEventPayload(BaseModel):
    """Payload of reply-created events."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    comment: CommentSchema
    parent_id: str | None = Field(default=None, alias="parentId")

    @property
    def resolved_parent_id(self) -> str | None:
        """Parent id from the event, falling back to the comment itself."""
        return self.parent_id or self.comment.parent_comment
