"""Entity models for the client-side comment view.

- Comment: one top-level comment or reply, as last confirmed by the server
- Author: the user who wrote a comment
- Page: one cursor-paginated slice of comments

Replies are one level deep: a comment with a ``parent_id`` never has replies of
its own, so reply lists are flat per parent.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


# ==============================================================================
# Constants
# ==============================================================================

MAX_CONTENT_LENGTH = 1000
DEFAULT_PAGE_SIZE = 10


class SortMode(str, Enum):
    """Server-side ordering of the top-level list."""

    NEWEST = "newest"
    MOST_LIKED = "mostLiked"
    MOST_DISLIKED = "mostDisliked"


class ReactionType(str, Enum):
    """Reactions a viewer can toggle on a comment."""

    LIKE = "like"
    DISLIKE = "dislike"


class ViewerReaction(str, Enum):
    """The local viewer's current reaction to a comment."""

    NONE = "none"
    LIKE = "like"
    DISLIKE = "dislike"


# ==============================================================================
# Entity Classes
# ==============================================================================


@dataclass(frozen=True)
class Author:
    """Comment author."""

    id: str
    first_name: str = ""
    last_name: str = ""
    email: str | None = None

    @property
    def display_name(self) -> str:
        """Full name, falling back to the email or the id."""
        name = f"{self.first_name} {self.last_name}".strip()
        return name or self.email or self.id


@dataclass(frozen=True)
class Comment:
    """Comment value as confirmed by the server.

    Counts and ``viewer_reaction`` are part of the value, so a reaction toggle
    replaces the whole comment rather than patching fields.
    """

    id: str
    content: str
    author: Author
    created_at: datetime
    updated_at: datetime
    like_count: int = 0
    dislike_count: int = 0
    viewer_reaction: ViewerReaction = ViewerReaction.NONE
    parent_id: str | None = None

    @property
    def is_reply(self) -> bool:
        """Check if this comment is a reply."""
        return self.parent_id is not None

    @property
    def is_edited(self) -> bool:
        """Check if the comment was changed after creation."""
        return self.updated_at > self.created_at


@dataclass(frozen=True)
class Page:
    """One page of a cursor-paginated fetch.

    ``has_more`` is authoritative: a page may carry a cursor and still be the
    last one.
    """

    items: list[Comment] = field(default_factory=list)
    next_cursor: str | None = None
    has_more: bool = False
