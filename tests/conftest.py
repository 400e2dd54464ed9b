"""Shared fixtures for commentsync tests."""

from datetime import UTC, datetime, timedelta
from typing import Any
from unittest.mock import AsyncMock

import pytest

from commentsync.comments.client import CommentsClient
from commentsync.comments.models import Author, Comment, Page, ViewerReaction


VIEWER_ID = "viewer-1"
OTHER_USER_ID = "user-2"

_BASE_TIME = datetime(2025, 1, 1, 12, 0, tzinfo=UTC)


def build_comment(
    comment_id: str,
    author_id: str = OTHER_USER_ID,
    parent_id: str | None = None,
    content: str | None = None,
    **overrides: Any,
) -> Comment:
    values: dict[str, Any] = {
        "id": comment_id,
        "content": content or f"comment {comment_id}",
        "author": Author(id=author_id, first_name="Ana", last_name="Lima"),
        "created_at": _BASE_TIME,
        "updated_at": _BASE_TIME,
        "like_count": 0,
        "dislike_count": 0,
        "viewer_reaction": ViewerReaction.NONE,
        "parent_id": parent_id,
    }
    values.update(overrides)
    return Comment(**values)


def build_payload(
    comment_id: str,
    author_id: str = OTHER_USER_ID,
    parent_id: str | None = None,
    content: str | None = None,
    **overrides: Any,
) -> dict[str, Any]:
    """Comment as sent by the server (camelCase, ``_id``)."""
    payload: dict[str, Any] = {
        "_id": comment_id,
        "content": content or f"comment {comment_id}",
        "author": {
            "_id": author_id,
            "firstName": "Ana",
            "lastName": "Lima",
            "email": "ana@example.com",
        },
        "likesCount": 0,
        "dislikesCount": 0,
        "userReaction": None,
        "parentComment": parent_id,
        "createdAt": _BASE_TIME.isoformat(),
        "updatedAt": (_BASE_TIME + timedelta(minutes=1)).isoformat(),
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def viewer_id() -> str:
    """Authenticated viewer ID."""
    return VIEWER_ID


@pytest.fixture
def make_comment():
    """Factory for Comment entities."""
    return build_comment


@pytest.fixture
def make_payload():
    """Factory for wire-format comment payloads."""
    return build_payload


@pytest.fixture
def mock_client() -> AsyncMock:
    """Mock comments data service returning empty pages by default."""
    client = AsyncMock(spec=CommentsClient)
    client.page_size = 10
    client.fetch_comments.return_value = Page()
    client.fetch_replies.return_value = Page()
    return client
