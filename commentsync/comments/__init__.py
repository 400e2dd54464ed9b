"""Comment list module.

Provides the client-side view of a threaded comment list:
- Entities and wire schemas
- HTTP data service client and error taxonomy
- List store, pagination and per-parent reply lists
- Mutation coordinator (CommentService)
"""

from .client import (
    CommentClientError,
    CommentsClient,
    InvalidResponseError,
    NetworkError,
    NotFoundError,
    RequestError,
)
from .models import (
    Author,
    Comment,
    Page,
    ReactionType,
    SortMode,
    ViewerReaction,
)
from .pagination import Paginator
from .replies import ReplyStoreRegistry
from .service import CommentService
from .store import CommentListStore


__all__ = [
    "Author",
    "Comment",
    "CommentClientError",
    "CommentListStore",
    "CommentService",
    "CommentsClient",
    "InvalidResponseError",
    "NetworkError",
    "NotFoundError",
    "Page",
    "Paginator",
    "ReactionType",
    "ReplyStoreRegistry",
    "RequestError",
    "SortMode",
    "ViewerReaction",
]
