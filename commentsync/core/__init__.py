# Core infrastructure
from commentsync.core.context import (
    clear_context,
    get_context,
    get_list_scope,
    get_request_id,
    get_viewer_id,
    request_scope,
    set_list_scope,
    set_request_id,
    set_viewer_id,
)
from commentsync.core.logging import configure_structlog, get_logger


__all__ = [
    "clear_context",
    "configure_structlog",
    "get_context",
    "get_list_scope",
    "get_logger",
    "get_request_id",
    "get_viewer_id",
    "request_scope",
    "set_list_scope",
    "set_request_id",
    "set_viewer_id",
]
