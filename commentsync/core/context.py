"""Client context management using contextvars.

Tracks the authenticated viewer, the id of the outgoing request and the list
currently being mutated, so log lines can carry them without passing them
through every call.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any
from uuid import uuid4


# Context variables for client tracking
viewer_id_var: ContextVar[str | None] = ContextVar("viewer_id", default=None)
request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)
list_scope_var: ContextVar[str | None] = ContextVar("list_scope", default=None)


def generate_request_id() -> str:
    """Generate a new unique request ID."""
    return str(uuid4())


def get_viewer_id() -> str | None:
    """Get the current viewer ID."""
    return viewer_id_var.get()


def set_viewer_id(viewer_id: str | None) -> None:
    """Set the viewer ID for the current context."""
    viewer_id_var.set(viewer_id)


def get_request_id() -> str | None:
    """Get the current request ID."""
    return request_id_var.get()


def set_request_id(request_id: str | None = None) -> str:
    """Set the request ID for the current context.

    Args:
        request_id: Optional request ID. If not provided, generates a new one.

    Returns:
        The request ID that was set.
    """
    rid = request_id or generate_request_id()
    request_id_var.set(rid)
    return rid


def get_list_scope() -> str | None:
    """Get the list scope (``top`` or ``replies:<parent id>``)."""
    return list_scope_var.get()


def set_list_scope(scope: str | None) -> None:
    """Set the list scope for the current context."""
    list_scope_var.set(scope)


def get_context() -> dict[str, Any]:
    """Get all non-empty context values as a dictionary.

    Returns:
        Dictionary with the context values that are set.
    """
    context: dict[str, Any] = {}

    if viewer_id := viewer_id_var.get():
        context["viewer_id"] = viewer_id
    if request_id := request_id_var.get():
        context["request_id"] = request_id
    if list_scope := list_scope_var.get():
        context["list_scope"] = list_scope

    return context


def clear_context() -> None:
    """Clear all context variables."""
    viewer_id_var.set(None)
    request_id_var.set(None)
    list_scope_var.set(None)


@contextmanager
def list_scope(scope: str) -> Iterator[None]:
    """Bind the list scope for the duration of a block."""
    token = list_scope_var.set(scope)
    try:
        yield
    finally:
        list_scope_var.reset(token)


@contextmanager
def request_scope(request_id: str | None = None) -> Iterator[str]:
    """Bind a request ID for the duration of one outgoing request."""
    rid = request_id or generate_request_id()
    token = request_id_var.set(rid)
    try:
        yield rid
    finally:
        request_id_var.reset(token)
