"""Realtime reconciliation of pushed comment events into list stores.

Each attached list gets its own handlers on the event bus, recorded in a
table keyed by ``(event kind, list key)``. Detaching a list removes exactly
those handlers.

Effect per event kind:
- created: insert at head of the list whose parent matches the comment's
  parent, unless the local viewer wrote it (their client already applied it)
- updated / reacted: replace by id in whichever list holds the comment
- deleted: remove by id from every list
- reply created: insert at head of the matching reply list

Events are applied in arrival order. Malformed payloads and unknown ids are
no-ops, so an update that arrives after its delete is dropped, not resurrected.
"""

from dataclasses import replace
from functools import partial
from typing import Any

from pydantic import BaseModel, ValidationError

from commentsync.comments.models import Comment
from commentsync.comments.schemas import (
    CommentDeletedPayload,
    CommentEventPayload,
    ReplyEventPayload,
)
from commentsync.comments.store import CommentListStore
from commentsync.core.context import list_scope
from commentsync.core.logging import get_logger

from .events import EventBus, EventHandler, EventKind, Subscription


logger = get_logger(__name__)


def _parse(
    model: type[BaseModel], kind: EventKind, payload: dict[str, Any]
) -> Any | None:
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        logger.warning(
            "realtime_event_dropped",
            event_name=kind.value,
            reason="invalid_payload",
            errors=e.error_count(),
        )
        return None


class RealtimeReconciler:
    """Route realtime events to the attached list stores."""

    def __init__(self, bus: EventBus, viewer_id: str | None = None) -> None:
        """Initialize the reconciler.

        Args:
            bus: Event bus fed by the realtime transport.
            viewer_id: Authenticated viewer, used for self-origin suppression.
        """
        self.bus = bus
        self.viewer_id = viewer_id
        self._stores: dict[str, CommentListStore] = {}
        self._subscriptions: dict[tuple[EventKind, str], Subscription] = {}

    @property
    def attached_keys(self) -> list[str]:
        return list(self._stores)

    def is_attached(self, key: str) -> bool:
        return key in self._stores

    def attach(self, store: CommentListStore) -> None:
        """Subscribe ``store`` to realtime events. Attaching twice is a no-op."""
        if store.key in self._stores:
            return

        handlers: dict[EventKind, EventHandler] = {
            EventKind.COMMENT_CREATED: partial(self._on_created, store),
            EventKind.COMMENT_UPDATED: partial(
                self._on_changed, store, EventKind.COMMENT_UPDATED
            ),
            EventKind.COMMENT_REACTED: partial(
                self._on_changed, store, EventKind.COMMENT_REACTED
            ),
            EventKind.COMMENT_DELETED: partial(self._on_deleted, store),
        }
        if store.parent_id is not None:
            handlers[EventKind.REPLY_CREATED] = partial(self._on_reply_created, store)

        self._stores[store.key] = store
        for kind, handler in handlers.items():
            self._subscriptions[(kind, store.key)] = self.bus.subscribe(kind, handler)

        logger.debug("realtime_list_attached", list_key=store.key)

    def detach(self, key: str) -> bool:
        """Unsubscribe the list identified by ``key``.

        Returns:
            True if the list was attached.
        """
        if self._stores.pop(key, None) is None:
            return False

        for table_key in [k for k in self._subscriptions if k[1] == key]:
            self.bus.unsubscribe(self._subscriptions.pop(table_key))

        logger.debug("realtime_list_detached", list_key=key)
        return True

    def close(self) -> None:
        """Detach every list."""
        for key in list(self._stores):
            self.detach(key)

    # ==========================================================================
    # Handlers
    # ==========================================================================

    def _is_self_origin(self, comment: Comment) -> bool:
        return self.viewer_id is not None and comment.author.id == self.viewer_id

    def _insert(
        self, store: CommentListStore, comment: Comment, kind: EventKind
    ) -> None:
        if self._is_self_origin(comment):
            logger.debug(
                "self_origin_event_suppressed",
                event_name=kind.value,
                comment_id=comment.id,
            )
            return
        if store.insert_at_head(comment):
            logger.debug("realtime_comment_inserted", comment_id=comment.id)

    def _on_created(self, store: CommentListStore, payload: dict[str, Any]) -> None:
        event = _parse(CommentEventPayload, EventKind.COMMENT_CREATED, payload)
        if event is None:
            return
        comment = event.comment.to_entity()
        # Top-level comments go to the top list, replies to their parent's list
        if comment.parent_id != store.parent_id:
            return
        with list_scope(store.key):
            self._insert(store, comment, EventKind.COMMENT_CREATED)

    def _on_reply_created(
        self, store: CommentListStore, payload: dict[str, Any]
    ) -> None:
        event = _parse(ReplyEventPayload, EventKind.REPLY_CREATED, payload)
        if event is None or event.resolved_parent_id != store.parent_id:
            return
        comment = event.comment.to_entity()
        if comment.parent_id is None:
            comment = replace(comment, parent_id=store.parent_id)
        with list_scope(store.key):
            self._insert(store, comment, EventKind.REPLY_CREATED)

    def _on_changed(
        self,
        store: CommentListStore,
        kind: EventKind,
        payload: dict[str, Any],
    ) -> None:
        event = _parse(CommentEventPayload, kind, payload)
        if event is None:
            return
        comment = event.comment.to_entity()
        if store.replace_by_id(comment):
            with list_scope(store.key):
                logger.debug(
                    "realtime_comment_replaced",
                    event_name=kind.value,
                    comment_id=comment.id,
                )

    def _on_deleted(self, store: CommentListStore, payload: dict[str, Any]) -> None:
        event = _parse(CommentDeletedPayload, EventKind.COMMENT_DELETED, payload)
        if event is None:
            return
        if store.remove_by_id(event.comment_id):
            with list_scope(store.key):
                logger.debug("realtime_comment_removed", comment_id=event.comment_id)
