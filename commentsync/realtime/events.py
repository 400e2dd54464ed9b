"""In-process dispatch of realtime comment events.

Provides:
- EventKind: the event names pushed by the server
- Subscription: the token returned by ``subscribe``
- EventBus: synchronous, arrival-ordered fan-out to subscribed handlers

Unsubscribing takes the token, not the event name, so tearing down one list
never removes another list's handler for the same event kind.
"""

import itertools
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from commentsync.core.logging import get_logger


logger = get_logger(__name__)


class EventKind(str, Enum):
    """Realtime event names as sent on the wire."""

    COMMENT_CREATED = "comment:new"
    COMMENT_UPDATED = "comment:update"
    COMMENT_DELETED = "comment:delete"
    COMMENT_REACTED = "comment:reaction"
    REPLY_CREATED = "comment:reply"


EventHandler = Callable[[dict[str, Any]], None]

_subscription_ids = itertools.count(1)


@dataclass(frozen=True)
class Subscription:
    """Handle for exactly one registered handler."""

    kind: EventKind
    handler: EventHandler = field(compare=False, repr=False)
    id: int = field(default_factory=lambda: next(_subscription_ids))


class EventBus:
    """Registry of realtime handlers keyed by subscription token."""

    def __init__(self) -> None:
        self._handlers: dict[EventKind, dict[int, Subscription]] = {
            kind: {} for kind in EventKind
        }

    def subscribe(self, kind: EventKind, handler: EventHandler) -> Subscription:
        """Register a handler and return its subscription token."""
        subscription = Subscription(kind=kind, handler=handler)
        self._handlers[kind][subscription.id] = subscription
        return subscription

    def unsubscribe(self, subscription: Subscription) -> bool:
        """Remove exactly the handler behind ``subscription``.

        Returns:
            True if the handler was still registered.
        """
        return self._handlers[subscription.kind].pop(subscription.id, None) is not None

    def handler_count(self, kind: EventKind | None = None) -> int:
        """Number of registered handlers, for one kind or in total."""
        if kind is not None:
            return len(self._handlers[kind])
        return sum(len(handlers) for handlers in self._handlers.values())

    def dispatch(self, event_name: str, payload: Any) -> int:
        """Deliver an event to every handler subscribed to its kind.

        Handlers run synchronously in registration order. Unknown event names
        and non-object payloads are dropped; a failing handler is logged and
        does not stop delivery to the others.

        Returns:
            Number of handlers the event was delivered to.
        """
        try:
            kind = EventKind(event_name)
        except ValueError:
            logger.debug("realtime_event_ignored", event_name=event_name)
            return 0

        if not isinstance(payload, dict):
            logger.warning(
                "realtime_event_dropped",
                event_name=event_name,
                reason="payload_not_object",
            )
            return 0

        # Handlers may unsubscribe while we iterate
        subscriptions = list(self._handlers[kind].values())
        for subscription in subscriptions:
            try:
                subscription.handler(payload)
            except Exception:
                logger.exception(
                    "realtime_handler_failed",
                    event_name=event_name,
                    subscription_id=subscription.id,
                )
        return len(subscriptions)
