"""Per-session composition of the comment client.

One CommentSession is built per authenticated viewer and passed to whatever
needs the comment list. It owns:
- the HTTP client and the realtime event bus
- the top-level store and the reply registry
- the reconciler that keeps both in step with pushed events
- the optional Socket.IO transport

Closing the session deregisters every realtime handler it installed.
"""

from typing import Any

from pydantic import ValidationError

from commentsync.comments.client import CommentsClient
from commentsync.comments.models import DEFAULT_PAGE_SIZE, SortMode
from commentsync.comments.replies import ReplyStoreRegistry
from commentsync.comments.schemas import CommentDeletedPayload
from commentsync.comments.service import CommentService
from commentsync.comments.store import CommentListStore
from commentsync.config.settings import Settings
from commentsync.core.context import set_viewer_id
from commentsync.core.logging import get_logger
from commentsync.realtime.events import EventBus, EventKind, Subscription
from commentsync.realtime.reconciler import RealtimeReconciler
from commentsync.realtime.transport import SocketIOTransport


logger = get_logger(__name__)


class CommentSession:
    """Composition root for one viewer's comment view."""

    def __init__(
        self,
        client: CommentsClient,
        viewer_id: str | None = None,
        bus: EventBus | None = None,
        transport: SocketIOTransport | None = None,
        sort_mode: SortMode = SortMode.NEWEST,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        """Wire the stores, reconciler and service together.

        Args:
            client: Comments API client.
            viewer_id: Authenticated viewer id from the auth module.
            bus: Event bus; a private one is created when omitted.
            transport: Realtime connection feeding ``bus``.
            sort_mode: Initial top-level ordering.
            page_size: Comments requested per page.
        """
        self.viewer_id = viewer_id
        self.client = client
        self.bus = bus or EventBus()
        self.transport = transport
        self.reconciler = RealtimeReconciler(self.bus, viewer_id=viewer_id)
        self.store = CommentListStore(sort_mode=sort_mode)
        self.replies = ReplyStoreRegistry(
            client, reconciler=self.reconciler, page_size=page_size
        )
        self.comments = CommentService(
            client, self.store, self.replies, page_size=page_size
        )
        self.reconciler.attach(self.store)
        self._parent_deleted: Subscription = self.bus.subscribe(
            EventKind.COMMENT_DELETED, self._on_parent_deleted
        )
        self._closed = False

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        token: str | None = None,
        viewer_id: str | None = None,
        realtime: bool = True,
    ) -> "CommentSession":
        """Build a session (and, if ``realtime``, its transport) from settings."""
        bus = EventBus()
        transport = (
            SocketIOTransport.from_settings(settings, bus, token=token)
            if realtime
            else None
        )
        return cls(
            client=CommentsClient.from_settings(settings, token=token),
            viewer_id=viewer_id,
            bus=bus,
            transport=transport,
            page_size=settings.page_size,
        )

    @property
    def closed(self) -> bool:
        return self._closed

    def _on_parent_deleted(self, payload: dict[str, Any]) -> None:
        try:
            event = CommentDeletedPayload.model_validate(payload)
        except ValidationError:
            # Already logged by the reconciler
            return
        self.replies.discard(event.comment_id)

    async def start(self) -> None:
        """Connect the realtime stream and load the first page."""
        set_viewer_id(self.viewer_id)
        if self.transport is not None:
            await self.transport.connect()
        await self.comments.refresh()
        logger.info(
            "comment_session_started",
            realtime=self.transport is not None,
            loaded=len(self.store),
        )

    async def close(self) -> None:
        """Deregister realtime handlers and release connections."""
        if self._closed:
            return
        self._closed = True
        self.bus.unsubscribe(self._parent_deleted)
        self.replies.close()
        self.comments.paginator.close()
        self.reconciler.close()
        try:
            if self.transport is not None:
                await self.transport.disconnect()
        finally:
            await self.client.aclose()
        logger.info("comment_session_closed")

    async def __aenter__(self) -> "CommentSession":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
