"""Registry of per-parent reply lists.

A reply list is created the first time its parent is expanded and lives until
the session ends or the parent is removed. Each one has its own store, cursor
and in-flight state, and is attached to the realtime reconciler while it
exists. Parents that were never expanded have no list; realtime replies for
them are dropped and picked up by the first fetch on expansion.
"""

from collections.abc import Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING

from commentsync.core.logging import get_logger

from .models import DEFAULT_PAGE_SIZE, Page, SortMode
from .pagination import PageFetcher, Paginator
from .store import CommentListStore


if TYPE_CHECKING:
    from commentsync.realtime.reconciler import RealtimeReconciler

    from .client import CommentsClient


logger = get_logger(__name__)


def reply_fetcher(client: "CommentsClient", parent_id: str) -> PageFetcher:
    """Adapt ``fetch_replies`` to the page fetcher protocol."""

    async def fetch(
        cursor: str | None, limit: int, sort_mode: SortMode | None
    ) -> Page:
        return await client.fetch_replies(parent_id, cursor=cursor, limit=limit)

    return fetch


@dataclass
class ReplyThread:
    """Store and paginator for one parent's replies."""

    store: CommentListStore
    paginator: Paginator


class ReplyStoreRegistry:
    """Lazily created reply lists keyed by parent comment id."""

    def __init__(
        self,
        client: "CommentsClient",
        reconciler: "RealtimeReconciler | None" = None,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        self.client = client
        self.reconciler = reconciler
        self.page_size = page_size
        self._threads: dict[str, ReplyThread] = {}

    def __contains__(self, parent_id: object) -> bool:
        return parent_id in self._threads

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._threads))

    def __len__(self) -> int:
        return len(self._threads)

    def get(self, parent_id: str) -> CommentListStore | None:
        """Get the reply store of an expanded parent."""
        thread = self._threads.get(parent_id)
        return thread.store if thread else None

    def stores(self) -> list[CommentListStore]:
        """All reply stores, in expansion order."""
        return [thread.store for thread in self._threads.values()]

    def _ensure_thread(self, parent_id: str) -> tuple[ReplyThread, bool]:
        thread = self._threads.get(parent_id)
        if thread is not None:
            return thread, False

        store = CommentListStore(parent_id=parent_id)
        thread = ReplyThread(
            store=store,
            paginator=Paginator(
                store, reply_fetcher(self.client, parent_id), self.page_size
            ),
        )
        self._threads[parent_id] = thread
        if self.reconciler is not None:
            self.reconciler.attach(store)
        logger.debug("reply_list_created", parent_id=parent_id)
        return thread, True

    async def expand(self, parent_id: str) -> CommentListStore:
        """Show a parent's replies, fetching the first page on first expansion.

        An already expanded list is returned as is, even when it has no
        replies. It is fetched again only if no page was ever applied to it
        (its first fetch failed) and nothing is in flight.
        """
        thread, created = self._ensure_thread(parent_id)
        store = thread.store
        needs_fetch = created or not (
            thread.paginator.loaded or thread.paginator.is_loading
        )
        if needs_fetch:
            await thread.paginator.refresh()
        return store

    async def refresh(self, parent_id: str) -> CommentListStore:
        """Reset a parent's replies and fetch them again, expanding if needed."""
        thread, _ = self._ensure_thread(parent_id)
        await thread.paginator.refresh()
        return thread.store

    async def load_more(self, parent_id: str) -> bool:
        """Fetch the next page of replies of an expanded parent.

        Returns:
            True if a page was applied.
        """
        thread = self._threads.get(parent_id)
        if thread is None:
            return False
        return await thread.paginator.load_more()

    def is_loading(self, parent_id: str) -> bool:
        thread = self._threads.get(parent_id)
        return thread is not None and thread.paginator.is_loading

    def discard(self, parent_id: str) -> bool:
        """Tear down a parent's reply list and its realtime handlers.

        Returns:
            True if the parent had been expanded.
        """
        thread = self._threads.pop(parent_id, None)
        if thread is None:
            return False
        thread.paginator.close()
        if self.reconciler is not None:
            self.reconciler.detach(thread.store.key)
        logger.debug("reply_list_discarded", parent_id=parent_id)
        return True

    def close(self) -> None:
        """Discard every reply list."""
        for parent_id in list(self._threads):
            self.discard(parent_id)
