"""Cursor pagination for a comment list.

A Paginator drives one CommentListStore through a page fetcher:
- ``refresh`` resets the store and loads the first page
- ``load_more`` requests the page after the stored cursor

At most one request is in flight per list and epoch. Every reset bumps the
store's generation; a response that arrives after a reset (sort change,
re-expansion, teardown) belongs to an older generation and is discarded
instead of being appended to the fresh list.
"""

from typing import Protocol

from commentsync.core.context import list_scope
from commentsync.core.logging import get_logger

from .models import DEFAULT_PAGE_SIZE, Page, SortMode
from .store import CommentListStore


logger = get_logger(__name__)


class PageFetcher(Protocol):
    """Fetch one ordered page given an opaque cursor."""

    async def __call__(
        self,
        cursor: str | None,
        limit: int,
        sort_mode: SortMode | None,
    ) -> Page: ...


class Paginator:
    """Single-flight, epoch-guarded pagination for one store."""

    def __init__(
        self,
        store: CommentListStore,
        fetch_page: PageFetcher,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        self.store = store
        self.page_size = page_size
        self._fetch_page = fetch_page
        self._loading_generation: int | None = None
        self._closed = False
        self._loaded = False

    @property
    def is_loading(self) -> bool:
        """Check if a fetch for the current generation is in flight."""
        return self._loading_generation == self.store.generation

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def loaded(self) -> bool:
        """Check if a page was applied since the last reset."""
        return self._loaded

    async def refresh(self, sort_mode: SortMode | None = None) -> bool:
        """Reset the list and fetch its first page.

        Returns:
            True if the page was applied, False if it went stale first.
        """
        self.store.reset(sort_mode)
        self._loaded = False
        return await self._fetch()

    async def load_more(self) -> bool:
        """Fetch the next page.

        No-op when the list is exhausted or a fetch is already in flight.

        Returns:
            True if a page was applied.
        """
        if self._closed or not self.store.has_more or self.is_loading:
            logger.debug(
                "load_more_skipped",
                list_key=self.store.key,
                has_more=self.store.has_more,
                loading=self.is_loading,
            )
            return False
        return await self._fetch()

    def close(self) -> None:
        """Stop applying responses; in-flight requests are left to finish."""
        self._closed = True
        self._loading_generation = None

    async def _fetch(self) -> bool:
        with list_scope(self.store.key):
            return await self._fetch_and_apply()

    async def _fetch_and_apply(self) -> bool:
        generation = self.store.generation
        self._loading_generation = generation
        try:
            page = await self._fetch_page(
                self.store.cursor, self.page_size, self.store.sort_mode
            )
        finally:
            if self._loading_generation == generation:
                self._loading_generation = None

        if self._closed or generation != self.store.generation:
            logger.info(
                "stale_page_discarded",
                list_key=self.store.key,
                requested_generation=generation,
                current_generation=self.store.generation,
                closed=self._closed,
            )
            return False

        added = self.store.load_page(page.items, page.next_cursor, page.has_more)
        self._loaded = True
        logger.debug(
            "page_loaded",
            list_key=self.store.key,
            received=len(page.items),
            added=added,
            has_more=page.has_more,
        )
        return True
