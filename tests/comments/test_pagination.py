"""Tests for cursor pagination.

Covers:
- First page and next page requests (cursor, limit, sort mode)
- Single-flight: load_more while a fetch is in flight is a no-op
- Exhausted lists never fetch again
- Responses from an older epoch are discarded after a reset
- Errors propagate and clear the in-flight flag
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from commentsync.comments.client import NetworkError
from commentsync.comments.models import Page, SortMode
from commentsync.comments.pagination import Paginator
from commentsync.comments.store import CommentListStore


class GatedFetcher:
    """Page fetcher whose calls block until released by the test."""

    def __init__(self) -> None:
        self.calls: list[tuple[str | None, int, SortMode | None]] = []
        self._gates: list[asyncio.Future[Page]] = []

    async def __call__(
        self, cursor: str | None, limit: int, sort_mode: SortMode | None
    ) -> Page:
        self.calls.append((cursor, limit, sort_mode))
        gate: asyncio.Future[Page] = asyncio.get_running_loop().create_future()
        self._gates.append(gate)
        return await gate

    def release(self, index: int, page: Page) -> None:
        self._gates[index].set_result(page)

    def fail(self, index: int, error: Exception) -> None:
        self._gates[index].set_exception(error)


@pytest.fixture
def store() -> CommentListStore:
    return CommentListStore()


@pytest.fixture
def fetcher() -> AsyncMock:
    return AsyncMock(return_value=Page())


class TestRefresh:
    """Tests for loading the first page."""

    @pytest.mark.asyncio
    async def test_requests_first_page(self, store, fetcher, make_comment) -> None:
        """Refresh should fetch with no cursor and the store's sort mode."""
        fetcher.return_value = Page(
            items=[make_comment("a"), make_comment("b")],
            next_cursor="c2",
            has_more=True,
        )
        paginator = Paginator(store, fetcher, page_size=2)

        applied = await paginator.refresh()

        assert applied is True
        fetcher.assert_awaited_once_with(None, 2, SortMode.NEWEST)
        assert store.ids == ["a", "b"]
        assert store.cursor == "c2"
        assert store.has_more is True

    @pytest.mark.asyncio
    async def test_refresh_with_sort_mode(self, store, fetcher, make_comment) -> None:
        """A sort change discards the list and re-requests in the new order."""
        store.load_page([make_comment("old")], "c9", True)
        fetcher.return_value = Page(items=[make_comment("top")])
        paginator = Paginator(store, fetcher)

        await paginator.refresh(SortMode.MOST_LIKED)

        fetcher.assert_awaited_once_with(None, 10, SortMode.MOST_LIKED)
        assert store.ids == ["top"]
        assert store.sort_mode == SortMode.MOST_LIKED


class TestLoadMore:
    """Tests for loading subsequent pages."""

    @pytest.mark.asyncio
    async def test_uses_stored_cursor(self, store, fetcher, make_comment) -> None:
        """load_more passes the cursor returned by the previous page."""
        paginator = Paginator(store, fetcher, page_size=2)
        fetcher.return_value = Page([make_comment("a")], "c2", True)
        await paginator.refresh()
        fetcher.return_value = Page([make_comment("b")], None, False)

        applied = await paginator.load_more()

        assert applied is True
        assert fetcher.await_args.args == ("c2", 2, SortMode.NEWEST)
        assert store.ids == ["a", "b"]
        assert store.has_more is False

    @pytest.mark.asyncio
    async def test_exhausted_list_is_noop(self, store, fetcher) -> None:
        """Once has_more is false no further request is made."""
        store.load_page([], None, False)
        paginator = Paginator(store, fetcher)

        assert await paginator.load_more() is False
        fetcher.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_has_more_false_with_cursor_stops(
        self, store, fetcher, make_comment
    ) -> None:
        """has_more is authoritative even when a cursor is present."""
        fetcher.return_value = Page([make_comment("a")], "dangling", False)
        paginator = Paginator(store, fetcher)
        await paginator.refresh()

        assert await paginator.load_more() is False
        assert fetcher.await_count == 1

    @pytest.mark.asyncio
    async def test_concurrent_load_more_is_single_flight(
        self, store, make_comment
    ) -> None:
        """A second load_more while one is in flight issues no request."""
        store.load_page([make_comment("a")], "c2", True)
        fetcher = GatedFetcher()
        paginator = Paginator(store, fetcher)

        first = asyncio.create_task(paginator.load_more())
        await asyncio.sleep(0)
        assert paginator.is_loading is True

        second = await paginator.load_more()

        fetcher.release(0, Page([make_comment("b")], "c3", True))
        assert await first is True
        assert second is False
        assert len(fetcher.calls) == 1
        assert store.ids == ["a", "b"]
        assert paginator.is_loading is False

    @pytest.mark.asyncio
    async def test_closed_paginator_is_noop(self, store, fetcher) -> None:
        """A closed paginator never fetches."""
        paginator = Paginator(store, fetcher)
        paginator.close()

        assert await paginator.load_more() is False
        fetcher.assert_not_awaited()


class TestStaleResponses:
    """Tests for the epoch guard."""

    @pytest.mark.asyncio
    async def test_sort_change_discards_in_flight_page(
        self, store, make_comment
    ) -> None:
        """A page requested under the old sort mode never reaches the new list."""
        store.load_page([make_comment("a")], "c2", True)
        fetcher = GatedFetcher()
        paginator = Paginator(store, fetcher)

        old = asyncio.create_task(paginator.load_more())
        await asyncio.sleep(0)
        new = asyncio.create_task(paginator.refresh(SortMode.MOST_LIKED))
        await asyncio.sleep(0)

        fetcher.release(1, Page([make_comment("liked")], "l2", True))
        assert await new is True
        fetcher.release(0, Page([make_comment("stale")], "c3", True))
        assert await old is False

        assert store.ids == ["liked"]
        assert store.cursor == "l2"
        assert fetcher.calls[1] == (None, 10, SortMode.MOST_LIKED)

    @pytest.mark.asyncio
    async def test_stale_completion_keeps_new_fetch_in_flight(
        self, store, make_comment
    ) -> None:
        """An old request finishing does not clear the new request's flag."""
        fetcher = GatedFetcher()
        paginator = Paginator(store, fetcher)

        old = asyncio.create_task(paginator.refresh())
        await asyncio.sleep(0)
        new = asyncio.create_task(paginator.refresh())
        await asyncio.sleep(0)

        fetcher.release(0, Page([make_comment("stale")]))
        assert await old is False
        assert paginator.is_loading is True

        fetcher.release(1, Page([make_comment("fresh")]))
        assert await new is True
        assert store.ids == ["fresh"]

    @pytest.mark.asyncio
    async def test_close_discards_in_flight_page(self, store, make_comment) -> None:
        """Responses arriving after close are not applied."""
        fetcher = GatedFetcher()
        paginator = Paginator(store, fetcher)

        task = asyncio.create_task(paginator.refresh())
        await asyncio.sleep(0)
        paginator.close()
        fetcher.release(0, Page([make_comment("late")]))

        assert await task is False
        assert len(store) == 0


class TestErrors:
    """Tests for failed fetches."""

    @pytest.mark.asyncio
    async def test_error_propagates_and_clears_flag(
        self, store, fetcher, make_comment
    ) -> None:
        """A failed fetch raises, leaves the list as is, and allows a retry."""
        store.load_page([make_comment("a")], "c2", True)
        fetcher.side_effect = NetworkError("offline")
        paginator = Paginator(store, fetcher)

        with pytest.raises(NetworkError):
            await paginator.load_more()

        assert paginator.is_loading is False
        assert store.ids == ["a"]
        assert store.cursor == "c2"

        fetcher.side_effect = None
        fetcher.return_value = Page([make_comment("b")], None, False)
        assert await paginator.load_more() is True
        assert store.ids == ["a", "b"]
