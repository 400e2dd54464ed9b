"""Tests for the reply substore registry.

Covers:
- Lazy creation on first expansion
- Independent cursors and loading state per parent
- Re-expansion does not refetch a loaded list
- Discard tears down the list and its realtime handlers
"""

import asyncio
from unittest.mock import Mock

import pytest

from commentsync.comments.client import NetworkError
from commentsync.comments.models import Page
from commentsync.comments.replies import ReplyStoreRegistry


@pytest.fixture
def reconciler() -> Mock:
    return Mock()


@pytest.fixture
def registry(mock_client, reconciler) -> ReplyStoreRegistry:
    return ReplyStoreRegistry(mock_client, reconciler=reconciler, page_size=5)


class TestExpand:
    """Tests for expanding a parent."""

    @pytest.mark.asyncio
    async def test_first_expand_creates_and_fetches(
        self, registry, mock_client, reconciler, make_comment
    ) -> None:
        """First expansion creates an empty list and loads its first page."""
        mock_client.fetch_replies.return_value = Page(
            [make_comment("r1", parent_id="p1")], "rc2", True
        )

        assert "p1" not in registry
        store = await registry.expand("p1")

        mock_client.fetch_replies.assert_awaited_once_with(
            "p1", cursor=None, limit=5
        )
        assert store.parent_id == "p1"
        assert store.ids == ["r1"]
        assert store.cursor == "rc2"
        assert registry.get("p1") is store
        reconciler.attach.assert_called_once_with(store)

    @pytest.mark.asyncio
    async def test_reexpand_does_not_refetch(
        self, registry, mock_client, make_comment
    ) -> None:
        """A loaded list is shown as is on re-expansion."""
        mock_client.fetch_replies.return_value = Page(
            [make_comment("r1", parent_id="p1")], None, False
        )
        first = await registry.expand("p1")

        second = await registry.expand("p1")

        assert second is first
        assert mock_client.fetch_replies.await_count == 1

    @pytest.mark.asyncio
    async def test_reexpand_parent_without_replies(
        self, registry, mock_client
    ) -> None:
        """A parent with no replies is fetched once and then kept as is."""
        mock_client.fetch_replies.return_value = Page([], None, False)
        store = await registry.expand("p1")
        generation = store.generation

        await registry.expand("p1")
        await registry.expand("p1")

        assert mock_client.fetch_replies.await_count == 1
        assert store.generation == generation
        assert store.has_more is False

    @pytest.mark.asyncio
    async def test_reexpand_after_failed_fetch_retries(
        self, registry, mock_client, make_comment
    ) -> None:
        """An empty list whose first fetch failed is fetched again."""
        mock_client.fetch_replies.side_effect = NetworkError("offline")
        with pytest.raises(NetworkError):
            await registry.expand("p1")

        mock_client.fetch_replies.side_effect = None
        mock_client.fetch_replies.return_value = Page(
            [make_comment("r1", parent_id="p1")]
        )
        store = await registry.expand("p1")

        assert store.ids == ["r1"]
        assert mock_client.fetch_replies.await_count == 2

    @pytest.mark.asyncio
    async def test_lists_are_independent(
        self, registry, mock_client, make_comment
    ) -> None:
        """Each parent keeps its own entries and cursor."""
        pages = {
            "p1": Page([make_comment("r1", parent_id="p1")], "p1-next", True),
            "p2": Page([make_comment("r2", parent_id="p2")], None, False),
        }
        mock_client.fetch_replies.side_effect = (
            lambda parent_id, cursor, limit: pages[parent_id]
        )

        first = await registry.expand("p1")
        second = await registry.expand("p2")

        assert first.ids == ["r1"]
        assert second.ids == ["r2"]
        assert first.cursor == "p1-next"
        assert second.has_more is False
        assert len(registry) == 2
        assert list(registry) == ["p1", "p2"]


class TestLoadMore:
    """Tests for paging through replies."""

    @pytest.mark.asyncio
    async def test_load_more_uses_parent_cursor(
        self, registry, mock_client, make_comment
    ) -> None:
        """load_more passes that parent's own cursor."""
        mock_client.fetch_replies.return_value = Page(
            [make_comment("r1", parent_id="p1")], "rc2", True
        )
        await registry.expand("p1")
        mock_client.fetch_replies.return_value = Page(
            [make_comment("r2", parent_id="p1")], None, False
        )

        assert await registry.load_more("p1") is True

        mock_client.fetch_replies.assert_awaited_with("p1", cursor="rc2", limit=5)
        assert registry.get("p1").ids == ["r1", "r2"]

    @pytest.mark.asyncio
    async def test_load_more_unknown_parent(self, registry, mock_client) -> None:
        """Loading more for an unexpanded parent does nothing."""
        assert await registry.load_more("nope") is False
        mock_client.fetch_replies.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_loading_state_is_per_parent(
        self, registry, mock_client, make_comment
    ) -> None:
        """A fetch in flight for one parent does not block another."""
        gate: asyncio.Future[Page] = asyncio.get_running_loop().create_future()

        async def fetch(parent_id, cursor, limit):
            if parent_id == "p1":
                return await gate
            return Page([make_comment("r2", parent_id="p2")])

        mock_client.fetch_replies.side_effect = fetch

        pending = asyncio.create_task(registry.expand("p1"))
        await asyncio.sleep(0)
        assert registry.is_loading("p1") is True

        await registry.expand("p2")
        assert registry.is_loading("p2") is False
        assert registry.get("p2").ids == ["r2"]

        gate.set_result(Page([make_comment("r1", parent_id="p1")]))
        await pending
        assert registry.get("p1").ids == ["r1"]


class TestRefresh:
    """Tests for refreshing one parent's replies."""

    @pytest.mark.asyncio
    async def test_refresh_resets_and_refetches(
        self, registry, mock_client, make_comment
    ) -> None:
        """Refresh drops loaded replies and fetches the first page again."""
        mock_client.fetch_replies.return_value = Page(
            [make_comment("r1", parent_id="p1")], "rc2", True
        )
        await registry.expand("p1")
        mock_client.fetch_replies.return_value = Page(
            [make_comment("r0", parent_id="p1"), make_comment("r1", parent_id="p1")]
        )

        store = await registry.refresh("p1")

        assert store.ids == ["r0", "r1"]
        mock_client.fetch_replies.assert_awaited_with("p1", cursor=None, limit=5)

    @pytest.mark.asyncio
    async def test_refresh_expands_unknown_parent(
        self, registry, mock_client
    ) -> None:
        """Refreshing a parent that was never expanded creates its list."""
        await registry.refresh("p9")
        assert "p9" in registry


class TestDiscard:
    """Tests for tearing down reply lists."""

    @pytest.mark.asyncio
    async def test_discard_detaches(self, registry, reconciler) -> None:
        """Discard removes the list and its realtime handlers."""
        store = await registry.expand("p1")

        assert registry.discard("p1") is True

        assert "p1" not in registry
        reconciler.detach.assert_called_once_with(store.key)

    def test_discard_unknown_parent(self, registry, reconciler) -> None:
        """Discarding an unexpanded parent is a no-op."""
        assert registry.discard("p1") is False
        reconciler.detach.assert_not_called()

    @pytest.mark.asyncio
    async def test_discard_drops_in_flight_page(
        self, registry, mock_client, make_comment
    ) -> None:
        """A page arriving after discard is not applied."""
        gate: asyncio.Future[Page] = asyncio.get_running_loop().create_future()

        async def fetch(parent_id, cursor, limit):
            return await gate

        mock_client.fetch_replies.side_effect = fetch
        pending = asyncio.create_task(registry.expand("p1"))
        await asyncio.sleep(0)
        store = registry.get("p1")

        registry.discard("p1")
        gate.set_result(Page([make_comment("r1", parent_id="p1")]))
        await pending

        assert len(store) == 0

    @pytest.mark.asyncio
    async def test_close_discards_all(self, registry, reconciler) -> None:
        """close tears down every reply list."""
        await registry.expand("p1")
        await registry.expand("p2")

        registry.close()

        assert len(registry) == 0
        assert reconciler.detach.call_count == 2
