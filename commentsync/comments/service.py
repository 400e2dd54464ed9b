"""Comment service: the public surface for listing and mutating comments.

Business logic for:
- Top-level listing: first page, load more, sort change
- Create / edit / remove / react, confirmed by the server before any local
  change (no optimistic state, hence no rollback path)
- Applying confirmed results to whichever list holds the comment

A failed call raises a CommentClientError and leaves every store as it was.
"""

from commentsync.core.logging import get_logger

from .client import CommentClientError, CommentsClient
from .models import DEFAULT_PAGE_SIZE, Comment, Page, ReactionType, SortMode
from .pagination import Paginator
from .replies import ReplyStoreRegistry
from .store import CommentListStore


logger = get_logger(__name__)


class CommentService:
    """Mutation coordinator over the top-level list and reply lists."""

    def __init__(
        self,
        client: CommentsClient,
        store: CommentListStore,
        replies: ReplyStoreRegistry,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        """Initialize with the data service client and the stores it feeds.

        Args:
            client: Comments API client.
            store: Top-level comment list.
            replies: Registry of reply lists.
            page_size: Comments requested per page.
        """
        self.client = client
        self.store = store
        self.replies = replies
        self.paginator = Paginator(store, self._fetch_top_level, page_size)

    async def _fetch_top_level(
        self, cursor: str | None, limit: int, sort_mode: SortMode | None
    ) -> Page:
        return await self.client.fetch_comments(
            cursor=cursor, limit=limit, sort_mode=sort_mode
        )

    def _lists(self) -> list[CommentListStore]:
        return [self.store, *self.replies.stores()]

    # ==========================================================================
    # Listing
    # ==========================================================================

    @property
    def sort_mode(self) -> SortMode:
        return self.store.sort_mode or SortMode.NEWEST

    @property
    def is_loading(self) -> bool:
        return self.paginator.is_loading

    async def fetch(self, reset: bool = False) -> bool:
        """Fetch the first page (``reset``) or the next one.

        Returns:
            True if a page was applied.
        """
        if reset:
            return await self.paginator.refresh()
        return await self.paginator.load_more()

    async def refresh(self) -> bool:
        """Reload the top-level list from its first page."""
        return await self.paginator.refresh()

    async def load_more(self) -> bool:
        """Load the next page; no-op when exhausted or already loading."""
        return await self.paginator.load_more()

    async def set_sort_mode(self, sort_mode: SortMode) -> bool:
        """Discard the top-level list and fetch it again in a new order.

        The server alone defines sort order, so there is no local re-sort.
        """
        logger.info(
            "comment_sort_changed",
            previous=self.store.sort_mode,
            sort_mode=sort_mode,
        )
        return await self.paginator.refresh(sort_mode)

    # ==========================================================================
    # Mutations
    # ==========================================================================

    async def create(self, content: str, parent_id: str | None = None) -> Comment:
        """Create a comment.

        A top-level comment is inserted at the head of the top-level list.
        A reply is not inserted anywhere: the caller refreshes that parent's
        reply list (see ``reply``).

        Raises:
            CommentClientError: If the request failed; nothing was created.
        """
        try:
            comment = await self.client.create_comment(content, parent_id)
        except CommentClientError as e:
            logger.warning("comment_create_failed", parent_id=parent_id, code=e.code)
            raise

        if parent_id is None:
            self.store.insert_at_head(comment)
        logger.info("comment_created", comment_id=comment.id, parent_id=parent_id)
        return comment

    async def reply(self, parent_id: str, content: str) -> Comment:
        """Create a reply and re-fetch the parent's reply list.

        Once the reply exists a failed refresh is only logged, so callers do
        not retry and post it twice.
        """
        comment = await self.create(content, parent_id)
        try:
            await self.replies.refresh(parent_id)
        except CommentClientError as e:
            logger.warning(
                "reply_list_refresh_failed",
                parent_id=parent_id,
                code=e.code,
            )
        return comment

    async def edit(self, comment_id: str, content: str) -> Comment:
        """Update a comment and apply the server's canonical value.

        Raises:
            CommentClientError: If the request failed.
        """
        try:
            comment = await self.client.update_comment(comment_id, content)
        except CommentClientError as e:
            logger.warning("comment_edit_failed", comment_id=comment_id, code=e.code)
            raise

        replaced = sum(store.replace_by_id(comment) for store in self._lists())
        logger.info("comment_edited", comment_id=comment_id, lists_updated=replaced)
        return comment

    async def remove(self, comment_id: str) -> bool:
        """Delete a comment.

        A removed top-level comment also loses its reply list.

        Returns:
            True if a local list actually held the comment.

        Raises:
            CommentClientError: If the request failed.
        """
        try:
            await self.client.delete_comment(comment_id)
        except CommentClientError as e:
            logger.warning(
                "comment_remove_failed", comment_id=comment_id, code=e.code
            )
            raise

        removed = False
        for store in self._lists():
            removed = store.remove_by_id(comment_id) or removed
        self.replies.discard(comment_id)
        logger.info("comment_removed", comment_id=comment_id, was_listed=removed)
        return removed

    async def react(self, comment_id: str, kind: ReactionType) -> Comment:
        """Toggle a reaction and apply the returned counts.

        Same kind again turns it off, the other kind switches it; both are
        decided by the server.

        Raises:
            CommentClientError: If the request failed.
        """
        try:
            comment = await self.client.toggle_reaction(comment_id, kind)
        except CommentClientError as e:
            logger.warning(
                "comment_react_failed",
                comment_id=comment_id,
                reaction=kind.value,
                code=e.code,
            )
            raise

        for store in self._lists():
            store.replace_by_id(comment)
        logger.info(
            "comment_reacted",
            comment_id=comment_id,
            viewer_reaction=comment.viewer_reaction.value,
        )
        return comment
