"""Ordered, duplicate-free comment list with pagination state.

One store backs the top-level list, and one store backs each expanded reply
thread. Pagination responses and realtime events both change a store only
through the four point mutators (``load_page``, ``insert_at_head``,
``replace_by_id``, ``remove_by_id``) plus ``reset``, so there is a single
reconciliation policy regardless of where a change came from.

The store never raises: unknown ids are ignored and duplicate ids are skipped.
"""

from collections.abc import Iterable, Iterator

from commentsync.core.logging import get_logger

from .models import Comment, SortMode


logger = get_logger(__name__)

TOP_LEVEL_KEY = "top"


def reply_list_key(parent_id: str) -> str:
    """Key identifying the reply list of ``parent_id``."""
    return f"replies:{parent_id}"


class CommentListStore:
    """Single source of truth for one comment list.

    Attributes:
        key: Identity of this list (``top`` or ``replies:<parent id>``).
        parent_id: Parent comment for reply lists, None for the top level.
    """

    def __init__(
        self,
        parent_id: str | None = None,
        sort_mode: SortMode | None = None,
    ) -> None:
        self.parent_id = parent_id
        self.key = reply_list_key(parent_id) if parent_id else TOP_LEVEL_KEY
        self._order: list[str] = []
        self._by_id: dict[str, Comment] = {}
        self._cursor: str | None = None
        self._has_more = True
        # Reply lists have no sort choice (newest first by server contract)
        self._sort_mode = (sort_mode or SortMode.NEWEST) if parent_id is None else None
        self._generation = 0

    # ==========================================================================
    # Read surface
    # ==========================================================================

    @property
    def items(self) -> list[Comment]:
        """Comments in display order."""
        return [self._by_id[comment_id] for comment_id in self._order]

    @property
    def ids(self) -> list[str]:
        """Comment ids in display order."""
        return list(self._order)

    @property
    def cursor(self) -> str | None:
        return self._cursor

    @property
    def has_more(self) -> bool:
        return self._has_more

    @property
    def sort_mode(self) -> SortMode | None:
        return self._sort_mode

    @property
    def generation(self) -> int:
        """Epoch counter, bumped on every reset."""
        return self._generation

    def get(self, comment_id: str) -> Comment | None:
        """Get a comment by id, or None if this list does not hold it."""
        return self._by_id.get(comment_id)

    def __contains__(self, comment_id: object) -> bool:
        return comment_id in self._by_id

    def __len__(self) -> int:
        return len(self._order)

    def __iter__(self) -> Iterator[Comment]:
        return iter(self.items)

    # ==========================================================================
    # Mutators
    # ==========================================================================

    def reset(self, sort_mode: SortMode | None = None) -> None:
        """Discard all entries and pagination state.

        Does not fetch. Bumps ``generation`` so responses requested before the
        reset can be recognized as stale.
        """
        self._order.clear()
        self._by_id.clear()
        self._cursor = None
        self._has_more = True
        if sort_mode is not None and self.parent_id is None:
            self._sort_mode = sort_mode
        self._generation += 1
        logger.debug(
            "comment_list_reset",
            list_key=self.key,
            sort_mode=self._sort_mode,
            generation=self._generation,
        )

    def load_page(
        self,
        comments: Iterable[Comment],
        next_cursor: str | None,
        has_more: bool,
    ) -> int:
        """Append a page, skipping ids already present.

        A realtime insert can race ahead of a page that also contains the
        same comment; the earlier entry keeps its position.

        Returns:
            Number of comments actually appended.
        """
        added = 0
        for comment in comments:
            if comment.id in self._by_id:
                continue
            self._by_id[comment.id] = comment
            self._order.append(comment.id)
            added += 1

        self._cursor = next_cursor
        self._has_more = has_more
        return added

    def insert_at_head(self, comment: Comment) -> bool:
        """Prepend a comment unless its id is already present.

        Returns:
            True if the comment was inserted.
        """
        if comment.id in self._by_id:
            return False
        self._by_id[comment.id] = comment
        self._order.insert(0, comment.id)
        return True

    def replace_by_id(self, comment: Comment) -> bool:
        """Replace the value of an existing entry in place.

        Unknown ids are ignored: this list may never have loaded them.

        Returns:
            True if a replacement occurred.
        """
        if comment.id not in self._by_id:
            return False
        self._by_id[comment.id] = comment
        return True

    def remove_by_id(self, comment_id: str) -> bool:
        """Remove an entry if present.

        Returns:
            True if a removal occurred.
        """
        if self._by_id.pop(comment_id, None) is None:
            return False
        self._order.remove(comment_id)
        return True
