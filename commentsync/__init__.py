"""Client-side comment list reconciliation.

Keeps a local, ordered, duplicate-free view of a threaded comment list fed by
cursor-paginated fetches and a realtime push stream.
"""

from commentsync.session import CommentSession


__all__ = ["CommentSession"]
