"""HTTP client for the comments data service.

This client handles:
- Cursor-paginated fetches of top-level comments and replies
- Create / update / delete / toggle-reaction calls
- Unwrapping the ``{success, message, data}`` envelope
- Mapping transport and HTTP failures onto a small error taxonomy

Request bodies are validated locally before anything is sent, so an invalid
draft never reaches the network.
"""

from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from commentsync.config.settings import Settings
from commentsync.core.context import request_scope
from commentsync.core.logging import get_logger

from .models import (
    DEFAULT_PAGE_SIZE,
    MAX_CONTENT_LENGTH,
    Comment,
    Page,
    ReactionType,
    SortMode,
)
from .schemas import (
    ApiEnvelope,
    CommentPageSchema,
    CommentSchema,
    CreateCommentRequest,
    ToggleReactionRequest,
    UpdateCommentRequest,
)


logger = get_logger(__name__)

RequestModel = TypeVar("RequestModel", bound=BaseModel)


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class CommentClientError(Exception):
    """Base comment client error."""

    def __init__(self, message: str, code: str = "comment_client_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class NetworkError(CommentClientError):
    """Transport or connectivity failure; the server may not have seen the call."""

    def __init__(self, message: str = "Network error. Please check your connection."):
        super().__init__(message, "network_error")


class RequestError(CommentClientError):
    """Non-2xx response, or a request rejected by local validation."""

    def __init__(
        self,
        status_code: int,
        message: str = "An error occurred",
        errors: dict[str, list[str]] | None = None,
        code: str = "request_error",
    ):
        self.status_code = status_code
        self.errors = errors or {}
        super().__init__(message, code)


class NotFoundError(RequestError):
    """Target comment no longer exists server-side."""

    def __init__(
        self,
        message: str = "Comment not found",
        errors: dict[str, list[str]] | None = None,
    ):
        super().__init__(404, message, errors, code="comment_not_found")


class InvalidResponseError(CommentClientError):
    """A successful response whose body does not match the wire format."""

    def __init__(self, message: str = "Unexpected response from server"):
        super().__init__(message, "invalid_response")


# ==============================================================================
# Helpers
# ==============================================================================


def _validation_errors(exc: ValidationError) -> dict[str, list[str]]:
    errors: dict[str, list[str]] = {}
    for error in exc.errors():
        field = ".".join(str(part) for part in error["loc"]) or "__root__"
        errors.setdefault(field, []).append(error["msg"])
    return errors


def build_request(model: type[RequestModel], **values: Any) -> RequestModel:
    """Validate a request body, raising RequestError on invalid input."""
    try:
        return model(**values)
    except ValidationError as e:
        raise RequestError(
            422, "Validation failed", _validation_errors(e), code="validation_error"
        ) from e


def _parse_envelope(response: httpx.Response) -> ApiEnvelope | None:
    try:
        return ApiEnvelope.model_validate(response.json())
    except (ValueError, ValidationError):
        return None


# ==============================================================================
# Comments Client
# ==============================================================================


class CommentsClient:
    """Async client for the comments REST API."""

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        timeout: float = 10.0,
        page_size: int = DEFAULT_PAGE_SIZE,
        max_content_length: int = MAX_CONTENT_LENGTH,
        http_client: httpx.AsyncClient | None = None,
        user_agent: str | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: API base URL, e.g. ``http://localhost:5000/api/v1``.
            token: Bearer token obtained from the session module.
            timeout: Request timeout in seconds.
            page_size: Default page size for paginated fetches.
            max_content_length: Longest content accepted before sending.
            http_client: Pre-built httpx client (used as-is, not closed here).
            user_agent: Value of the User-Agent header.
        """
        self.page_size = page_size
        self.max_content_length = max_content_length
        self._owns_client = http_client is None
        headers = {"Content-Type": "application/json"}
        if user_agent:
            headers["User-Agent"] = user_agent
        if token:
            headers["Authorization"] = f"Bearer {token}"

        if http_client is None:
            http_client = httpx.AsyncClient(
                base_url=base_url.rstrip("/"),
                headers=headers,
                timeout=timeout,
            )
        else:
            http_client.headers.update(headers)
        self._http = http_client

    @classmethod
    def from_settings(
        cls, settings: Settings, token: str | None = None
    ) -> "CommentsClient":
        """Create a client configured from settings."""
        return cls(
            base_url=settings.api_url,
            token=token,
            timeout=settings.request_timeout,
            page_size=settings.page_size,
            max_content_length=settings.max_content_length,
            user_agent=f"{settings.app_name}/{settings.app_version}",
        )

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self._http.aclose()

    async def __aenter__(self) -> "CommentsClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    # ==========================================================================
    # Transport
    # ==========================================================================

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> Any:
        """Send a request and return the envelope's ``data``.

        Raises:
            NetworkError: On connection failures and timeouts.
            NotFoundError: On 404.
            RequestError: On any other non-2xx status.
            InvalidResponseError: On a 2xx body that is not an envelope.
        """
        with request_scope() as request_id:
            return await self._send(
                method, path, request_id, params=params, json=json
            )

    async def _send(
        self,
        method: str,
        path: str,
        request_id: str,
        *,
        params: dict[str, Any] | None,
        json: dict[str, Any] | None,
    ) -> Any:
        try:
            response = await self._http.request(
                method,
                path,
                params=params,
                json=json,
                headers={"X-Request-ID": request_id},
            )
        except httpx.TransportError as e:
            logger.warning(
                "comments_request_network_error",
                method=method,
                path=path,
                error=str(e),
            )
            raise NetworkError from e

        envelope = _parse_envelope(response)

        if response.is_error:
            message = (
                envelope.message
                if envelope and envelope.message
                else response.reason_phrase
            ) or "An error occurred"
            errors = envelope.errors if envelope else None
            logger.info(
                "comments_request_failed",
                method=method,
                path=path,
                status_code=response.status_code,
                message=message,
            )
            if response.status_code == httpx.codes.NOT_FOUND:
                raise NotFoundError(message, errors)
            raise RequestError(response.status_code, message, errors)

        if envelope is None:
            if response.status_code == httpx.codes.NO_CONTENT:
                return None
            raise InvalidResponseError

        logger.debug(
            "comments_request_succeeded",
            method=method,
            path=path,
            status_code=response.status_code,
        )
        return envelope.data

    def _check_length(self, content: str) -> None:
        if len(content) > self.max_content_length:
            raise RequestError(
                422,
                "Validation failed",
                {"content": [f"At most {self.max_content_length} characters"]},
                code="validation_error",
            )

    @staticmethod
    def _to_comment(data: Any) -> Comment:
        try:
            return CommentSchema.model_validate(data).to_entity()
        except ValidationError as e:
            logger.warning("comments_invalid_comment_payload", errors=e.errors())
            raise InvalidResponseError from e

    @staticmethod
    def _to_page(data: Any) -> Page:
        try:
            return CommentPageSchema.model_validate(data).to_page()
        except ValidationError as e:
            logger.warning("comments_invalid_page_payload", errors=e.errors())
            raise InvalidResponseError from e

    # ==========================================================================
    # Pagination
    # ==========================================================================

    async def fetch_comments(
        self,
        cursor: str | None = None,
        limit: int | None = None,
        sort_mode: SortMode | None = None,
    ) -> Page:
        """Fetch one page of top-level comments.

        Args:
            cursor: Cursor from the previous page, None for the first page.
            limit: Page size (defaults to the client page size).
            sort_mode: Server-side ordering.

        Returns:
            The page of comments.
        """
        params: dict[str, Any] = {"limit": limit or self.page_size}
        if cursor:
            params["cursor"] = cursor
        if sort_mode:
            params["sortBy"] = sort_mode.value

        return self._to_page(await self._request("GET", "/comments", params=params))

    async def fetch_replies(
        self,
        parent_id: str,
        cursor: str | None = None,
        limit: int | None = None,
    ) -> Page:
        """Fetch one page of replies to a comment (newest first)."""
        params: dict[str, Any] = {"limit": limit or self.page_size}
        if cursor:
            params["cursor"] = cursor

        data = await self._request(
            "GET", f"/comments/{parent_id}/replies", params=params
        )
        return self._to_page(data)

    async def fetch_comment(self, comment_id: str) -> Comment:
        """Fetch a single comment by id."""
        return self._to_comment(await self._request("GET", f"/comments/{comment_id}"))

    # ==========================================================================
    # Mutations
    # ==========================================================================

    async def create_comment(
        self, content: str, parent_id: str | None = None
    ) -> Comment:
        """Create a comment, or a reply when ``parent_id`` is given."""
        body = build_request(
            CreateCommentRequest, content=content, parentCommentId=parent_id
        )
        self._check_length(body.content)
        data = await self._request(
            "POST",
            "/comments",
            json=body.model_dump(by_alias=True, exclude_none=True),
        )
        return self._to_comment(data)

    async def update_comment(self, comment_id: str, content: str) -> Comment:
        """Update a comment's content and return the server's canonical value."""
        body = build_request(UpdateCommentRequest, content=content)
        self._check_length(body.content)
        data = await self._request(
            "PATCH", f"/comments/{comment_id}", json=body.model_dump()
        )
        return self._to_comment(data)

    async def delete_comment(self, comment_id: str) -> None:
        """Delete a comment."""
        await self._request("DELETE", f"/comments/{comment_id}")

    async def toggle_reaction(self, comment_id: str, kind: ReactionType) -> Comment:
        """Toggle a reaction.

        Repeating the same kind removes it; the other kind switches it. The
        server owns this toggle; the returned comment carries the new counts.
        """
        body = build_request(ToggleReactionRequest, type=kind)
        data = await self._request(
            "POST",
            f"/comments/{comment_id}/reaction",
            json=body.model_dump(mode="json"),
        )
        return self._to_comment(data)
