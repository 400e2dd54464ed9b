"""Socket.IO connection feeding the realtime event bus.

Handshake, authentication and reconnection/backoff are owned by the
Socket.IO client; this adapter only forwards every inbound event, in arrival
order, to ``EventBus.dispatch``.
"""

from typing import Any

import socketio
from socketio.exceptions import ConnectionError as SocketConnectionError

from commentsync.comments.client import NetworkError
from commentsync.config.settings import Settings
from commentsync.core.logging import get_logger

from .events import EventBus


logger = get_logger(__name__)


class SocketIOTransport:
    """Authenticated Socket.IO client bound to one event bus."""

    def __init__(
        self,
        bus: EventBus,
        url: str,
        token: str | None = None,
        transports: list[str] | None = None,
        reconnection_attempts: int = 5,
        reconnection_delay: float = 1.0,
        client: socketio.AsyncClient | None = None,
    ) -> None:
        """Initialize the transport.

        Args:
            bus: Bus that receives every inbound event.
            url: Socket.IO server URL.
            token: Auth token sent in the handshake.
            transports: Allowed transports, in preference order.
            reconnection_attempts: Attempts before the client gives up.
            reconnection_delay: Initial delay between attempts (seconds).
            client: Pre-built Socket.IO client.
        """
        self.bus = bus
        self.url = url
        self.transports = transports or ["websocket", "polling"]
        self._token = token
        self._sio = client or socketio.AsyncClient(
            reconnection=True,
            reconnection_attempts=reconnection_attempts,
            reconnection_delay=reconnection_delay,
        )

        self._sio.on("connect", self._on_connect)
        self._sio.on("disconnect", self._on_disconnect)
        self._sio.on("connect_error", self._on_connect_error)
        self._sio.on("*", self._on_event)

    @classmethod
    def from_settings(
        cls, settings: Settings, bus: EventBus, token: str | None = None
    ) -> "SocketIOTransport":
        """Create a transport configured from settings."""
        return cls(
            bus=bus,
            url=settings.socket_url,
            token=token,
            transports=settings.socket_transports,
            reconnection_attempts=settings.socket_reconnection_attempts,
            reconnection_delay=settings.socket_reconnection_delay,
        )

    @property
    def connected(self) -> bool:
        return bool(self._sio.connected)

    async def connect(self) -> None:
        """Open the connection.

        Raises:
            NetworkError: If the server cannot be reached or rejects the token.
        """
        try:
            await self._sio.connect(
                self.url,
                auth={"token": self._token} if self._token else None,
                transports=self.transports,
            )
        except SocketConnectionError as e:
            logger.warning("realtime_connect_failed", url=self.url, error=str(e))
            raise NetworkError(f"Realtime connection failed: {e}") from e

    async def disconnect(self) -> None:
        """Close the connection if open."""
        if self.connected:
            await self._sio.disconnect()

    # ==========================================================================
    # Socket.IO callbacks
    # ==========================================================================

    def _on_connect(self) -> None:
        logger.info("realtime_connected", url=self.url)

    def _on_disconnect(self, *args: Any) -> None:
        logger.info("realtime_disconnected", reason=args[0] if args else None)

    def _on_connect_error(self, data: Any = None) -> None:
        logger.warning("realtime_connect_error", error=str(data))

    def _on_event(self, event: str, *args: Any) -> None:
        self.bus.dispatch(event, args[0] if args else None)
