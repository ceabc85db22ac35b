"""
Socket.IO transport for real-time collaboration.

SocketService owns one socketio.AsyncClient and fans every event out to any
number of listeners. Listeners can be added before or after connecting;
on() returns a callable that removes exactly that listener, so components
sharing the service never drop each other's handlers.

Events sent:
    join_collaboration {room_id, type}
    leave_collaboration {room_id}
    chart_update {room_id, changes}
    cursor_position {room_id, position}
    typing_indicator {room_id, is_typing, field}
    notification {target_user_id, type, message}

Events received:
    user_joined / user_left / collaboration_joined {room_id, active_users}
    chart_updated {room_id, changes, updated_by}
    cursor_moved {user_id, user_type, position}
    user_typing {user_id, field, is_typing}
    notification_received {type, message, from_user?, timestamp?}
"""

import asyncio
import inspect
import logging
from typing import Any, Callable, Dict, List, Optional

import socketio
from socketio.exceptions import ConnectionError as SocketConnectionError

from footballviz.config import settings
from footballviz.errors import CollaborationError
from footballviz.logging import log_error

logger = logging.getLogger(__name__)

Listener = Callable[[Any], Any]
ClientFactory = Callable[[], Any]

ROOM_TYPES = ("chart", "game", "team")


def default_client_factory() -> socketio.AsyncClient:
    return socketio.AsyncClient(
        reconnection=True,
        reconnection_attempts=settings.SOCKET_RECONNECTION_ATTEMPTS,
        reconnection_delay=settings.SOCKET_RECONNECTION_DELAY,
        logger=False,
        engineio_logger=False,
    )


class SocketService:
    """
    Args:
        url: Collaboration server URL (default FOOTBALLVIZ_SOCKET_URL)
        client_factory: Builds the Socket.IO client (tests inject fakes)
        max_connect_errors: Give up after this many connect errors in a row
        connect_timeout: Seconds to wait for the initial connection
    """

    def __init__(
        self,
        url: Optional[str] = None,
        client_factory: Optional[ClientFactory] = None,
        max_connect_errors: Optional[int] = None,
        connect_timeout: Optional[float] = None,
    ):
        self.url = url or settings.FOOTBALLVIZ_SOCKET_URL
        self.client_factory = client_factory or default_client_factory
        self.max_connect_errors = max_connect_errors or settings.SOCKET_RECONNECTION_ATTEMPTS
        self.connect_timeout = connect_timeout or settings.SOCKET_CONNECT_TIMEOUT
        self.connect_errors = 0
        self._sio: Any = None
        self._listeners: Dict[str, List[Listener]] = {}
        self._registered: set = set()

    # ------------------------------------------------------------------
    # Connection
    # ------------------------------------------------------------------

    @property
    def connected(self) -> bool:
        return bool(self._sio is not None and self._sio.connected)

    async def connect(self, token: str) -> None:
        """
        Connect with the bearer token as Socket.IO auth. No-op when connected.

        Raises:
            CollaborationError: If the server cannot be reached
        """
        if self.connected:
            return

        self._sio = self.client_factory()
        self._registered = set()
        self._register("connect")
        self._register("disconnect")
        self._register("connect_error")
        for event in self._listeners:
            self._register(event)

        try:
            await self._sio.connect(
                self.url, auth={"token": token}, wait_timeout=self.connect_timeout
            )
        except SocketConnectionError as e:
            self._sio = None
            raise CollaborationError(
                f"Could not connect to collaboration server: {e}",
                details={"url": self.url},
            ) from e

    async def disconnect(self) -> None:
        if self._sio is not None:
            sio, self._sio = self._sio, None
            await sio.disconnect()

    # ------------------------------------------------------------------
    # Listener fan-out
    # ------------------------------------------------------------------

    def _register(self, event: str) -> None:
        if self._sio is None or event in self._registered:
            return

        async def dispatcher(*args: Any) -> None:
            await self._dispatch(event, args[0] if args else None)

        self._sio.on(event, handler=dispatcher)
        self._registered.add(event)

    async def _dispatch(self, event: str, data: Any) -> None:
        if event == "connect":
            self.connect_errors = 0
            logger.info("Connected to collaboration server", extra={"event": event})
        elif event == "disconnect":
            logger.info(f"Disconnected from collaboration server: {data}", extra={"event": event})
        elif event == "connect_error":
            self.connect_errors += 1
            logger.warning(
                f"Connection error: {data}",
                extra={"event": event, "attempts": self.connect_errors},
            )
            if self.connect_errors >= self.max_connect_errors:
                logger.error("Max reconnection attempts reached")
                asyncio.get_running_loop().create_task(self.disconnect())

        for listener in list(self._listeners.get(event, [])):
            try:
                result = listener(data)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                log_error(logger, e, {"event": event})

    def on(self, event: str, listener: Listener) -> Callable[[], None]:
        """
        Add a listener; returns a callable that removes it.

        Example:
            unsubscribe = socket.on("chart_updated", handle_update)
            ...
            unsubscribe()
        """
        self._listeners.setdefault(event, []).append(listener)
        self._register(event)

        def unsubscribe() -> None:
            self.off(event, listener)

        return unsubscribe

    def off(self, event: str, listener: Optional[Listener] = None) -> None:
        """Remove one listener, or every listener of the event when none is given."""
        if listener is None:
            self._listeners.pop(event, None)
            return
        listeners = self._listeners.get(event, [])
        if listener in listeners:
            listeners.remove(listener)

    def remove_all_listeners(self) -> None:
        self._listeners.clear()

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, []))

    # ------------------------------------------------------------------
    # Emitters
    # ------------------------------------------------------------------

    async def _emit(self, event: str, data: Dict[str, Any]) -> None:
        if self._sio is None:
            raise CollaborationError(f"Cannot send '{event}': not connected")
        logger.debug(f"Emit {event}", extra={"event": event, "room_id": data.get("room_id")})
        await self._sio.emit(event, data)

    async def join_collaboration(self, room_id: str, type: str = "chart") -> None:
        if type not in ROOM_TYPES:
            raise ValueError(f"Room type must be one of {', '.join(ROOM_TYPES)}")
        await self._emit("join_collaboration", {"room_id": room_id, "type": type})

    async def leave_collaboration(self, room_id: str) -> None:
        await self._emit("leave_collaboration", {"room_id": room_id})

    async def send_chart_update(self, room_id: str, changes: Dict[str, Any]) -> None:
        await self._emit("chart_update", {"room_id": room_id, "changes": changes})

    async def send_cursor_position(self, room_id: str, position: Dict[str, Any]) -> None:
        await self._emit("cursor_position", {"room_id": room_id, "position": position})

    async def send_typing_indicator(
        self, room_id: str, is_typing: bool, field: Optional[str] = None
    ) -> None:
        await self._emit(
            "typing_indicator",
            {"room_id": room_id, "is_typing": is_typing, "field": field or "general"},
        )

    async def send_notification(self, target_user_id: Any, type: str, message: str) -> None:
        await self._emit(
            "notification",
            {"target_user_id": target_user_id, "type": type, "message": message},
        )
