"""
Collaboration provider: connection lifecycle, room presence and the
notification inbox on top of SocketService.

One provider is created per session and passed to the components that
need it; there is no module-level instance.

Usage:
    async with CollaborationProvider(token=settings.FOOTBALLVIZ_API_TOKEN) as collab:
        await collab.join_room("chart_12")
        collab.subscribe("chart_updated", on_chart_update)
        ...
"""

import logging
import uuid
from typing import Any, Callable, Dict, List, Literal, Optional

from pydantic import ValidationError

from footballviz.collab.socket import SocketService
from footballviz.config import settings
from footballviz.data.models.collab import ActiveUser, CursorPosition, Notification
from footballviz.errors import CollaborationError, ErrorBanner
from footballviz.logging import RequestContext

logger = logging.getLogger(__name__)

PRESENCE_EVENTS = ("user_joined", "user_left", "collaboration_joined")

CATEGORIES = (
    "user_joined",
    "user_left",
    "collaboration_joined",
    "chart_updated",
    "notification_received",
    "cursor_moved",
    "user_typing",
)


class CollaborationProvider:
    """
    Args:
        token: Bearer token; without one start() does not connect
        socket: SocketService to use (default: a new one from settings)
    """

    def __init__(self, token: Optional[str] = None, socket: Optional[SocketService] = None):
        self.token = token if token is not None else settings.FOOTBALLVIZ_API_TOKEN
        self.socket = socket or SocketService()
        self.is_connected = False
        self.active_users: Dict[str, List[ActiveUser]] = {}
        self.notifications: List[Notification] = []
        self.error = ErrorBanner()
        self._own_listeners: List[Callable[[], None]] = []

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> bool:
        """
        Connect when a token is available.

        Returns:
            True when connected; connection failures go to the error banner
        """
        if not self.token:
            logger.info("No auth token; collaboration disabled")
            return False

        self._attach()
        try:
            await self.socket.connect(self.token)
        except CollaborationError as e:
            logger.warning(str(e))
            self.error.show(e)
            return False
        self.is_connected = self.socket.connected
        return self.is_connected

    async def stop(self) -> None:
        """Disconnect and drop all local state."""
        await self.socket.disconnect()
        self._detach()
        self.is_connected = False
        self.active_users = {}
        self.notifications = []

    async def __aenter__(self) -> "CollaborationProvider":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.stop()

    def _attach(self) -> None:
        self._detach()
        self._own_listeners = [
            self.socket.on("connect", self._on_connect),
            self.socket.on("disconnect", self._on_disconnect),
            self.socket.on("notification_received", self._on_notification),
        ] + [self.socket.on(event, self._on_presence) for event in PRESENCE_EVENTS]

    def _detach(self) -> None:
        for unsubscribe in self._own_listeners:
            unsubscribe()
        self._own_listeners = []

    # ------------------------------------------------------------------
    # Incoming events
    # ------------------------------------------------------------------

    def _on_connect(self, _data: Any) -> None:
        self.is_connected = True

    def _on_disconnect(self, _data: Any) -> None:
        self.is_connected = False

    def _on_presence(self, data: Dict[str, Any]) -> None:
        room_id = data.get("room_id")
        if room_id is None:
            return
        try:
            users = [ActiveUser.model_validate(user) for user in data.get("active_users") or []]
        except ValidationError as e:
            logger.warning(f"Ignoring malformed presence payload for {room_id}: {e}")
            return
        # Server sends the full roster; replace, never merge
        self.active_users[room_id] = users
        with RequestContext(room_id=room_id):
            logger.debug(f"{len(users)} active users", extra={"rows": len(users)})

    def _on_notification(self, data: Dict[str, Any]) -> None:
        payload = {"id": uuid.uuid4().hex, **(data or {}), "read": False}
        try:
            notification = Notification.model_validate(payload)
        except ValidationError as e:
            logger.warning(f"Ignoring malformed notification: {e}")
            return
        self.notifications.insert(0, notification)

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe(self, category: str, callback: Callable[[Any], Any]) -> Callable[[], None]:
        """
        Listen to one event category; returns the unsubscribe callable.

        Raises:
            ValueError: For an unknown category
        """
        if category not in CATEGORIES:
            raise ValueError(f"Unknown category '{category}' (expected one of: {', '.join(CATEGORIES)})")
        return self.socket.on(category, callback)

    # ------------------------------------------------------------------
    # Outgoing (fire-and-forget)
    # ------------------------------------------------------------------

    async def _send(self, action: str, coro) -> None:
        try:
            await coro
        except CollaborationError as e:
            logger.debug(f"Skipped {action}: {e}")

    async def join_room(self, room_id: str, type: str = "chart") -> None:
        with RequestContext(room_id=room_id):
            logger.info(f"Joining {type} room")
            await self._send("join", self.socket.join_collaboration(room_id, type))

    async def leave_room(self, room_id: str) -> None:
        await self._send("leave", self.socket.leave_collaboration(room_id))
        self.active_users.pop(room_id, None)

    async def send_chart_update(self, room_id: str, changes: Dict[str, Any]) -> None:
        await self._send("chart update", self.socket.send_chart_update(room_id, changes))

    async def send_cursor_position(self, room_id: str, position: Any) -> None:
        if isinstance(position, CursorPosition):
            position = position.model_dump(exclude_none=True)
        await self._send("cursor position", self.socket.send_cursor_position(room_id, position))

    async def send_typing_indicator(
        self, room_id: str, is_typing: bool, field: Optional[str] = None
    ) -> None:
        await self._send(
            "typing indicator", self.socket.send_typing_indicator(room_id, is_typing, field)
        )

    async def send_notification(self, target_user_id: Any, type: str, message: str) -> None:
        await self._send(
            "notification", self.socket.send_notification(target_user_id, type, message)
        )

    # ------------------------------------------------------------------
    # Notification inbox
    # ------------------------------------------------------------------

    def room_users(self, room_id: str) -> List[ActiveUser]:
        return list(self.active_users.get(room_id, []))

    @property
    def unread_count(self) -> int:
        return sum(1 for notification in self.notifications if not notification.read)

    def mark_read(self, notification_id: Any) -> None:
        self.notifications = [
            notification.model_copy(update={"read": True})
            if notification.id == notification_id
            else notification
            for notification in self.notifications
        ]

    def mark_all_read(self) -> None:
        self.notifications = [
            notification.model_copy(update={"read": True}) for notification in self.notifications
        ]

    def filtered(self, which: Literal["all", "unread"] = "all") -> List[Notification]:
        if which == "unread":
            return [notification for notification in self.notifications if not notification.read]
        return list(self.notifications)

    def clear_notifications(self) -> None:
        self.notifications = []
