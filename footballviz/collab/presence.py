"""
Presence helpers: typing indicators, collaborator cursors and cursor
coordinates relative to the shared form.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Set, Tuple

from footballviz.config import settings
from footballviz.data.models.collab import ActiveUser, CursorPosition

logger = logging.getLogger(__name__)


class TypingTracker:
    """
    Who is typing in which field.

    A "typing" signal adds the user and (re)arms a per (field, user) timer
    that removes them after `timeout` seconds, so a collaborator who
    disconnects mid-edit does not stay "typing" forever. A "stopped"
    signal removes them at once.

    Must be driven from a running event loop.
    """

    def __init__(self, timeout: Optional[float] = None):
        self.timeout = settings.TYPING_TIMEOUT_SECONDS if timeout is None else timeout
        self._typing: Dict[str, List[Any]] = {}
        self._timers: Dict[Tuple[str, Any], asyncio.TimerHandle] = {}

    def update(self, user_id: Any, is_typing: bool, field: Optional[str] = None) -> None:
        field = field or "general"
        users = self._typing.setdefault(field, [])
        key = (field, user_id)

        if not is_typing:
            self._remove(field, user_id)
            return

        if user_id not in users:
            users.append(user_id)
        timer = self._timers.pop(key, None)
        if timer is not None:
            timer.cancel()
        self._timers[key] = asyncio.get_running_loop().call_later(
            self.timeout, self._expire, field, user_id
        )

    def handle_event(self, data: Dict[str, Any]) -> None:
        """Apply a user_typing payload {user_id, field, is_typing}."""
        self.update(data.get("user_id"), bool(data.get("is_typing")), data.get("field"))

    def _expire(self, field: str, user_id: Any) -> None:
        self._timers.pop((field, user_id), None)
        users = self._typing.get(field, [])
        if user_id in users:
            users.remove(user_id)
            logger.debug(f"Typing indicator expired for {user_id} in {field}")

    def _remove(self, field: str, user_id: Any) -> None:
        timer = self._timers.pop((field, user_id), None)
        if timer is not None:
            timer.cancel()
        users = self._typing.get(field, [])
        if user_id in users:
            users.remove(user_id)

    def users(self, field: str) -> List[Any]:
        return list(self._typing.get(field, []))

    def indicator(self, field: str) -> Optional[str]:
        """
        Examples:
            tracker.indicator("title")  # None / 'Someone is typing...' / '2 people are typing...'
        """
        count = len(self._typing.get(field, []))
        if count == 0:
            return None
        if count == 1:
            return "Someone is typing..."
        return f"{count} people are typing..."

    def close(self) -> None:
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()
        self._typing.clear()


class CursorTracker:
    """Latest cursor position per collaborator."""

    def __init__(self):
        self.collaborators: Dict[Any, ActiveUser] = {}

    def handle_event(self, data: Dict[str, Any]) -> ActiveUser:
        """Apply a cursor_moved payload {user_id, user_type, position}."""
        user = ActiveUser.model_validate(
            {
                "user_id": data["user_id"],
                "user_type": data.get("user_type") or "team",
                "position": data.get("position"),
            }
        )
        self.collaborators[user.user_id] = user
        return user

    def remove(self, user_id: Any) -> None:
        self.collaborators.pop(user_id, None)

    def positions(self) -> Dict[Any, CursorPosition]:
        return {
            user_id: user.position
            for user_id, user in self.collaborators.items()
            if user.position is not None
        }

    def prune(self, active_ids: Set[Any]) -> None:
        """Forget cursors of users no longer in the room."""
        for user_id in list(self.collaborators):
            if user_id not in active_ids:
                del self.collaborators[user_id]

    def clear(self) -> None:
        self.collaborators.clear()


def relative_position(
    x: float,
    y: float,
    left: float,
    top: float,
    width: float,
    height: float,
    element: Optional[str] = None,
) -> CursorPosition:
    """
    Pointer coordinates as percentages of a bounding box.

    Examples:
        relative_position(150, 50, 100, 0, 200, 100)  # CursorPosition(x=25.0, y=50.0)

    Raises:
        ValueError: If the box has no area
    """
    if width <= 0 or height <= 0:
        raise ValueError("Bounding box must have a positive width and height")
    return CursorPosition(
        x=(x - left) / width * 100,
        y=(y - top) / height * 100,
        element=element.lower() if element else None,
    )
