"""
Team / consultant discussion thread.

A thread lives in the game's room when a game is given, otherwise in the
team's room. Sending a message from the team side also drops a short
"message" notification into the consultant's inbox, so they see it even
when they are not in the room.

Usage:
    thread = TeamMessaging(collab, team_id=4, game_id=12, consultant_id=2)
    await thread.open()
    await thread.send("Red zone conversion dropped to 45%", "insight")
    await thread.close()
"""

import logging
from typing import Any, Callable, List, Optional, get_args

from footballviz.collab.presence import TypingTracker
from footballviz.collab.provider import CollaborationProvider
from footballviz.data.models.collab import Message, MessageType
from footballviz.logging import RequestContext
from footballviz.scheduling import Debouncer

logger = logging.getLogger(__name__)

MESSAGE_TYPES = get_args(MessageType)
PREVIEW_LENGTH = 50
TYPING_FIELD = "message"
# Idle time after the last keystroke before "stopped typing" is sent
TYPING_IDLE_SECONDS = 1.0


def thread_room(team_id: Any, game_id: Optional[Any] = None) -> str:
    """
    Examples:
        thread_room(4)      # 'team_4'
        thread_room(4, 12)  # 'game_12'
    """
    return f"game_{game_id}" if game_id else f"team_{team_id}"


def notification_preview(content: str, message_type: str) -> str:
    """
    Examples:
        notification_preview("Run more on 3rd and short", "suggestion")
        # 'New suggestion: Run more on 3rd and short'
    """
    preview = content[:PREVIEW_LENGTH]
    if len(content) > PREVIEW_LENGTH:
        preview += "..."
    return f"New {message_type}: {preview}"


class TeamMessaging:
    """
    Args:
        provider: Shared collaboration provider
        team_id: Team whose thread this is
        game_id: Scope the thread to one game (room game_<id>)
        consultant_id: Notified of every message the team sends
        sender_type: Which side this client speaks for
        typing_timeout: Seconds before a silent collaborator stops "typing"
        typing_idle: Seconds of local inactivity before sending "stopped typing"
    """

    def __init__(
        self,
        provider: CollaborationProvider,
        team_id: Any,
        game_id: Optional[Any] = None,
        consultant_id: Optional[Any] = None,
        sender_type: str = "team",
        typing_timeout: Optional[float] = None,
        typing_idle: float = TYPING_IDLE_SECONDS,
    ):
        self.provider = provider
        self.team_id = team_id
        self.game_id = game_id
        self.consultant_id = consultant_id
        self.sender_type = sender_type
        self.room_id = thread_room(team_id, game_id)
        self.room_type = "game" if game_id else "team"
        self.messages: List[Message] = []
        self.is_typing = False
        self.typing = TypingTracker(typing_timeout)
        self._stop_typing = Debouncer(typing_idle, self.stop_typing)
        self._unsubscribers: List[Callable[[], None]] = []

    @property
    def title(self) -> str:
        return "Game Discussion" if self.game_id else "Team Chat"

    @property
    def sender_id(self) -> Any:
        if self.sender_type == "consultant" and self.consultant_id is not None:
            return self.consultant_id
        return self.team_id

    @property
    def online_count(self) -> int:
        return len(self.provider.room_users(self.room_id))

    @property
    def typing_indicator(self) -> Optional[str]:
        return self.typing.indicator(TYPING_FIELD)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def open(self) -> None:
        """Join the thread's room; a disconnected provider leaves it local-only."""
        self._unsubscribers.append(self.provider.subscribe("user_typing", self._on_typing))
        if not self.provider.is_connected:
            logger.info(f"Not connected; {self.room_id} thread is local only")
            return
        with RequestContext(room_id=self.room_id):
            await self.provider.join_room(self.room_id, self.room_type)

    async def close(self) -> None:
        self._stop_typing.cancel()
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []
        self.typing.close()
        await self.provider.leave_room(self.room_id)

    async def __aenter__(self) -> "TeamMessaging":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    async def send(self, content: str, message_type: str = "text") -> Optional[Message]:
        """
        Append a message to the thread.

        Returns:
            The new message, or None for blank content

        Raises:
            ValueError: If message_type is not text / insight / suggestion / question
        """
        if message_type not in MESSAGE_TYPES:
            raise ValueError(f"message_type must be one of {', '.join(MESSAGE_TYPES)}")
        if not content.strip():
            return None

        message = Message(
            content=content,
            sender_id=self.sender_id,
            sender_type=self.sender_type,
            game_id=self.game_id,
            message_type=message_type,
        )
        self.messages.append(message)

        if self.is_typing:
            self._stop_typing.cancel()
            await self.stop_typing()
        if self.sender_type == "team" and self.consultant_id is not None:
            await self.provider.send_notification(
                self.consultant_id, "message", notification_preview(content, message_type)
            )
        return message

    # ------------------------------------------------------------------
    # Typing
    # ------------------------------------------------------------------

    async def keystroke(self) -> None:
        """Signal typing once, then send "stopped" after a quiet period."""
        if not self.is_typing:
            self.is_typing = True
            await self.provider.send_typing_indicator(self.room_id, True, TYPING_FIELD)
        self._stop_typing.trigger()

    async def stop_typing(self) -> None:
        if not self.is_typing:
            return
        self.is_typing = False
        await self.provider.send_typing_indicator(self.room_id, False, TYPING_FIELD)

    def _on_typing(self, data: Any) -> None:
        if (data or {}).get("field") == TYPING_FIELD:
            self.typing.handle_event(data)
