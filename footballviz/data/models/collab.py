"""
Models exchanged over the collaboration channel.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class CursorPosition(BaseModel):
    """Cursor location as percentages of the shared form's box"""

    x: float
    y: float
    element: Optional[str] = None


class ActiveUser(BaseModel):
    """
    Presence entry for one collaborator in a room.

    Entries are replaced wholesale on every presence event.
    """

    model_config = ConfigDict(extra="allow")

    user_id: Union[int, str]
    user_type: Literal["team", "consultant"] = "team"
    position: Optional[CursorPosition] = None
    is_typing: Optional[bool] = None
    typing_field: Optional[str] = None

    @property
    def role_label(self) -> str:
        return "Consultant" if self.user_type == "consultant" else "Team"


class Notification(BaseModel):
    """
    An inbox entry received over the channel.

    Only `read` changes after receipt.
    """

    model_config = ConfigDict(extra="allow")

    id: Union[int, str]
    type: str = "general"
    message: str
    from_user: Optional[Dict[str, Any]] = None
    timestamp: str = Field(default_factory=lambda: datetime.now().isoformat())
    read: bool = False

    def time_ago(self, now: Optional[datetime] = None) -> str:
        now = now or datetime.now()
        try:
            sent = datetime.fromisoformat(self.timestamp.replace("Z", "+00:00"))
        except ValueError:
            return self.timestamp
        if sent.tzinfo is not None and now.tzinfo is None:
            now = datetime.now(sent.tzinfo)

        minutes = int((now - sent).total_seconds() // 60)
        if minutes < 1:
            return "Just now"
        if minutes < 60:
            return f"{minutes}m ago"
        hours = minutes // 60
        if hours < 24:
            return f"{hours}h ago"
        return f"{hours // 24}d ago"


MessageType = Literal["text", "insight", "suggestion", "question"]

MESSAGE_ICONS: Dict[str, str] = {
    "text": "💬",
    "insight": "💡",
    "suggestion": "💭",
    "question": "❓",
}


class Message(BaseModel):
    """One entry in a team / consultant discussion thread"""

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    content: str
    sender_id: Union[int, str]
    sender_type: Literal["team", "consultant"] = "team"
    timestamp: str = Field(default_factory=lambda: datetime.now().isoformat())
    game_id: Optional[int] = None
    chart_id: Optional[str] = None
    message_type: MessageType = "text"

    @property
    def icon(self) -> str:
        return MESSAGE_ICONS[self.message_type]


class ChartConfig(BaseModel):
    """
    Shared state of the collaborative chart form.

    Wire names (xAxis / yAxis) are kept so changes can be merged straight
    from chart_updated payloads. Keys this client does not know are kept.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    title: str = ""
    type: Literal["line", "bar", "pie", "scatter"] = "bar"
    x_axis: str = Field("formation", alias="xAxis")
    y_axis: str = Field("yards_gained", alias="yAxis")
    filters: Dict[str, Any] = Field(default_factory=dict)
    style: Dict[str, Any] = Field(default_factory=dict)

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)
