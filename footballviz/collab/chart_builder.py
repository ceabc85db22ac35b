"""
Collaborative chart configuration editing.

Every participant holds a local ChartConfig. A local edit is applied first
and then broadcast as {field: value}; a remote chart_updated payload for
this room is merged over local state, so concurrent edits resolve as last
write wins and fields nobody touched are preserved.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from pydantic import ValidationError

from footballviz.collab.presence import CursorTracker, TypingTracker
from footballviz.collab.provider import CollaborationProvider
from footballviz.config import settings
from footballviz.data.models.collab import ChartConfig, CursorPosition
from footballviz.logging import RequestContext
from footballviz.scheduling import Throttle

logger = logging.getLogger(__name__)

# Attribute names accepted for the camelCase wire fields
FIELD_ALIASES = {"x_axis": "xAxis", "y_axis": "yAxis"}


def chart_room(game_id: Any) -> str:
    return f"chart_{game_id}"


class RealTimeChartBuilder:
    """
    Args:
        provider: Started CollaborationProvider
        game_id: Game the chart belongs to (room "chart_<game_id>")
        on_save: Called with the config dict by save()
        typing_timeout: Seconds before a silent typist is dropped
        cursor_interval: Minimum seconds between cursor broadcasts

    Example:
        builder = RealTimeChartBuilder(provider, game_id=12)
        await builder.open()
        await builder.set_field("title", "Third down efficiency")
        await builder.close()
    """

    def __init__(
        self,
        provider: CollaborationProvider,
        game_id: Any,
        on_save: Optional[Callable[[Dict[str, Any]], Any]] = None,
        typing_timeout: Optional[float] = None,
        cursor_interval: Optional[float] = None,
    ):
        self.provider = provider
        self.game_id = game_id
        self.room_id = chart_room(game_id)
        self.on_save = on_save
        self.config = ChartConfig()
        self.show_cursors = True
        self.last_updated_by: Optional[str] = None
        self.typing = TypingTracker(typing_timeout)
        self.cursors = CursorTracker()
        interval = settings.CURSOR_THROTTLE_SECONDS if cursor_interval is None else cursor_interval
        self._cursor_throttle = Throttle(interval, self._send_cursor)
        self._unsubscribers: List[Callable[[], None]] = []
        self.joined = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def open(self) -> None:
        """Join the chart room (when connected) and start listening."""
        if self.provider.is_connected:
            await self.provider.join_room(self.room_id, "chart")
            self.joined = True
        self._unsubscribers = [
            self.provider.subscribe("chart_updated", self._on_chart_updated),
            self.provider.subscribe("cursor_moved", self.cursors.handle_event),
            self.provider.subscribe("user_typing", self.typing.handle_event),
        ]

    async def close(self) -> None:
        """Leave the room and remove only this builder's listeners."""
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []
        self._cursor_throttle.cancel()
        self.typing.close()
        self.cursors.clear()
        await self.provider.leave_room(self.room_id)
        self.joined = False

    async def __aenter__(self) -> "RealTimeChartBuilder":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Edits
    # ------------------------------------------------------------------

    def _merge(self, changes: Dict[str, Any], base: Optional[ChartConfig] = None) -> ChartConfig:
        wire = {FIELD_ALIASES.get(key, key): value for key, value in changes.items()}
        return ChartConfig.model_validate({**(base or self.config).to_wire(), **wire})

    async def set_field(self, field: str, value: Any) -> None:
        """
        Apply a local edit, then broadcast it.

        Raises:
            ValidationError: If the value is not valid for the field
        """
        field = FIELD_ALIASES.get(field, field)
        self.config = self._merge({field: value})
        await self.provider.send_chart_update(self.room_id, {field: value})

    def apply_remote(self, changes: Dict[str, Any]) -> None:
        """
        Merge a collaborator's changes over local state, one key at a time.

        A key whose value does not validate is dropped; the rest still apply,
        since the sender has already applied them on its side.
        """
        config = self.config
        rejected = []
        for key, value in changes.items():
            try:
                config = self._merge({key: value}, base=config)
            except ValidationError:
                rejected.append(key)
        self.config = config
        if rejected:
            logger.warning(
                f"Ignoring invalid chart fields {rejected} in {self.room_id} update",
                extra={"room_id": self.room_id, "error_details": {k: changes[k] for k in rejected}},
            )

    def _on_chart_updated(self, data: Dict[str, Any]) -> None:
        if data.get("room_id") != self.room_id:
            return
        changes = data.get("changes") or {}
        self.apply_remote(changes)
        updated_by = data.get("updated_by") or {}
        self.last_updated_by = "Consultant" if updated_by.get("type") == "consultant" else "Team"
        with RequestContext(room_id=self.room_id):
            logger.info(
                f"Chart updated by {self.last_updated_by}: {', '.join(changes)}",
                extra={"event": "chart_updated"},
            )

    # ------------------------------------------------------------------
    # Presence
    # ------------------------------------------------------------------

    async def focus(self, field: str) -> None:
        await self.provider.send_typing_indicator(self.room_id, True, field)

    async def blur(self, field: str) -> None:
        await self.provider.send_typing_indicator(self.room_id, False, field)

    async def move_cursor(self, position: CursorPosition) -> None:
        """Broadcast the cursor, at most once per throttle interval."""
        if not self.show_cursors:
            return
        await self._cursor_throttle.submit(position)

    async def _send_cursor(self, position: CursorPosition) -> None:
        await self.provider.send_cursor_position(self.room_id, position)

    def toggle_cursors(self) -> bool:
        self.show_cursors = not self.show_cursors
        return self.show_cursors

    @property
    def collaborator_count(self) -> int:
        return len(self.provider.room_users(self.room_id))

    def typing_indicator(self, field: str) -> Optional[str]:
        return self.typing.indicator(field)

    @property
    def cursor_positions(self) -> Dict[Any, CursorPosition]:
        if not self.show_cursors:
            return {}
        return self.cursors.positions()

    def save(self) -> Dict[str, Any]:
        config = self.config.to_wire()
        if self.on_save is not None:
            self.on_save(config)
        return config
