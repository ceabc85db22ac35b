"""
Real-time collaboration over Socket.IO.

- socket: transport with per-event listener fan-out
- provider: connection lifecycle, room presence, notification inbox
- presence: typing indicators, cursor tracking
- chart_builder: shared chart configuration editing
- messaging: team / consultant discussion threads
"""

from footballviz.collab.chart_builder import RealTimeChartBuilder, chart_room
from footballviz.collab.messaging import TeamMessaging, notification_preview, thread_room
from footballviz.collab.presence import CursorTracker, TypingTracker, relative_position
from footballviz.collab.provider import CollaborationProvider
from footballviz.collab.socket import SocketService

__all__ = [
    "CollaborationProvider",
    "CursorTracker",
    "RealTimeChartBuilder",
    "SocketService",
    "TeamMessaging",
    "TypingTracker",
    "chart_room",
    "notification_preview",
    "relative_position",
    "thread_room",
]
