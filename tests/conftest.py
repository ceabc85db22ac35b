"""
Global pytest configuration for footballviz tests.

Everything runs offline:
- HTTP services talk to an httpx.MockTransport router
- Collaboration tests connect fake Socket.IO clients to an in-memory relay
  that forwards events between room members like the real server does

Fixtures:
- plays: ten snaps with known yardage
- schema: a FieldSchema covering every widget type
- relay / make_socket: in-memory collaboration server and client sockets
- api_router: route table for MockTransport-backed ApiClients
"""

import json
import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx
import pytest

from footballviz.data.models.plays import PlayData
from footballviz.data.models.query import FieldSchema

logger = logging.getLogger(__name__)


# ============================================================================
# PLAY DATA
# ============================================================================


def make_play(play_id: int, **fields: Any) -> PlayData:
    base = {
        "id": play_id,
        "play_id": play_id,
        "game_id": 1,
        "down": 1,
        "distance": 10,
        "yard_line": 50,
        "formation": "Shotgun",
        "play_type": "Pass",
        "yards_gained": 0,
        "points_scored": 0,
        "unit": "Offense",
        "quarter": 1,
        "game_week": 3,
        "game_opponent": "Tigers",
    }
    base.update(fields)
    return PlayData(**base)


@pytest.fixture
def play_factory():
    return make_play


@pytest.fixture
def plays() -> List[PlayData]:
    """
    Ten plays: ids 1..10, plays 1, 4, 7 and 9 are third downs
    gaining 5, 12, -3 and 8 yards (22 total).
    """
    return [
        make_play(1, down=3, distance=4, yard_line=82, yards_gained=5),
        make_play(2, down=1, distance=10, yard_line=25, play_type="Run", yards_gained=3),
        make_play(3, down=2, distance=7, yard_line=40, formation="I-Form", play_type="Run", yards_gained=16),
        make_play(4, down=3, distance=2, yard_line=96, yards_gained=12, points_scored=6),
        make_play(5, down=1, distance=10, yard_line=60, formation="Pistol", yards_gained=0),
        make_play(6, down=2, distance=3, yard_line=88, play_type="Run", yards_gained=-2),
        make_play(7, down=3, distance=9, yard_line=35, formation="I-Form", yards_gained=-3),
        make_play(8, down=1, distance=10, yard_line=70, play_type="Run", yards_gained=22),
        make_play(9, down=3, distance=1, yard_line=99, formation="Pistol", play_type="Run", yards_gained=8),
        make_play(10, down=2, distance=6, yard_line=15, yards_gained=4),
    ]


# ============================================================================
# FIELD SCHEMA
# ============================================================================


SCHEMA_PAYLOAD: Dict[str, Any] = {
    "fields": {
        "down": {
            "field_name": "down",
            "display_name": "Down",
            "data_type": "integer",
            "ui_type": "dropdown",
            "options": [{"value": i, "label": f"{i} Down"} for i in range(1, 5)],
            "default_value": 1,
        },
        "distance": {
            "field_name": "distance",
            "display_name": "Distance",
            "data_type": "integer",
            "ui_type": "text",
        },
        "yard_line": {
            "field_name": "yard_line",
            "display_name": "Yard Line",
            "data_type": "integer",
            "ui_type": "range_slider",
            "min_value": 0,
            "max_value": 100,
            "default_value": 50,
        },
        "yards_gained": {
            "field_name": "yards_gained",
            "display_name": "Yards Gained",
            "data_type": "float",
            "ui_type": "text",
        },
        "formation": {
            "field_name": "formation",
            "display_name": "Formation",
            "data_type": "enum",
            "ui_type": "multi_select",
            "options": [
                {"value": "Shotgun", "label": "Shotgun"},
                {"value": "I-Form", "label": "I-Form"},
                {"value": "Pistol", "label": "Pistol"},
            ],
        },
        "play_type": {
            "field_name": "play_type",
            "display_name": "Play Type",
            "data_type": "enum",
            "ui_type": "dropdown",
            "options": [
                {"value": "Pass", "label": "Pass"},
                {"value": "Run", "label": "Run"},
            ],
            "default_value": "Pass",
        },
        "play_name": {
            "field_name": "play_name",
            "display_name": "Play Name",
            "data_type": "string",
            "ui_type": "text",
        },
    },
    "groups": {"situation": ["down", "distance", "yard_line"]},
    "searchable_fields": ["play_name"],
    "sortable_fields": ["down", "distance", "yard_line"],
}


@pytest.fixture
def schema() -> FieldSchema:
    return FieldSchema.model_validate(SCHEMA_PAYLOAD)


PRESETS_PAYLOAD: Dict[str, Any] = {
    "presets": {
        "red_zone": {
            "name": "Red Zone",
            "description": "Inside the 20",
            "filters": [
                {"field": "yard_line", "operator": "greater_than_or_equal", "value": 80}
            ],
        },
        "third_and_short": {
            "name": "Third and Short",
            "filters": [
                {"field": "down", "operator": "equals", "value": 3},
                {"field": "distance", "operator": "less_than_or_equal", "value": 3},
            ],
        },
    }
}

GAMES_PAYLOAD: Dict[str, Any] = {
    "games": [
        {"id": 12, "team_id": 4, "week": 3, "opponent": "Tigers", "location": "Home"},
        {"id": 13, "team_id": 4, "week": 4, "opponent": "Bears", "location": "Away"},
    ]
}


# ============================================================================
# HTTP MOCKING
# ============================================================================


class ApiRouter:
    """
    Route table for httpx.MockTransport.

    Usage:
        api_router.add("GET", "/games", {"games": []})
        api_router.add("POST", "/footballviz/query/stats", handler)
        client = ApiClient(base_url="http://test/api", transport=api_router.transport())
    """

    def __init__(self, prefix: str = "/api"):
        self.prefix = prefix
        self.routes: Dict[Tuple[str, str], Any] = {}
        self.requests: List[httpx.Request] = []

    def add(self, method: str, path: str, response: Any, status_code: int = 200) -> None:
        if callable(response):
            self.routes[(method, path)] = response
        else:
            self.routes[(method, path)] = lambda request: httpx.Response(
                status_code, json=response
            )

    def calls(self, method: str, path: str) -> List[httpx.Request]:
        return [
            request
            for request in self.requests
            if request.method == method and request.url.path == self.prefix + path
        ]

    def sent_json(self, method: str, path: str) -> Any:
        """Body of the last matching request."""
        return json.loads(self.calls(method, path)[-1].content.decode())

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path.startswith(self.prefix):
            path = path[len(self.prefix):]
        handler = self.routes.get((request.method, path))
        if handler is None:
            return httpx.Response(404, json={"error": f"No route for {request.method} {path}"})
        return handler(request)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)


@pytest.fixture
def api_router() -> ApiRouter:
    return ApiRouter()


@pytest.fixture
def backend(api_router) -> ApiRouter:
    """api_router preloaded with the schema, presets and game list."""
    api_router.add("GET", "/footballviz/filters/schema", SCHEMA_PAYLOAD)
    api_router.add("GET", "/footballviz/filters/presets", PRESETS_PAYLOAD)
    api_router.add("GET", "/games", GAMES_PAYLOAD)
    return api_router


@pytest.fixture
def make_client(api_router):
    """Build ApiClients wired to api_router."""
    from footballviz.api.client import ApiClient

    def factory(token: Optional[str] = "test-token") -> ApiClient:
        client = ApiClient(
            base_url="http://test/api", token=token, transport=api_router.transport()
        )
        return client

    return factory


# ============================================================================
# COLLABORATION RELAY
# ============================================================================


class FakeRelay:
    """
    In-memory stand-in for the collaboration server.

    Tokens map to users ("team-1" -> team user 1). Events are delivered to
    the other members of the sender's room, presence to everyone in it.
    """

    def __init__(self):
        self.clients: List["FakeSocketClient"] = []
        self.rooms: Dict[str, List["FakeSocketClient"]] = {}
        self.received: List[Tuple[str, Dict[str, Any]]] = []
        self.refuse_connections = False

    def user_for(self, token: str) -> Dict[str, Any]:
        user_type, _, user_id = token.partition("-")
        return {"id": int(user_id) if user_id.isdigit() else user_id, "type": user_type}

    def _active_users(self, room_id: str) -> List[Dict[str, Any]]:
        return [
            {"user_id": client.user["id"], "user_type": client.user["type"]}
            for client in self.rooms.get(room_id, [])
        ]

    async def _send(self, targets, event: str, data: Dict[str, Any]) -> None:
        for client in list(targets):
            await client.deliver(event, data)

    async def handle(self, sender: "FakeSocketClient", event: str, data: Dict[str, Any]) -> None:
        self.received.append((event, data))
        room_id = data.get("room_id")
        members = self.rooms.get(room_id, []) if room_id else []
        others = [client for client in members if client is not sender]

        if event == "join_collaboration":
            room = self.rooms.setdefault(room_id, [])
            if sender not in room:
                room.append(sender)
            payload = {"room_id": room_id, "active_users": self._active_users(room_id)}
            await self._send([sender], "collaboration_joined", payload)
            await self._send(
                [client for client in room if client is not sender], "user_joined", payload
            )
        elif event == "leave_collaboration":
            if sender in members:
                members.remove(sender)
            payload = {"room_id": room_id, "active_users": self._active_users(room_id)}
            await self._send(members, "user_left", payload)
        elif event == "chart_update":
            await self._send(
                others,
                "chart_updated",
                {"room_id": room_id, "changes": data["changes"], "updated_by": sender.user},
            )
        elif event == "cursor_position":
            await self._send(
                others,
                "cursor_moved",
                {
                    "user_id": sender.user["id"],
                    "user_type": sender.user["type"],
                    "position": data["position"],
                },
            )
        elif event == "typing_indicator":
            await self._send(
                others,
                "user_typing",
                {
                    "user_id": sender.user["id"],
                    "field": data["field"],
                    "is_typing": data["is_typing"],
                },
            )
        elif event == "notification":
            targets = [c for c in self.clients if c.user["id"] == data["target_user_id"]]
            await self._send(
                targets,
                "notification_received",
                {
                    "type": data["type"],
                    "message": data["message"],
                    "from_user": sender.user,
                    "timestamp": datetime.now().isoformat(),
                },
            )


class FakeSocketClient:
    """Implements the slice of socketio.AsyncClient that SocketService uses."""

    def __init__(self, relay: FakeRelay):
        self.relay = relay
        self.handlers: Dict[str, Callable] = {}
        self.connected = False
        self.user: Dict[str, Any] = {}
        self.emitted: List[Tuple[str, Dict[str, Any]]] = []

    def on(self, event: str, handler: Optional[Callable] = None):
        self.handlers[event] = handler

    async def deliver(self, event: str, data: Any = None) -> None:
        handler = self.handlers.get(event)
        if handler is not None:
            await handler(data)

    async def connect(self, url: str, auth: Optional[Dict[str, Any]] = None, wait_timeout: float = 1):
        from socketio.exceptions import ConnectionError as SocketConnectionError

        if self.relay.refuse_connections:
            raise SocketConnectionError("Connection refused by the server")
        self.user = self.relay.user_for((auth or {}).get("token", ""))
        self.connected = True
        self.relay.clients.append(self)
        await self.deliver("connect")

    async def emit(self, event: str, data: Dict[str, Any]) -> None:
        self.emitted.append((event, data))
        await self.relay.handle(self, event, data)

    async def disconnect(self) -> None:
        if not self.connected:
            return
        self.connected = False
        for room in self.relay.rooms.values():
            if self in room:
                room.remove(self)
        if self in self.relay.clients:
            self.relay.clients.remove(self)
        await self.deliver("disconnect", "client disconnect")


@pytest.fixture
def relay() -> FakeRelay:
    return FakeRelay()


@pytest.fixture
def make_socket(relay):
    """Build SocketServices whose clients connect to the relay."""
    from footballviz.collab.socket import SocketService

    def factory() -> SocketService:
        return SocketService(
            url="http://relay.test",
            client_factory=lambda: FakeSocketClient(relay),
            max_connect_errors=3,
            connect_timeout=1,
        )

    return factory


# ============================================================================
# PYTEST HOOKS
# ============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers",
        "slow: mark test as slow (skipped unless --runslow)"
    )
    config.addinivalue_line(
        "markers",
        "realtime: mark test as depending on event-loop timers"
    )


def pytest_collection_modifyitems(config, items):
    """Skip slow tests unless --runslow is passed."""
    skip_slow = pytest.mark.skip(reason="need --runslow option to run")

    for item in items:
        if "slow" in item.keywords and not config.getoption("--runslow", default=False):
            item.add_marker(skip_slow)


def pytest_addoption(parser):
    """Add custom command line options."""
    parser.addoption(
        "--runslow",
        action="store_true",
        default=False,
        help="run slow tests"
    )
