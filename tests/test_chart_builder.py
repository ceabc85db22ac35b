"""
Tests for the collaborative chart builder: two clients editing one chart
through the in-memory relay.
"""

import asyncio

import pytest
import pytest_asyncio

from footballviz.collab.chart_builder import RealTimeChartBuilder, chart_room
from footballviz.collab.provider import CollaborationProvider
from footballviz.data.models.collab import CursorPosition


@pytest_asyncio.fixture
async def pair(make_socket):
    """A team and a consultant builder open on game 12."""
    team = CollaborationProvider(token="team-1", socket=make_socket())
    consultant = CollaborationProvider(token="consultant-2", socket=make_socket())
    await team.start()
    await consultant.start()
    a = RealTimeChartBuilder(team, 12, typing_timeout=0.05, cursor_interval=0)
    b = RealTimeChartBuilder(consultant, 12, typing_timeout=0.05, cursor_interval=0)
    await a.open()
    await b.open()
    yield a, b
    await a.close()
    await b.close()
    await team.stop()
    await consultant.stop()


def test_chart_room():
    assert chart_room(12) == "chart_12"


@pytest.mark.asyncio
async def test_edits_from_both_sides_merge(pair):
    a, b = pair
    await a.set_field("title", "X")
    await b.set_field("type", "line")

    for builder in (a, b):
        assert builder.config.title == "X"
        assert builder.config.type == "line"
        assert builder.config.x_axis == "formation"
    assert a.last_updated_by == "Consultant"
    assert b.last_updated_by == "Team"


@pytest.mark.asyncio
async def test_axis_aliases_on_the_wire(pair, relay):
    a, b = pair
    await a.set_field("x_axis", "down")
    assert b.config.x_axis == "down"
    sent = [data for event, data in relay.received if event == "chart_update"]
    assert sent[-1]["changes"] == {"xAxis": "down"}


@pytest.mark.asyncio
async def test_last_write_wins(pair):
    a, b = pair
    await a.set_field("title", "First")
    await b.set_field("title", "Second")
    assert a.config.title == b.config.title == "Second"


@pytest.mark.asyncio
async def test_invalid_local_value_raises(pair):
    a, _ = pair
    with pytest.raises(ValueError):
        await a.set_field("type", "radar")
    assert a.config.type == "bar"


def test_invalid_remote_value_is_ignored():
    builder = RealTimeChartBuilder(CollaborationProvider(token=""), 3)
    builder.apply_remote({"type": "radar", "title": "kept?", "xAxis": "down"})
    assert builder.config.title == "kept?"
    assert builder.config.x_axis == "down"
    assert builder.config.type == "bar"
    builder.apply_remote({"title": "ok", "legend": True})
    assert builder.config.title == "ok"
    assert builder.save()["legend"] is True


@pytest.mark.asyncio
async def test_mixed_remote_update_keeps_valid_fields(pair):
    a, b = pair
    await b.provider.send_chart_update("chart_12", {"title": "X", "type": "radar"})
    assert a.config.title == "X"
    assert a.config.type == "bar"


@pytest.mark.asyncio
async def test_other_rooms_are_ignored(pair):
    a, _ = pair
    a._on_chart_updated({"room_id": "chart_99", "changes": {"title": "nope"}})
    assert a.config.title == ""


@pytest.mark.asyncio
async def test_collaborator_count(pair):
    a, b = pair
    assert a.collaborator_count == 2
    await b.close()
    assert a.collaborator_count == 1


@pytest.mark.asyncio
@pytest.mark.realtime
async def test_typing_indicator_times_out(pair):
    a, b = pair
    await b.focus("title")
    assert a.typing_indicator("title") == "Someone is typing..."
    await asyncio.sleep(0.1)
    assert a.typing_indicator("title") is None


@pytest.mark.asyncio
async def test_blur_clears_typing(pair):
    a, b = pair
    await b.focus("title")
    await b.blur("title")
    assert a.typing_indicator("title") is None


@pytest.mark.asyncio
async def test_cursor_positions(pair):
    a, b = pair
    await b.move_cursor(CursorPosition(x=10, y=20, element="select"))
    assert a.cursor_positions == {2: CursorPosition(x=10, y=20, element="select")}
    assert a.toggle_cursors() is False
    assert a.cursor_positions == {}


@pytest.mark.asyncio
async def test_hidden_cursors_are_not_sent(pair, relay):
    a, _ = pair
    a.toggle_cursors()
    await a.move_cursor(CursorPosition(x=1, y=1))
    assert not [event for event, _ in relay.received if event == "cursor_position"]


@pytest.mark.asyncio
async def test_save_calls_handler(pair):
    a, _ = pair
    saved = []
    a.on_save = saved.append
    await a.set_field("title", "Third downs")
    config = a.save()
    assert saved == [config]
    assert config["title"] == "Third downs"
    assert config["xAxis"] == "formation"


@pytest.mark.asyncio
async def test_close_removes_only_own_listeners(pair):
    a, b = pair
    socket = a.provider.socket
    before = socket.listener_count("chart_updated")
    await a.close()
    assert socket.listener_count("chart_updated") == before - 1
    # provider presence listeners stay
    assert socket.listener_count("user_joined") == 1
