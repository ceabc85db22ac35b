"""
Tests for the team / consultant discussion thread over the in-memory relay.
"""

import asyncio

import pytest
import pytest_asyncio

from footballviz.collab.messaging import TeamMessaging, notification_preview, thread_room
from footballviz.collab.provider import CollaborationProvider


@pytest_asyncio.fixture
async def providers(make_socket):
    team = CollaborationProvider(token="team-1", socket=make_socket())
    consultant = CollaborationProvider(token="consultant-2", socket=make_socket())
    await team.start()
    await consultant.start()
    yield team, consultant
    await team.stop()
    await consultant.stop()


def test_thread_room_prefers_game():
    assert thread_room(4) == "team_4"
    assert thread_room(4, 12) == "game_12"


def test_notification_preview_truncates_long_content():
    content = "x" * 60
    assert notification_preview(content, "insight") == f"New insight: {'x' * 50}..."
    assert notification_preview("x" * 50, "text") == f"New text: {'x' * 50}"


@pytest.mark.asyncio
async def test_game_thread_joins_game_room(providers, relay):
    team, _ = providers
    thread = TeamMessaging(team, team_id=4, game_id=12)
    await thread.open()

    joins = [data for event, data in relay.received if event == "join_collaboration"]
    assert joins[-1] == {"room_id": "game_12", "type": "game"}
    assert thread.title == "Game Discussion"
    assert thread.online_count == 1
    await thread.close()


@pytest.mark.asyncio
async def test_team_thread_without_game(providers, relay):
    team, _ = providers
    async with TeamMessaging(team, team_id=4) as thread:
        assert thread.room_id == "team_4"
        assert thread.title == "Team Chat"

    joins = [data for event, data in relay.received if event == "join_collaboration"]
    assert joins[-1]["type"] == "team"
    assert [data["room_id"] for event, data in relay.received if event == "leave_collaboration"] == [
        "team_4"
    ]


@pytest.mark.asyncio
async def test_send_notifies_consultant_with_preview(providers):
    team, consultant = providers
    async with TeamMessaging(team, team_id=4, game_id=12, consultant_id=2) as thread:
        long_text = "Red zone conversion dropped sharply after halftime in the last three games"
        message = await thread.send(long_text, "insight")
        await thread.send("Run more on 3rd and short", "suggestion")

    assert message.sender_type == "team"
    assert message.sender_id == 4
    assert message.game_id == 12
    assert message.icon == "💡"
    assert [m.message_type for m in thread.messages] == ["insight", "suggestion"]

    received = [n.message for n in consultant.notifications]
    assert received == [
        "New suggestion: Run more on 3rd and short",
        f"New insight: {long_text[:50]}...",
    ]
    assert consultant.notifications[0].type == "message"


@pytest.mark.asyncio
async def test_no_notification_without_consultant(providers, relay):
    team, consultant = providers
    async with TeamMessaging(team, team_id=4) as thread:
        await thread.send("hello")
    assert len(thread.messages) == 1
    assert consultant.notifications == []
    assert not [event for event, _ in relay.received if event == "notification"]


@pytest.mark.asyncio
async def test_blank_message_is_ignored(providers):
    team, consultant = providers
    async with TeamMessaging(team, team_id=4, consultant_id=2) as thread:
        assert await thread.send("   ") is None
    assert thread.messages == []
    assert consultant.notifications == []


@pytest.mark.asyncio
async def test_unknown_message_type_is_rejected(providers):
    team, _ = providers
    async with TeamMessaging(team, team_id=4) as thread:
        with pytest.raises(ValueError, match="message_type"):
            await thread.send("hi", "rant")
    assert thread.messages == []


@pytest.mark.asyncio
async def test_typing_reaches_the_other_side(providers, relay):
    team, consultant = providers
    ours = TeamMessaging(team, team_id=4, game_id=12, consultant_id=2, typing_idle=0.05)
    theirs = TeamMessaging(consultant, team_id=4, game_id=12, consultant_id=2, sender_type="consultant")
    await ours.open()
    await theirs.open()

    await ours.keystroke()
    await ours.keystroke()
    assert theirs.typing_indicator == "Someone is typing..."
    starts = [
        data for event, data in relay.received if event == "typing_indicator" and data["is_typing"]
    ]
    assert len(starts) == 1

    await asyncio.sleep(0.1)
    assert ours.is_typing is False
    assert theirs.typing_indicator is None

    await ours.close()
    await theirs.close()


@pytest.mark.asyncio
async def test_sending_stops_typing(providers, relay):
    team, consultant = providers
    ours = TeamMessaging(team, team_id=4, game_id=12, typing_idle=5)
    theirs = TeamMessaging(
        consultant, team_id=4, game_id=12, consultant_id=2, sender_type="consultant"
    )
    await ours.open()
    await theirs.open()

    await ours.keystroke()
    assert theirs.typing_indicator == "Someone is typing..."
    await ours.send("done")
    assert ours.is_typing is False
    assert theirs.typing_indicator is None

    reply = await theirs.send("thanks", "question")
    assert reply.sender_type == "consultant"
    assert reply.sender_id == 2
    # consultant replies do not notify themselves
    assert consultant.notifications == []

    await ours.close()
    await theirs.close()
