"""
Tests for typing indicators, cursor tracking and relative cursor coordinates.
"""

import asyncio

import pytest

from footballviz.collab.presence import CursorTracker, TypingTracker, relative_position
from footballviz.data.models.collab import CursorPosition


@pytest.mark.asyncio
async def test_typing_counts_per_field():
    tracker = TypingTracker(timeout=1)
    tracker.update(1, True, "title")
    tracker.update(2, True, "title")
    tracker.update(3, True, "xAxis")
    assert tracker.indicator("title") == "2 people are typing..."
    assert tracker.indicator("xAxis") == "Someone is typing..."
    assert tracker.indicator("yAxis") is None
    tracker.close()


@pytest.mark.asyncio
async def test_repeat_signal_does_not_duplicate():
    tracker = TypingTracker(timeout=1)
    tracker.update(1, True, "title")
    tracker.update(1, True, "title")
    assert tracker.users("title") == [1]
    tracker.close()


@pytest.mark.asyncio
async def test_stop_signal_removes_at_once():
    tracker = TypingTracker(timeout=1)
    tracker.handle_event({"user_id": 1, "field": "title", "is_typing": True})
    tracker.handle_event({"user_id": 1, "field": "title", "is_typing": False})
    assert tracker.users("title") == []


@pytest.mark.asyncio
@pytest.mark.realtime
async def test_typing_expires_and_rearms():
    tracker = TypingTracker(timeout=0.05)
    tracker.update(1, True, "title")
    await asyncio.sleep(0.03)
    tracker.update(1, True, "title")
    await asyncio.sleep(0.03)
    # re-armed at 0.03s, so still typing at 0.06s
    assert tracker.users("title") == [1]
    await asyncio.sleep(0.05)
    assert tracker.users("title") == []


@pytest.mark.asyncio
async def test_missing_field_defaults_to_general():
    tracker = TypingTracker(timeout=1)
    tracker.handle_event({"user_id": 5, "is_typing": True})
    assert tracker.users("general") == [5]
    tracker.close()
    assert tracker.users("general") == []


def test_cursor_tracker():
    tracker = CursorTracker()
    user = tracker.handle_event({"user_id": 2, "user_type": "consultant", "position": {"x": 1, "y": 2}})
    tracker.handle_event({"user_id": 3, "position": {"x": 5, "y": 6}})
    tracker.handle_event({"user_id": 2, "user_type": "consultant", "position": {"x": 9, "y": 9}})
    assert user.role_label == "Consultant"
    assert tracker.positions() == {2: CursorPosition(x=9, y=9), 3: CursorPosition(x=5, y=6)}

    tracker.prune({3})
    assert list(tracker.positions()) == [3]
    tracker.remove(3)
    assert tracker.positions() == {}


def test_relative_position():
    position = relative_position(150, 50, 100, 0, 200, 100, element="SELECT")
    assert position == CursorPosition(x=25.0, y=50.0, element="select")
    with pytest.raises(ValueError):
        relative_position(1, 1, 0, 0, 0, 100)
