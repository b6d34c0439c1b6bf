"""
Tests for the room registry.
"""

import threading

import pytest

from chkobba_engine.constants import ROOM_ALPHABET
from chkobba_engine.errors import GameError
from chkobba_engine.registry import RoomRegistry, generate_room_code, normalize_code


def test_generated_codes_use_alphabet():
    for _ in range(50):
        code = generate_room_code()
        assert len(code) == 6
        assert all(ch in ROOM_ALPHABET for ch in code)
    for ambiguous in "0O1I":
        assert ambiguous not in ROOM_ALPHABET


def test_create_room_seats_host():
    registry = RoomRegistry()
    room = registry.create_room("p1", "Alice", mode="2v2", target_score=21)
    assert room.code in registry
    assert room.host_id == "p1"
    assert room.mode == "2v2"
    assert room.target_score == 21
    assert room.players[0].team == "A"


def test_create_room_defaults_and_clamps():
    registry = RoomRegistry()
    room = registry.create_room("p1", "Alice", mode="banana", target_score=999)
    assert room.mode == "1v1"
    assert room.target_score == 51


def test_code_collision_retries():
    codes = iter(["AAAAAA", "AAAAAA", "BBBBBB"])
    registry = RoomRegistry(code_factory=lambda: next(codes))
    first = registry.create_room("p1", "Alice")
    second = registry.create_room("p2", "Bob")
    assert first.code == "AAAAAA"
    assert second.code == "BBBBBB"
    assert sorted(registry.codes()) == ["AAAAAA", "BBBBBB"]


def test_lookup_normalizes_code():
    registry = RoomRegistry(code_factory=lambda: "ABCDEF")
    room = registry.create_room("p1", "Alice")
    assert registry.get_room("  abcdef ") is room
    assert normalize_code(None) == ""
    assert registry.get_room(None) is None


def test_require_missing_room():
    with pytest.raises(GameError) as exc:
        RoomRegistry().require_room("ZZZZZZ")
    assert exc.value.code == "ROOM_NOT_FOUND"


def test_remove_room():
    registry = RoomRegistry()
    room = registry.create_room("p1", "Alice")
    assert registry.remove_room(room.code) is room
    assert len(registry) == 0
    assert registry.remove_room(room.code) is None


def test_concurrent_creates_get_distinct_rooms():
    registry = RoomRegistry()

    def create(index):
        registry.create_room(f"p{index}", f"Player {index}")

    threads = [threading.Thread(target=create, args=(i,)) for i in range(40)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(registry) == 40
    assert len(set(registry.codes())) == 40


def test_remove_room_normalizes_code():
    registry = RoomRegistry(code_factory=lambda: "ABCDEF")
    room = registry.create_room("p1", "Alice")
    assert registry.remove_room(" abcdef ") is room
    assert "ABCDEF" not in registry
