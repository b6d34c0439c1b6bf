"""
Shared fixtures and helpers for engine tests.
"""

from typing import List

import pytest

from chkobba_engine.engine import create_room, join_room, start_game
from chkobba_engine.models import Card, RoomState
from chkobba_engine.rules import create_settings
from chkobba_engine.shuffle import create_deck

CATALOG = {c.id: c for c in create_deck()}


def card(suit: str, rank: int) -> Card:
    return CATALOG[f"{suit}-{rank}"]


def cards(*specs) -> List[Card]:
    """cards(('hearts', 3), ('spades', 4)) -> [3♥, 4♠]"""
    return [card(suit, rank) for suit, rank in specs]


def make_room(names=("Alice", "Bob"), mode="1v1", target_score=11) -> RoomState:
    state = create_room("TEST01", create_settings(mode=mode, target_score=target_score))
    for name in names:
        join_room(state, name.lower(), name)
    return state


def rig(state: RoomState, table, hands, deck=(), turn=0):
    """Force a running round with known cards."""
    state.status = "running"
    state.round_number = max(state.round_number, 1)
    state.table_cards = list(table)
    state.deck = list(deck)
    for player, hand in zip(state.players, hands):
        player.hand = list(hand)
        player.captured = []
        player.chkobba_count = 0
    state.turn_index = turn
    state.last_capture_player_id = None
    return state


@pytest.fixture
def duel() -> RoomState:
    return make_room()


@pytest.fixture
def started_duel() -> RoomState:
    state = make_room()
    start_game(state, seed=42)
    return state


@pytest.fixture
def teams() -> RoomState:
    return make_room(names=("Alice", "Bob", "Carol", "Dave"), mode="2v2")
