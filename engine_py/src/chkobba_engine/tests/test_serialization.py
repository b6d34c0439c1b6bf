"""
Tests for lobby and player views.
"""

import json

from chkobba_engine import engine
from chkobba_engine.serialization import build_lobby_view, build_player_view

from .conftest import make_room


def test_player_view_hides_other_hands(started_duel):
    alice, bob = started_duel.players
    view = build_player_view(started_duel, "alice")
    payload = json.dumps(view)

    assert [c["id"] for c in view["your_hand"]] == [c.id for c in alice.hand]
    for hidden in bob.hand:
        assert f'"{hidden.id}"' not in payload
    other = next(p for p in view["players"] if p["id"] == "bob")
    assert other["hand_count"] == 3
    assert "hand" not in other


def test_player_view_fields(started_duel):
    view = build_player_view(started_duel, "bob")
    assert view["self_id"] == "bob"
    assert view["status"] == "running"
    assert view["deck_count"] == 30
    assert len(view["table_cards"]) == 4
    assert view["turn_player_id"] == "bob"
    assert view["dealer_id"] == "alice"
    assert view["tireur_id"] == "bob"
    assert view["awaiting_ready"] is False
    assert view["teams"] == []
    assert view["last_round_summary"] is None


def test_viewer_outside_room(started_duel):
    assert build_player_view(started_duel, "mallory") is None


def test_lobby_view():
    state = make_room(names=("Alice",))
    view = build_lobby_view(state)
    assert view["room_code"] == "TEST01"
    assert view["status"] == "waiting"
    assert view["max_players"] == 2
    assert view["available_slots"] == 1
    assert view["team_scores"] is None
    assert view["players"] == [{
        "id": "alice",
        "name": "Alice",
        "score": 0,
        "is_host": True,
        "is_dealer": True,
        "is_tireur": True,
        "cards_in_hand": 0,
        "team": None,
    }]
    assert "your_hand" not in view


def test_team_layout(teams):
    view = build_lobby_view(teams)
    assert view["team_scores"] == {"A": 0, "B": 0}
    assert [m["name"] for m in view["teams"][0]["members"]] == ["Alice", "Carol"]
    assert [m["name"] for m in view["teams"][1]["members"]] == ["Bob", "Dave"]


def test_hand_token_changes_on_deal(duel):
    before = build_player_view(duel, "alice")["hand_animation_token"]
    engine.start_game(duel, seed=1)
    assert build_player_view(duel, "alice")["hand_animation_token"] != before


def test_pending_switch_only_shown_to_parties(teams):
    engine.request_switch(teams, "alice", "bob")
    assert build_player_view(teams, "bob")["pending_switch"] == {"from_id": "alice", "target_id": "bob"}
    assert build_player_view(teams, "carol")["pending_switch"] is None


def test_winner_name_for_team(teams):
    teams.status = "finished"
    teams.winner_id = "B"
    assert build_player_view(teams, "alice")["winner_name"] == "Team B"
