"""
State projection: lobby and per-player snapshots for transmission to clients.

A player view carries the viewer's own hand and captured pile. Other
players appear only as counts.
"""

from typing import Any, Dict, List, Optional

from .constants import STATUS_BETWEEN_ROUNDS, TEAM_A, TEAM_B, TEAM_NAMES
from .models import RoomState


def _team_layout(state: RoomState) -> List[Dict[str, Any]]:
    layout = []
    for key in (TEAM_A, TEAM_B):
        layout.append({
            "key": key,
            "name": TEAM_NAMES[key],
            "score": state.team_scores.get(key, 0),
            "members": [
                {"id": p.id, "name": p.name, "is_host": p.id == state.host_id}
                for p in state.players if p.team == key
            ],
        })
    return layout


def _winner_name(state: RoomState) -> Optional[str]:
    if not state.winner_id:
        return None
    if state.winner_id in TEAM_NAMES:
        return TEAM_NAMES[state.winner_id]
    winner = state.find_player(state.winner_id)
    return winner.name if winner else None


def build_lobby_view(state: RoomState) -> Dict[str, Any]:
    """
    Public room summary, safe to send to every member.

    Args:
        state: Room to summarize

    Returns:
        Dictionary with no hidden information
    """
    return {
        "room_code": state.code,
        "version": state.version,
        "status": state.status,
        "round": state.round_number,
        "target_score": state.target_score,
        "mode": state.mode,
        "max_players": state.max_players,
        "available_slots": state.open_slots,
        "team_scores": dict(state.team_scores) if state.is_team_mode else None,
        "teams": _team_layout(state) if state.is_team_mode else None,
        "players": [
            {
                "id": p.id,
                "name": p.name,
                "score": p.score,
                "is_host": p.id == state.host_id,
                "is_dealer": index == state.dealer_index,
                "is_tireur": index == state.tireur_index,
                "cards_in_hand": len(p.hand),
                "team": p.team,
            }
            for index, p in enumerate(state.players)
        ],
        "last_action": state.last_action,
    }


def build_player_view(state: RoomState, viewer_id: str) -> Optional[Dict[str, Any]]:
    """
    Snapshot for one player.

    Args:
        state: Room state to project
        viewer_id: Player receiving the snapshot

    Returns:
        The viewer's snapshot, or None if the viewer is not in the room
    """
    viewer = state.find_player(viewer_id)
    if viewer is None:
        return None

    view = build_lobby_view(state)
    view.update({
        "self_id": viewer.id,
        "teams": view["teams"] or [],
        "table_cards": [card.to_dict() for card in state.table_cards],
        "your_hand": [card.to_dict() for card in viewer.hand],
        "your_captured": len(viewer.captured),
        "your_captured_cards": [card.to_dict() for card in viewer.captured],
        "chkobba": viewer.chkobba_count,
        "deck_count": len(state.deck),
        "turn_player_id": state.player_id_at(state.turn_index),
        "dealer_id": state.player_id_at(state.dealer_index),
        "tireur_id": state.player_id_at(state.tireur_index),
        "last_round_summary": state.last_round_summary.to_dict() if state.last_round_summary else None,
        "last_chkobba_event": state.last_chkobba_event.to_dict() if state.last_chkobba_event else None,
        "winner_id": state.winner_id,
        "winner_name": _winner_name(state),
        "awaiting_ready": state.status == STATUS_BETWEEN_ROUNDS,
        "ready_player_ids": [p.id for p in state.players if p.id in state.ready_players],
        "hand_animation_token": state.hand_token,
        "pending_switch": _pending_switch_for(state, viewer_id),
        "players": [
            {
                "id": p.id,
                "name": p.name,
                "hand_count": len(p.hand),
                "captured_count": len(p.captured),
                "score": p.score,
                "is_host": p.id == state.host_id,
                "is_dealer": index == state.dealer_index,
                "is_tireur": index == state.tireur_index,
                "is_turn": index == state.turn_index,
                "team": p.team,
            }
            for index, p in enumerate(state.players)
        ],
    })
    return view


def _pending_switch_for(state: RoomState, viewer_id: str) -> Optional[Dict[str, Any]]:
    pending = state.pending_switch
    if not pending or viewer_id not in (pending.from_id, pending.target_id):
        return None
    return {"from_id": pending.from_id, "target_id": pending.target_id}

