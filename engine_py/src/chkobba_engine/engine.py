"""
Room state machine: roster, settings, turns, rounds and match progression.

Every public function validates its preconditions before touching the
room, so a raised GameError always leaves the state as it was.
"""

import logging
import uuid
from typing import Any, List, Optional

from .capture import remove_cards, resolve_capture
from .constants import (
    HAND_SIZE, STATUS_BETWEEN_ROUNDS, STATUS_FINISHED, STATUS_RUNNING,
    STATUS_WAITING, TABLE_SIZE, TEAM_A, TEAM_B, max_players, mode_label,
    supported_modes,
)
from .errors import (
    ALREADY_HOST, ALREADY_IN_ROOM, CANNOT_START, CARD_NOT_IN_HAND, DUPLICATE_NAME,
    GAME_IN_PROGRESS, GAME_NOT_RUNNING, INVALID_MODE, INVALID_SWITCH,
    NO_SWITCH_PENDING, NOT_HOST, NOT_YOUR_TURN, PLAYER_NOT_FOUND, ROOM_FULL,
    ROSTER_TOO_LARGE, SELF_KICK, SETTINGS_LOCKED, SWITCH_PENDING, raise_error,
)
from .models import Card, ChkobbaEvent, PendingSwitch, Player, RoomState
from .rules import RoomSettings, normalize_target_score
from .scoring import find_match_winner, score_round
from .shuffle import create_deck, deal_cards, draw, shuffle_deck

logger = logging.getLogger(__name__)

LOBBY_STATUSES = (STATUS_WAITING, STATUS_FINISHED)


def create_room(code: str, settings: Optional[RoomSettings] = None, seed: Optional[int] = None) -> RoomState:
    """Create an empty room in the waiting state."""
    settings = settings or RoomSettings()
    return RoomState(code=code, mode=settings.mode, target_score=settings.target_score, seed=seed)


# ---------------------------------------------------------------------------
# Roster
# ---------------------------------------------------------------------------

def join_room(state: RoomState, player_id: str, name: str) -> Player:
    """
    Add a player to the roster.

    The first player to join becomes host and the dealer reference.

    Raises:
        GameError: ALREADY_IN_ROOM, ROOM_FULL or DUPLICATE_NAME
    """
    if state.find_player(player_id):
        raise_error(ALREADY_IN_ROOM, "You are already in this room.")
    if len(state.players) >= state.max_players:
        raise_error(ROOM_FULL, "Room is full")
    if any(p.name.lower() == name.lower() for p in state.players):
        raise_error(DUPLICATE_NAME, "Username already taken in this room")

    player = Player(id=player_id, name=name)
    state.players.append(player)
    if not state.host_id:
        state.host_id = player_id
        state.dealer_index = 0
    _assign_teams(state)
    state.increment_version()
    return player


def remove_player(state: RoomState, player_id: str) -> bool:
    """
    Remove a player from the roster (leave, disconnect or kick).

    Host passes to the first remaining player. Dealer, tireur and turn keep
    pointing at the same players when they remain. If the roster drops below
    the mode's capacity the match is reset in place.

    Returns:
        False if the player was not in the room
    """
    index = state.player_index(player_id)
    if index == -1:
        return False

    dealer_id = state.player_id_at(state.dealer_index)
    tireur_id = state.player_id_at(state.tireur_index)
    turn_id = state.player_id_at(state.turn_index)

    removed = state.players.pop(index)
    if state.host_id == player_id:
        state.host_id = state.players[0].id if state.players else None
    state.ready_players.discard(player_id)
    if state.pending_switch and player_id in (state.pending_switch.from_id, state.pending_switch.target_id):
        state.pending_switch = None

    logger.info(f"Player {removed.name} ({player_id}) left room {state.code}")

    if not state.players:
        state.dealer_index = state.tireur_index = state.turn_index = 0
        state.increment_version()
        return True

    state.dealer_index = _resolve_index(state.players, dealer_id)
    state.tireur_index = _resolve_index(state.players, tireur_id)
    state.turn_index = _resolve_index(state.players, turn_id)
    _assign_teams(state)

    if len(state.players) < state.max_players:
        if state.status != STATUS_WAITING:
            logger.info(f"Room {state.code} lost a player mid-match, back to lobby")
        _reset_match(state)
        state.last_action = 'Need the full roster to play.'
    else:
        state.last_action = f"{removed.name} left the room."

    state.increment_version()
    return True


def kick_player(state: RoomState, actor_id: str, target_id: str) -> Player:
    """Host removes another player from the room."""
    _require_host(state, actor_id, "Only the host can remove players.")
    if target_id == actor_id:
        raise_error(SELF_KICK, "Host cannot kick themselves.")
    target = state.find_player(target_id)
    if not target:
        raise_error(PLAYER_NOT_FOUND, "Player not found.")
    remove_player(state, target_id)
    return target


def promote_to_host(state: RoomState, player_id: str):
    """Make player_id the host. Single assignment, so there is never zero or two hosts."""
    if not state.find_player(player_id):
        raise_error(PLAYER_NOT_FOUND, "Player not found.")
    state.host_id = player_id
    state.increment_version()


def transfer_host(state: RoomState, actor_id: str, target_id: str):
    """Host hands the host role to another player."""
    _require_host(state, actor_id, "Only the host can promote another player.")
    if target_id == actor_id:
        raise_error(ALREADY_HOST, "You are already the host.")
    promote_to_host(state, target_id)
    state.last_action = f"{state.find_player(target_id).name} is now the host."


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

def set_mode(state: RoomState, mode: str):
    _validate_mode(state, mode)
    _apply_mode(state, mode)
    state.increment_version()


def set_target_score(state: RoomState, value: Any):
    if state.status == STATUS_RUNNING:
        raise_error(SETTINGS_LOCKED, "Can only change target score from the lobby.")
    state.target_score = normalize_target_score(value)
    state.increment_version()


def update_settings(state: RoomState, actor_id: str, target_score: Any = None, mode: Optional[str] = None):
    """
    Host changes target score and/or mode in one step.

    Both changes are validated before either is applied.
    """
    _require_host(state, actor_id, "Only the host can update settings.")
    if state.status == STATUS_RUNNING:
        raise_error(SETTINGS_LOCKED, "Can only change settings from the lobby.")
    if mode is not None:
        _validate_mode(state, mode)

    if target_score is not None:
        state.target_score = normalize_target_score(target_score)
    if mode is not None:
        _apply_mode(state, mode)
    state.increment_version()


def _validate_mode(state: RoomState, mode: str):
    if state.status == STATUS_RUNNING:
        raise_error(SETTINGS_LOCKED, "Can only change mode from the lobby.")
    if mode not in supported_modes():
        raise_error(INVALID_MODE, "Unsupported mode.")
    if len(state.players) > max_players(mode):
        raise_error(ROSTER_TOO_LARGE, f"Too many players for {mode_label(mode)}.")


def _apply_mode(state: RoomState, mode: str):
    if mode == state.mode:
        return
    state.mode = mode
    state.team_scores = {TEAM_A: 0, TEAM_B: 0}
    _assign_teams(state)
    # Scores from the old mode mean nothing in the new one
    if state.status != STATUS_WAITING:
        _reset_match(state)
    state.last_action = f"Mode changed to {mode_label(mode)}."


# ---------------------------------------------------------------------------
# Seat switching
# ---------------------------------------------------------------------------

def request_switch(state: RoomState, requester_id: str, target_id: str) -> Player:
    """Ask another player to swap seats (and so teams, in 2v2)."""
    if state.status not in LOBBY_STATUSES:
        raise_error(GAME_IN_PROGRESS, "Seats can only be switched from the lobby.")
    requester = state.find_player(requester_id)
    target = state.find_player(target_id)
    if not requester or not target:
        raise_error(PLAYER_NOT_FOUND, "Player not found.")
    if requester_id == target_id:
        raise_error(INVALID_SWITCH, "You cannot switch with yourself.")
    if state.pending_switch:
        raise_error(SWITCH_PENDING, "A seat switch is already pending.")

    state.pending_switch = PendingSwitch(from_id=requester_id, target_id=target_id)
    state.last_action = f"{requester.name} asked {target.name} to switch seats."
    state.increment_version()
    return target


def respond_switch(state: RoomState, responder_id: str, accepted: bool) -> bool:
    """
    Answer the pending switch request addressed to responder_id.

    Returns:
        True if the seats were swapped
    """
    pending = state.pending_switch
    if not pending or pending.target_id != responder_id:
        raise_error(NO_SWITCH_PENDING, "No seat switch request for you.")

    state.pending_switch = None
    requester = state.find_player(pending.from_id)
    responder = state.find_player(responder_id)
    if not accepted:
        state.last_action = f"{responder.name} declined to switch seats."
        state.increment_version()
        return False

    dealer_id = state.player_id_at(state.dealer_index)
    i = state.player_index(pending.from_id)
    j = state.player_index(responder_id)
    state.players[i], state.players[j] = state.players[j], state.players[i]
    state.dealer_index = _resolve_index(state.players, dealer_id)
    _assign_teams(state)
    state.last_action = f"{requester.name} and {responder.name} switched seats."
    state.increment_version()
    return True


# ---------------------------------------------------------------------------
# Match and rounds
# ---------------------------------------------------------------------------

def can_start(state: RoomState) -> bool:
    return len(state.players) == state.max_players and state.status in LOBBY_STATUSES


def start_game(state: RoomState, actor_id: Optional[str] = None, seed: Optional[int] = None):
    """Reset the match and deal round 1. Needs a full roster."""
    if actor_id is not None:
        _require_host(state, actor_id, "Only the host can start the game.")
    if not can_start(state):
        if state.status not in LOBBY_STATUSES:
            raise_error(CANNOT_START, "A match is already in progress.")
        raise_error(CANNOT_START, f"Need exactly {state.max_players} players to start.")

    if seed is not None:
        state.seed = seed
    state.round_number = 0
    state.last_round_summary = None
    state.team_scores = {TEAM_A: 0, TEAM_B: 0}
    state.winner_id = None
    state.last_chkobba_event = None
    state.pending_switch = None
    _assign_teams(state)
    for player in state.players:
        player.score = 0
    logger.info(f"Match started in room {state.code} ({state.mode}, target {state.target_score})")
    _init_round(state)
    state.increment_version()


def play_card(state: RoomState, player_id: str, card_id: str) -> List[Card]:
    """
    Play a card from the current player's hand.

    Returns:
        The table cards captured (empty if the card was laid on the table)
    """
    if state.status != STATUS_RUNNING:
        raise_error(GAME_NOT_RUNNING, "Game not running")
    player_index = state.player_index(player_id)
    if player_index == -1:
        raise_error(PLAYER_NOT_FOUND, "Player missing from room")
    if player_index != state.turn_index:
        raise_error(NOT_YOUR_TURN, "It isn't your turn")
    player = state.players[player_index]
    card = next((c for c in player.hand if c.id == card_id), None)
    if card is None:
        raise_error(CARD_NOT_IN_HAND, "Card not in hand")

    player.hand.remove(card)
    state.last_chkobba_event = None
    captured = resolve_capture(card, state.table_cards)
    if captured:
        state.table_cards = remove_cards(state.table_cards, captured)
        player.captured.extend(captured)
        player.captured.append(card)
        state.last_capture_player_id = player.id
        if not state.table_cards:
            player.chkobba_count += 1
            state.last_chkobba_event = ChkobbaEvent(
                event_id=uuid.uuid4().hex[:12],
                player_id=player.id,
                card_label=card.label,
                round=state.round_number,
            )
            state.last_action = f"{player.name} made a Chkobba with {card.label}!"
        else:
            state.last_action = f"{player.name} captured {len(captured)} cards with {card.label}."
    else:
        state.table_cards.append(card)
        state.last_action = f"{player.name} played {card.label}."

    _advance_turn(state)
    _maybe_deal_hand(state)
    state.increment_version()
    return captured


def player_ready(state: RoomState, player_id: str) -> bool:
    """
    Confirm readiness for the next round.

    Returns:
        True if this confirmation started the next round
    """
    if state.status != STATUS_BETWEEN_ROUNDS:
        return False
    if not state.find_player(player_id):
        raise_error(PLAYER_NOT_FOUND, "Player missing from room")

    state.ready_players.add(player_id)
    started = {p.id for p in state.players} <= state.ready_players
    if started:
        _init_round(state)
    state.increment_version()
    return started


def stop_game(state: RoomState, actor_id: Optional[str] = None):
    """Return the room to the lobby, keeping the roster and clearing all scores."""
    if actor_id is not None:
        _require_host(state, actor_id, "Only the host can stop the game.")
    _reset_match(state)
    state.last_action = 'Returned to lobby by host.'
    state.increment_version()


def _init_round(state: RoomState):
    state.status = STATUS_RUNNING
    state.ready_players.clear()
    state.round_number += 1
    seed = None if state.seed is None else state.seed + state.round_number
    state.deck = shuffle_deck(create_deck(), seed)
    state.table_cards = draw(state.deck, TABLE_SIZE)
    for player in state.players:
        player.reset_round()
    deal_cards(state.deck, state.players, HAND_SIZE)
    state.hand_token += 1
    state.tireur_index = (state.dealer_index + 1) % len(state.players)
    state.turn_index = state.tireur_index
    state.last_capture_player_id = None
    state.last_chkobba_event = None
    state.last_round_summary = None
    state.winner_id = None
    state.last_action = f"Round {state.round_number} started. {state.players[state.turn_index].name} leads."
    logger.info(f"Room {state.code} round {state.round_number} dealt, {state.players[state.turn_index].name} leads")


def _advance_turn(state: RoomState):
    if state.players:
        state.turn_index = (state.turn_index + 1) % len(state.players)


def _maybe_deal_hand(state: RoomState):
    if any(player.hand for player in state.players):
        return
    if not state.deck:
        _finalize_round(state)
        return
    deal_cards(state.deck, state.players, HAND_SIZE)
    state.turn_index = state.tireur_index
    state.hand_token += 1
    state.last_chkobba_event = None
    state.last_action = 'New hand dealt.'


def _finalize_round(state: RoomState):
    # Last capture takes what is left on the table
    if state.last_capture_player_id:
        last = state.find_player(state.last_capture_player_id)
        if last:
            last.captured.extend(state.table_cards)
    state.table_cards = []

    summary = score_round(state)
    state.last_round_summary = summary
    winner_key = find_match_winner(state, summary.breakdown)
    if winner_key:
        winner = next(line for line in summary.breakdown if line.key == winner_key)
        state.status = STATUS_FINISHED
        state.winner_id = winner_key
        state.last_action = f"{winner.name} reached {state.target_score} points!"
        logger.info(f"Room {state.code} match finished, winner {winner.name}")
        return

    state.winner_id = None
    state.dealer_index = (state.dealer_index + 1) % len(state.players)
    state.status = STATUS_BETWEEN_ROUNDS
    state.ready_players.clear()
    state.last_action = 'Round complete. Waiting for players to continue.'


def _reset_match(state: RoomState):
    state.status = STATUS_WAITING
    state.deck = []
    state.table_cards = []
    state.round_number = 0
    state.hand_token += 1
    state.last_capture_player_id = None
    state.last_chkobba_event = None
    state.last_round_summary = None
    state.ready_players.clear()
    state.winner_id = None
    state.team_scores = {TEAM_A: 0, TEAM_B: 0}
    for player in state.players:
        player.reset_round()
        player.score = 0


def _assign_teams(state: RoomState):
    if not state.is_team_mode:
        for player in state.players:
            player.team = None
        return
    for index, player in enumerate(state.players):
        player.team = TEAM_A if index % 2 == 0 else TEAM_B


def _resolve_index(players: List[Player], player_id: Optional[str]) -> int:
    if not players:
        return 0
    for index, player in enumerate(players):
        if player.id == player_id:
            return index
    return 0


def _require_host(state: RoomState, actor_id: str, message: str):
    if not state.is_host(actor_id):
        raise_error(NOT_HOST, message)
