"""Game models and data structures"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set

from .constants import (
    DEFAULT_TARGET_SCORE, MODE_1V1, STATUS_WAITING, TEAM_A, TEAM_B,
    is_team_mode, max_players,
)


@dataclass(frozen=True)
class Card:
    id: str
    suit: str
    suit_label: str
    color: str
    rank: int
    display_rank: str
    name: str
    label: str

    @property
    def value(self) -> int:
        # capture value is the rank
        return self.rank

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'suit': self.suit,
            'suit_label': self.suit_label,
            'color': self.color,
            'rank': self.rank,
            'display_rank': self.display_rank,
            'name': self.name,
            'value': self.value,
            'label': self.label,
        }


@dataclass
class Player:
    id: str
    name: str
    hand: List[Card] = field(default_factory=list)
    captured: List[Card] = field(default_factory=list)
    score: int = 0
    chkobba_count: int = 0
    team: Optional[str] = None  # None in 1v1, 'A' or 'B' in 2v2

    def reset_round(self):
        self.hand = []
        self.captured = []
        self.chkobba_count = 0


@dataclass
class ChkobbaEvent:
    """Transient record of the latest clean sweep, for client celebration."""
    event_id: str
    player_id: str
    card_label: str
    round: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            'event_id': self.event_id,
            'player_id': self.player_id,
            'card_label': self.card_label,
            'round': self.round,
        }


@dataclass
class ScoreLine:
    """Round statistics and points for one scoring unit (player or team)."""
    key: str
    name: str
    cards: int = 0
    diamonds: int = 0
    sevens: int = 0
    seven_of_diamonds: bool = False
    chkobba: int = 0
    points_earned: int = 0
    total_score: int = 0
    awards: List[str] = field(default_factory=list)
    team_key: Optional[str] = None
    members: List[str] = field(default_factory=list)
    member_ids: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'key': self.key,
            'name': self.name,
            'cards': self.cards,
            'diamonds': self.diamonds,
            'sevens': self.sevens,
            'seven_of_diamonds': self.seven_of_diamonds,
            'chkobba': self.chkobba,
            'points_earned': self.points_earned,
            'total_score': self.total_score,
            'awards': list(self.awards),
            'team_key': self.team_key,
            'members': list(self.members),
            'member_ids': list(self.member_ids),
        }


@dataclass
class RoundSummary:
    round: int
    mode: str
    breakdown: List[ScoreLine] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'round': self.round,
            'mode': self.mode,
            'breakdown': [line.to_dict() for line in self.breakdown],
        }


@dataclass
class PendingSwitch:
    from_id: str
    target_id: str


@dataclass
class RoomState:
    code: str
    version: int = 0
    status: str = STATUS_WAITING  # waiting|running|between_rounds|finished
    mode: str = MODE_1V1
    target_score: int = DEFAULT_TARGET_SCORE
    players: List[Player] = field(default_factory=list)  # roster order = seat order
    host_id: Optional[str] = None
    deck: List[Card] = field(default_factory=list)
    table_cards: List[Card] = field(default_factory=list)
    round_number: int = 0
    dealer_index: int = 0
    tireur_index: int = 0
    turn_index: int = 0
    last_capture_player_id: Optional[str] = None
    last_action: str = 'Waiting for players'
    last_round_summary: Optional[RoundSummary] = None
    last_chkobba_event: Optional[ChkobbaEvent] = None
    ready_players: Set[str] = field(default_factory=set)
    winner_id: Optional[str] = None  # player id in 1v1, team key in 2v2
    team_scores: Dict[str, int] = field(default_factory=lambda: {TEAM_A: 0, TEAM_B: 0})
    hand_token: int = 0
    pending_switch: Optional[PendingSwitch] = None
    seed: Optional[int] = None  # deterministic deals when set

    @property
    def max_players(self) -> int:
        return max_players(self.mode)

    @property
    def is_team_mode(self) -> bool:
        return is_team_mode(self.mode)

    @property
    def open_slots(self) -> int:
        return max(self.max_players - len(self.players), 0)

    @property
    def current_player(self) -> Optional[Player]:
        if 0 <= self.turn_index < len(self.players):
            return self.players[self.turn_index]
        return None

    def find_player(self, player_id: str) -> Optional[Player]:
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    def player_index(self, player_id: str) -> int:
        for i, player in enumerate(self.players):
            if player.id == player_id:
                return i
        return -1

    def player_id_at(self, index: int) -> Optional[str]:
        if 0 <= index < len(self.players):
            return self.players[index].id
        return None

    def is_host(self, player_id: str) -> bool:
        return self.host_id is not None and self.host_id == player_id

    def card_count(self) -> int:
        """Every card accounted for this round: table, deck, hands and captured piles."""
        return (
            len(self.table_cards)
            + len(self.deck)
            + sum(len(p.hand) + len(p.captured) for p in self.players)
        )

    def increment_version(self):
        self.version += 1
