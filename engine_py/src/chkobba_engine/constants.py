"""Game constants and utilities"""

from typing import Dict, List

# (id, symbol, color) in catalog order
SUITS = [
    ('spades', '♠', 'black'),
    ('clubs', '♣', 'black'),
    ('hearts', '♥', 'red'),
    ('diamonds', '♦', 'red'),
]

# (value, display label, name)
RANKS = [
    (1, '1', 'One'),
    (2, '2', 'Two'),
    (3, '3', 'Three'),
    (4, '4', 'Four'),
    (5, '5', 'Five'),
    (6, '6', 'Six'),
    (7, '7', 'Seven'),
    (8, 'V', 'Valet'),
    (9, 'D', 'Dame'),
    (10, 'R', 'Roi'),
]

DECK_SIZE = len(SUITS) * len(RANKS)
HAND_SIZE = 3
TABLE_SIZE = 4

DIAMONDS = 'diamonds'
SEVEN = 7
SEVEN_OF_DIAMONDS_ID = 'diamonds-7'

# Room status
STATUS_WAITING = 'waiting'
STATUS_RUNNING = 'running'
STATUS_BETWEEN_ROUNDS = 'between_rounds'
STATUS_FINISHED = 'finished'

# Modes
MODE_1V1 = '1v1'
MODE_2V2 = '2v2'
MODE_CONFIG: Dict[str, Dict] = {
    MODE_1V1: {'max_players': 2, 'label': '1v1 Duel', 'team_play': False},
    MODE_2V2: {'max_players': 4, 'label': '2v2 Teams', 'team_play': True},
}

TEAM_A = 'A'
TEAM_B = 'B'
TEAM_NAMES = {TEAM_A: 'Team A', TEAM_B: 'Team B'}

# Target score bounds
DEFAULT_TARGET_SCORE = 11
MIN_TARGET_SCORE = 5
MAX_TARGET_SCORE = 51

# Room codes skip 0/O and 1/I
ROOM_CODE_LENGTH = 6
ROOM_ALPHABET = 'ABCDEFGHJKLMNPQRSTUVWXYZ23456789'

MAX_USERNAME_LENGTH = 20


def card_id(suit: str, rank: int) -> str:
    return f"{suit}-{rank}"


def max_players(mode: str) -> int:
    return MODE_CONFIG.get(mode, MODE_CONFIG[MODE_1V1])['max_players']


def is_team_mode(mode: str) -> bool:
    return MODE_CONFIG.get(mode, MODE_CONFIG[MODE_1V1])['team_play']


def mode_label(mode: str) -> str:
    return MODE_CONFIG.get(mode, MODE_CONFIG[MODE_1V1])['label']


def supported_modes() -> List[str]:
    return list(MODE_CONFIG.keys())
