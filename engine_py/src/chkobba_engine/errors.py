# engine_py/src/chkobba_engine/errors.py

class GameError(Exception):
    """Base exception for game-related errors."""
    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message
        super().__init__(f"[{code}] {message}")

# Specific error codes
ROOM_FULL = "ROOM_FULL"
DUPLICATE_NAME = "DUPLICATE_NAME"
ROOM_NOT_FOUND = "ROOM_NOT_FOUND"
NOT_HOST = "NOT_HOST"
NOT_YOUR_TURN = "NOT_YOUR_TURN"
CARD_NOT_IN_HAND = "CARD_NOT_IN_HAND"
GAME_NOT_RUNNING = "GAME_NOT_RUNNING"
INVALID_MODE = "INVALID_MODE"
ROSTER_TOO_LARGE = "ROSTER_TOO_LARGE"
SETTINGS_LOCKED = "SETTINGS_LOCKED"
ALREADY_HOST = "ALREADY_HOST"
SELF_KICK = "SELF_KICK"
PLAYER_NOT_FOUND = "PLAYER_NOT_FOUND"
CANNOT_START = "CANNOT_START"
GAME_IN_PROGRESS = "GAME_IN_PROGRESS"
USERNAME_REQUIRED = "USERNAME_REQUIRED"
NOT_IN_ROOM = "NOT_IN_ROOM"
SWITCH_PENDING = "SWITCH_PENDING"
ALREADY_IN_ROOM = "ALREADY_IN_ROOM"
NO_SWITCH_PENDING = "NO_SWITCH_PENDING"
INVALID_SWITCH = "INVALID_SWITCH"
INVALID_EVENT = "INVALID_EVENT"
INTERNAL_ERROR = "INTERNAL"

# Helper function to raise common errors
def raise_error(code: str, message: str):
    raise GameError(code, message)
