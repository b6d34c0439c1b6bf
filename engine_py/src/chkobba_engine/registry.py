"""
Room registry: live rooms by room code.
"""

import logging
import secrets
import threading
from typing import Callable, Dict, List, Optional

from .constants import ROOM_ALPHABET, ROOM_CODE_LENGTH
from .engine import create_room, join_room
from .errors import ROOM_NOT_FOUND, raise_error
from .models import RoomState
from .rules import create_settings

logger = logging.getLogger(__name__)


def generate_room_code(length: int = ROOM_CODE_LENGTH) -> str:
    return ''.join(secrets.choice(ROOM_ALPHABET) for _ in range(length))


def normalize_code(value: Optional[str]) -> str:
    return (value or '').strip().upper()


class RoomRegistry:
    """
    Holds every live room for one server process.

    Map operations are guarded by a lock, so sessions on different threads
    or tasks may look up, add and drop rooms concurrently. Serializing the
    actions on a single room is the caller's job.
    """

    def __init__(self, code_factory: Callable[[], str] = generate_room_code):
        self.rooms: Dict[str, RoomState] = {}
        self._lock = threading.Lock()
        self._code_factory = code_factory

    def create_room(
        self,
        host_id: str,
        name: str,
        mode: Optional[str] = None,
        target_score=None,
        seed: Optional[int] = None,
    ) -> RoomState:
        """Create a room with a fresh code and seat its creator as host."""
        settings = create_settings(mode=mode, target_score=target_score)
        with self._lock:
            code = self._code_factory()
            while code in self.rooms:
                code = self._code_factory()
            room = create_room(code, settings, seed=seed)
            join_room(room, host_id, name)
            self.rooms[code] = room
        logger.info(f"Room {code} created by {name} ({room.mode}, target {room.target_score})")
        return room

    def get_room(self, code: Optional[str]) -> Optional[RoomState]:
        with self._lock:
            return self.rooms.get(normalize_code(code))

    def require_room(self, code: Optional[str]) -> RoomState:
        room = self.get_room(code)
        if room is None:
            raise_error(ROOM_NOT_FOUND, "Room not found.")
        return room

    def remove_room(self, code: Optional[str]) -> Optional[RoomState]:
        code = normalize_code(code)
        with self._lock:
            room = self.rooms.pop(code, None)
        if room is not None:
            logger.info(f"Room {code} removed")
        return room

    def codes(self) -> List[str]:
        with self._lock:
            return list(self.rooms.keys())

    def __len__(self) -> int:
        with self._lock:
            return len(self.rooms)

    def __contains__(self, code) -> bool:
        with self._lock:
            return normalize_code(code) in self.rooms
