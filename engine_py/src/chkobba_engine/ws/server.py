"""
WebSocket session handling for the Chkobba room server.

Every action for a room runs under that room's asyncio lock from
validation through the broadcast, so two actions on one room never
interleave. Failures go back to the acting connection only.
"""

import asyncio
import logging
import uuid
from collections import defaultdict
from contextlib import asynccontextmanager
from typing import Dict, Optional

import orjson
from fastapi import WebSocket, WebSocketDisconnect
from pydantic import BaseModel

from .. import engine
from ..errors import (
    GAME_IN_PROGRESS, INTERNAL_ERROR, INVALID_EVENT, NOT_IN_ROOM,
    USERNAME_REQUIRED, GameError, raise_error,
)
from ..constants import STATUS_WAITING
from ..models import RoomState
from ..registry import RoomRegistry
from ..serialization import build_lobby_view, build_player_view
from .events import (
    CreateRoomEvent, JoinRoomEvent, KickPlayerEvent, LeaveRoomEvent,
    OutboundEventType, PlayCardEvent, ReadyNextRoundEvent, RequestStateEvent,
    RequestSwitchEvent, RespondSwitchEvent, StartGameEvent, StopGameEvent,
    TransferHostEvent, UpdateSettingsEvent, create_connected_event,
    create_error_event, create_game_update_event, create_room_code_event,
    create_room_update_event, create_switch_request_event, parse_inbound_event,
)

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Tracks open sockets by player id and which room each player sits in."""

    def __init__(self):
        self.active_connections: Dict[str, WebSocket] = {}
        self.player_to_room: Dict[str, str] = {}

    async def connect(self, websocket: WebSocket, player_id: str):
        await websocket.accept()
        self.active_connections[player_id] = websocket
        logger.info(f"Player {player_id} connected")

    def disconnect(self, player_id: str):
        self.active_connections.pop(player_id, None)
        logger.info(f"Player {player_id} disconnected")

    def add_to_room(self, player_id: str, room_code: str):
        self.player_to_room[player_id] = room_code

    def remove_from_room(self, player_id: str) -> Optional[str]:
        return self.player_to_room.pop(player_id, None)

    async def send(self, event: BaseModel, player_id: str):
        websocket = self.active_connections.get(player_id)
        if websocket is None:
            return
        try:
            await websocket.send_text(orjson.dumps(event.model_dump(mode="json")).decode())
        except Exception as e:
            logger.error(f"Error sending message to {player_id}: {e}")
            self.disconnect(player_id)


class GameWebSocketManager:
    """Routes inbound client events to the engine and broadcasts the results."""

    def __init__(self, registry: Optional[RoomRegistry] = None):
        self.registry = registry or RoomRegistry()
        self.connection_manager = ConnectionManager()
        self.room_locks: Dict[str, asyncio.Lock] = {}
        self._lock_users: Dict[str, int] = defaultdict(int)

    async def handle_websocket(self, websocket: WebSocket):
        player_id = str(uuid.uuid4())
        await self.connection_manager.connect(websocket, player_id)
        await self.connection_manager.send(create_connected_event(player_id), player_id)

        try:
            while True:
                raw_data = await websocket.receive_text()
                await self.handle_message(raw_data, player_id)
        except WebSocketDisconnect:
            logger.info(f"WebSocket disconnected for player {player_id}")
        except Exception as e:
            logger.error(f"WebSocket error for player {player_id}: {e}")
        finally:
            self.connection_manager.disconnect(player_id)
            await self.handle_departure(player_id)

    async def handle_message(self, raw_data: str, player_id: str):
        try:
            event = parse_inbound_event(orjson.loads(raw_data))
        except (orjson.JSONDecodeError, ValueError) as e:
            await self.send_error(player_id, INVALID_EVENT, str(e))
            return

        try:
            await self.handle_event(event, player_id)
        except GameError as e:
            logger.warning(f"Rejected {event.type.value} from {player_id}: {e.message}")
            await self.send_error(player_id, e.code, e.message)
        except Exception:
            logger.exception(f"Error handling {event.type.value} from {player_id}")
            await self.send_error(player_id, INTERNAL_ERROR, "Internal server error")

    async def handle_event(self, event, player_id: str):
        if isinstance(event, CreateRoomEvent):
            await self.create_room(event, player_id)
        elif isinstance(event, JoinRoomEvent):
            await self.join_room(event, player_id)
        elif isinstance(event, LeaveRoomEvent):
            await self.leave_room(player_id)
        elif isinstance(event, RequestStateEvent):
            await self.send_room_state(player_id)
        elif isinstance(event, (StartGameEvent, PlayCardEvent, ReadyNextRoundEvent,
                                UpdateSettingsEvent, TransferHostEvent, StopGameEvent,
                                RespondSwitchEvent)):
            await self.room_action(event, player_id)
        elif isinstance(event, KickPlayerEvent):
            await self.kick_player(event, player_id)
        elif isinstance(event, RequestSwitchEvent):
            await self.request_switch(event, player_id)
        else:
            raise ValueError(f"Unhandled event type: {type(event)}")


    # ------------------------------------------------------------------
    # Room locks
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def room_lock(self, code: str):
        """
        Hold the lock for one room code.

        A lock is dropped only once no task holds or waits on it and the
        room is gone, so a code never has two live locks. Look the room up
        again once inside: it may have been removed while waiting.
        """
        lock = self.room_locks.setdefault(code, asyncio.Lock())
        self._lock_users[code] += 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[code] -= 1
            if not self._lock_users[code]:
                del self._lock_users[code]
                if code not in self.registry:
                    self.room_locks.pop(code, None)

    # ------------------------------------------------------------------
    # Room membership
    # ------------------------------------------------------------------

    async def create_room(self, event: CreateRoomEvent, player_id: str):
        if not event.username:
            raise_error(USERNAME_REQUIRED, "Username is required.")
        if player_id in self.connection_manager.player_to_room:
            await self.handle_departure(player_id)

        room = self.registry.create_room(
            player_id, event.username, mode=event.mode, target_score=event.target_score
        )
        self.connection_manager.add_to_room(player_id, room.code)
        await self.connection_manager.send(
            create_room_code_event(OutboundEventType.ROOM_CREATED, room.code), player_id
        )
        async with self.room_lock(room.code):
            await self.broadcast_room_state(self.registry.require_room(room.code))

    async def join_room(self, event: JoinRoomEvent, player_id: str):
        if not event.username:
            raise_error(USERNAME_REQUIRED, "Username is required.")

        async with self.room_lock(event.room_code):
            room = self.registry.require_room(event.room_code)
            if room.status != STATUS_WAITING:
                raise_error(GAME_IN_PROGRESS, "Game already in progress.")
            engine.join_room(room, player_id, event.username)
            previous = self.connection_manager.player_to_room.get(player_id)
            self.connection_manager.add_to_room(player_id, room.code)
            logger.info(f"{event.username} joined room {room.code}")
            await self.connection_manager.send(
                create_room_code_event(OutboundEventType.JOINED_ROOM, room.code), player_id
            )
            await self.broadcast_room_state(room)

        if previous and previous != room.code:
            await self._leave(player_id, previous)

    async def leave_room(self, player_id: str):
        code = await self.handle_departure(player_id)
        if code:
            await self.connection_manager.send(
                create_room_code_event(OutboundEventType.LEFT_ROOM, code), player_id
            )

    async def handle_departure(self, player_id: str) -> Optional[str]:
        """Leave or disconnect: drop the player from their room, removing it if empty."""
        code = self.connection_manager.remove_from_room(player_id)
        if code:
            await self._leave(player_id, code)
        return code

    async def _leave(self, player_id: str, code: str):
        async with self.room_lock(code):
            room = self.registry.get_room(code)
            if room is None:
                return
            engine.remove_player(room, player_id)
            if not room.players:
                self.registry.remove_room(code)
                return
            await self.broadcast_room_state(room)

    async def kick_player(self, event: KickPlayerEvent, player_id: str):
        code = self._room_code_for(player_id)
        async with self.room_lock(code):
            room = self.registry.require_room(code)
            target = engine.kick_player(room, player_id, event.player_id)
            self.connection_manager.remove_from_room(target.id)
            logger.info(f"{target.name} was kicked from room {code}")
            await self.connection_manager.send(
                create_room_code_event(OutboundEventType.KICKED, code), target.id
            )
            await self.broadcast_room_state(room)

    async def request_switch(self, event: RequestSwitchEvent, player_id: str):
        code = self._room_code_for(player_id)
        async with self.room_lock(code):
            room = self.registry.require_room(code)
            engine.request_switch(room, player_id, event.target_id)
            requester = room.find_player(player_id)
            await self.connection_manager.send(
                create_switch_request_event(code, player_id, requester.name), event.target_id
            )
            await self.broadcast_room_state(room)

    # ------------------------------------------------------------------
    # In-room actions
    # ------------------------------------------------------------------

    async def room_action(self, event, player_id: str):
        code = self._room_code_for(player_id)
        async with self.room_lock(code):
            room = self.registry.require_room(code)
            if isinstance(event, StartGameEvent):
                engine.start_game(room, player_id)
            elif isinstance(event, PlayCardEvent):
                engine.play_card(room, player_id, event.card_id)
            elif isinstance(event, ReadyNextRoundEvent):
                engine.player_ready(room, player_id)
            elif isinstance(event, UpdateSettingsEvent):
                engine.update_settings(room, player_id, target_score=event.target_score, mode=event.mode)
            elif isinstance(event, TransferHostEvent):
                engine.transfer_host(room, player_id, event.player_id)
            elif isinstance(event, StopGameEvent):
                engine.stop_game(room, player_id)
            elif isinstance(event, RespondSwitchEvent):
                engine.respond_switch(room, player_id, event.accepted)
            await self.broadcast_room_state(room)

    def _room_code_for(self, player_id: str) -> str:
        code = self.connection_manager.player_to_room.get(player_id)
        if not code:
            raise_error(NOT_IN_ROOM, "You are not in a room.")
        return code

    # ------------------------------------------------------------------
    # Outbound
    # ------------------------------------------------------------------

    async def broadcast_room_state(self, room: RoomState):
        """Personal game_update, then the shared room_update, to every member."""
        lobby_event = create_room_update_event(build_lobby_view(room))
        for player in list(room.players):
            view = build_player_view(room, player.id)
            if view is not None:
                await self.connection_manager.send(create_game_update_event(view), player.id)
            await self.connection_manager.send(lobby_event, player.id)

    async def send_room_state(self, player_id: str):
        code = self._room_code_for(player_id)
        async with self.room_lock(code):
            room = self.registry.require_room(code)
            view = build_player_view(room, player_id)
            if view is not None:
                await self.connection_manager.send(create_game_update_event(view), player_id)
            await self.connection_manager.send(create_room_update_event(build_lobby_view(room)), player_id)

    async def send_error(self, player_id: str, code: str, message: str):
        await self.connection_manager.send(create_error_event(code, message), player_id)
