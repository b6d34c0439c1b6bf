"""
WebSocket event models and validation.
"""

import time
from enum import Enum
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, Field, field_validator

from ..constants import MAX_USERNAME_LENGTH
from ..registry import normalize_code
from ..rules import normalize_mode


class EventType(str, Enum):
    """Inbound event types."""
    CREATE_ROOM = "create_room"
    JOIN_ROOM = "join_room"
    START_GAME = "start_game"
    PLAY_CARD = "play_card"
    READY_NEXT_ROUND = "ready_next_round"
    UPDATE_SETTINGS = "update_settings"
    TRANSFER_HOST = "transfer_host"
    KICK_PLAYER = "kick_player"
    STOP_GAME = "stop_game"
    LEAVE_ROOM = "leave_room"
    REQUEST_SWITCH = "request_switch"
    RESPOND_SWITCH = "respond_switch"
    REQUEST_STATE = "request_state"


class OutboundEventType(str, Enum):
    """Outbound event types."""
    CONNECTED = "connected"
    ROOM_CREATED = "room_created"
    JOINED_ROOM = "joined_room"
    ROOM_UPDATE = "room_update"
    GAME_UPDATE = "game_update"
    SWITCH_REQUEST = "switch_request"
    KICKED = "kicked"
    LEFT_ROOM = "left_room"
    ACTION_ERROR = "action_error"


def sanitize_username(value: Any) -> str:
    if not isinstance(value, str):
        return ""
    return value.strip()[:MAX_USERNAME_LENGTH]


# Inbound event models
class BaseEvent(BaseModel):
    """Base event model."""
    type: EventType


class CreateRoomEvent(BaseEvent):
    """Create a room and become its host."""
    type: EventType = EventType.CREATE_ROOM
    username: str = ""
    mode: Optional[str] = None
    target_score: Optional[Any] = None

    @field_validator("username", mode="before")
    @classmethod
    def clean_username(cls, v):
        return sanitize_username(v)

    @field_validator("mode", mode="before")
    @classmethod
    def clean_mode(cls, v):
        return normalize_mode(v)


class JoinRoomEvent(BaseEvent):
    """Join an existing room by code."""
    type: EventType = EventType.JOIN_ROOM
    room_code: str = Field(..., min_length=1, max_length=20)
    username: str = ""

    @field_validator("room_code", mode="after")
    @classmethod
    def clean_room_code(cls, v):
        return normalize_code(v)

    @field_validator("username", mode="before")
    @classmethod
    def clean_username(cls, v):
        return sanitize_username(v)


class StartGameEvent(BaseEvent):
    type: EventType = EventType.START_GAME


class PlayCardEvent(BaseEvent):
    """Play one card from hand."""
    type: EventType = EventType.PLAY_CARD
    card_id: str = Field(..., min_length=1, max_length=20)


class ReadyNextRoundEvent(BaseEvent):
    type: EventType = EventType.READY_NEXT_ROUND


class UpdateSettingsEvent(BaseEvent):
    """Host changes target score and/or mode."""
    type: EventType = EventType.UPDATE_SETTINGS
    target_score: Optional[Any] = None
    mode: Optional[str] = None

    @field_validator("mode", mode="before")
    @classmethod
    def clean_mode(cls, v):
        if v is None or v == "":
            return None
        return normalize_mode(v)


class TransferHostEvent(BaseEvent):
    type: EventType = EventType.TRANSFER_HOST
    player_id: str = Field(..., min_length=1)


class KickPlayerEvent(BaseEvent):
    type: EventType = EventType.KICK_PLAYER
    player_id: str = Field(..., min_length=1)


class StopGameEvent(BaseEvent):
    type: EventType = EventType.STOP_GAME


class LeaveRoomEvent(BaseEvent):
    type: EventType = EventType.LEAVE_ROOM


class RequestSwitchEvent(BaseEvent):
    """Ask another player to swap seats."""
    type: EventType = EventType.REQUEST_SWITCH
    target_id: str = Field(..., min_length=1)


class RespondSwitchEvent(BaseEvent):
    type: EventType = EventType.RESPOND_SWITCH
    accepted: bool = False


class RequestStateEvent(BaseEvent):
    """Request a fresh snapshot for this connection."""
    type: EventType = EventType.REQUEST_STATE


# Union type for all inbound events
InboundEvent = Union[
    CreateRoomEvent,
    JoinRoomEvent,
    StartGameEvent,
    PlayCardEvent,
    ReadyNextRoundEvent,
    UpdateSettingsEvent,
    TransferHostEvent,
    KickPlayerEvent,
    StopGameEvent,
    LeaveRoomEvent,
    RequestSwitchEvent,
    RespondSwitchEvent,
    RequestStateEvent,
]


# Outbound event models
class ConnectedEvent(BaseModel):
    type: OutboundEventType = OutboundEventType.CONNECTED
    player_id: str
    timestamp: float


class RoomCodeEvent(BaseModel):
    """room_created, joined_room, kicked and left_room all carry just the code."""
    type: OutboundEventType
    room_code: str
    timestamp: float


class StateEvent(BaseModel):
    """room_update (lobby view) or game_update (player view)."""
    type: OutboundEventType
    state: Dict[str, Any]
    timestamp: float


class SwitchRequestEvent(BaseModel):
    type: OutboundEventType = OutboundEventType.SWITCH_REQUEST
    room_code: str
    from_id: str
    from_name: str
    timestamp: float


class ActionErrorEvent(BaseModel):
    """Error event, sent only to the connection that triggered it."""
    type: OutboundEventType = OutboundEventType.ACTION_ERROR
    code: str
    message: str
    timestamp: float


EVENT_MAP = {
    EventType.CREATE_ROOM: CreateRoomEvent,
    EventType.JOIN_ROOM: JoinRoomEvent,
    EventType.START_GAME: StartGameEvent,
    EventType.PLAY_CARD: PlayCardEvent,
    EventType.READY_NEXT_ROUND: ReadyNextRoundEvent,
    EventType.UPDATE_SETTINGS: UpdateSettingsEvent,
    EventType.TRANSFER_HOST: TransferHostEvent,
    EventType.KICK_PLAYER: KickPlayerEvent,
    EventType.STOP_GAME: StopGameEvent,
    EventType.LEAVE_ROOM: LeaveRoomEvent,
    EventType.REQUEST_SWITCH: RequestSwitchEvent,
    EventType.RESPOND_SWITCH: RespondSwitchEvent,
    EventType.REQUEST_STATE: RequestStateEvent,
}


def parse_inbound_event(data: Dict[str, Any]) -> InboundEvent:
    """
    Parse raw event data into appropriate event model.

    Args:
        data: Raw event data from WebSocket

    Returns:
        Parsed event model

    Raises:
        ValueError: If event type is invalid or data is malformed
    """
    if not isinstance(data, dict):
        raise ValueError("Event must be a JSON object")

    event_type = data.get("type")
    if not event_type:
        raise ValueError("Missing event type")

    try:
        event_type = EventType(event_type)
    except ValueError:
        raise ValueError(f"Invalid event type: {event_type}")

    event_class = EVENT_MAP[event_type]
    try:
        return event_class(**data)
    except Exception as e:
        raise ValueError(f"Invalid event data: {str(e)}")


def create_connected_event(player_id: str) -> ConnectedEvent:
    return ConnectedEvent(player_id=player_id, timestamp=time.time())


def create_room_code_event(event_type: OutboundEventType, room_code: str) -> RoomCodeEvent:
    return RoomCodeEvent(type=event_type, room_code=room_code, timestamp=time.time())


def create_room_update_event(lobby_view: Dict[str, Any]) -> StateEvent:
    return StateEvent(type=OutboundEventType.ROOM_UPDATE, state=lobby_view, timestamp=time.time())


def create_game_update_event(player_view: Dict[str, Any]) -> StateEvent:
    return StateEvent(type=OutboundEventType.GAME_UPDATE, state=player_view, timestamp=time.time())


def create_switch_request_event(room_code: str, from_id: str, from_name: str) -> SwitchRequestEvent:
    return SwitchRequestEvent(room_code=room_code, from_id=from_id, from_name=from_name, timestamp=time.time())


def create_error_event(code: str, message: str) -> ActionErrorEvent:
    """Create an error event."""
    return ActionErrorEvent(code=code, message=message, timestamp=time.time())
