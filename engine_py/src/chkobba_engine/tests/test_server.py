"""
Tests for the WebSocket transport and HTTP endpoints.
"""

import asyncio

import orjson
import pytest
from fastapi.testclient import TestClient

from chkobba_engine.main import create_app
from chkobba_engine.registry import RoomRegistry
from chkobba_engine.ws.events import create_error_event
from chkobba_engine.ws.server import ConnectionManager, GameWebSocketManager


def receive_type(ws, event_type, limit=10):
    """Read messages until one of the given type arrives."""
    for _ in range(limit):
        message = ws.receive_json()
        if message["type"] == event_type:
            return message
    raise AssertionError(f"no {event_type} message received")


@pytest.fixture
def client():
    with TestClient(create_app(RoomRegistry())) as test_client:
        yield test_client


def test_root_and_health(client):
    assert client.get("/").json()["message"] == "Chkobba Room Server"
    health = client.get("/health").json()
    assert health["status"] == "healthy"
    assert health["rooms"] == 0


def test_create_join_and_start(client):
    with client.websocket_connect("/ws") as host, client.websocket_connect("/ws") as guest:
        host_id = receive_type(host, "connected")["player_id"]
        guest_id = receive_type(guest, "connected")["player_id"]

        host.send_json({"type": "create_room", "username": "Alice", "mode": "1v1"})
        code = receive_type(host, "room_created")["room_code"]
        lobby = receive_type(host, "room_update")["state"]
        assert lobby["players"][0]["id"] == host_id
        assert lobby["available_slots"] == 1

        guest.send_json({"type": "join_room", "room_code": code.lower(), "username": "Bob"})
        assert receive_type(guest, "joined_room")["room_code"] == code
        receive_type(guest, "room_update")
        lobby = receive_type(host, "room_update")["state"]
        assert [p["name"] for p in lobby["players"]] == ["Alice", "Bob"]

        host.send_json({"type": "start_game"})
        host_view = receive_type(host, "game_update")["state"]
        guest_view = receive_type(guest, "game_update")["state"]
        assert host_view["status"] == "running"
        assert len(host_view["your_hand"]) == 3
        assert host_view["turn_player_id"] == guest_id

        # the dealer may not lead
        host.send_json({"type": "play_card", "card_id": host_view["your_hand"][0]["id"]})
        error = receive_type(host, "action_error")
        assert error["code"] == "NOT_YOUR_TURN"

        card_id = guest_view["your_hand"][0]["id"]
        guest.send_json({"type": "play_card", "card_id": card_id})
        guest_view = receive_type(guest, "game_update")["state"]
        assert card_id not in [c["id"] for c in guest_view["your_hand"]]
        assert guest_view["turn_player_id"] == host_id


def test_join_unknown_room(client):
    with client.websocket_connect("/ws") as ws:
        receive_type(ws, "connected")
        ws.send_json({"type": "join_room", "room_code": "ZZZZZZ", "username": "Bob"})
        assert receive_type(ws, "action_error")["code"] == "ROOM_NOT_FOUND"


def test_username_required(client):
    with client.websocket_connect("/ws") as ws:
        receive_type(ws, "connected")
        ws.send_json({"type": "create_room", "username": "   "})
        assert receive_type(ws, "action_error")["code"] == "USERNAME_REQUIRED"


def test_invalid_messages(client):
    with client.websocket_connect("/ws") as ws:
        receive_type(ws, "connected")
        ws.send_text("not json")
        assert receive_type(ws, "action_error")["code"] == "INVALID_EVENT"
        ws.send_json({"type": "teleport"})
        assert receive_type(ws, "action_error")["code"] == "INVALID_EVENT"
        ws.send_json({"type": "start_game"})
        assert receive_type(ws, "action_error")["code"] == "NOT_IN_ROOM"


def test_guest_cannot_start(client):
    with client.websocket_connect("/ws") as host, client.websocket_connect("/ws") as guest:
        receive_type(host, "connected")
        receive_type(guest, "connected")
        host.send_json({"type": "create_room", "username": "Alice"})
        code = receive_type(host, "room_created")["room_code"]
        guest.send_json({"type": "join_room", "room_code": code, "username": "Bob"})
        receive_type(guest, "joined_room")

        guest.send_json({"type": "start_game"})
        assert receive_type(guest, "action_error")["code"] == "NOT_HOST"


def test_disconnect_returns_room_to_lobby(client):
    with client.websocket_connect("/ws") as host:
        receive_type(host, "connected")
        host.send_json({"type": "create_room", "username": "Alice"})
        code = receive_type(host, "room_created")["room_code"]

        with client.websocket_connect("/ws") as guest:
            receive_type(guest, "connected")
            guest.send_json({"type": "join_room", "room_code": code, "username": "Bob"})
            receive_type(guest, "joined_room")
            receive_type(host, "room_update")
            receive_type(host, "room_update")

            host.send_json({"type": "start_game"})
            assert receive_type(host, "room_update")["state"]["status"] == "running"

        lobby = receive_type(host, "room_update")["state"]
        assert lobby["status"] == "waiting"
        assert [p["name"] for p in lobby["players"]] == ["Alice"]


class FakeWebSocket:
    def __init__(self, fail=False, delay=0):
        self.sent = []
        self.fail = fail
        self.delay = delay

    async def accept(self):
        pass

    async def send_text(self, text):
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(orjson.loads(text))


@pytest.mark.asyncio
async def test_connection_manager_send():
    manager = ConnectionManager()
    ws = FakeWebSocket()
    await manager.connect(ws, "p1")
    await manager.send(create_error_event("NOT_HOST", "nope"), "p1")
    assert ws.sent[0]["type"] == "action_error"
    assert ws.sent[0]["code"] == "NOT_HOST"


@pytest.mark.asyncio
async def test_connection_manager_drops_broken_socket():
    manager = ConnectionManager()
    await manager.connect(FakeWebSocket(fail=True), "p1")
    await manager.send(create_error_event("NOT_HOST", "nope"), "p1")
    assert "p1" not in manager.active_connections
    # unknown players are ignored
    await manager.send(create_error_event("NOT_HOST", "nope"), "ghost")


@pytest.mark.asyncio
async def test_join_waiting_on_a_room_that_empties():
    """Test a join queued behind the last player's departure is refused."""
    manager = GameWebSocketManager(RoomRegistry())
    host_ws, guest_ws = FakeWebSocket(), FakeWebSocket()
    await manager.connection_manager.connect(host_ws, "host")
    await manager.connection_manager.connect(guest_ws, "guest")
    await manager.handle_message(orjson.dumps({"type": "create_room", "username": "Host"}).decode(), "host")
    code = manager.connection_manager.player_to_room["host"]

    # the host's slow socket keeps the room lock busy while the others queue up
    host_ws.delay = 0.05
    snapshot = asyncio.create_task(manager.send_room_state("host"))
    await asyncio.sleep(0)
    departure = asyncio.create_task(manager.handle_departure("host"))
    await asyncio.sleep(0)
    join = asyncio.create_task(manager.handle_message(
        orjson.dumps({"type": "join_room", "room_code": code, "username": "Guest"}).decode(), "guest"
    ))
    await asyncio.gather(snapshot, departure, join)

    assert code not in manager.registry
    assert "guest" not in manager.connection_manager.player_to_room
    assert guest_ws.sent[-1]["type"] == "action_error"
    assert guest_ws.sent[-1]["code"] == "ROOM_NOT_FOUND"
    assert manager.room_locks == {}


@pytest.mark.asyncio
async def test_room_lock_is_shared_while_in_use():
    manager = GameWebSocketManager(RoomRegistry())
    async with manager.room_lock("ABCDEF"):
        held = manager.room_locks["ABCDEF"]
        waiter = asyncio.create_task(_enter_lock(manager, "ABCDEF"))
        await asyncio.sleep(0)
        assert manager.room_locks["ABCDEF"] is held
    assert await waiter is held
    # no room with that code, so the lock goes once nobody uses it
    assert "ABCDEF" not in manager.room_locks


async def _enter_lock(manager, code):
    async with manager.room_lock(code):
        return manager.room_locks[code]
