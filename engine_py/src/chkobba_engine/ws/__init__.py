"""
WebSocket transport for the Chkobba room server.
"""

from .server import ConnectionManager, GameWebSocketManager

__all__ = ["ConnectionManager", "GameWebSocketManager"]
