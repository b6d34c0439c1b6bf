"""FastAPI main application for the Chkobba room server"""

import logging
import os
from typing import Optional

from fastapi import FastAPI, WebSocket
from fastapi.middleware.cors import CORSMiddleware

from .registry import RoomRegistry
from .ws.server import GameWebSocketManager

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def create_app(registry: Optional[RoomRegistry] = None) -> FastAPI:
    """Build the app around one room registry (a fresh one unless given)."""
    app = FastAPI(title="Chkobba Room Server", version="1.0.0")
    origins = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    game_manager = GameWebSocketManager(registry or RoomRegistry())
    app.state.game_manager = game_manager

    @app.get("/")
    async def root():
        return {"message": "Chkobba Room Server", "version": "1.0.0"}

    @app.get("/health")
    async def health_check():
        return {
            "status": "healthy",
            "rooms": len(game_manager.registry),
            "connections": len(game_manager.connection_manager.active_connections),
        }

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket):
        await game_manager.handle_websocket(websocket)

    logger.info(f"Chkobba app created (CORS origins: {origins})")
    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
