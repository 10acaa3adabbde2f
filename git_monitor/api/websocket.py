"""
WebSocket endpoint for live file change notifications.

Protocol (text frames):
- server sends a greeting as soon as the connection is accepted
- server pushes JSON FileWatchEvents and periodic "ping" heartbeats
- client may send "pong" (heartbeat reply) or "ping" (answered with "pong");
  anything else is logged and ignored
"""

from fastapi import APIRouter, WebSocket

from git_monitor.services.connection_registry import ConnectionRegistry

router = APIRouter(tags=["websocket"])


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket) -> None:
    registry: ConnectionRegistry = websocket.app.state.registry

    await websocket.accept()
    session = registry.register(websocket)
    await session.run()
