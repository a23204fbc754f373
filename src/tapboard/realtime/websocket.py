"""WebSocket endpoint — live rating delivery to browsers.

Learn: Each browser tab holds one connection to /ws. The handler:
1. Subscribes to the broadcaster (first frame: full rating snapshot)
2. Forwards every queued frame to the socket
3. Answers {"type": "ping"} with {"type": "pong"}
4. Unsubscribes when the client goes away

This is a long-lived connection — one per browser tab.
"""

import asyncio
import json

import structlog
from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState

from tapboard.events.types import PONG

logger = structlog.get_logger()
router = APIRouter()


@router.websocket("/ws")
async def ratings_websocket(websocket: WebSocket):
    """WebSocket endpoint for live rating frames.

    Learn: Two concurrent tasks run:
    1. Queue forwarder — reads the subscription, sends to WebSocket
    2. Client listener — reads from WebSocket (pings)

    When either side finishes, both tasks are cancelled cleanly.
    """
    state = websocket.app.state.tapboard
    await websocket.accept()
    sub = state.broadcaster.subscribe()

    async def forwarder():
        """Forward queued frames to the WebSocket client."""
        try:
            async for frame in sub:
                await websocket.send_json(frame)
        except (WebSocketDisconnect, RuntimeError):
            pass

    async def client_listener():
        """Handle incoming WebSocket messages."""
        try:
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    return
                data = message.get("text")
                if data is None:
                    # Binary frames carry nothing we answer
                    continue
                try:
                    msg = json.loads(data)
                except json.JSONDecodeError:
                    continue
                if isinstance(msg, dict) and msg.get("type") == "ping":
                    await websocket.send_json({"type": PONG})
        except WebSocketDisconnect:
            pass

    forward_task = asyncio.create_task(forwarder())
    client_task = asyncio.create_task(client_listener())

    try:
        # Wait for either to finish (usually client disconnect)
        done, pending = await asyncio.wait(
            [forward_task, client_task],
            return_when=asyncio.FIRST_COMPLETED,
        )
        for task in pending:
            task.cancel()
    finally:
        sub.close()
        if websocket.client_state == WebSocketState.CONNECTED:
            await websocket.close()
