"""WebSocket endpoint for real-time log streaming.

Endpoint: /ws/logs

Server → Client (JSON), one message per captured entry:
    {"id": 12, "timestamp": "...", "level": "warn", "message": "...", "details": null}

A message with ``"id": -1`` means the log was cleared.  Client messages are
ignored.
"""

import asyncio

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from meal_planner.config import settings
from meal_planner.log_capture import LogEntry, log_capture
from meal_planner.schemas.logs import LogEntryOut

router = APIRouter()


async def _forward(ws: WebSocket, queue: asyncio.Queue[LogEntry]) -> None:
    try:
        while True:
            entry = await queue.get()
            await ws.send_text(LogEntryOut.model_validate(entry).model_dump_json())
    except (WebSocketDisconnect, RuntimeError):
        pass  # socket went away; the receive loop cleans up


@router.websocket("/ws/logs")
async def ws_logs(ws: WebSocket) -> None:
    if not settings.dev_console_enabled:
        await ws.close(code=4004, reason="Dev console disabled")
        return

    # Subscribe before accepting so nothing logged after the handshake is missed.
    queue, unsubscribe = log_capture.subscribe_queue()
    sender: asyncio.Task | None = None
    try:
        await ws.accept()
        sender = asyncio.create_task(_forward(ws, queue))
        while True:
            await ws.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        unsubscribe()
        if sender is not None:
            sender.cancel()
