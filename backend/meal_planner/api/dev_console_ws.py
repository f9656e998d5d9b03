"""WebSocket endpoint backing the browser dev console panel.

Endpoint: /ws/dev-console

Each connection owns one LogConsole, mounted on connect and unmounted on
disconnect.

Client → Server:
    {"action": "filter", "level": "all" | "log" | "info" | "warn" | "error"}
    {"action": "toggle", "id": <entry id>}
    {"action": "clear"}
    {"action": "close"}

Server → Client:
    {"type": "view",  "view": {...ConsoleView...}}   - after every change
    {"type": "error", "detail": "<error message>"}
"""

import asyncio
import json

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from meal_planner.config import settings
from meal_planner.dev_console import LogConsole

router = APIRouter()

_ACTIONS = frozenset({"filter", "toggle", "clear", "close"})


def _apply(log_console: LogConsole, payload: dict) -> None:
    match payload["action"]:
        case "filter":
            log_console.set_filter(payload["level"])
        case "toggle":
            log_console.toggle_expand(int(payload["id"]))
        case "clear":
            log_console.clear()
        case "close":
            log_console.close()


@router.websocket("/ws/dev-console")
async def ws_dev_console(websocket: WebSocket) -> None:
    if not settings.dev_console_enabled:
        await websocket.close(code=4004, reason="Dev console disabled")
        return

    async def send(data: dict) -> None:
        await websocket.send_text(json.dumps(data))

    loop = asyncio.get_running_loop()
    changed = asyncio.Event()
    # Entries can arrive on any thread; wake the pusher on the loop.
    log_console = LogConsole(on_change=lambda: loop.call_soon_threadsafe(changed.set))

    async def push_views() -> None:
        try:
            while True:
                await changed.wait()
                changed.clear()
                await send({"type": "view", "view": log_console.render().model_dump(mode="json")})
        except (WebSocketDisconnect, RuntimeError):
            pass  # socket went away; the receive loop cleans up

    pusher: asyncio.Task | None = None
    log_console.mount()
    try:
        await websocket.accept()
        changed.set()
        pusher = asyncio.create_task(push_views())
        while log_console.visible:
            raw = await websocket.receive_text()
            try:
                payload = json.loads(raw)
                if payload["action"] not in _ACTIONS:
                    raise KeyError(payload["action"])
                _apply(log_console, payload)
            except (json.JSONDecodeError, KeyError, TypeError, ValueError):
                await send({"type": "error", "detail": f"Invalid payload: {raw[:200]}"})
                continue

        # Closed by the user: flush the final (hidden) view, then hang up.
        pusher.cancel()
        await send({"type": "view", "view": log_console.render().model_dump(mode="json")})
        await websocket.close()
    except WebSocketDisconnect:
        pass
    finally:
        log_console.unmount()
        if pusher is not None:
            pusher.cancel()
