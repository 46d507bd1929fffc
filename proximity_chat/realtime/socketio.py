"""Socket.IO server for map clients.

Clients connect with plain `socket.io-client` (no auth) and speak the event
names below. The Socket.IO sid is the connection id everywhere: in the
registry, in `canChatWith.userId`, and as the `to` field of `chat`/`endChat`.

python-socketio runs each incoming event as its own task. Events are pushed
through one lock so that an event's state change and all of its emits finish
before the next event starts.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from collections.abc import Iterable
from typing import Any

import socketio
from django.conf import settings

from proximity_chat.presence import PresenceError
from proximity_chat.presence import get_coordinator
from proximity_chat.presence.domain import Outbound

logger = logging.getLogger(__name__)


sio = socketio.AsyncServer(
    async_mode="asgi",
    cors_allowed_origins=getattr(settings, "SOCKETIO_CORS_ALLOWED_ORIGINS", "*"),
    logger=False,
    engineio_logger=False,
)

_event_lock = asyncio.Lock()


async def emit_outbound(messages: Iterable[Outbound]) -> None:
    for message in messages:
        if message.to is None:
            await sio.emit(message.event, message.payload)
        else:
            await sio.emit(message.event, message.payload, to=message.to)


def _error_ack(sid: str, exc: PresenceError) -> list[Outbound]:
    if not getattr(settings, "PRESENCE_ERROR_ACKS", False):
        return []
    return [Outbound(event="error", payload={"code": exc.code, "detail": exc.detail}, to=sid)]


async def _process(
    sid: str,
    event: str,
    operation: Callable[..., list[Outbound]],
    *args: Any,
) -> None:
    async with _event_lock:
        try:
            outbound = operation(sid, *args)
        except PresenceError as exc:
            logger.info("Dropped %s from %s: %s %s", event, sid, exc.code, exc.detail)
            outbound = _error_ack(sid, exc)
        except Exception:
            logger.exception("Socket.IO %s handler failed for %s", event, sid)
            return
        await emit_outbound(outbound)


@sio.event
async def connect(sid: str, environ: dict[str, Any], auth: Any | None = None):
    _ = environ, auth
    logger.info("Socket.IO client connected: %s", sid)


@sio.event
async def disconnect(sid: str, *args: Any):
    # Newer python-socketio passes a disconnect reason.
    _ = args
    logger.info("Socket.IO client disconnected: %s", sid)
    await _process(sid, "disconnect", get_coordinator().disconnect)


@sio.on("login")
async def login(sid: str, data: Any = None):
    await _process(sid, "login", get_coordinator().login, data)


@sio.on("move")
async def move(sid: str, data: Any = None):
    await _process(sid, "move", get_coordinator().move, data)


@sio.on("chat")
async def chat(sid: str, data: Any = None):
    await _process(sid, "chat", get_coordinator().chat, data)


@sio.on("endChat")
async def end_chat(sid: str, data: Any = None):
    await _process(sid, "endChat", get_coordinator().end_chat, data)
