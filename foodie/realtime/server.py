"""
Socket.IO Server

One AsyncServer shared by every API process. With SOCKET_REDIS_ENABLED the
processes (and the Celery workers) publish through Redis so a broadcast
reaches clients connected to any of them.
"""

import logging

import socketio
from sqlalchemy.exc import SQLAlchemyError

from foodie.core.config import get_settings
from foodie.database import async_session_maker
from foodie.realtime.metrics import collect_snapshot

logger = logging.getLogger(__name__)
settings = get_settings()


def _client_manager():
    if settings.socket_redis_enabled:
        logger.info(f"Socket.IO: Redis client manager ({settings.redis_url})")
        return socketio.AsyncRedisManager(settings.redis_url)
    return None


sio = socketio.AsyncServer(
    async_mode="asgi",
    cors_allowed_origins="*",
    client_manager=_client_manager(),
    logger=False,
    engineio_logger=False,
)


@sio.event
async def connect(sid, environ, auth=None):
    """Greet a new dashboard with the current numbers, to that client only."""
    logger.info(f"Socket connected: {sid}")

    try:
        async with async_session_maker() as db:
            snapshot = await collect_snapshot(db)
    except SQLAlchemyError:
        logger.exception(f"Could not build snapshot for {sid}")
        return

    for event, value in snapshot.items():
        await sio.emit(event, value, to=sid)


@sio.event
async def disconnect(sid, reason=None):
    logger.info(f"Socket disconnected: {sid}")


def get_event_emitter() -> socketio.AsyncServer:
    """FastAPI dependency; overridden in tests with a recording emitter."""
    return sio
