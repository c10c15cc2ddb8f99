"""
Periodic housekeeping that runs outside the API processes.

Each task runs its async body in a fresh event loop with a NullPool
engine, so no connection is shared across loops.
"""

import asyncio
import logging
import time
from datetime import datetime, timezone

import socketio
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from foodie.celery_worker import celery_app
from foodie.core.config import get_settings
from foodie.database import create_engine
from foodie.models import Token
from foodie.realtime.broadcaster import DashboardBroadcaster

logger = logging.getLogger(__name__)
settings = get_settings()


class RedisEmitter:
    """
    Async facade over socketio's write-only RedisManager.

    Lets DashboardBroadcaster publish from a worker to the clients of
    every API process.
    """

    def __init__(self, url: str):
        self.manager = socketio.RedisManager(url, write_only=True)

    async def emit(self, event, data=None, to=None, **kwargs):
        await asyncio.to_thread(self.manager.emit, event, data, to=to, **kwargs)


async def _purge_expired_tokens() -> int:
    engine = create_engine(pooled=False)
    try:
        async with AsyncSession(engine) as db:
            result = await db.execute(
                delete(Token).where(Token.expires_at < datetime.now(timezone.utc))
            )
            await db.commit()
            return result.rowcount or 0
    finally:
        await engine.dispose()


async def _broadcast_dashboard_metrics() -> None:
    engine = create_engine(pooled=False)
    session_maker = async_sessionmaker(bind=engine, expire_on_commit=False)
    try:
        async with session_maker() as db:
            broadcaster = DashboardBroadcaster(RedisEmitter(settings.redis_url), db)
            await broadcaster.emit_snapshot()
    finally:
        await engine.dispose()


@celery_app.task(
    bind=True,
    max_retries=3,
    default_retry_delay=5,
    autoretry_for=(ConnectionError,),
    retry_backoff=True
)
def purge_expired_tokens(self) -> dict:
    """
    Delete token rows past their expiry.

    Returns:
        dict: Number of rows removed and timing
    """
    task_id = self.request.id
    start_time = time.time()

    removed = asyncio.run(_purge_expired_tokens())

    elapsed = round(time.time() - start_time, 3)
    logger.info(f"Task {task_id}: purged {removed} expired tokens in {elapsed}s")

    return {
        "task_id": task_id,
        "removed": removed,
        "processing_time_seconds": elapsed,
    }


@celery_app.task(bind=True)
def broadcast_dashboard_metrics(self) -> dict:
    """
    Re-broadcast the dashboard snapshot.

    Keeps the "today" counters honest after midnight UTC even when no
    request has touched them.
    """
    task_id = self.request.id
    start_time = time.time()

    asyncio.run(_broadcast_dashboard_metrics())

    elapsed = round(time.time() - start_time, 3)
    logger.info(f"Task {task_id}: dashboard metrics broadcast in {elapsed}s")

    return {
        "task_id": task_id,
        "processing_time_seconds": elapsed,
    }


@celery_app.task
def health_check() -> dict:
    """
    Round trip through the broker; `celery call foodie.tasks.health_check`.
    """
    return {
        "status": "healthy",
        "worker": "celery",
        "timestamp": datetime.now().isoformat()
    }
