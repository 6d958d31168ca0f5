from __future__ import annotations
import asyncio
from datetime import datetime
from functools import lru_cache
from uuid import UUID
import structlog
from redis import Redis
from redis.exceptions import RedisError
from rq import Queue
from sqlalchemy import update
from hunt_api.config import settings
from hunt_api.db import SessionLocal, utcnow
from hunt_api.models.hunt import Hunt, COMPLETED

log = structlog.get_logger(__name__)

@lru_cache(maxsize=1)
def _queue() -> Queue:
    return Queue("default", connection=Redis.from_url(settings.redis_url))

async def _run(hunt_id: str) -> bool:
    async with SessionLocal() as session:
        now = utcnow()
        # end_time may have been pushed back since the job was scheduled
        res = await session.execute(
            update(Hunt)
            .where(Hunt.id == UUID(hunt_id), Hunt.status != COMPLETED, Hunt.end_time <= now)
            .values(status=COMPLETED, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        await session.commit()
        closed = res.rowcount == 1
    log.info("hunt.auto_close", hunt_id=hunt_id, closed=closed)
    return closed

def close_hunt(hunt_id: str) -> bool:
    # RQ entry point (sync); run the async coroutine
    return asyncio.run(_run(hunt_id))

def schedule_close(hunt_id: UUID, at: datetime) -> None:
    """Needs a worker started with --with-scheduler. Redis outages only cost the auto-close."""
    if not settings.schedule_hunt_close:
        return
    try:
        _queue().enqueue_at(at, close_hunt, str(hunt_id), job_timeout=60)
    except RedisError as e:
        log.warning("hunt.auto_close_not_scheduled", hunt_id=str(hunt_id), error=str(e))
