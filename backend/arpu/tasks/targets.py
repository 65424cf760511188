import asyncio

from arpu.core.celery_app import celery_app
from arpu.core.database import AsyncSessionLocal, close_db
from arpu.core.logging_config import logger
from arpu.services.target_service import target_service


async def _refresh_overdue() -> int:
    try:
        async with AsyncSessionLocal() as db:
            return await target_service.refresh_overdue(db)
    finally:
        # pooled connections belong to this asyncio.run loop
        await close_db()


@celery_app.task(name="arpu.tasks.targets.refresh_overdue_targets")
def refresh_overdue_targets():
    """Periodic: flip active targets past their end date to OVERDUE"""
    count = asyncio.run(_refresh_overdue())
    logger.info(f"[Celery] Refreshed {count} overdue targets")
    return count
