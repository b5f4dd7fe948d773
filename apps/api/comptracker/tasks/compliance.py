"""Overdue-flagging Celery task."""

from __future__ import annotations

import asyncio

import structlog
from celery import shared_task

logger = structlog.get_logger()


@shared_task(name="tasks.flag_overdue_requirements", bind=True, max_retries=3, default_retry_delay=300)
def flag_overdue_requirements(self) -> dict:
    """Move past-due open requirements to overdue via the database procedure."""
    from comptracker.core.database import async_session_factory, engine
    from comptracker.modules.compliance.procedures import StoredProcedures

    async def _run() -> dict:
        try:
            async with async_session_factory() as db:
                count = await StoredProcedures(db).update_overdue_statuses()
            return {"status": "ok", "flagged_overdue": count}
        finally:
            await engine.dispose()

    try:
        return asyncio.run(_run())
    except Exception as exc:
        logger.error("compliance.overdue_flag_failed", error=str(exc))
        raise self.retry(exc=exc)
