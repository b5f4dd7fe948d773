"""Database-side procedures owned by the schema, not by this service.

Template-to-company matching, template application and the overdue sweep live
in PostgreSQL functions. This module only calls them and shapes the results.
"""

from __future__ import annotations

import uuid
from typing import Any

import structlog
from sqlalchemy import func, select, text
from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


class StoredProcedures:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def match_companies_to_template(self, template_id: uuid.UUID) -> list[dict[str, Any]]:
        """Companies whose entity type / industry match the template."""
        result = await self.db.execute(
            select(text("*")).select_from(func.match_companies_to_template(template_id))
        )
        return [dict(row._mapping) for row in result]

    async def apply_template_to_companies(self, template_id: uuid.UUID) -> int:
        """Create requirement instances for every matching company; returns rows created."""
        result = await self.db.execute(select(func.apply_template_to_companies(template_id)))
        applied = result.scalar() or 0
        await self.db.commit()
        logger.info("templates.applied", template_id=str(template_id), applied_count=applied)
        return int(applied)

    async def update_overdue_statuses(self) -> int:
        """Move past-due open requirements to overdue; returns rows updated."""
        result = await self.db.execute(select(func.update_overdue_statuses()))
        updated = result.scalar() or 0
        await self.db.commit()
        logger.info("compliance.overdue_flagged", count=updated)
        return int(updated)
