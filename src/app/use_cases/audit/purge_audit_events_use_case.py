"""
Purge Audit Events Use Case

Enforces the audit retention window.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from libs.result import Result, Return
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import utcnow
from src.domain.entities import AUDIT_RETENTION_DAYS

logger = logging.getLogger(__name__)


class PurgeAuditEventsUseCase:
    """Deletes audit events older than the retention window"""

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def execute(
        self,
        retention_days: int = AUDIT_RETENTION_DAYS,
        now: Optional[datetime] = None,
    ) -> Result[int]:
        cutoff = (now or utcnow()) - timedelta(days=retention_days)
        async with self.uow:
            purged = await self.uow.audit_events.purge_older_than(cutoff)
            await self.uow.commit()

        if purged:
            logger.info(f"Purged {purged} audit events older than {cutoff.isoformat()}")
        return Return.ok(purged)
