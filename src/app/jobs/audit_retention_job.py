"""
Audit Retention Job

Periodically purges audit events older than the retention window.
"""

import asyncio
import logging
import time
from typing import Optional

from src.app.services.unit_of_work import UnitOfWorkScope
from src.app.use_cases.audit import PurgeAuditEventsUseCase
from src.domain.entities import AUDIT_RETENTION_DAYS

logger = logging.getLogger(__name__)


class AuditRetentionJob:
    """Background task started and stopped by the application lifespan"""

    def __init__(
        self,
        uow_scope: UnitOfWorkScope,
        interval_seconds: float = 3600,
        retention_days: int = AUDIT_RETENTION_DAYS,
    ):
        self._uow_scope = uow_scope
        self.interval_seconds = interval_seconds
        self.retention_days = retention_days
        self._task: Optional[asyncio.Task] = None

    async def run_once(self) -> int:
        """Purge once. Errors are logged and reported as 0 purged."""
        start = time.monotonic()
        try:
            async with self._uow_scope() as uow:
                result = await PurgeAuditEventsUseCase(uow).execute(self.retention_days)
        except Exception as exc:
            logger.error(
                f"Job audit_retention failed: {exc} "
                f"duration_ms={int((time.monotonic() - start) * 1000)}"
            )
            return 0
        return result.value

    def start(self) -> None:
        if self._task is not None:
            return

        async def retention_loop():
            while True:
                await self.run_once()
                await asyncio.sleep(self.interval_seconds)

        self._task = asyncio.create_task(retention_loop())
        logger.info(f"Audit retention job started (every {self.interval_seconds}s)")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Audit retention job stopped")
