"""
Key Usage Tracker

Best-effort last_used_at updates that run off the request path.
"""

import asyncio
import logging
from typing import Set
from uuid import UUID

from src.app.services.unit_of_work import UnitOfWorkScope

logger = logging.getLogger(__name__)


class KeyUsageTracker:
    """Schedules last_used_at touches. Failures are logged, never raised."""

    def __init__(self, uow_scope: UnitOfWorkScope):
        self._uow_scope = uow_scope
        # Strong references so pending tasks are not garbage collected
        self._pending: Set[asyncio.Task] = set()

    def touch(self, api_key_id: UUID) -> None:
        try:
            task = asyncio.get_running_loop().create_task(self._touch(api_key_id))
        except RuntimeError as exc:
            logger.warning(f"Cannot schedule last_used_at update for {api_key_id}: {exc}")
            return
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def drain(self) -> None:
        """Wait for touches already scheduled"""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def _touch(self, api_key_id: UUID) -> None:
        try:
            async with self._uow_scope() as uow:
                async with uow:
                    await uow.api_keys.touch_last_used(api_key_id)
                    await uow.commit()
        except Exception as exc:
            logger.warning(f"Failed to update last_used_at for API key {api_key_id}: {exc}")
