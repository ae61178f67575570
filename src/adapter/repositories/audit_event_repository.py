import logging
from datetime import datetime
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import delete, func
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.repositories.audit_event_repository import (
    AuditEventFilter,
    IAuditEventRepository,
)
from src.domain.entities import AuditAction, AuditCategory, AuditEvent

logger = logging.getLogger(__name__)


class AuditEventRepository(IAuditEventRepository):
    """AuditEvent repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, audit_event: AuditEvent) -> AuditEvent:
        """Create a new audit event (immutable)"""
        self.session.add(audit_event)
        await self.session.flush()
        await self.session.refresh(audit_event)
        return audit_event

    async def insert_many(self, audit_events: List[AuditEvent]) -> int:
        """
        Bulk insert with unordered semantics.

        The whole batch is tried in one savepoint first. If that fails, each
        row is retried in its own savepoint and rows that still fail are
        skipped, so one bad entry does not sink the batch.
        """
        if not audit_events:
            return 0

        try:
            async with self.session.begin_nested():
                self.session.add_all(audit_events)
            return len(audit_events)
        except SQLAlchemyError as exc:
            logger.warning(f"Audit batch insert failed, retrying row by row: {exc}")

        written = 0
        for event in audit_events:
            # Rows from the failed attempt are transient again after rollback
            row = AuditEvent.model_validate(event.model_dump())
            try:
                async with self.session.begin_nested():
                    self.session.add(row)
                written += 1
            except SQLAlchemyError as exc:
                logger.error(f"Audit row dropped: action={event.action} error={exc}")
        return written

    def _apply_filters(self, stmt, filters: Optional[AuditEventFilter]):
        if filters is None:
            return stmt
        if filters.actor_id is not None:
            stmt = stmt.where(AuditEvent.actor_id == filters.actor_id)
        if filters.action is not None:
            stmt = stmt.where(AuditEvent.action == filters.action)
        if filters.category is not None:
            stmt = stmt.where(AuditEvent.category == filters.category)
        if filters.outcome is not None:
            stmt = stmt.where(AuditEvent.outcome == filters.outcome)
        if filters.ip is not None:
            stmt = stmt.where(AuditEvent.ip == filters.ip)
        if filters.request_id is not None:
            stmt = stmt.where(AuditEvent.request_id == filters.request_id)
        return stmt

    async def list(
        self,
        filters: Optional[AuditEventFilter] = None,
        offset: int = 0,
        limit: int = 50,
        newest_first: bool = True,
    ) -> Tuple[List[AuditEvent], int]:
        """Get a page of audit events ordered by created_at"""
        order = AuditEvent.created_at.desc() if newest_first else AuditEvent.created_at.asc()
        stmt = self._apply_filters(select(AuditEvent), filters)
        stmt = stmt.order_by(order).offset(offset).limit(limit)
        result = await self.session.exec(stmt)
        events = list(result.all())

        count_stmt = self._apply_filters(select(func.count()).select_from(AuditEvent), filters)
        total = (await self.session.exec(count_stmt)).one()

        return events, total

    async def find_by_actor(
        self, actor_id: UUID, offset: int = 0, limit: int = 50
    ) -> Tuple[List[AuditEvent], int]:
        return await self.list(AuditEventFilter(actor_id=actor_id), offset, limit)

    async def find_by_category(
        self, category: AuditCategory, offset: int = 0, limit: int = 50
    ) -> Tuple[List[AuditEvent], int]:
        return await self.list(AuditEventFilter(category=category), offset, limit)

    async def find_by_action(
        self, action: AuditAction, offset: int = 0, limit: int = 50
    ) -> Tuple[List[AuditEvent], int]:
        return await self.list(AuditEventFilter(action=action), offset, limit)

    async def find_by_ip(
        self, ip: str, offset: int = 0, limit: int = 50
    ) -> Tuple[List[AuditEvent], int]:
        return await self.list(AuditEventFilter(ip=ip), offset, limit)

    async def find_by_request_id(self, request_id: str) -> List[AuditEvent]:
        """All events of one request, oldest first"""
        stmt = (
            select(AuditEvent)
            .where(AuditEvent.request_id == request_id)
            .order_by(AuditEvent.created_at.asc())
        )
        result = await self.session.exec(stmt)
        return list(result.all())

    async def purge_older_than(self, cutoff: datetime) -> int:
        """Delete events created before cutoff"""
        stmt = delete(AuditEvent).where(AuditEvent.created_at < cutoff)
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount
