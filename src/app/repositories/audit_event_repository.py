from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional, Tuple
from uuid import UUID

from pydantic import BaseModel

from src.domain.entities import (
    AuditAction,
    AuditCategory,
    AuditEvent,
    AuditOutcome,
)


class AuditEventFilter(BaseModel):
    """Optional equality filters for audit queries"""

    actor_id: Optional[UUID] = None
    action: Optional[AuditAction] = None
    category: Optional[AuditCategory] = None
    outcome: Optional[AuditOutcome] = None
    ip: Optional[str] = None
    request_id: Optional[str] = None


class IAuditEventRepository(ABC):
    """AuditEvent repository interface - application layer"""

    @abstractmethod
    async def create(self, audit_event: AuditEvent) -> AuditEvent:
        """Create a new audit event (immutable)"""
        pass

    @abstractmethod
    async def insert_many(self, audit_events: List[AuditEvent]) -> int:
        """
        Bulk insert with unordered semantics: a row that fails to insert does
        not prevent the remaining rows from being written.

        Returns:
            Number of rows written
        """
        pass

    @abstractmethod
    async def list(
        self,
        filters: Optional[AuditEventFilter] = None,
        offset: int = 0,
        limit: int = 50,
        newest_first: bool = True,
    ) -> Tuple[List[AuditEvent], int]:
        """
        Get a page of audit events ordered by created_at.

        Returns:
            Tuple of (events, total matching)
        """
        pass

    @abstractmethod
    async def find_by_actor(
        self, actor_id: UUID, offset: int = 0, limit: int = 50
    ) -> Tuple[List[AuditEvent], int]:
        pass

    @abstractmethod
    async def find_by_category(
        self, category: AuditCategory, offset: int = 0, limit: int = 50
    ) -> Tuple[List[AuditEvent], int]:
        pass

    @abstractmethod
    async def find_by_action(
        self, action: AuditAction, offset: int = 0, limit: int = 50
    ) -> Tuple[List[AuditEvent], int]:
        pass

    @abstractmethod
    async def find_by_ip(
        self, ip: str, offset: int = 0, limit: int = 50
    ) -> Tuple[List[AuditEvent], int]:
        pass

    @abstractmethod
    async def find_by_request_id(self, request_id: str) -> List[AuditEvent]:
        """All events of one request, oldest first"""
        pass

    @abstractmethod
    async def purge_older_than(self, cutoff: datetime) -> int:
        """Delete events created before cutoff. Returns count deleted."""
        pass
