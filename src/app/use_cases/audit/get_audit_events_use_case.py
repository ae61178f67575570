"""
Get Audit Events Use Case

Retrieves audit events for the caller or, for admins, across all users.
"""

from typing import List, Optional
from uuid import UUID

from libs.result import Error, Result, Return
from src.app.repositories.audit_event_repository import AuditEventFilter
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import UserRole
from .dtos import AuditEventPage, AuditEventView

ADMIN_ROLES = (UserRole.admin.value, UserRole.superadmin.value)


class GetAuditEventsUseCase:
    """
    Use case for retrieving audit events.

    Business Rules:
    - Any user can read events where they are the actor
    - Only admin/superadmin can read everyone's events and filter freely
    - Pages are ordered newest first
    - A request trail is ordered oldest first
    """

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def execute_for_actor(
        self, user_id: UUID, page: int = 1, limit: int = 20
    ) -> Result[AuditEventPage]:
        """Events performed by user_id"""
        async with self.uow:
            events, total = await self.uow.audit_events.find_by_actor(
                user_id, offset=(page - 1) * limit, limit=limit
            )
            return Return.ok(self._page(events, page, limit, total))

    async def execute(
        self,
        role: str,
        filters: Optional[AuditEventFilter] = None,
        page: int = 1,
        limit: int = 20,
    ) -> Result[AuditEventPage]:
        """
        Execute admin audit query.

        Args:
            role: Role from JWT (must be admin or superadmin)
            filters: Optional equality filters
            page: 1-based page number
            limit: Page size

        Returns:
            Result with AuditEventPage, or Error(INSUFFICIENT_ROLE)
        """
        if role not in ADMIN_ROLES:
            return Return.err(
                Error("INSUFFICIENT_ROLE", "You do not have permission to view audit events")
            )

        async with self.uow:
            events, total = await self.uow.audit_events.list(
                filters, offset=(page - 1) * limit, limit=limit
            )
            return Return.ok(self._page(events, page, limit, total))

    async def execute_for_request(
        self, role: str, request_id: str
    ) -> Result[List[AuditEventView]]:
        """All events correlated to one request id (admin only)"""
        if role not in ADMIN_ROLES:
            return Return.err(
                Error("INSUFFICIENT_ROLE", "You do not have permission to view audit events")
            )

        async with self.uow:
            events = await self.uow.audit_events.find_by_request_id(request_id)
            return Return.ok([AuditEventView.from_entity(e) for e in events])

    @staticmethod
    def _page(events, page: int, limit: int, total: int) -> AuditEventPage:
        return AuditEventPage(
            items=[AuditEventView.from_entity(e) for e in events],
            page=page,
            limit=limit,
            total=total,
        )
