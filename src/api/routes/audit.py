"""
Audit API Routes

Handles audit event retrieval endpoints.
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from src.api.error import ClientError, ServerError
from src.app.repositories.audit_event_repository import AuditEventFilter
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.audit import AuditEventPage, AuditEventView, GetAuditEventsUseCase
from src.depends import get_current_user, get_unit_of_work
from src.domain.entities import AuditAction, AuditCategory, AuditOutcome

router = APIRouter(prefix="/audit", tags=["Audit"])


def _raise_for(error):
    if error.code == "INSUFFICIENT_ROLE":
        raise ClientError(error, status_code=status.HTTP_403_FORBIDDEN)
    raise ServerError(error)


@router.get("/me", status_code=status.HTTP_200_OK, response_model=AuditEventPage)
async def get_my_audit_events(
    current_user: dict = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
):
    """Audit events where the caller is the actor, newest first"""
    user_id = UUID(current_user["user_id"])

    result = await GetAuditEventsUseCase(uow).execute_for_actor(user_id, page=page, limit=limit)

    if result.is_err():
        _raise_for(result.error)

    return result.value


@router.get("", status_code=status.HTTP_200_OK, response_model=AuditEventPage)
async def get_audit_events(
    current_user: dict = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    action: Optional[AuditAction] = Query(None),
    actor: Optional[UUID] = Query(None, description="Actor user id"),
    category: Optional[AuditCategory] = Query(None),
    ip: Optional[str] = Query(None),
    outcome: Optional[AuditOutcome] = Query(None),
    request_id: Optional[str] = Query(None),
):
    """
    Get Audit Events (admin)

    Query Parameters:
        - page, limit: pagination (limit 1-100, default 20)
        - action, actor, category, ip, outcome, request_id: equality filters

    Raises:
        - 401 Unauthorized: Invalid or expired JWT
        - 403 Forbidden: Insufficient role (must be admin/superadmin)
    """
    filters = AuditEventFilter(
        actor_id=actor,
        action=action,
        category=category,
        outcome=outcome,
        ip=ip,
        request_id=request_id,
    )

    use_case = GetAuditEventsUseCase(uow)
    result = await use_case.execute(current_user.get("role", ""), filters, page=page, limit=limit)

    if result.is_err():
        _raise_for(result.error)

    return result.value


@router.get(
    "/requests/{request_id}",
    status_code=status.HTTP_200_OK,
    response_model=List[AuditEventView],
)
async def get_request_trail(
    request_id: str,
    current_user: dict = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    """Every audit event correlated to one request id, oldest first (admin)"""
    use_case = GetAuditEventsUseCase(uow)
    result = await use_case.execute_for_request(current_user.get("role", ""), request_id)

    if result.is_err():
        _raise_for(result.error)

    return result.value
