"""
Audit Use Case DTOs
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from src.domain.entities import AuditEvent


class AuditEventView(BaseModel):
    """Single audit event as returned to dashboard users"""

    id: str
    actor_id: Optional[str]
    action: str
    category: str
    severity: str
    resource: Optional[str]
    resource_id: Optional[str]
    ip: Optional[str]
    user_agent: Optional[str]
    device_info: Optional[str]
    request_id: Optional[str]
    outcome: Optional[str]
    error_message: Optional[str]
    duration_ms: Optional[int]
    metadata: Dict[str, Any]
    created_at: datetime

    @classmethod
    def from_entity(cls, event: AuditEvent) -> "AuditEventView":
        return cls(
            id=str(event.id),
            actor_id=str(event.actor_id) if event.actor_id else None,
            action=event.action.value,
            category=event.category.value,
            severity=event.severity.value,
            resource=event.resource,
            resource_id=event.resource_id,
            ip=event.ip,
            user_agent=event.user_agent,
            device_info=event.device_info,
            request_id=event.request_id,
            outcome=event.outcome.value if event.outcome else None,
            error_message=event.error_message,
            duration_ms=event.duration_ms,
            metadata=event.event_metadata or {},
            created_at=event.created_at,
        )


class AuditEventPage(BaseModel):
    """One page of audit events"""

    items: List[AuditEventView]
    page: int
    limit: int
    total: int
