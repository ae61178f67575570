"""
AuditEvent Entity

Immutable log of security-relevant actions.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import JSON, Column, DateTime, Field, Index, SQLModel

from src.domain.base import utcnow
from .enums import AuditAction, AuditCategory, AuditOutcome, AuditSeverity

AUDIT_RETENTION_DAYS = 90


class AuditEvent(SQLModel, table=True):
    """
    AuditEvent entity - immutable log of security-relevant actions.

    Business Rules:
    - Immutable (never updated), so there is no updated_at
    - actor_id is a weak reference: no foreign key, deleting a user keeps its trail
    - category is derived from the action namespace
    - Purged by the retention job after 90 days
    - headers holds an allow-listed subset, never authorization or cookies
    """

    __tablename__ = "audit_events"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    actor_id: Optional[UUID] = Field(default=None)

    action: AuditAction
    category: AuditCategory
    severity: AuditSeverity = Field(default=AuditSeverity.info)

    resource: Optional[str] = Field(default=None, max_length=50)
    resource_id: Optional[str] = Field(default=None, max_length=100)

    # Request context
    ip: Optional[str] = Field(default=None, max_length=64)
    user_agent: Optional[str] = Field(default=None, max_length=1000)
    device_info: Optional[str] = Field(default=None, max_length=500)
    headers: Optional[dict] = Field(default=None, sa_column=Column(JSON))
    request_id: Optional[str] = Field(default=None, max_length=100)

    # Outcome
    outcome: Optional[AuditOutcome] = Field(default=None)
    error_message: Optional[str] = Field(default=None, max_length=2000)
    duration_ms: Optional[int] = Field(default=None)
    event_metadata: Optional[dict] = Field(default=None, sa_column=Column(JSON))

    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))

    __table_args__ = (
        Index("idx_audit_created_at", "created_at"),
        Index("idx_audit_actor_created", "actor_id", "created_at"),
        Index("idx_audit_category_created", "category", "created_at"),
        Index("idx_audit_action_outcome", "action", "outcome", "created_at"),
        Index("idx_audit_ip_created", "ip", "created_at"),
        Index("idx_audit_request_id", "request_id"),
    )
