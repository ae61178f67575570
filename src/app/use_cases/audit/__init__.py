"""
Audit Use Cases

All audit-related business logic.
"""

from .get_audit_events_use_case import GetAuditEventsUseCase
from .purge_audit_events_use_case import PurgeAuditEventsUseCase
from .dtos import AuditEventPage, AuditEventView

__all__ = [
    "GetAuditEventsUseCase",
    "PurgeAuditEventsUseCase",
    "AuditEventPage",
    "AuditEventView",
]
