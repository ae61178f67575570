"""
MailDoor Domain Entities

All domain entities organized by model.
Each entity in its own file for better maintainability.
"""

# Export all enums
from .enums import (
    ApiKeyStatus,
    AuditAction,
    AuditCategory,
    AuditOutcome,
    AuditSeverity,
    UserRole,
    UserStatus,
)

# Export all entities
from .user import User
from .api_key import ApiKey, ApiKeyPublic, MAX_ACTIVE_KEYS_PER_USER
from .audit_event import AuditEvent, AUDIT_RETENTION_DAYS

__all__ = [
    # Enums
    "ApiKeyStatus",
    "AuditAction",
    "AuditCategory",
    "AuditOutcome",
    "AuditSeverity",
    "UserRole",
    "UserStatus",
    # Entities
    "User",
    "ApiKey",
    "ApiKeyPublic",
    "AuditEvent",
    # Constants
    "MAX_ACTIVE_KEYS_PER_USER",
    "AUDIT_RETENTION_DAYS",
]
