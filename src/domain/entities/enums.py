"""
MailDoor Domain Enums

All enumeration types used across domain entities.
"""

from enum import Enum


class UserStatus(str, Enum):
    """User account status"""

    active = "active"
    suspended = "suspended"


class UserRole(str, Enum):
    """Dashboard role of a user"""

    user = "user"
    admin = "admin"
    superadmin = "superadmin"


class ApiKeyStatus(str, Enum):
    """API key lifecycle status (revoked is terminal)"""

    active = "active"
    revoked = "revoked"


class AuditCategory(str, Enum):
    """Audit category, derived from the action namespace"""

    auth = "auth"
    key = "key"
    email = "email"
    user = "user"


class AuditAction(str, Enum):
    """
    Canonical audit action tags.

    Every audit entry must use one of these. The text before the first
    underscore is the namespace that determines the category.
    """

    # Auth
    auth_google_login = "auth_google_login"
    auth_token_refresh = "auth_token_refresh"
    auth_logout = "auth_logout"

    # API keys
    key_created = "key_created"
    key_used = "key_used"
    key_revoked = "key_revoked"
    key_deleted = "key_deleted"
    key_rate_limited = "key_rate_limited"

    # Email
    email_send_attempt = "email_send_attempt"
    email_send_success = "email_send_success"
    email_send_failed = "email_send_failed"

    # User management
    user_updated = "user_updated"
    user_suspended = "user_suspended"
    user_reactivated = "user_reactivated"
    user_role_changed = "user_role_changed"

    @property
    def category(self) -> AuditCategory:
        return AuditCategory(self.value.split("_", 1)[0])


class AuditSeverity(str, Enum):
    """Audit severity level"""

    info = "info"
    warn = "warn"
    error = "error"


class AuditOutcome(str, Enum):
    """Whether the audited action succeeded"""

    success = "success"
    failure = "failure"
