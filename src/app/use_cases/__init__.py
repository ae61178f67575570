"""
Use Cases

Organized into domain folders:
- api_keys/: API key lifecycle and validation
- users/: Profile and app password
- audit/: Audit log reads and retention
"""

from .api_keys import (
    DeleteApiKeyUseCase,
    IssueApiKeyUseCase,
    ListApiKeysUseCase,
    RevokeApiKeyUseCase,
    ValidateApiKeyUseCase,
)
from .users import (
    AppPasswordUseCase,
    LoadProfileUseCase,
)
from .audit import (
    GetAuditEventsUseCase,
    PurgeAuditEventsUseCase,
)

__all__ = [
    # API keys
    "IssueApiKeyUseCase",
    "ValidateApiKeyUseCase",
    "ListApiKeysUseCase",
    "RevokeApiKeyUseCase",
    "DeleteApiKeyUseCase",
    # Users
    "AppPasswordUseCase",
    "LoadProfileUseCase",
    # Audit
    "GetAuditEventsUseCase",
    "PurgeAuditEventsUseCase",
]
