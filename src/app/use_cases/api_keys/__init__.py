"""
API Key Use Cases

Issuing, validating, listing, revoking and deleting API keys.
"""

from .issue_api_key_use_case import IssueApiKeyUseCase
from .validate_api_key_use_case import ValidateApiKeyUseCase, ip_allowed
from .list_api_keys_use_case import ListApiKeysUseCase
from .revoke_api_key_use_case import RevokeApiKeyUseCase
from .delete_api_key_use_case import DeleteApiKeyUseCase
from .dtos import ApiKeyPage, IssueApiKeyCommand, IssuedApiKey, ValidatedApiKey

__all__ = [
    # Use Cases
    "IssueApiKeyUseCase",
    "ValidateApiKeyUseCase",
    "ListApiKeysUseCase",
    "RevokeApiKeyUseCase",
    "DeleteApiKeyUseCase",
    # DTOs
    "IssueApiKeyCommand",
    "IssuedApiKey",
    "ApiKeyPage",
    "ValidatedApiKey",
    # Helpers
    "ip_allowed",
]
