"""
API Key Use Case DTOs (Data Transfer Objects)

Command and Response classes for the api_keys domain.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from src.domain.entities import ApiKey, ApiKeyPublic, User


class IssueApiKeyCommand(BaseModel):
    """Input for issuing a key"""

    name: str
    expires_at: Optional[datetime] = None
    allowed_ips: List[str] = []


class IssuedApiKey(BaseModel):
    """A new key plus its raw value. The only place the raw key ever appears."""

    key: str
    api_key: ApiKeyPublic


class ApiKeyPage(BaseModel):
    """One page of a user's keys"""

    items: List[ApiKeyPublic]
    page: int
    limit: int
    total: int


@dataclass(frozen=True)
class ValidatedApiKey:
    """A key that passed every check, with its hydrated owner"""

    api_key: ApiKey
    user: User
