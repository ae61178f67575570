"""
ApiKey Entity

Opaque bearer credentials used by programmatic email senders.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID, uuid4

from pydantic import computed_field
from sqlmodel import JSON, Column, DateTime, Field, Index, SQLModel

from src.domain.base import utcnow
from .enums import ApiKeyStatus

MAX_ACTIVE_KEYS_PER_USER = 25
MASK_CHAR = "•"


class ApiKeyBase(SQLModel):
    """Fields shared by the stored key and its public projection"""

    name: str = Field(max_length=80)
    prefix: str = Field(max_length=12)
    suffix: str = Field(max_length=4)

    status: ApiKeyStatus = Field(default=ApiKeyStatus.active)
    expires_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))
    allowed_ips: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    last_used_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))

    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))
    updated_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        if self.expires_at is None:
            return False
        return self.expires_at < (now or utcnow())


class ApiKey(ApiKeyBase, table=True):
    """
    ApiKey entity - one issued API key.

    Business Rules:
    - key_hash is the SHA-256 hex digest of the raw key, globally unique
    - The raw key is returned once at creation and never persisted
    - At most 25 active keys per user
    - Revoked is terminal, a key never returns to active
    - Empty allowed_ips means any client IP is accepted
    """

    __tablename__ = "api_keys"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    user_id: UUID = Field(foreign_key="users.id", nullable=False, index=True)

    key_hash: str = Field(unique=True, max_length=64)

    __table_args__ = (
        Index("idx_api_key_user_status", "user_id", "status"),
        Index("idx_api_key_expires_at", "expires_at"),
    )


class ApiKeyPublic(ApiKeyBase):
    """Display projection of an ApiKey. Never carries key_hash."""

    id: UUID
    user_id: UUID

    @computed_field
    @property
    def masked_key(self) -> str:
        return f"{self.prefix}{MASK_CHAR * 8}{self.suffix}"

    @classmethod
    def from_entity(cls, api_key: ApiKey) -> "ApiKeyPublic":
        return cls(
            id=api_key.id,
            user_id=api_key.user_id,
            name=api_key.name,
            prefix=api_key.prefix,
            suffix=api_key.suffix,
            status=api_key.status,
            expires_at=api_key.expires_at,
            allowed_ips=list(api_key.allowed_ips or []),
            last_used_at=api_key.last_used_at,
            created_at=api_key.created_at,
            updated_at=api_key.updated_at,
        )
