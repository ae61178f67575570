"""
User Entity

Represents a dashboard account that owns API keys.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID, uuid4

from sqlmodel import JSON, Column, DateTime, Field, Index, SQLModel

from src.domain.base import utcnow
from .enums import UserRole, UserStatus


class User(SQLModel, table=True):
    """
    User entity - a person signed in through Google OAuth.

    Business Rules:
    - Email must be unique across all users
    - Only active users can authenticate with their API keys
    - api_key_ids mirrors the user's keys; dangling ids are pruned on read
    - The Gmail app password is stored encrypted, never in plaintext
    """

    __tablename__ = "users"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    google_id: Optional[str] = Field(default=None, unique=True, max_length=255)
    email: str = Field(unique=True, index=True, max_length=255)
    name: str = Field(max_length=120)

    role: UserRole = Field(default=UserRole.user)
    status: UserStatus = Field(default=UserStatus.active)

    # Credential references (UUID strings)
    api_key_ids: List[str] = Field(default_factory=list, sa_column=Column(JSON))

    # AES-256-GCM ciphertext, see AppPasswordCipher
    encrypted_app_password: Optional[str] = Field(default=None)
    has_app_password: bool = Field(default=False)

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))
    updated_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))

    __table_args__ = (Index("idx_user_status_role", "status", "role"),)
