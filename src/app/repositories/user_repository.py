from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from src.domain.entities import User


class IUserRepository(ABC):
    """User repository interface - application layer"""

    @abstractmethod
    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        """Get user by ID"""
        pass

    @abstractmethod
    async def create(self, user: User) -> User:
        """Create a new user"""
        pass

    @abstractmethod
    async def update(self, user: User) -> User:
        """Update existing user"""
        pass

    @abstractmethod
    async def attach_api_key(self, user_id: UUID, api_key_id: UUID) -> Optional[User]:
        """Add an API key reference to the user's list (idempotent)"""
        pass

    @abstractmethod
    async def detach_api_key(self, user_id: UUID, api_key_id: UUID) -> Optional[User]:
        """Remove an API key reference from the user's list"""
        pass
