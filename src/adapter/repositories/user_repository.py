from typing import Optional
from uuid import UUID

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.repositories.user_repository import IUserRepository
from src.domain.base import utcnow
from src.domain.entities import User


class UserRepository(IUserRepository):
    """User repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        """Get user by ID"""
        stmt = select(User).where(User.id == user_id)
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def create(self, user: User) -> User:
        """Create a new user"""
        self.session.add(user)
        await self.session.flush()
        await self.session.refresh(user)
        return user

    async def update(self, user: User) -> User:
        """Update existing user"""
        user.updated_at = utcnow()
        self.session.add(user)
        await self.session.flush()
        await self.session.refresh(user)
        return user

    async def attach_api_key(self, user_id: UUID, api_key_id: UUID) -> Optional[User]:
        """Add an API key reference to the user's list (idempotent)"""
        user = await self.get_by_id(user_id)
        if user is None:
            return None

        key_ref = str(api_key_id)
        current = list(user.api_key_ids or [])
        if key_ref not in current:
            # Reassign so the JSON column is flagged dirty
            user.api_key_ids = current + [key_ref]
            user = await self.update(user)
        return user

    async def detach_api_key(self, user_id: UUID, api_key_id: UUID) -> Optional[User]:
        """Remove an API key reference from the user's list"""
        user = await self.get_by_id(user_id)
        if user is None:
            return None

        key_ref = str(api_key_id)
        current = list(user.api_key_ids or [])
        if key_ref in current:
            user.api_key_ids = [ref for ref in current if ref != key_ref]
            user = await self.update(user)
        return user
