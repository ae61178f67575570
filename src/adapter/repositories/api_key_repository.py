from typing import Iterable, List, Optional, Set, Tuple
from uuid import UUID

from sqlalchemy import delete, func, update
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.repositories.api_key_repository import IApiKeyRepository
from src.domain.base import utcnow
from src.domain.entities import ApiKey, ApiKeyPublic, ApiKeyStatus


class ApiKeyRepository(IApiKeyRepository):
    """ApiKey repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, api_key: ApiKey) -> ApiKey:
        """Create a new API key"""
        self.session.add(api_key)
        await self.session.flush()
        await self.session.refresh(api_key)
        return api_key

    async def find_by_hash(self, key_hash: str) -> Optional[ApiKey]:
        """Find a key by its SHA-256 digest (raw row, hash included)"""
        stmt = select(ApiKey).where(ApiKey.key_hash == key_hash)
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def get_by_id(self, api_key_id: UUID) -> Optional[ApiKey]:
        """Get key by ID"""
        stmt = select(ApiKey).where(ApiKey.id == api_key_id)
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def list_by_owner(
        self, user_id: UUID, offset: int = 0, limit: int = 20
    ) -> Tuple[List[ApiKeyPublic], int]:
        """Get a page of a user's keys, newest first, hash stripped"""
        stmt = (
            select(ApiKey)
            .where(ApiKey.user_id == user_id)
            .order_by(ApiKey.created_at.desc())
            .offset(offset)
            .limit(limit)
        )
        result = await self.session.exec(stmt)
        keys = [ApiKeyPublic.from_entity(k) for k in result.all()]

        count_stmt = select(func.count()).select_from(ApiKey).where(ApiKey.user_id == user_id)
        total = (await self.session.exec(count_stmt)).one()

        return keys, total

    async def count_active_by_owner(self, user_id: UUID) -> int:
        """Count a user's active keys"""
        stmt = (
            select(func.count())
            .select_from(ApiKey)
            .where(ApiKey.user_id == user_id, ApiKey.status == ApiKeyStatus.active)
        )
        result = await self.session.exec(stmt)
        return result.one()

    async def revoke(self, api_key_id: UUID) -> Optional[ApiKey]:
        """
        Mark an active key revoked.

        The status guard in the WHERE clause keeps revoked terminal even if two
        revocations race.
        """
        stmt = (
            update(ApiKey)
            .where(ApiKey.id == api_key_id, ApiKey.status == ApiKeyStatus.active)
            .values(status=ApiKeyStatus.revoked, updated_at=utcnow())
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        if result.rowcount == 0:
            return None

        api_key = await self.get_by_id(api_key_id)
        await self.session.refresh(api_key)
        return api_key

    async def delete_by_id(self, api_key_id: UUID) -> bool:
        """Hard-delete a key"""
        stmt = delete(ApiKey).where(ApiKey.id == api_key_id)
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount > 0

    async def touch_last_used(self, api_key_id: UUID) -> None:
        """Set last_used_at to now"""
        stmt = update(ApiKey).where(ApiKey.id == api_key_id).values(last_used_at=utcnow())
        await self.session.execute(stmt)
        await self.session.flush()

    async def existing_ids(self, api_key_ids: Iterable[UUID]) -> Set[UUID]:
        """Return the subset of the given IDs that still exist"""
        ids = list(api_key_ids)
        if not ids:
            return set()
        stmt = select(ApiKey.id).where(ApiKey.id.in_(ids))
        result = await self.session.exec(stmt)
        return set(result.all())
