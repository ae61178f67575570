from abc import ABC, abstractmethod
from typing import Iterable, List, Optional, Set, Tuple
from uuid import UUID

from src.domain.entities import ApiKey, ApiKeyPublic


class IApiKeyRepository(ABC):
    """
    ApiKey repository interface - application layer

    Reads used for hash comparison or ownership checks return the stored
    ApiKey (including key_hash). Reads meant for display return ApiKeyPublic.
    """

    @abstractmethod
    async def create(self, api_key: ApiKey) -> ApiKey:
        """Create a new API key. Raises IntegrityError on duplicate key_hash."""
        pass

    @abstractmethod
    async def find_by_hash(self, key_hash: str) -> Optional[ApiKey]:
        """Find a key by its SHA-256 digest"""
        pass

    @abstractmethod
    async def get_by_id(self, api_key_id: UUID) -> Optional[ApiKey]:
        """Get key by ID"""
        pass

    @abstractmethod
    async def list_by_owner(
        self, user_id: UUID, offset: int = 0, limit: int = 20
    ) -> Tuple[List[ApiKeyPublic], int]:
        """
        Get a page of a user's keys, newest first.

        Returns:
            Tuple of (keys, total) - keys never include key_hash
        """
        pass

    @abstractmethod
    async def count_active_by_owner(self, user_id: UUID) -> int:
        """Count a user's active keys (quota enforcement)"""
        pass

    @abstractmethod
    async def revoke(self, api_key_id: UUID) -> Optional[ApiKey]:
        """Mark an active key revoked. Returns None if it was not active."""
        pass

    @abstractmethod
    async def delete_by_id(self, api_key_id: UUID) -> bool:
        """Hard-delete a key. Returns True if a row was deleted."""
        pass

    @abstractmethod
    async def touch_last_used(self, api_key_id: UUID) -> None:
        """Set last_used_at to now"""
        pass

    @abstractmethod
    async def existing_ids(self, api_key_ids: Iterable[UUID]) -> Set[UUID]:
        """Return the subset of the given IDs that still exist"""
        pass
