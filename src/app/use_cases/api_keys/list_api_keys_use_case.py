"""
List API Keys Use Case

Returns a page of the caller's keys without any secret material.
"""

from uuid import UUID

from libs.result import Result, Return
from src.app.services.unit_of_work import UnitOfWork
from .dtos import ApiKeyPage


class ListApiKeysUseCase:
    """Use case for listing a user's API keys, newest first"""

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def execute(self, user_id: UUID, page: int = 1, limit: int = 20) -> Result[ApiKeyPage]:
        async with self.uow:
            offset = (page - 1) * limit
            keys, total = await self.uow.api_keys.list_by_owner(
                user_id, offset=offset, limit=limit
            )
            return Return.ok(ApiKeyPage(items=keys, page=page, limit=limit, total=total))
