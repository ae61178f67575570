"""
Load Profile Use Case

Returns the current user and prunes dangling API key references.
"""

import logging
from uuid import UUID

from libs.result import Error, Result, Return
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import UserStatus
from .dtos import ProfileResponse

logger = logging.getLogger(__name__)


class LoadProfileUseCase:
    """
    Use case for loading the current user's profile.

    Business Rules:
    - Suspended users cannot load their profile
    - api_key_ids entries whose key no longer exists are removed on read
    """

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def execute(self, user_id: UUID) -> Result[ProfileResponse]:
        async with self.uow:
            user = await self.uow.users.get_by_id(user_id)
            if user is None:
                return Return.err(Error("USER_NOT_FOUND", "User not found"))
            if user.status != UserStatus.active:
                return Return.err(Error("USER_SUSPENDED", "User account is suspended"))

            refs = []
            for ref in user.api_key_ids or []:
                try:
                    refs.append(UUID(ref))
                except ValueError:
                    continue

            existing = await self.uow.api_keys.existing_ids(refs)
            live_refs = [str(ref) for ref in refs if ref in existing]
            if live_refs != list(user.api_key_ids or []):
                logger.info(
                    f"Pruned {len(user.api_key_ids or []) - len(live_refs)} dangling API key "
                    f"references for user {user_id}"
                )
                user.api_key_ids = live_refs
                user = await self.uow.users.update(user)
                await self.uow.commit()

            return Return.ok(
                ProfileResponse(
                    id=str(user.id),
                    email=user.email,
                    name=user.name,
                    role=user.role.value,
                    status=user.status.value,
                    api_key_ids=live_refs,
                    has_app_password=user.has_app_password,
                )
            )
