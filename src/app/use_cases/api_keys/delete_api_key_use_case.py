"""
Delete API Key Use Case

Permanently removes a key and its reference on the owner.
"""

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError

from libs.result import Result, Return
from src.app.services.audit_buffer import AuditBuffer, RequestContext
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import AuditAction, AuditOutcome
from .ownership import find_owned_api_key

logger = logging.getLogger(__name__)


class DeleteApiKeyUseCase:
    """
    Use case for deleting API keys.

    Business Rules:
    - Only the owner can delete a key
    - The key row is deleted and committed first, then detached from the
      owner's key list. A failed detach leaves a dangling reference that
      LoadProfileUseCase prunes on the next read.
    - Deletion frees a quota slot if the key was active
    """

    def __init__(self, uow: UnitOfWork, audit: AuditBuffer):
        self.uow = uow
        self.audit = audit

    async def execute(
        self,
        user_id: UUID,
        api_key_id: UUID,
        context: Optional[RequestContext] = None,
    ) -> Result[dict]:
        """
        Execute delete API key use case.

        Returns:
            Result with the deleted key id, or Error(API_KEY_NOT_FOUND | FORBIDDEN)
        """
        async with self.uow:
            found = await find_owned_api_key(self.uow, user_id, api_key_id)
            if found.is_err():
                return found
            name = found.value.name

            await self.uow.api_keys.delete_by_id(api_key_id)
            await self.uow.commit()

            try:
                await self.uow.users.detach_api_key(user_id, api_key_id)
                await self.uow.commit()
            except SQLAlchemyError as exc:
                await self.uow.rollback()
                logger.warning(
                    f"API key {api_key_id} deleted but not detached from user {user_id}: {exc}"
                )

        self.audit.log_from_context(
            context,
            AuditAction.key_deleted,
            actor_id=user_id,
            resource="ApiKey",
            resource_id=api_key_id,
            outcome=AuditOutcome.success,
            metadata={"name": name},
        )
        logger.info(f"API key deleted: user_id={user_id} key_id={api_key_id}")

        return Return.ok({"id": str(api_key_id), "deleted": True})
