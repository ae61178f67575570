"""
Revoke API Key Use Case

Soft-disables a key. Revocation is permanent.
"""

import logging
from typing import Optional
from uuid import UUID

from libs.result import Error, Result, Return
from src.app.services.audit_buffer import AuditBuffer, RequestContext
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import ApiKeyPublic, ApiKeyStatus, AuditAction, AuditOutcome
from .ownership import find_owned_api_key

logger = logging.getLogger(__name__)


class RevokeApiKeyUseCase:
    """
    Use case for revoking API keys.

    Business Rules:
    - Only the owner can revoke a key
    - Revoking an already revoked key is an error
    - Revoked keys never become active again
    - Revocation is audit-logged
    """

    def __init__(self, uow: UnitOfWork, audit: AuditBuffer):
        self.uow = uow
        self.audit = audit

    async def execute(
        self,
        user_id: UUID,
        api_key_id: UUID,
        context: Optional[RequestContext] = None,
    ) -> Result[ApiKeyPublic]:
        """
        Execute revoke API key use case.

        Returns:
            Result with the revoked key, or
            Error(API_KEY_NOT_FOUND | FORBIDDEN | API_KEY_ALREADY_REVOKED)
        """
        async with self.uow:
            found = await find_owned_api_key(self.uow, user_id, api_key_id)
            if found.is_err():
                return found
            api_key = found.value

            if api_key.status == ApiKeyStatus.revoked:
                return Return.err(
                    Error("API_KEY_ALREADY_REVOKED", "API key is already revoked")
                )

            revoked = await self.uow.api_keys.revoke(api_key_id)
            if revoked is None:
                # Lost a race with a concurrent revocation
                return Return.err(
                    Error("API_KEY_ALREADY_REVOKED", "API key is already revoked")
                )

            await self.uow.commit()
            public = ApiKeyPublic.from_entity(revoked)

        self.audit.log_from_context(
            context,
            AuditAction.key_revoked,
            actor_id=user_id,
            resource="ApiKey",
            resource_id=api_key_id,
            outcome=AuditOutcome.success,
            metadata={"name": public.name},
        )
        logger.info(f"API key revoked: user_id={user_id} key_id={api_key_id}")

        return Return.ok(public)
