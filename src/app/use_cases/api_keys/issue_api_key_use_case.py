"""
Issue API Key Use Case

Generates a new API key for a user and returns the raw key once.
"""

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError

from libs.result import Error, Result, Return
from src.app.services.api_key_codec import ApiKeyCodec
from src.app.services.audit_buffer import AuditBuffer, RequestContext
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import to_naive_utc
from src.domain.entities import (
    ApiKey,
    ApiKeyPublic,
    AuditAction,
    AuditOutcome,
    MAX_ACTIVE_KEYS_PER_USER,
)
from .dtos import IssueApiKeyCommand, IssuedApiKey

logger = logging.getLogger(__name__)


class IssueApiKeyUseCase:
    """
    Use case for issuing API keys.

    Business Logic:
    1. Reject if the user already has max_active_keys active keys
    2. Generate a random key and its SHA-256 digest
    3. Store digest + display prefix/suffix, never the raw key
    4. Attach the key id to the user's key list
    5. Commit, then queue a key_created audit entry
    6. Return the record together with the raw key
    """

    def __init__(
        self,
        uow: UnitOfWork,
        audit: AuditBuffer,
        codec: Optional[ApiKeyCodec] = None,
        max_active_keys: int = MAX_ACTIVE_KEYS_PER_USER,
    ):
        self.uow = uow
        self.audit = audit
        self.codec = codec or ApiKeyCodec()
        self.max_active_keys = max_active_keys

    async def execute(
        self,
        user_id: UUID,
        command: IssueApiKeyCommand,
        context: Optional[RequestContext] = None,
    ) -> Result[IssuedApiKey]:
        """
        Execute issue API key use case.

        Args:
            user_id: Owner of the new key
            command: Name, optional expiry and IP allowlist
            context: Request metadata for the audit trail

        Returns:
            Result with IssuedApiKey, or Error(API_KEY_QUOTA_EXCEEDED | USER_NOT_FOUND | API_KEY_CONFLICT)
        """
        async with self.uow:
            user = await self.uow.users.get_by_id(user_id)
            if user is None:
                return Return.err(Error("USER_NOT_FOUND", "User not found"))

            active_count = await self.uow.api_keys.count_active_by_owner(user_id)
            if active_count >= self.max_active_keys:
                return Return.err(
                    Error(
                        "API_KEY_QUOTA_EXCEEDED",
                        f"Maximum of {self.max_active_keys} active API keys per user",
                    )
                )

            generated = self.codec.generate()

            try:
                api_key = await self.uow.api_keys.create(
                    ApiKey(
                        user_id=user_id,
                        name=command.name,
                        key_hash=generated.key_hash,
                        prefix=generated.prefix,
                        suffix=generated.suffix,
                        expires_at=to_naive_utc(command.expires_at),
                        allowed_ips=list(command.allowed_ips),
                    )
                )
            except IntegrityError:
                await self.uow.rollback()
                logger.error(f"API key digest collision for user {user_id}")
                return Return.err(
                    Error("API_KEY_CONFLICT", "Could not issue API key, please retry")
                )

            await self.uow.users.attach_api_key(user_id, api_key.id)
            await self.uow.commit()

            public = ApiKeyPublic.from_entity(api_key)

        self.audit.log_from_context(
            context,
            AuditAction.key_created,
            actor_id=user_id,
            resource="ApiKey",
            resource_id=public.id,
            outcome=AuditOutcome.success,
            metadata={"name": public.name, "prefix": public.prefix},
        )
        logger.info(f"API key created: user_id={user_id} key_id={public.id}")

        return Return.ok(IssuedApiKey(key=generated.raw_key, api_key=public))
