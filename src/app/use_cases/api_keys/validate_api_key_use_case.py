"""
Validate API Key Use Case

Authenticates a raw API key presented by a programmatic sender.
"""

import ipaddress
import logging
from typing import List, Optional

from src.app.services.api_key_codec import ApiKeyCodec
from src.app.services.key_usage_tracker import KeyUsageTracker
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import utcnow
from src.domain.entities import ApiKey, ApiKeyStatus, User, UserStatus
from .dtos import ValidatedApiKey

logger = logging.getLogger(__name__)


def ip_allowed(allowed_ips: List[str], client_ip: Optional[str]) -> bool:
    """
    Check a client IP against an allowlist.

    An empty allowlist accepts everything. A non-empty one requires a client
    IP that matches an entry once both sides are normalised.
    """
    if not allowed_ips:
        return True
    if not client_ip:
        return False
    try:
        client = ipaddress.ip_address(client_ip.strip())
    except ValueError:
        return False

    for entry in allowed_ips:
        try:
            if ipaddress.ip_address(entry.strip()) == client:
                return True
        except ValueError:
            continue
    return False


class ValidateApiKeyUseCase:
    """
    Use case for validating API keys.

    Business Rules:
    - Returns None for every failure, callers cannot tell which check failed
    - Lookup by digest, then constant-time digest comparison
    - Key must be active, unexpired and allowed for the client IP
    - Owner must exist and be active
    - last_used_at is updated in the background, best effort
    """

    def __init__(
        self,
        uow: UnitOfWork,
        usage_tracker: KeyUsageTracker,
        codec: Optional[ApiKeyCodec] = None,
    ):
        self.uow = uow
        self.usage_tracker = usage_tracker
        self.codec = codec or ApiKeyCodec()

    async def execute(
        self, raw_key: str, client_ip: Optional[str] = None
    ) -> Optional[ValidatedApiKey]:
        """
        Execute validate API key use case.

        Args:
            raw_key: Key from the x-api-key header
            client_ip: Requesting IP for the allowlist check

        Returns:
            ValidatedApiKey with the key and its owner, or None
        """
        key_hash = self.codec.hash_key(raw_key)

        async with self.uow:
            api_key = await self.uow.api_keys.find_by_hash(key_hash)
            if api_key is None:
                return None

            # The store is trusted for lookup only, equality is checked here
            if not self.codec.digests_match(key_hash, api_key.key_hash):
                return None

            if not self._is_usable(api_key, client_ip):
                return None

            user = await self.uow.users.get_by_id(api_key.user_id)
            if user is None or user.status != UserStatus.active:
                return None

            # Detached copies, the session expires its instances on exit
            validated = ValidatedApiKey(
                api_key=ApiKey.model_validate(api_key.model_dump()),
                user=User.model_validate(user.model_dump()),
            )

        self.usage_tracker.touch(validated.api_key.id)

        return validated

    def _is_usable(self, api_key: ApiKey, client_ip: Optional[str]) -> bool:
        if api_key.status != ApiKeyStatus.active:
            return False
        if api_key.is_expired(utcnow()):
            return False
        if not ip_allowed(api_key.allowed_ips or [], client_ip):
            logger.info(f"API key {api_key.id} rejected for client IP {client_ip}")
            return False
        return True
