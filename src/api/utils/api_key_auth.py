"""
API Key Authentication

Authenticates programmatic senders through the x-api-key header.
Unlike dashboard JWT auth, every accepted request is audit-logged.
"""

import logging
from typing import Optional

from fastapi import Depends, Header, Request, Response, status

from libs.result import Error
from src.api.error import ClientError
from src.api.utils.rate_limit import ApiKeyRateLimiter
from src.api.utils.request_context import extract_request_context
from src.app.services.api_key_codec import ApiKeyCodec
from src.app.services.audit_buffer import AuditBuffer
from src.app.services.key_usage_tracker import KeyUsageTracker
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.api_keys import ValidateApiKeyUseCase, ValidatedApiKey
from src.depends import (
    get_api_key_codec,
    get_audit_buffer,
    get_key_usage_tracker,
    get_rate_limiter,
    get_unit_of_work,
)
from src.domain.entities import AuditAction, AuditOutcome, AuditSeverity

logger = logging.getLogger(__name__)


async def authenticate_api_key(
    request: Request,
    x_api_key: Optional[str] = Header(None),
    uow: UnitOfWork = Depends(get_unit_of_work),
    usage_tracker: KeyUsageTracker = Depends(get_key_usage_tracker),
    audit: AuditBuffer = Depends(get_audit_buffer),
    codec: ApiKeyCodec = Depends(get_api_key_codec),
) -> ValidatedApiKey:
    """
    Verify the API key from the x-api-key header.

    Sets request.state.user and request.state.api_key on success and queues
    a key_used audit entry without waiting for it.

    Raises:
        ClientError: 401 API_KEY_MISSING, API_KEY_MALFORMED or INVALID_API_KEY
    """
    if not x_api_key:
        raise ClientError(
            Error("API_KEY_MISSING", "Missing x-api-key header"),
            status_code=status.HTTP_401_UNAUTHORIZED,
        )

    raw_key = x_api_key.strip()
    if not codec.is_well_formed(raw_key):
        raise ClientError(
            Error("API_KEY_MALFORMED", "Malformed API key"),
            status_code=status.HTTP_401_UNAUTHORIZED,
        )

    context = extract_request_context(request)

    use_case = ValidateApiKeyUseCase(uow, usage_tracker, codec)
    validated = await use_case.execute(raw_key, client_ip=context.ip)
    if validated is None:
        raise ClientError(
            Error("INVALID_API_KEY", "Invalid, revoked, or expired API key"),
            status_code=status.HTTP_401_UNAUTHORIZED,
        )

    request.state.user = validated.user
    request.state.api_key = validated.api_key

    audit.log_from_context(
        context,
        AuditAction.key_used,
        actor_id=validated.user.id,
        resource="ApiKey",
        resource_id=validated.api_key.id,
        outcome=AuditOutcome.success,
        metadata={
            "keyPrefix": validated.api_key.prefix,
            "method": request.method,
            "path": request.url.path,
        },
    )

    return validated


async def enforce_api_key_rate_limit(
    request: Request,
    response: Response,
    validated: ValidatedApiKey = Depends(authenticate_api_key),
    limiter: ApiKeyRateLimiter = Depends(get_rate_limiter),
    audit: AuditBuffer = Depends(get_audit_buffer),
) -> ValidatedApiKey:
    """
    Per-key request limit, applied after authentication.

    Raises:
        ClientError: 429 RATE_LIMITED with X-RateLimit-* headers
    """
    decision = limiter.check(str(validated.api_key.id))

    if not decision.allowed:
        logger.warning(f"Rate limit exceeded for API key {validated.api_key.id}")
        audit.log_from_context(
            extract_request_context(request),
            AuditAction.key_rate_limited,
            actor_id=validated.user.id,
            resource="ApiKey",
            resource_id=validated.api_key.id,
            severity=AuditSeverity.warn,
            outcome=AuditOutcome.failure,
            error_message="API key rate limit exceeded",
            metadata={"limit": decision.limit, "resetAt": decision.reset_at},
        )
        raise ClientError(
            Error("RATE_LIMITED", "API key rate limit exceeded, try again later"),
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            headers=decision.headers,
        )

    for name, value in decision.headers.items():
        response.headers[name] = value

    return validated
