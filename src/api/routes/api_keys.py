"""
API Key Routes

Dashboard endpoints for managing a user's API keys.
"""

import ipaddress
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status
from pydantic import BaseModel, Field, field_validator

from src.api.error import ClientError, ServerError
from src.api.utils.request_context import extract_request_context
from src.app.services.api_key_codec import ApiKeyCodec
from src.app.services.audit_buffer import AuditBuffer
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.api_keys import (
    ApiKeyPage,
    DeleteApiKeyUseCase,
    IssueApiKeyCommand,
    IssueApiKeyUseCase,
    IssuedApiKey,
    ListApiKeysUseCase,
    RevokeApiKeyUseCase,
)
from src.depends import (
    get_api_key_codec,
    get_audit_buffer,
    get_current_user,
    get_max_active_keys,
    get_unit_of_work,
)
from src.domain.entities import ApiKeyPublic

router = APIRouter(prefix="/api-keys", tags=["API Keys"])

ERROR_STATUS = {
    "API_KEY_QUOTA_EXCEEDED": status.HTTP_400_BAD_REQUEST,
    "API_KEY_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "USER_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "FORBIDDEN": status.HTTP_403_FORBIDDEN,
    "API_KEY_ALREADY_REVOKED": status.HTTP_409_CONFLICT,
    "API_KEY_CONFLICT": status.HTTP_409_CONFLICT,
}


class CreateApiKeyRequest(BaseModel):
    """POST /api-keys request payload"""

    name: str = Field(min_length=1, max_length=80)
    expires_at: Optional[datetime] = None
    allowed_ips: List[str] = Field(default_factory=list, max_length=50)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("name must not be blank")
        return value

    @field_validator("allowed_ips")
    @classmethod
    def _check_ips(cls, value: List[str]) -> List[str]:
        cleaned = []
        for entry in value:
            try:
                cleaned.append(str(ipaddress.ip_address(entry.strip())))
            except ValueError:
                raise ValueError(f"invalid IP address: {entry}")
        return cleaned


class DeleteApiKeyResponse(BaseModel):
    id: str
    deleted: bool


def _raise_for(error):
    status_code = ERROR_STATUS.get(error.code)
    if status_code is None:
        raise ServerError(error)
    raise ClientError(error, status_code=status_code)


@router.post("", status_code=status.HTTP_201_CREATED, response_model=IssuedApiKey)
async def create_api_key(
    payload: CreateApiKeyRequest,
    request: Request,
    current_user: dict = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    audit: AuditBuffer = Depends(get_audit_buffer),
    codec: ApiKeyCodec = Depends(get_api_key_codec),
    max_active_keys: int = Depends(get_max_active_keys),
):
    """
    Issue API Key

    The raw key is in this response only. It cannot be retrieved again.

    Raises:
        - 400 Bad Request: API_KEY_QUOTA_EXCEEDED
        - 401 Unauthorized: Invalid or expired JWT
        - 409 Conflict: API_KEY_CONFLICT
    """
    user_id = UUID(current_user["user_id"])

    use_case = IssueApiKeyUseCase(uow, audit, codec=codec, max_active_keys=max_active_keys)
    result = await use_case.execute(
        user_id,
        IssueApiKeyCommand(
            name=payload.name,
            expires_at=payload.expires_at,
            allowed_ips=payload.allowed_ips,
        ),
        context=extract_request_context(request),
    )

    if result.is_err():
        _raise_for(result.error)

    return result.value


@router.get("", status_code=status.HTTP_200_OK, response_model=ApiKeyPage)
async def list_api_keys(
    current_user: dict = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
):
    """List the caller's API keys, newest first. Secrets are masked."""
    user_id = UUID(current_user["user_id"])

    result = await ListApiKeysUseCase(uow).execute(user_id, page=page, limit=limit)

    if result.is_err():
        _raise_for(result.error)

    return result.value


@router.patch("/{api_key_id}/revoke", status_code=status.HTTP_200_OK, response_model=ApiKeyPublic)
async def revoke_api_key(
    api_key_id: UUID,
    request: Request,
    current_user: dict = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    audit: AuditBuffer = Depends(get_audit_buffer),
):
    """
    Revoke API Key

    Raises:
        - 403 Forbidden: key belongs to another user
        - 404 Not Found: API_KEY_NOT_FOUND
        - 409 Conflict: API_KEY_ALREADY_REVOKED
    """
    user_id = UUID(current_user["user_id"])

    use_case = RevokeApiKeyUseCase(uow, audit)
    result = await use_case.execute(user_id, api_key_id, context=extract_request_context(request))

    if result.is_err():
        _raise_for(result.error)

    return result.value


@router.delete("/{api_key_id}", status_code=status.HTTP_200_OK, response_model=DeleteApiKeyResponse)
async def delete_api_key(
    api_key_id: UUID,
    request: Request,
    current_user: dict = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    audit: AuditBuffer = Depends(get_audit_buffer),
):
    """
    Delete API Key

    Raises:
        - 403 Forbidden: key belongs to another user
        - 404 Not Found: API_KEY_NOT_FOUND
    """
    user_id = UUID(current_user["user_id"])

    use_case = DeleteApiKeyUseCase(uow, audit)
    result = await use_case.execute(user_id, api_key_id, context=extract_request_context(request))

    if result.is_err():
        _raise_for(result.error)

    return result.value
