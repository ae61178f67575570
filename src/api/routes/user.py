from uuid import UUID

from fastapi import APIRouter, Depends, Request, status
from pydantic import BaseModel, Field

from src.api.error import ClientError, ServerError
from src.api.utils.request_context import extract_request_context
from src.app.services.app_password_cipher import AppPasswordCipher
from src.app.services.audit_buffer import AuditBuffer
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.users import AppPasswordUseCase, LoadProfileUseCase, ProfileResponse
from src.depends import (
    get_app_password_cipher,
    get_audit_buffer,
    get_current_user,
    get_unit_of_work,
)

router = APIRouter(tags=["User"])


class AppPasswordRequest(BaseModel):
    """PUT /me/app-password request payload"""
    app_password: str = Field(min_length=1, max_length=64)


class AppPasswordResponse(BaseModel):
    has_app_password: bool


def _raise_for(error):
    if error.code == "USER_NOT_FOUND":
        raise ClientError(error, status_code=status.HTTP_404_NOT_FOUND)
    if error.code == "USER_SUSPENDED":
        raise ClientError(error, status_code=status.HTTP_403_FORBIDDEN)
    raise ServerError(error)


@router.get("/me", status_code=status.HTTP_200_OK, response_model=ProfileResponse)
async def get_me(
    current_user: dict = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    """
    Load Current User

    Dangling API key references are pruned from the profile on read.

    Raises:
        - 401 Unauthorized: Invalid or expired JWT
        - 403 Forbidden: User suspended
        - 404 Not Found: User no longer exists
    """
    user_id = UUID(current_user["user_id"])

    result = await LoadProfileUseCase(uow).execute(user_id)

    if result.is_err():
        _raise_for(result.error)

    return result.value


@router.put("/me/app-password", status_code=status.HTTP_200_OK, response_model=AppPasswordResponse)
async def set_app_password(
    payload: AppPasswordRequest,
    request: Request,
    current_user: dict = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    cipher: AppPasswordCipher = Depends(get_app_password_cipher),
    audit: AuditBuffer = Depends(get_audit_buffer),
):
    """Store the Gmail app password, encrypted"""
    user_id = UUID(current_user["user_id"])

    # Gmail shows app passwords in groups of four
    app_password = payload.app_password.replace(" ", "")

    use_case = AppPasswordUseCase(uow, cipher, audit)
    result = await use_case.set_app_password(
        user_id, app_password, context=extract_request_context(request)
    )

    if result.is_err():
        _raise_for(result.error)

    return result.value


@router.delete("/me/app-password", status_code=status.HTTP_200_OK, response_model=AppPasswordResponse)
async def clear_app_password(
    request: Request,
    current_user: dict = Depends(get_current_user),
    uow: UnitOfWork = Depends(get_unit_of_work),
    cipher: AppPasswordCipher = Depends(get_app_password_cipher),
    audit: AuditBuffer = Depends(get_audit_buffer),
):
    """Remove the stored app password"""
    user_id = UUID(current_user["user_id"])

    use_case = AppPasswordUseCase(uow, cipher, audit)
    result = await use_case.clear_app_password(user_id, context=extract_request_context(request))

    if result.is_err():
        _raise_for(result.error)

    return result.value
