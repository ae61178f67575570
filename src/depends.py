from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession
from config import ApplicationConfig
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.api.utils.jwt import verify_jwt
from src.api.utils.rate_limit import ApiKeyRateLimiter
from src.app.services.api_key_codec import ApiKeyCodec
from src.app.services.app_password_cipher import AppPasswordCipher
from src.app.services.audit_buffer import AuditBuffer
from src.app.services.key_usage_tracker import KeyUsageTracker
from src.app.services.unit_of_work import UnitOfWork

engine = create_async_engine(ApplicationConfig.DB_URI, echo=False, future=True)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)

security = HTTPBearer()


@asynccontextmanager
async def unit_of_work_scope() -> AsyncIterator[UnitOfWork]:
    """Fresh session for work that outlives a request (audit flushes, usage touches, jobs)"""
    async with AsyncSessionLocal() as session:
        yield SqlAlchemyUnitOfWork(session)


async def get_unit_of_work():
    async with AsyncSessionLocal() as session:
        yield SqlAlchemyUnitOfWork(session)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> dict:
    """
    Dependency to extract and verify JWT token from Authorization header.

    Args:
        credentials: Bearer token from Authorization header

    Returns:
        Decoded JWT payload containing user_id and role

    Raises:
        HTTPException: 401 if token is invalid or expired
    """
    token = credentials.credentials
    payload = verify_jwt(token)

    if payload is None or "user_id" not in payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )

    return payload


# Long-lived services created by create_app and kept on app.state


def get_audit_buffer(request: Request) -> AuditBuffer:
    return request.app.state.audit_buffer


def get_key_usage_tracker(request: Request) -> KeyUsageTracker:
    return request.app.state.key_usage_tracker


def get_rate_limiter(request: Request) -> ApiKeyRateLimiter:
    return request.app.state.rate_limiter


def get_api_key_codec(request: Request) -> ApiKeyCodec:
    return request.app.state.api_key_codec


def get_app_password_cipher(request: Request) -> AppPasswordCipher:
    return request.app.state.app_password_cipher


def get_max_active_keys(request: Request) -> int:
    return request.app.state.max_active_keys
