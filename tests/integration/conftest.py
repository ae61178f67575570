from contextlib import asynccontextmanager

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from src.adapter.repositories.user_repository import UserRepository
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.api.utils.jwt import generate_jwt
from src.depends import get_unit_of_work
from src.domain.entities import User, UserRole


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine("sqlite+aiosqlite:///./test.db")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def uow_scope(session_factory):
    @asynccontextmanager
    async def scope():
        async with session_factory() as session:
            yield SqlAlchemyUnitOfWork(session)

    return scope


@pytest_asyncio.fixture
async def app(uow_scope):
    from src.api.app import create_app
    from config import ApplicationConfig

    app = create_app(ApplicationConfig, uow_scope=uow_scope)

    async def override_get_unit_of_work():
        async with uow_scope() as uow:
            yield uow

    app.dependency_overrides[get_unit_of_work] = override_get_unit_of_work
    yield app

    await app.state.key_usage_tracker.drain()
    await app.state.audit_buffer.shutdown()


@pytest_asyncio.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def settle(app):
    """Waits for background audit writes and last-used touches"""

    async def _settle():
        await app.state.key_usage_tracker.drain()
        await app.state.audit_buffer.flush()

    return _settle


@pytest_asyncio.fixture
async def make_user(db_session):
    async def _make_user(email: str = "sender@example.com", role: UserRole = UserRole.user, **fields):
        user = await UserRepository(db_session).create(
            User(email=email, name=email.split("@")[0], role=role, **fields)
        )
        await db_session.commit()
        return user

    return _make_user


@pytest_asyncio.fixture
async def auth_headers():
    def _auth_headers(user: User) -> dict:
        return {"Authorization": f"Bearer {generate_jwt(user.id, user.role.value)}"}

    return _auth_headers
