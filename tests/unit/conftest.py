from contextlib import asynccontextmanager

import pytest
from unittest.mock import AsyncMock, MagicMock

from src.app.services.audit_buffer import AuditBuffer


@pytest.fixture
def mock_uow():
    uow = MagicMock()
    uow.__aenter__ = AsyncMock(return_value=uow)
    uow.__aexit__ = AsyncMock(return_value=False)  # Must return False to not suppress exceptions
    uow.commit = AsyncMock()
    uow.rollback = AsyncMock()
    return uow


@pytest.fixture
def mock_uow_scope(mock_uow):
    """Stands in for the session factory used by background work"""

    @asynccontextmanager
    async def scope():
        yield mock_uow

    return scope


@pytest.fixture
def mock_audit():
    return MagicMock(spec=AuditBuffer)
