"""
Unit tests for Issue API Key Use Case
"""

import pytest
from unittest.mock import AsyncMock
from uuid import uuid4

from sqlalchemy.exc import IntegrityError

from src.app.services.api_key_codec import ApiKeyCodec
from src.app.use_cases.api_keys import IssueApiKeyCommand, IssueApiKeyUseCase
from src.domain.entities import ApiKeyStatus, AuditAction, User


def _user(user_id):
    return User(id=user_id, email="sender@example.com", name="Sender")


def _mock_store(mock_uow, user_id, active_count=0):
    mock_uow.users.get_by_id = AsyncMock(return_value=_user(user_id))
    mock_uow.users.attach_api_key = AsyncMock()
    mock_uow.api_keys.count_active_by_owner = AsyncMock(return_value=active_count)
    mock_uow.api_keys.create = AsyncMock(side_effect=lambda api_key: api_key)


@pytest.mark.asyncio
async def test_issue_api_key_success(mock_uow, mock_audit):
    """Test issuing a key returns the raw key once and stores only its digest"""
    user_id = uuid4()
    _mock_store(mock_uow, user_id)

    use_case = IssueApiKeyUseCase(mock_uow, mock_audit)
    result = await use_case.execute(user_id, IssueApiKeyCommand(name="CI pipeline"))

    assert result.is_ok()
    issued = result.value
    assert issued.key.startswith("mk_live_")
    assert issued.api_key.status == ApiKeyStatus.active
    assert issued.api_key.prefix == issued.key[:8]
    assert issued.api_key.suffix == issued.key[-4:]
    assert "key_hash" not in issued.api_key.model_dump()

    stored = mock_uow.api_keys.create.await_args.args[0]
    assert stored.key_hash == ApiKeyCodec.hash_key(issued.key)
    assert issued.key not in stored.model_dump().values()

    mock_uow.users.attach_api_key.assert_awaited_once_with(user_id, stored.id)
    mock_uow.commit.assert_awaited_once()

    mock_audit.log_from_context.assert_called_once()
    args, kwargs = mock_audit.log_from_context.call_args
    assert args[1] == AuditAction.key_created
    assert kwargs["actor_id"] == user_id
    assert kwargs["resource_id"] == stored.id


@pytest.mark.asyncio
async def test_issue_api_key_with_expiry_and_allowlist(mock_uow, mock_audit):
    from datetime import datetime, timedelta, timezone

    user_id = uuid4()
    _mock_store(mock_uow, user_id)
    expires_at = datetime.now(timezone.utc) + timedelta(days=30)

    use_case = IssueApiKeyUseCase(mock_uow, mock_audit)
    result = await use_case.execute(
        user_id,
        IssueApiKeyCommand(name="prod", expires_at=expires_at, allowed_ips=["203.0.113.7"]),
    )

    assert result.is_ok()
    stored = mock_uow.api_keys.create.await_args.args[0]
    assert stored.allowed_ips == ["203.0.113.7"]
    assert stored.expires_at.tzinfo is None
    assert stored.expires_at == expires_at.replace(tzinfo=None)


@pytest.mark.asyncio
async def test_issue_api_key_quota_exceeded(mock_uow, mock_audit):
    """Test the 26th active key is refused"""
    user_id = uuid4()
    _mock_store(mock_uow, user_id, active_count=25)

    use_case = IssueApiKeyUseCase(mock_uow, mock_audit)
    result = await use_case.execute(user_id, IssueApiKeyCommand(name="one too many"))

    assert result.is_err()
    assert result.error.code == "API_KEY_QUOTA_EXCEEDED"
    mock_uow.api_keys.create.assert_not_called()
    mock_uow.commit.assert_not_called()
    mock_audit.log_from_context.assert_not_called()


@pytest.mark.asyncio
async def test_issue_api_key_below_quota(mock_uow, mock_audit):
    user_id = uuid4()
    _mock_store(mock_uow, user_id, active_count=24)

    result = await IssueApiKeyUseCase(mock_uow, mock_audit).execute(
        user_id, IssueApiKeyCommand(name="last slot")
    )

    assert result.is_ok()


@pytest.mark.asyncio
async def test_issue_api_key_custom_quota(mock_uow, mock_audit):
    user_id = uuid4()
    _mock_store(mock_uow, user_id, active_count=2)

    result = await IssueApiKeyUseCase(mock_uow, mock_audit, max_active_keys=2).execute(
        user_id, IssueApiKeyCommand(name="over")
    )

    assert result.error.code == "API_KEY_QUOTA_EXCEEDED"


@pytest.mark.asyncio
async def test_issue_api_key_user_not_found(mock_uow, mock_audit):
    mock_uow.users.get_by_id = AsyncMock(return_value=None)

    result = await IssueApiKeyUseCase(mock_uow, mock_audit).execute(
        uuid4(), IssueApiKeyCommand(name="ghost")
    )

    assert result.is_err()
    assert result.error.code == "USER_NOT_FOUND"


@pytest.mark.asyncio
async def test_issue_api_key_digest_conflict(mock_uow, mock_audit):
    """Test a unique-index violation surfaces as a conflict, not a crash"""
    user_id = uuid4()
    _mock_store(mock_uow, user_id)
    mock_uow.api_keys.create = AsyncMock(
        side_effect=IntegrityError("INSERT INTO api_keys", {}, Exception("UNIQUE constraint failed"))
    )

    result = await IssueApiKeyUseCase(mock_uow, mock_audit).execute(
        user_id, IssueApiKeyCommand(name="collision")
    )

    assert result.is_err()
    assert result.error.code == "API_KEY_CONFLICT"
    mock_uow.rollback.assert_awaited_once()
    mock_uow.commit.assert_not_called()
    mock_audit.log_from_context.assert_not_called()
