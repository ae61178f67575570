"""
Unit tests for Validate API Key Use Case
"""

from datetime import timedelta

import pytest
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

from src.app.services.api_key_codec import ApiKeyCodec
from src.app.services.key_usage_tracker import KeyUsageTracker
from src.app.use_cases.api_keys import ValidateApiKeyUseCase, ip_allowed
from src.domain.base import utcnow
from src.domain.entities import ApiKey, ApiKeyStatus, User, UserStatus


@pytest.fixture
def usage_tracker():
    return MagicMock(spec=KeyUsageTracker)


@pytest.fixture
def issued():
    """A generated key and the row that would be stored for it"""
    generated = ApiKeyCodec().generate()
    owner = User(id=uuid4(), email="owner@example.com", name="Owner")
    api_key = ApiKey(
        id=uuid4(),
        user_id=owner.id,
        name="default",
        key_hash=generated.key_hash,
        prefix=generated.prefix,
        suffix=generated.suffix,
    )
    return generated.raw_key, api_key, owner


def _mock_store(mock_uow, api_key, owner):
    mock_uow.api_keys.find_by_hash = AsyncMock(return_value=api_key)
    mock_uow.users.get_by_id = AsyncMock(return_value=owner)


@pytest.mark.asyncio
async def test_validate_success(mock_uow, usage_tracker, issued):
    raw_key, api_key, owner = issued
    _mock_store(mock_uow, api_key, owner)

    result = await ValidateApiKeyUseCase(mock_uow, usage_tracker).execute(raw_key)

    assert result is not None
    assert result.api_key.id == api_key.id
    assert result.user.id == owner.id
    mock_uow.api_keys.find_by_hash.assert_awaited_once_with(ApiKeyCodec.hash_key(raw_key))
    usage_tracker.touch.assert_called_once_with(api_key.id)


@pytest.mark.asyncio
async def test_validate_unknown_key(mock_uow, usage_tracker):
    mock_uow.api_keys.find_by_hash = AsyncMock(return_value=None)

    result = await ValidateApiKeyUseCase(mock_uow, usage_tracker).execute(
        ApiKeyCodec().generate().raw_key
    )

    assert result is None
    usage_tracker.touch.assert_not_called()


@pytest.mark.asyncio
async def test_validate_digest_mismatch(mock_uow, usage_tracker, issued):
    """Test a store returning a row with another digest is not trusted"""
    raw_key, api_key, owner = issued
    api_key.key_hash = ApiKeyCodec.hash_key(raw_key + "0")
    _mock_store(mock_uow, api_key, owner)

    result = await ValidateApiKeyUseCase(mock_uow, usage_tracker).execute(raw_key)

    assert result is None


@pytest.mark.asyncio
async def test_validate_revoked_key(mock_uow, usage_tracker, issued):
    raw_key, api_key, owner = issued
    api_key.status = ApiKeyStatus.revoked
    _mock_store(mock_uow, api_key, owner)

    assert await ValidateApiKeyUseCase(mock_uow, usage_tracker).execute(raw_key) is None
    usage_tracker.touch.assert_not_called()


@pytest.mark.asyncio
async def test_validate_expired_key(mock_uow, usage_tracker, issued):
    raw_key, api_key, owner = issued
    api_key.expires_at = utcnow() - timedelta(seconds=1)
    _mock_store(mock_uow, api_key, owner)

    assert await ValidateApiKeyUseCase(mock_uow, usage_tracker).execute(raw_key) is None


@pytest.mark.asyncio
async def test_validate_not_yet_expired_key(mock_uow, usage_tracker, issued):
    raw_key, api_key, owner = issued
    api_key.expires_at = utcnow() + timedelta(hours=1)
    _mock_store(mock_uow, api_key, owner)

    assert await ValidateApiKeyUseCase(mock_uow, usage_tracker).execute(raw_key) is not None


@pytest.mark.asyncio
async def test_validate_ip_allowlist(mock_uow, usage_tracker, issued):
    raw_key, api_key, owner = issued
    api_key.allowed_ips = ["203.0.113.7"]
    _mock_store(mock_uow, api_key, owner)
    use_case = ValidateApiKeyUseCase(mock_uow, usage_tracker)

    assert await use_case.execute(raw_key, client_ip="203.0.113.7") is not None
    assert await use_case.execute(raw_key, client_ip="203.0.113.8") is None
    assert await use_case.execute(raw_key, client_ip=None) is None


@pytest.mark.asyncio
async def test_validate_suspended_owner(mock_uow, usage_tracker, issued):
    raw_key, api_key, owner = issued
    owner.status = UserStatus.suspended
    _mock_store(mock_uow, api_key, owner)

    assert await ValidateApiKeyUseCase(mock_uow, usage_tracker).execute(raw_key) is None
    usage_tracker.touch.assert_not_called()


@pytest.mark.asyncio
async def test_validate_missing_owner(mock_uow, usage_tracker, issued):
    raw_key, api_key, _ = issued
    _mock_store(mock_uow, api_key, None)

    assert await ValidateApiKeyUseCase(mock_uow, usage_tracker).execute(raw_key) is None


def test_ip_allowed_empty_list_accepts_anything():
    assert ip_allowed([], None) is True
    assert ip_allowed([], "198.51.100.1") is True


def test_ip_allowed_normalises_addresses():
    assert ip_allowed(["2001:db8::1"], "2001:0db8:0000:0000:0000:0000:0000:0001") is True
    assert ip_allowed([" 10.0.0.1 "], "10.0.0.1") is True


def test_ip_allowed_rejects_garbage():
    assert ip_allowed(["10.0.0.1"], "not-an-ip") is False
    assert ip_allowed(["not-an-ip"], "10.0.0.1") is False
    assert ip_allowed(["10.0.0.1"], "") is False
