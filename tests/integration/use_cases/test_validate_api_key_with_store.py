import pytest
import pytest_asyncio
from unittest.mock import MagicMock

from src.adapter.repositories.api_key_repository import ApiKeyRepository
from src.app.services.api_key_codec import ApiKeyCodec
from src.app.services.key_usage_tracker import KeyUsageTracker
from src.app.use_cases.api_keys import ValidateApiKeyUseCase
from src.domain.entities import ApiKey


@pytest_asyncio.fixture
async def stored_key(db_session, make_user):
    user = await make_user(email="validate@example.com")
    generated = ApiKeyCodec().generate()
    api_key = await ApiKeyRepository(db_session).create(
        ApiKey(
            user_id=user.id,
            name="deploy",
            key_hash=generated.key_hash,
            prefix=generated.prefix,
            suffix=generated.suffix,
        )
    )
    await db_session.commit()
    return generated.raw_key, api_key, user


@pytest.mark.asyncio
async def test_validated_key_is_readable_after_unit_of_work_closes(uow_scope, stored_key):
    raw_key, api_key, user = stored_key
    usage_tracker = MagicMock(spec=KeyUsageTracker)

    async with uow_scope() as uow:
        validated = await ValidateApiKeyUseCase(uow, usage_tracker).execute(raw_key)

        # Read outside the use case's transaction, which has been rolled back
        assert validated.user.email == "validate@example.com"

    assert validated.api_key.id == api_key.id
    assert validated.api_key.prefix == api_key.prefix
    assert validated.api_key.name == "deploy"
    assert validated.user.id == user.id
    usage_tracker.touch.assert_called_once_with(api_key.id)


@pytest.mark.asyncio
async def test_unknown_key_against_real_store(uow_scope, stored_key):
    usage_tracker = MagicMock(spec=KeyUsageTracker)

    async with uow_scope() as uow:
        validated = await ValidateApiKeyUseCase(uow, usage_tracker).execute(
            ApiKeyCodec().generate().raw_key
        )

    assert validated is None
    usage_tracker.touch.assert_not_called()
