"""
Unit tests for audit read and retention use cases
"""

from datetime import datetime, timedelta

import pytest
from unittest.mock import AsyncMock
from uuid import uuid4

from src.app.jobs.audit_retention_job import AuditRetentionJob
from src.app.repositories.audit_event_repository import AuditEventFilter
from src.app.use_cases.audit import GetAuditEventsUseCase, PurgeAuditEventsUseCase
from src.domain.base import utcnow
from src.domain.entities import AuditAction, AuditCategory, AuditEvent, AuditOutcome


def _event(actor_id=None, action=AuditAction.key_used):
    return AuditEvent(
        id=uuid4(),
        actor_id=actor_id,
        action=action,
        category=action.category,
        outcome=AuditOutcome.success,
        event_metadata={"keyPrefix": "mk_live_"},
    )


@pytest.mark.asyncio
async def test_own_events_for_any_user(mock_uow):
    user_id = uuid4()
    mock_uow.audit_events.find_by_actor = AsyncMock(return_value=([_event(user_id)], 1))

    result = await GetAuditEventsUseCase(mock_uow).execute_for_actor(user_id, page=2, limit=10)

    assert result.is_ok()
    page = result.value
    assert page.total == 1
    assert page.items[0].actor_id == str(user_id)
    assert page.items[0].category == "key"
    assert page.items[0].metadata == {"keyPrefix": "mk_live_"}
    mock_uow.audit_events.find_by_actor.assert_awaited_once_with(user_id, offset=10, limit=10)


@pytest.mark.asyncio
@pytest.mark.parametrize("role", ["admin", "superadmin"])
async def test_admin_query_with_filters(mock_uow, role):
    mock_uow.audit_events.list = AsyncMock(return_value=([_event()], 1))
    filters = AuditEventFilter(category=AuditCategory.key, ip="10.0.0.1")

    result = await GetAuditEventsUseCase(mock_uow).execute(role, filters, page=1, limit=20)

    assert result.is_ok()
    mock_uow.audit_events.list.assert_awaited_once_with(filters, offset=0, limit=20)


@pytest.mark.asyncio
async def test_admin_query_insufficient_role(mock_uow):
    mock_uow.audit_events.list = AsyncMock()

    result = await GetAuditEventsUseCase(mock_uow).execute("user")

    assert result.is_err()
    assert result.error.code == "INSUFFICIENT_ROLE"
    mock_uow.audit_events.list.assert_not_called()


@pytest.mark.asyncio
async def test_request_trail(mock_uow):
    events = [_event(action=AuditAction.key_used), _event(action=AuditAction.email_send_success)]
    mock_uow.audit_events.find_by_request_id = AsyncMock(return_value=events)

    use_case = GetAuditEventsUseCase(mock_uow)

    result = await use_case.execute_for_request("admin", "req-42")
    assert [e.action for e in result.value] == ["key_used", "email_send_success"]

    denied = await use_case.execute_for_request("user", "req-42")
    assert denied.error.code == "INSUFFICIENT_ROLE"


@pytest.mark.asyncio
async def test_purge_uses_retention_cutoff(mock_uow):
    mock_uow.audit_events.purge_older_than = AsyncMock(return_value=4)
    now = datetime(2026, 6, 1, 12, 0, 0)

    result = await PurgeAuditEventsUseCase(mock_uow).execute(retention_days=90, now=now)

    assert result.value == 4
    mock_uow.audit_events.purge_older_than.assert_awaited_once_with(now - timedelta(days=90))
    mock_uow.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_retention_job_run_once(mock_uow_scope, mock_uow):
    mock_uow.audit_events.purge_older_than = AsyncMock(return_value=2)

    purged = await AuditRetentionJob(mock_uow_scope, retention_days=30).run_once()

    assert purged == 2
    cutoff = mock_uow.audit_events.purge_older_than.await_args.args[0]
    assert utcnow() - cutoff > timedelta(days=29)


@pytest.mark.asyncio
async def test_retention_job_swallows_errors(mock_uow_scope, mock_uow, caplog):
    mock_uow.audit_events.purge_older_than = AsyncMock(side_effect=RuntimeError("boom"))

    purged = await AuditRetentionJob(mock_uow_scope).run_once()

    assert purged == 0
    assert "audit_retention failed" in caplog.text


@pytest.mark.asyncio
async def test_retention_job_start_stop(mock_uow_scope, mock_uow):
    mock_uow.audit_events.purge_older_than = AsyncMock(return_value=0)
    job = AuditRetentionJob(mock_uow_scope, interval_seconds=60)

    job.start()
    await job.stop()

    assert job._task is None
