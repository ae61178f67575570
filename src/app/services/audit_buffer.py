"""
Audit Buffer

Fire-and-forget audit logging. Entries are queued in memory and written to
the audit store in batches, off the request path.
"""

import asyncio
import logging
import threading
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, field_validator

from src.app.services.unit_of_work import UnitOfWorkScope
from src.domain.entities import (
    AuditAction,
    AuditEvent,
    AuditOutcome,
    AuditSeverity,
)

logger = logging.getLogger(__name__)

FLUSH_INTERVAL_SECONDS = 2.0
MAX_BATCH_SIZE = 50


class RequestContext(BaseModel):
    """Request metadata attached to audit entries"""

    ip: Optional[str] = None
    user_agent: Optional[str] = None
    device_info: Optional[str] = None
    headers: Optional[Dict[str, str]] = None
    request_id: Optional[str] = None


class AuditEntry(BaseModel):
    """Validated audit input. action must be a canonical AuditAction."""

    action: AuditAction
    actor_id: Optional[UUID] = None
    resource: Optional[str] = None
    resource_id: Optional[str] = None
    severity: AuditSeverity = AuditSeverity.info
    outcome: Optional[AuditOutcome] = None
    error_message: Optional[str] = None
    duration_ms: Optional[int] = None
    metadata: Optional[Dict[str, Any]] = None

    ip: Optional[str] = None
    user_agent: Optional[str] = None
    device_info: Optional[str] = None
    headers: Optional[Dict[str, str]] = None
    request_id: Optional[str] = None

    @field_validator("resource_id", mode="before")
    @classmethod
    def _stringify_resource_id(cls, value):
        return None if value is None else str(value)

    def to_event(self) -> AuditEvent:
        return AuditEvent(
            actor_id=self.actor_id,
            action=self.action,
            category=self.action.category,
            severity=self.severity,
            resource=self.resource,
            resource_id=self.resource_id,
            ip=self.ip,
            user_agent=self.user_agent[:1000] if self.user_agent else None,
            device_info=self.device_info[:500] if self.device_info else None,
            headers=self.headers,
            request_id=self.request_id,
            outcome=self.outcome,
            error_message=self.error_message[:2000] if self.error_message else None,
            duration_ms=self.duration_ms,
            event_metadata=self.metadata,
        )


class AuditBuffer:
    """
    Write-coalescing audit queue.

    Business Rules:
    - log() never raises and never waits on I/O
    - A flush runs flush_interval seconds after the first unflushed entry, or
      as soon as max_batch_size entries are queued, whichever comes first
    - At most one flush is scheduled or running; entries that arrive while a
      flush runs go into the next batch
    - A failed batch is logged and dropped, never retried
    - shutdown() must be awaited by the host before exit
    """

    def __init__(
        self,
        uow_scope: UnitOfWorkScope,
        flush_interval: float = FLUSH_INTERVAL_SECONDS,
        max_batch_size: int = MAX_BATCH_SIZE,
    ):
        self._uow_scope = uow_scope
        self.flush_interval = flush_interval
        self.max_batch_size = max_batch_size

        # Guarded by _lock; swapped wholesale on flush
        self._buffer: List[AuditEvent] = []
        self._lock = threading.Lock()

        # Only touched from the event loop thread
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._timer: Optional[asyncio.TimerHandle] = None
        self._flush_task: Optional[asyncio.Task] = None

    @property
    def pending_count(self) -> int:
        with self._lock:
            return len(self._buffer)

    def log(self, action: AuditAction, **fields: Any) -> None:
        """Queue an audit entry. Returns immediately."""
        try:
            event = AuditEntry(action=action, **fields).to_event()
            with self._lock:
                self._buffer.append(event)
            self._request_flush()
        except Exception as exc:
            logger.error(f"Audit log enqueue failed: action={action} error={exc}")

    def log_from_context(
        self, context: Optional[RequestContext], action: AuditAction, **fields: Any
    ) -> None:
        """Queue an entry, filling ip/user agent/headers/request id from context"""
        try:
            merged = context.model_dump(exclude_none=True) if context else {}
            merged.update(fields)
        except Exception as exc:
            logger.error(f"Audit context merge failed: action={action} error={exc}")
            merged = fields
        self.log(action, **merged)

    async def flush(self) -> None:
        """Write everything queued so far and wait until it is done"""
        self._loop = asyncio.get_running_loop()
        while True:
            task = self._flush_task
            if task is not None and not task.done():
                await task
                continue
            if self.pending_count == 0:
                return
            self._start_flush()

    async def shutdown(self) -> None:
        """Drain the queue. The caller bounds how long this may take."""
        pending = self.pending_count
        await self.flush()
        logger.info(f"Audit buffer drained on shutdown ({pending} pending entries)")

    # Scheduling, runs on the event loop thread

    def _request_flush(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        if loop is None:
            # Producer outside the loop thread hands scheduling over to the loop
            if self._loop is None or self._loop.is_closed():
                logger.warning("Audit entry queued with no event loop, it waits for the next flush")
                return
            self._loop.call_soon_threadsafe(self._schedule_flush)
            return

        self._loop = loop
        self._schedule_flush()

    def _schedule_flush(self) -> None:
        if self._flush_task is not None and not self._flush_task.done():
            # Rescheduled from _on_flush_done
            return

        pending = self.pending_count
        if pending == 0:
            return
        if pending >= self.max_batch_size:
            self._start_flush()
        elif self._timer is None:
            self._timer = self._loop.call_later(self.flush_interval, self._start_flush)

    def _start_flush(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self._flush_task is not None and not self._flush_task.done():
            return
        self._flush_task = self._loop.create_task(self._flush())
        self._flush_task.add_done_callback(self._on_flush_done)

    def _on_flush_done(self, task: asyncio.Task) -> None:
        if self._flush_task is task:
            self._flush_task = None
        self._schedule_flush()

    async def _flush(self) -> None:
        with self._lock:
            batch, self._buffer = self._buffer, []
        if not batch:
            return

        try:
            async with self._uow_scope() as uow:
                async with uow:
                    if len(batch) == 1:
                        await uow.audit_events.create(batch[0])
                    else:
                        await uow.audit_events.insert_many(batch)
                    await uow.commit()
        except Exception as exc:
            logger.error(
                f"Audit bulk-write failed: dropped_count={len(batch)} "
                f"actions={[event.action.value for event in batch]} error={exc}"
            )
