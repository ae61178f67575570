import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from .error import ClientError, ServerError
from src.api.utils.rate_limit import ApiKeyRateLimiter
from src.api.utils.request_id import RequestIdMiddleware
from src.app.jobs.audit_retention_job import AuditRetentionJob
from src.app.services.api_key_codec import ApiKeyCodec
from src.app.services.app_password_cipher import AppPasswordCipher
from src.app.services.audit_buffer import AuditBuffer
from src.app.services.key_usage_tracker import KeyUsageTracker
from src.app.services.unit_of_work import UnitOfWorkScope

logger = logging.getLogger(__name__)


async def handle_client_error(request: Request, exc: ClientError):
    error_dict = {"code": exc.base_error.code, "message": exc.base_error.message}
    logger.warning(f"Client error: {error_dict}")
    return JSONResponse(
        status_code=exc.status_code, content={"error": error_dict}, headers=exc.headers
    )


async def handle_server_error(request: Request, exc: ServerError):
    error_dict = {"code": exc.base_error.code, "message": "Internal server error"}
    logger.error(f"Server error: {exc.base_error.code}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": error_dict}
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Starts the retention job and drains the audit buffer on shutdown"""
    retention_job: AuditRetentionJob = app.state.audit_retention_job
    if app.state.retention_job_enabled:
        retention_job.start()

    yield

    logger.info("Shutting down, draining background work...")
    await retention_job.stop()

    grace = app.state.shutdown_grace_seconds
    try:
        await asyncio.wait_for(app.state.key_usage_tracker.drain(), timeout=grace)
        await asyncio.wait_for(app.state.audit_buffer.shutdown(), timeout=grace)
    except asyncio.TimeoutError:
        logger.error(
            f"Audit buffer not drained within {grace}s, "
            f"dropping {app.state.audit_buffer.pending_count} entries"
        )


def create_app(ApplicationConfig, uow_scope: Optional[UnitOfWorkScope] = None) -> FastAPI:
    if uow_scope is None:
        from src.depends import unit_of_work_scope

        uow_scope = unit_of_work_scope

    app = FastAPI(title="MailDoor API", version="0.1.0", lifespan=lifespan)

    # Long-lived services, built here so they exist without the lifespan running
    app.state.uow_scope = uow_scope
    app.state.audit_buffer = AuditBuffer(
        uow_scope,
        flush_interval=ApplicationConfig.AUDIT_FLUSH_INTERVAL_SECONDS,
        max_batch_size=ApplicationConfig.AUDIT_BUFFER_MAX_SIZE,
    )
    app.state.key_usage_tracker = KeyUsageTracker(uow_scope)
    app.state.rate_limiter = ApiKeyRateLimiter(
        max_requests=ApplicationConfig.API_KEY_RATE_LIMIT_MAX,
        window_seconds=ApplicationConfig.API_KEY_RATE_LIMIT_WINDOW_SECONDS,
    )
    app.state.api_key_codec = ApiKeyCodec()
    app.state.app_password_cipher = AppPasswordCipher(ApplicationConfig.APP_PASSWORD_SECRET)
    app.state.max_active_keys = ApplicationConfig.MAX_ACTIVE_KEYS_PER_USER
    app.state.trust_proxy = ApplicationConfig.TRUSTED_PROXY
    app.state.audit_retention_job = AuditRetentionJob(
        uow_scope,
        interval_seconds=ApplicationConfig.AUDIT_PURGE_INTERVAL_SECONDS,
        retention_days=ApplicationConfig.AUDIT_RETENTION_DAYS,
    )
    app.state.retention_job_enabled = ApplicationConfig.AUDIT_RETENTION_JOB_ENABLED
    app.state.shutdown_grace_seconds = ApplicationConfig.SHUTDOWN_GRACE_SECONDS

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ApplicationConfig.CORS_ORIGINS,
        allow_credentials=ApplicationConfig.CORS_ALLOW_CREDENTIALS,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[
            "x-request-id",
            "X-RateLimit-Limit",
            "X-RateLimit-Remaining",
            "X-RateLimit-Reset",
        ],
    )
    app.add_middleware(RequestIdMiddleware)

    from src.api.routes import api_keys, audit, health_check, sender, user

    app.include_router(health_check.router, tags=["Health"])
    app.include_router(user.router, tags=["User"])
    app.include_router(api_keys.router, tags=["API Keys"])
    app.include_router(audit.router, tags=["Audit"])
    app.include_router(sender.router, tags=["Sender"])

    app.add_exception_handler(ClientError, handle_client_error)
    app.add_exception_handler(ServerError, handle_server_error)

    return app
