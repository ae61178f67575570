"""
Request ID Middleware

Tags every request with an id for tracing and audit correlation.
"""

from typing import Callable
from uuid import uuid4

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from src.api.utils.request_context import REQUEST_ID_HEADER


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Reuses an incoming x-request-id or generates one, and echoes it back"""

    async def dispatch(self, request: Request, call_next: Callable):
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid4())
        request.state.request_id = request_id

        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
