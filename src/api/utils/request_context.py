"""
Request Context

Extracts the request metadata that audit entries carry.
"""

import re
from typing import Dict, Optional

from fastapi import Request

from src.app.services.audit_buffer import RequestContext

REQUEST_ID_HEADER = "x-request-id"

# Never authorization, cookie or x-api-key
SAFE_HEADERS = (
    "accept",
    "accept-language",
    "content-type",
    "origin",
    "referer",
    "x-forwarded-for",
    "x-forwarded-proto",
    "x-request-id",
    "x-real-ip",
    "sec-ch-ua",
    "sec-ch-ua-platform",
    "sec-ch-ua-mobile",
)

_OS_PATTERNS = (
    ("Android", re.compile(r"Android", re.I)),
    ("iOS", re.compile(r"iPhone|iPad|iPod", re.I)),
    ("Windows", re.compile(r"Windows", re.I)),
    ("macOS", re.compile(r"Mac OS X|Macintosh", re.I)),
    ("Linux", re.compile(r"Linux", re.I)),
)
_CLIENT_PATTERNS = (
    ("Edge", re.compile(r"Edg/", re.I)),
    ("Chrome", re.compile(r"Chrome/", re.I)),
    ("Firefox", re.compile(r"Firefox/", re.I)),
    ("Safari", re.compile(r"Safari/", re.I)),
    ("curl", re.compile(r"^curl/", re.I)),
    ("python", re.compile(r"python-requests|httpx|aiohttp", re.I)),
    ("node", re.compile(r"node-fetch|axios|undici", re.I)),
)


def _trusts_proxy(request: Request) -> bool:
    app = request.scope.get("app")
    return bool(app is not None and getattr(app.state, "trust_proxy", False))


def get_client_ip(request: Request, trust_proxy: Optional[bool] = None) -> Optional[str]:
    """
    Client IP used for audit entries and allowlist checks.

    The first x-forwarded-for hop is honoured only when trust_proxy is set,
    which defaults to the app.state.trust_proxy flag.
    """
    if trust_proxy is None:
        trust_proxy = _trusts_proxy(request)

    if trust_proxy:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            first = forwarded.split(",")[0].strip()
            if first:
                return first
    return request.client.host if request.client else None


def parse_device(user_agent: Optional[str]) -> Optional[str]:
    """Coarse "<client> on <os>" label, None when nothing is recognised"""
    if not user_agent:
        return None

    client = next((name for name, rx in _CLIENT_PATTERNS if rx.search(user_agent)), None)
    os_name = next((name for name, rx in _OS_PATTERNS if rx.search(user_agent)), None)
    if client and os_name:
        return f"{client} on {os_name}"
    return client or os_name


def pick_safe_headers(request: Request) -> Dict[str, str]:
    return {name: request.headers[name] for name in SAFE_HEADERS if name in request.headers}


def get_request_id(request: Request) -> Optional[str]:
    request_id = getattr(request.state, "request_id", None)
    return request_id or request.headers.get(REQUEST_ID_HEADER)


def extract_request_context(request: Request) -> RequestContext:
    user_agent = request.headers.get("user-agent")
    return RequestContext(
        ip=get_client_ip(request),
        user_agent=user_agent,
        device_info=parse_device(user_agent),
        headers=pick_safe_headers(request) or None,
        request_id=get_request_id(request),
    )
