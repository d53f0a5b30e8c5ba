"""
Request field extractors used by the Turnstile gate.

Each extractor maps a request to a string or raises. Raising a Starlette
HTTPException (InputExtractionError by default) rejects the request with
that status; any other exception propagates to the app's error handling.
Extractors keep no state between calls.
"""

from __future__ import annotations

import uuid
from typing import Callable, Iterable

from starlette.exceptions import HTTPException
from starlette.requests import Request

from turnstile_gate.config import (
    DEFAULT_REMOTE_IP_HEADER,
    DEFAULT_TOKEN_HEADER,
    REQUEST_ID_HEADER,
)

Extractor = Callable[[Request], str]
Skipper = Callable[[Request], bool]
IdGenerator = Callable[[], str]


class InputExtractionError(HTTPException):
    """A required inbound field is missing or malformed (400)."""

    def __init__(self, detail: str, status_code: int = 400) -> None:
        super().__init__(status_code=status_code, detail=detail)


# ------------------------------- skippers ------------------------------------


def default_skipper(request: Request) -> bool:
    return False


def path_skipper(paths: Iterable[str]) -> Skipper:
    """Skip exact paths, or any path under a trailing-'*' prefix."""
    exact = set()
    prefixes = []
    for p in paths:
        if p.endswith("*"):
            prefixes.append(p[:-1])
        else:
            exact.add(p)
    frozen_prefixes = tuple(prefixes)

    def _skip(request: Request) -> bool:
        path = request.url.path
        return path in exact or path.startswith(frozen_prefixes)

    return _skip


# ------------------------------- token ---------------------------------------


def request_header_token_extractor(header_name: str = DEFAULT_TOKEN_HEADER) -> Extractor:
    def _extract(request: Request) -> str:
        val = request.headers.get(header_name, "")
        if not val:
            raise InputExtractionError(f"expected turnstile response in header {header_name}")
        return val

    return _extract


# ------------------------------- remote ip -----------------------------------


def framework_remote_ip_extractor(request: Request) -> str:
    """Best-effort client IP: X-Forwarded-For, X-Real-IP, then the peer."""
    xff = request.headers.get("x-forwarded-for")
    if xff:
        first = xff.split(",")[0].strip()
        if first:
            return first
    real_ip = (request.headers.get("x-real-ip") or "").strip()
    if real_ip:
        return real_ip
    return request.client.host if request.client else ""


def request_header_remote_ip_extractor(header_name: str = DEFAULT_REMOTE_IP_HEADER) -> Extractor:
    """Read the client IP from a header set by a trusted proxy (Cloudflare by default)."""

    def _extract(request: Request) -> str:
        val = (request.headers.get(header_name) or "").strip()
        if not val:
            raise InputExtractionError(f"expected remote IP in header {header_name}")
        return val

    return _extract


# ------------------------------- idempotency key -----------------------------


def new_request_id() -> str:
    return str(uuid.uuid4())


def request_id_idempotency_key_extractor(generator: IdGenerator = new_request_id) -> Extractor:
    def _extract(request: Request) -> str:
        rid = (request.headers.get(REQUEST_ID_HEADER) or "").strip()
        return rid or generator()

    return _extract


__all__ = [
    "Extractor",
    "IdGenerator",
    "InputExtractionError",
    "Skipper",
    "default_skipper",
    "framework_remote_ip_extractor",
    "new_request_id",
    "path_skipper",
    "request_header_remote_ip_extractor",
    "request_header_token_extractor",
    "request_id_idempotency_key_extractor",
]
