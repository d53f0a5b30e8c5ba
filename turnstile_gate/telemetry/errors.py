"""JSON error responses with stable codes for apps using the Turnstile gate."""

from __future__ import annotations

import logging
from typing import Optional
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from turnstile_gate.config import REQUEST_ID_HEADER
from turnstile_gate.verifier.errors import TurnstileError

log = logging.getLogger(__name__)

_STATUS_TO_CODE = {
    400: "bad_request",
    401: "unauthorized",
    403: "forbidden",
    404: "not_found",
    405: "method_not_allowed",
    422: "validation_error",
    429: "rate_limited",
}


def _json_error(
    request: Request,
    *,
    detail: str,
    status: int,
    code: Optional[str] = None,
) -> JSONResponse:
    rid = request.headers.get(REQUEST_ID_HEADER) or str(uuid4())
    body = {
        "detail": detail,
        "code": code or _STATUS_TO_CODE.get(status, "error"),
        "request_id": rid,
    }
    resp = JSONResponse(status_code=status, content=body)
    resp.headers[REQUEST_ID_HEADER] = rid
    return resp


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def http_exc_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        detail = exc.detail if isinstance(exc.detail, str) else "HTTP error"
        return _json_error(request, detail=detail, status=exc.status_code)

    @app.exception_handler(Exception)
    async def unhandled_exc_handler(request: Request, exc: Exception) -> JSONResponse:
        # Verifier errors that reach here are deployment or upstream problems;
        # the response names the kind but never the remote error codes.
        if isinstance(exc, TurnstileError):
            log.error("turnstile verification error: %s", exc, extra={"kind": exc.kind})
            return _json_error(
                request,
                detail="Turnstile verification unavailable",
                status=500,
                code=exc.kind,
            )
        return _json_error(request, detail="Internal server error", status=500, code="internal_error")


__all__ = ["register_error_handlers"]
