"""
Turnstile gate: verifies a challenge token before a request reaches its handler.

Pipeline per request (first failure short-circuits):
  skip? -> token -> remote IP -> idempotency key -> siteverify -> forward

- A rejected token (ValidationFailedError) becomes a 400 with a fixed
  message; the error codes are not exposed.
- Extractor failures reject with the extractor's own HTTPException.
- Everything else (InvalidRequestError, transport/server errors) propagates
  unchanged so the app's error handling sees it.

Use TurnstileMiddleware to guard a whole app, or a TurnstileGate instance as
a FastAPI dependency to guard selected routes:

    gate = TurnstileGate(secret)
    @app.post("/signup", dependencies=[Depends(gate)])
"""

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from starlette.exceptions import HTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response
from starlette.types import ASGIApp

from turnstile_gate.config import VERIFICATION_FAILED_MESSAGE, Settings, get_settings
from turnstile_gate.middleware.extractors import (
    Extractor,
    Skipper,
    default_skipper,
    framework_remote_ip_extractor,
    path_skipper,
    request_header_remote_ip_extractor,
    request_header_token_extractor,
    request_id_idempotency_key_extractor,
)
from turnstile_gate.observability.metrics import record_gate_decision
from turnstile_gate.verifier.client import TurnstileClient, Verifier
from turnstile_gate.verifier.errors import InvalidRequestError, ValidationFailedError
from turnstile_gate.verifier.models import VerificationRequest, VerificationResponse

log = logging.getLogger(__name__)


@dataclass
class TurnstileConfig:
    """Optional overrides; any field left as None gets its default."""

    skipper: Optional[Skipper] = None
    verifier: Optional[Verifier] = None
    token_extractor: Optional[Extractor] = None
    remote_ip_extractor: Optional[Extractor] = None
    idempotency_key_extractor: Optional[Extractor] = None


class TurnstileGate:
    def __init__(
        self,
        secret: Optional[str] = None,
        config: Optional[TurnstileConfig] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        cfg = config or TurnstileConfig()
        s = settings or get_settings()

        if cfg.skipper is not None:
            self.skipper: Skipper = cfg.skipper
        elif s.skip_path_list:
            self.skipper = path_skipper(s.skip_path_list)
        else:
            self.skipper = default_skipper

        if cfg.verifier is not None:
            self.verifier: Verifier = cfg.verifier
        else:
            secret = secret or s.secret_key
            if not secret:
                raise ValueError("a Turnstile secret is required when no verifier is configured")
            self.verifier = TurnstileClient(secret, s.verify_url, timeout=s.timeout_s)

        self.token_extractor: Extractor = cfg.token_extractor or request_header_token_extractor(
            s.token_header
        )

        if cfg.remote_ip_extractor is not None:
            self.remote_ip_extractor: Extractor = cfg.remote_ip_extractor
        elif s.trust_remote_ip_header:
            self.remote_ip_extractor = request_header_remote_ip_extractor(s.remote_ip_header)
        else:
            self.remote_ip_extractor = framework_remote_ip_extractor

        self.idempotency_key_extractor: Extractor = (
            cfg.idempotency_key_extractor or request_id_idempotency_key_extractor()
        )

    async def check(self, request: Request) -> Optional[VerificationResponse]:
        """Return the siteverify response, or None when the request is skipped."""
        if self.skipper(request):
            record_gate_decision("skipped")
            return None

        try:
            token = self.token_extractor(request)
            remote_ip = self.remote_ip_extractor(request)
            idempotency_key = self.idempotency_key_extractor(request)
        except HTTPException as exc:
            record_gate_decision("rejected_input")
            log.info(
                "turnstile gate rejected request: %s",
                exc.detail,
                extra={"reason": "input", "path": request.url.path},
            )
            raise

        req = VerificationRequest(
            response=token,
            remote_ip=remote_ip,
            idempotency_key=idempotency_key,
        )

        try:
            resp = await self.verifier.verify(req)
        except ValidationFailedError as exc:
            record_gate_decision("rejected_validation")
            log.info(
                "turnstile token rejected",
                extra={
                    "reason": exc.kind,
                    "path": request.url.path,
                    "idempotency_key": idempotency_key,
                },
            )
            raise HTTPException(status_code=400, detail=VERIFICATION_FAILED_MESSAGE) from exc
        except InvalidRequestError as exc:
            record_gate_decision("error")
            log.warning(
                "turnstile rejected the verification call; check secret and widget config: %s",
                exc,
                extra={"reason": exc.kind, "idempotency_key": idempotency_key},
            )
            raise
        except Exception:
            record_gate_decision("error")
            raise

        record_gate_decision("passed")
        return resp

    # Used as Depends(gate): FastAPI reads this signature, so the module keeps
    # runtime annotations (no postponed evaluation).
    async def __call__(self, request: Request) -> Optional[VerificationResponse]:
        return await self.check(request)


class TurnstileMiddleware(BaseHTTPMiddleware):
    def __init__(
        self,
        app: ASGIApp,
        secret: Optional[str] = None,
        config: Optional[TurnstileConfig] = None,
        settings: Optional[Settings] = None,
        gate: Optional[TurnstileGate] = None,
    ) -> None:
        super().__init__(app)
        self.gate = gate or TurnstileGate(secret, config, settings)

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        try:
            await self.gate.check(request)
        except HTTPException as exc:
            return PlainTextResponse(
                str(exc.detail), status_code=exc.status_code, headers=exc.headers
            )
        return await call_next(request)


__all__ = ["TurnstileConfig", "TurnstileGate", "TurnstileMiddleware"]
