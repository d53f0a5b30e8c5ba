from __future__ import annotations

import json
import logging
import time
from typing import Optional, Protocol

import httpx
from pydantic import ValidationError

from turnstile_gate.config import DEFAULT_VERIFY_URL, Settings
from turnstile_gate.observability.metrics import record_verification
from turnstile_gate.verifier.errors import (
    DecodeError,
    SerializationError,
    TransportError,
    TurnstileError,
    classify_error_codes,
)
from turnstile_gate.verifier.models import VerificationRequest, VerificationResponse

log = logging.getLogger(__name__)


class Verifier(Protocol):
    async def verify(self, req: VerificationRequest) -> VerificationResponse: ...


class TurnstileClient:
    """
    Calls the Turnstile siteverify endpoint once per verify().

    - No retries. No timeout unless one is configured; cancelling the
      awaiting task aborts the in-flight request.
    - On success=false the classified TurnstileError is raised with the
      decoded response attached as ``err.response``.
    - ``transport`` is injectable for tests (httpx.MockTransport).
    """

    def __init__(
        self,
        secret: str,
        url: str = DEFAULT_VERIFY_URL,
        *,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._secret = secret
        self.url = url
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(
        cls, settings: Settings, *, transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> "TurnstileClient":
        if not settings.secret_key:
            raise ValueError("TURNSTILE_SECRET_KEY is not configured")
        return cls(
            settings.secret_key,
            settings.verify_url,
            timeout=settings.timeout_s,
            transport=transport,
        )

    def __repr__(self) -> str:
        # The secret stays out of reprs and tracebacks.
        return f"TurnstileClient(url={self.url!r})"

    async def verify(self, req: VerificationRequest) -> VerificationResponse:
        start = time.perf_counter()
        try:
            resp = await self._verify(req)
        except TurnstileError as exc:
            record_verification(exc.kind, time.perf_counter() - start)
            raise
        record_verification("success", time.perf_counter() - start)
        return resp

    async def _verify(self, req: VerificationRequest) -> VerificationResponse:
        try:
            body = json.dumps(req.to_wire(self._secret))
        except (TypeError, ValueError) as exc:
            raise SerializationError(
                "can not serialize verification request to JSON"
            ) from exc

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                http_resp = await client.post(
                    self.url,
                    content=body,
                    headers={"Content-Type": "application/json"},
                )
        except httpx.HTTPError as exc:
            log.warning("turnstile siteverify request failed: %s", exc)
            raise TransportError(f"error sending siteverify request: {exc}") from exc

        try:
            payload = http_resp.json()
            resp = VerificationResponse.model_validate(payload)
        except (ValueError, ValidationError) as exc:
            raise DecodeError(
                f"can not decode siteverify response (HTTP {http_resp.status_code})",
                status_code=http_resp.status_code,
            ) from exc

        if not resp.success:
            raise classify_error_codes(resp.error_codes, resp)
        return resp


__all__ = ["TurnstileClient", "Verifier"]
