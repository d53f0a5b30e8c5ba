# tests/conftest.py
from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from turnstile_gate.config import Settings, reset_settings  # noqa: E402
from turnstile_gate.verifier.errors import TurnstileError, classify_error_codes  # noqa: E402
from turnstile_gate.verifier.models import (  # noqa: E402
    VerificationRequest,
    VerificationResponse,
)

TEST_SECRET = "1x0000000000000000000000000000000AA"


class RecordingVerifier:
    """Verifier stub: records every request and replays a canned outcome."""

    def __init__(
        self,
        success: bool = True,
        error_codes: tuple[str, ...] = (),
        exc: Optional[Exception] = None,
    ) -> None:
        self.calls: List[VerificationRequest] = []
        self._success = success
        self._error_codes = error_codes
        self._exc = exc

    async def verify(self, req: VerificationRequest) -> VerificationResponse:
        self.calls.append(req)
        if self._exc is not None:
            raise self._exc
        resp = VerificationResponse(
            success=self._success,
            hostname="example.com",
            error_codes=self._error_codes,
        )
        if not resp.success:
            err: TurnstileError = classify_error_codes(resp.error_codes, resp)
            raise err
        return resp


def json_transport(
    payload: Any,
    status_code: int = 200,
    seen: Optional[List[httpx.Request]] = None,
) -> httpx.MockTransport:
    """MockTransport answering every request with ``payload`` as JSON."""

    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return httpx.Response(status_code, json=payload)

    return httpx.MockTransport(handler)


def request_body(request: httpx.Request) -> Dict[str, Any]:
    return json.loads(request.content.decode("utf-8"))


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch):
    for name in (
        "TURNSTILE_SECRET_KEY",
        "TURNSTILE_VERIFY_URL",
        "TURNSTILE_TOKEN_HEADER",
        "TURNSTILE_REMOTE_IP_HEADER",
        "TURNSTILE_TRUST_REMOTE_IP_HEADER",
        "TURNSTILE_TIMEOUT_S",
        "TURNSTILE_SKIP_PATHS",
    ):
        monkeypatch.delenv(name, raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture()
def settings() -> Settings:
    return Settings(secret_key=TEST_SECRET)


@pytest.fixture()
def make_verifier() -> Callable[..., RecordingVerifier]:
    return RecordingVerifier


@pytest.fixture()
def mock_transport() -> Callable[..., httpx.MockTransport]:
    return json_transport


@pytest.fixture()
def read_body() -> Callable[[httpx.Request], Dict[str, Any]]:
    return request_body


@pytest.hookimpl(tryfirst=True)
def pytest_pyfunc_call(pyfuncitem: pytest.Function) -> bool | None:
    """Minimal asyncio support without requiring pytest-asyncio."""

    test_func = pyfuncitem.obj
    if asyncio.iscoroutinefunction(test_func):
        loop = asyncio.new_event_loop()
        try:
            asyncio.set_event_loop(loop)
            call_kwargs = {
                name: pyfuncitem.funcargs[name] for name in pyfuncitem._fixtureinfo.argnames
            }
            loop.run_until_complete(test_func(**call_kwargs))
        finally:
            asyncio.set_event_loop(None)
            loop.close()
        return True
    return None
