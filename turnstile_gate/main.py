"""
Example application guarded by the Turnstile gate.

    TURNSTILE_SECRET_KEY=... uvicorn turnstile_gate.main:create_app --factory

or ``turnstile-gate-example`` (serves on :5432). ``GET /`` answers 204 once
the token in the ``cf-turnstile-response`` header verifies; ``/healthz`` and
``/metrics`` bypass the gate.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from turnstile_gate.config import Settings, get_settings
from turnstile_gate.middleware.extractors import path_skipper
from turnstile_gate.middleware.turnstile import TurnstileConfig, TurnstileMiddleware
from turnstile_gate.telemetry.errors import register_error_handlers
from turnstile_gate.telemetry.logging import configure_root_logging
from turnstile_gate.verifier.client import Verifier

log = logging.getLogger(__name__)

# Cloudflare's published test secret that always fails verification.
EXAMPLE_INVALID_SECRET = "2x0000000000000000000000000000000AA"

_UNGATED_PATHS = ("/healthz", "/metrics")


def create_app(
    settings: Optional[Settings] = None,
    verifier: Optional[Verifier] = None,
) -> FastAPI:
    s = settings or get_settings()
    configure_root_logging(s.log_level)

    app = FastAPI(title="turnstile-gate example")

    @app.get("/", status_code=204)
    async def index() -> Response:
        return Response(status_code=204)

    @app.get("/healthz")
    async def healthz() -> dict:
        return {"ok": True}

    @app.get("/metrics")
    async def metrics() -> Response:
        return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

    register_error_handlers(app)
    app.add_middleware(
        TurnstileMiddleware,
        secret=s.secret_key or EXAMPLE_INVALID_SECRET,
        config=TurnstileConfig(
            skipper=path_skipper(_UNGATED_PATHS + tuple(s.skip_path_list)),
            verifier=verifier,
        ),
        settings=s,
    )
    return app


def main() -> None:
    import uvicorn

    if not get_settings().secret_key:
        log.warning("TURNSTILE_SECRET_KEY not set; using the always-failing test secret")
    uvicorn.run(create_app(), host="0.0.0.0", port=5432)  # nosec B104 - example server


if __name__ == "__main__":
    main()
