"""
Cloudflare Turnstile verification for Starlette/FastAPI apps.

    from turnstile_gate import TurnstileMiddleware
    app.add_middleware(TurnstileMiddleware, secret="...")

The example app lives in turnstile_gate.main; it is not imported here.
"""

from turnstile_gate.middleware import (
    InputExtractionError,
    TurnstileConfig,
    TurnstileGate,
    TurnstileMiddleware,
)
from turnstile_gate.verifier import (
    InvalidRequestError,
    TurnstileClient,
    TurnstileError,
    ValidationFailedError,
    VerificationRequest,
    VerificationResponse,
)

__all__ = [
    "InputExtractionError",
    "InvalidRequestError",
    "TurnstileClient",
    "TurnstileConfig",
    "TurnstileError",
    "TurnstileGate",
    "TurnstileMiddleware",
    "ValidationFailedError",
    "VerificationRequest",
    "VerificationResponse",
]
