from turnstile_gate.verifier.client import TurnstileClient, Verifier
from turnstile_gate.verifier.errors import (
    DecodeError,
    InvalidRequestError,
    SerializationError,
    TransportError,
    TurnstileError,
    TurnstileServerError,
    UnhandledErrorCodesError,
    ValidationFailedError,
    classify_error_codes,
)
from turnstile_gate.verifier.models import ErrorCode, VerificationRequest, VerificationResponse

__all__ = [
    "DecodeError",
    "ErrorCode",
    "InvalidRequestError",
    "SerializationError",
    "TransportError",
    "TurnstileClient",
    "TurnstileError",
    "TurnstileServerError",
    "UnhandledErrorCodesError",
    "ValidationFailedError",
    "VerificationRequest",
    "VerificationResponse",
    "Verifier",
    "classify_error_codes",
]
