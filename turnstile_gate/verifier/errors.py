"""Error taxonomy for siteverify calls.

Every failure of ``TurnstileClient.verify`` is a ``TurnstileError``. Two
kinds carry meaning for callers:

- ``ValidationFailedError``: the end user's token was invalid, expired or
  already redeemed. Gates turn this into a generic 400.
- ``InvalidRequestError``: the call itself was wrong (bad secret, bad
  widget id, missing token). This is a deployment problem and is never
  masked.

All other kinds are opaque and propagate unchanged.
"""

from __future__ import annotations

from typing import Iterable, Optional, Sequence, Tuple

from turnstile_gate.verifier.models import ErrorCode, VerificationResponse

_VALIDATION_FAILED_CODES = (ErrorCode.INVALID_INPUT_RESPONSE, ErrorCode.TIMEOUT_OR_DUPLICATE)
_INVALID_REQUEST_CODES = (
    ErrorCode.BAD_REQUEST,
    ErrorCode.MISSING_INPUT_SECRET,
    ErrorCode.INVALID_INPUT_SECRET,
    ErrorCode.INVALID_PARSED_SECRET,
    ErrorCode.INVALID_WIDGET_ID,
    ErrorCode.MISSING_INPUT_RESPONSE,
)


class TurnstileError(Exception):
    kind = "error"

    def __init__(
        self,
        message: str,
        *,
        error_codes: Iterable[str] = (),
        response: Optional[VerificationResponse] = None,
    ) -> None:
        super().__init__(message)
        self.error_codes: Tuple[str, ...] = tuple(error_codes)
        self.response = response


class ValidationFailedError(TurnstileError):
    kind = "validation_failed"


class InvalidRequestError(TurnstileError):
    kind = "invalid_request"


class TurnstileServerError(TurnstileError):
    kind = "server_error"


class UnhandledErrorCodesError(TurnstileError):
    kind = "unhandled"


class SerializationError(TurnstileError):
    kind = "serialization_error"


class TransportError(TurnstileError):
    kind = "transport_error"


class DecodeError(TurnstileError):
    kind = "decode_error"

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def _contains_any(codes: Sequence[str], wanted: Iterable[ErrorCode]) -> bool:
    return any(code in codes for code in wanted)


def classify_error_codes(
    codes: Sequence[str], response: Optional[VerificationResponse] = None
) -> TurnstileError:
    """Map the error codes of an unsuccessful response to an exception.

    First match wins: internal-error, then token rejection, then request
    misuse. Anything else is reported as unhandled with the raw codes.
    """
    codes = tuple(codes)
    if ErrorCode.INTERNAL_ERROR in codes:
        return TurnstileServerError("turnstile server error", error_codes=codes, response=response)
    if _contains_any(codes, _VALIDATION_FAILED_CODES):
        return ValidationFailedError(
            f"invalid, duplicate or expired response: {list(codes)}",
            error_codes=codes,
            response=response,
        )
    if _contains_any(codes, _INVALID_REQUEST_CODES):
        return InvalidRequestError(
            f"validation error(s) on turnstile: {list(codes)}",
            error_codes=codes,
            response=response,
        )
    return UnhandledErrorCodesError(
        f"unhandled turnstile error: {list(codes)}", error_codes=codes, response=response
    )


__all__ = [
    "DecodeError",
    "InvalidRequestError",
    "SerializationError",
    "TransportError",
    "TurnstileError",
    "TurnstileServerError",
    "UnhandledErrorCodesError",
    "ValidationFailedError",
    "classify_error_codes",
]
