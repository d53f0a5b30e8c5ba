from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class ErrorCode(str, Enum):
    """Error codes reported by the siteverify endpoint."""

    MISSING_INPUT_SECRET = "missing-input-secret"
    INVALID_INPUT_SECRET = "invalid-input-secret"
    MISSING_INPUT_RESPONSE = "missing-input-response"
    INVALID_INPUT_RESPONSE = "invalid-input-response"
    INVALID_WIDGET_ID = "invalid-widget-id"
    INVALID_PARSED_SECRET = "invalid-parsed-secret"
    BAD_REQUEST = "bad-request"
    TIMEOUT_OR_DUPLICATE = "timeout-or-duplicate"
    INTERNAL_ERROR = "internal-error"


@dataclass(frozen=True)
class VerificationRequest:
    response: str
    remote_ip: str = ""
    idempotency_key: str = ""

    def to_wire(self, secret: str) -> Dict[str, Any]:
        return {
            "response": self.response,
            "remoteip": self.remote_ip,
            "idempotency_key": self.idempotency_key,
            "secret": secret,
        }


class VerificationResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    success: bool
    challenge_ts: Optional[datetime] = None
    hostname: str = ""
    # Kept as plain strings: codes outside ErrorCode must still decode.
    error_codes: Tuple[str, ...] = Field(default=(), alias="error-codes")
    action: str = ""
    cdata: str = ""


__all__ = ["ErrorCode", "VerificationRequest", "VerificationResponse"]
