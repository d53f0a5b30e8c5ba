from turnstile_gate.middleware.extractors import (
    InputExtractionError,
    default_skipper,
    framework_remote_ip_extractor,
    new_request_id,
    path_skipper,
    request_header_remote_ip_extractor,
    request_header_token_extractor,
    request_id_idempotency_key_extractor,
)
from turnstile_gate.middleware.turnstile import (
    TurnstileConfig,
    TurnstileGate,
    TurnstileMiddleware,
)

__all__ = [
    "InputExtractionError",
    "TurnstileConfig",
    "TurnstileGate",
    "TurnstileMiddleware",
    "default_skipper",
    "framework_remote_ip_extractor",
    "new_request_id",
    "path_skipper",
    "request_header_remote_ip_extractor",
    "request_header_token_extractor",
    "request_id_idempotency_key_extractor",
]
