# turnstile_gate/telemetry/logging.py
from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, FrozenSet, Mapping

_JSON_SAFE_PRIMITIVES = (str, int, float, bool, type(None))

# Attributes every LogRecord has; anything else came in via ``extra``.
_RECORD_ATTRS: FrozenSet[str] = frozenset(
    vars(logging.LogRecord("x", logging.INFO, "x", 0, "", None, None)).keys()
) | {"message", "asctime", "taskName"}


def _iso8601(ts: float) -> str:
    return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat().replace("+00:00", "Z")


def _json_sanitize(value: Any) -> Any:
    if isinstance(value, _JSON_SAFE_PRIMITIVES):
        return value
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Mapping):
        return {str(k): _json_sanitize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_json_sanitize(v) for v in value]
    return str(value)


class JsonFormatter(logging.Formatter):
    """One JSON object per line: ts, level, logger, message, then extras."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": _iso8601(record.created),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for k, v in record.__dict__.items():
            if k in _RECORD_ATTRS or k.startswith("_") or k in payload:
                continue
            payload[k] = _json_sanitize(v)
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


_configured = False


def configure_root_logging(level: int | str = "INFO") -> None:
    """Idempotent root logger setup for JSON logs to stdout."""
    global _configured
    if _configured:
        return

    root = logging.getLogger()
    resolved = level if isinstance(level, int) else getattr(logging, str(level).upper(), logging.INFO)
    root.setLevel(resolved)

    for h in list(root.handlers):
        root.removeHandler(h)

    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setFormatter(JsonFormatter())
    root.addHandler(handler)

    _configured = True


__all__ = ["JsonFormatter", "configure_root_logging"]
