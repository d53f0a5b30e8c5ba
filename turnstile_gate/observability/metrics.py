from __future__ import annotations

import logging
from typing import Any, Callable, Optional, Tuple, Type, TypeVar

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Histogram

_log = logging.getLogger(__name__)

_C = TypeVar("_C", Counter, Histogram)

_LATENCY_BUCKETS: Tuple[float, ...] = (0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0)


# -----------------------------------------------------------------------------
# Metrics must never fail a request; failures are logged at DEBUG only.
# -----------------------------------------------------------------------------
def _best_effort(msg: str, fn: Callable[[], Any]) -> None:
    try:
        fn()
    except Exception as e:  # pragma: no cover
        _log.debug("%s: %s", msg, e)


def _lookup(reg: CollectorRegistry, name: str, cls: Type[_C]) -> Optional[_C]:
    names_map = getattr(reg, "_names_to_collectors", None)
    if isinstance(names_map, dict):
        found = names_map.get(name)
        if isinstance(found, cls):
            return found
    return None


def _get_or_create(
    cls: Type[_C],
    name: str,
    doc: str,
    labelnames: Tuple[str, ...] = (),
    registry: Optional[CollectorRegistry] = None,
    **kwargs: Any,
) -> _C:
    # Module reloads in tests would otherwise hit "Duplicated timeseries".
    reg = registry or REGISTRY
    existing = _lookup(reg, name, cls)
    if existing is not None:
        return existing
    try:
        return cls(name, doc, labelnames=labelnames, registry=reg, **kwargs)
    except ValueError:
        found = _lookup(reg, name, cls)
        if found is not None:
            return found
        # Unregistered fallback; updates still work but are not exported.
        return cls(name, doc, labelnames=labelnames, registry=None, **kwargs)


turnstile_verifications_total = _get_or_create(
    Counter,
    "turnstile_verifications_total",
    "Siteverify calls by outcome",
    ("outcome",),
)

turnstile_verify_latency_seconds = _get_or_create(
    Histogram,
    "turnstile_verify_latency_seconds",
    "Siteverify round-trip latency",
    buckets=_LATENCY_BUCKETS,
)

turnstile_gate_decisions_total = _get_or_create(
    Counter,
    "turnstile_gate_decisions_total",
    "Gate decisions per inbound request",
    ("decision",),
)


def record_verification(outcome: str, elapsed_s: float) -> None:
    def _update() -> None:
        turnstile_verifications_total.labels(outcome=outcome).inc()
        turnstile_verify_latency_seconds.observe(max(0.0, elapsed_s))

    _best_effort("record turnstile verification", _update)


def record_gate_decision(decision: str) -> None:
    _best_effort(
        "record turnstile gate decision",
        lambda: turnstile_gate_decisions_total.labels(decision=decision).inc(),
    )


__all__ = [
    "record_gate_decision",
    "record_verification",
    "turnstile_gate_decisions_total",
    "turnstile_verifications_total",
    "turnstile_verify_latency_seconds",
]
