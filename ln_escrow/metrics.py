"""
ln_escrow.metrics — Prometheus counters & histograms for the escrow executor.

Centralized registry: consumers call `get_registry()` and
`generate_latest_text()` to expose metrics (e.g. behind a /metrics handler).
`observe_request(...)` is called by the executor once per request.

Exposed metrics (names are prefixed with `ln_escrow_`):
  - requests_total{instruction,result}  : Counter — requests executed by outcome
  - request_seconds{instruction}        : Histogram — wall time per request
  - request_logs{instruction}           : Histogram — program log lines per request

Labels:
  - instruction ∈ instruction tag names (create_escrow, claim, ...) or "undecodable"
  - result      ∈ {success, failed, aborted}
"""

from __future__ import annotations

import os
from typing import Iterable, Optional

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

_PREFIX = "ln_escrow_"

RESULTS = ("success", "failed", "aborted")


def _buckets_from_env(name: str, default: Iterable[float]) -> Iterable[float]:
    raw = os.getenv(name)
    if not raw:
        return default
    out = []
    for tok in raw.split(","):
        tok = tok.strip()
        if not tok:
            continue
        try:
            out.append(float(tok))
        except ValueError:
            continue
    return out or default


_SECONDS_BUCKETS = tuple(_buckets_from_env(
    "LN_ESCROW_METRICS_SECONDS_BUCKETS",
    (0.0005, 0.001, 0.0025, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0),
))
_LOGS_BUCKETS = (0, 1, 2, 4, 8, 16)


# ------------------------------ registry ------------------------------------

_registry: Optional[CollectorRegistry] = None

REQUESTS_TOTAL: Counter
REQUEST_SECONDS: Histogram
REQUEST_LOGS: Histogram


def _build_metrics(reg: CollectorRegistry) -> None:
    global REQUESTS_TOTAL, REQUEST_SECONDS, REQUEST_LOGS

    REQUESTS_TOTAL = Counter(
        _PREFIX + "requests_total",
        "Escrow program requests executed (by instruction and result).",
        labelnames=("instruction", "result"),
        registry=reg,
    )
    REQUEST_SECONDS = Histogram(
        _PREFIX + "request_seconds",
        "Wall time to execute one request, rollback included.",
        labelnames=("instruction",),
        buckets=_SECONDS_BUCKETS,
        registry=reg,
    )
    REQUEST_LOGS = Histogram(
        _PREFIX + "request_logs",
        "Program log lines emitted per request.",
        labelnames=("instruction",),
        buckets=_LOGS_BUCKETS,
        registry=reg,
    )


def set_registry(registry: CollectorRegistry) -> None:
    """
    Bind the metrics to `registry` (e.g. an app-global one). Only effective
    before the first metric is recorded.
    """
    global _registry
    if _registry is not None:
        return
    _registry = registry
    _build_metrics(registry)


def get_registry() -> CollectorRegistry:
    """Return the metrics registry, creating one on first use."""
    if _registry is None:
        set_registry(CollectorRegistry())
    assert _registry is not None
    return _registry


# ------------------------------ helpers -------------------------------------


def observe_request(*, instruction: str, result: str, logs_emitted: int, seconds: float) -> None:
    """Record the outcome and duration of one request."""
    if result not in RESULTS:
        raise ValueError(f"unknown request result {result!r}")
    get_registry()
    REQUESTS_TOTAL.labels(instruction=instruction, result=result).inc()
    REQUEST_LOGS.labels(instruction=instruction).observe(float(max(0, logs_emitted)))
    REQUEST_SECONDS.labels(instruction=instruction).observe(max(0.0, seconds))


def sample(name: str, **labels: str) -> float:
    """Current value of a sample in the active registry (0.0 when never recorded)."""
    value = get_registry().get_sample_value(name, labels)
    return 0.0 if value is None else value


# ------------------------------ exposition ----------------------------------


def generate_latest_text() -> bytes:
    """Prometheus exposition format for the current registry."""
    return generate_latest(get_registry())


__all__ = [
    "get_registry",
    "set_registry",
    "generate_latest_text",
    "observe_request",
    "sample",
    "RESULTS",
    "CONTENT_TYPE_LATEST",
]
