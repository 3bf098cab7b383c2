"""
apps/consistency/metrics.py
============================
Prometheus text-format metrics for routing decisions and marker lookups.

  Counters:
    ryw_route_decisions_total{role,reason} — every read/write routing decision
    ryw_tracker_errors_total{op}           — marker store failures (get/set)

  Histograms (emitted as summaries):
    ryw_tracker_lookup_seconds             — time per marker lookup

Simple dicts instead of prometheus_client; the text format is compatible.
Served by apps.consistency.views.metrics at /metrics/ in the Django process.
"""

import logging
import threading
import time as _time
from contextlib import contextmanager

logger = logging.getLogger(__name__)

ROUTE_DECISIONS = "ryw_route_decisions_total"
TRACKER_ERRORS  = "ryw_tracker_errors_total"
LOOKUP_SECONDS  = "ryw_tracker_lookup_seconds"

# ── Metric stores ─────────────────────────────────────────────────────────────

_lock = threading.Lock()
_counters: dict[str, float] = {}
_histograms: dict[str, list[float]] = {}


def _metric_key(name: str, labels: dict | None = None) -> str:
    """Return a fully qualified metric name with labels."""
    if not labels:
        return name
    label_str = ",".join(f'{k}="{v}"' for k, v in sorted(labels.items()))
    return f'{name}{{{label_str}}}'


def inc_counter(name: str, value: float = 1.0, labels: dict | None = None) -> None:
    key = _metric_key(name, labels)
    with _lock:
        _counters[key] = _counters.get(key, 0.0) + value


def get_counter(name: str, labels: dict | None = None) -> float:
    return _counters.get(_metric_key(name, labels), 0.0)


def observe_histogram(name: str, value: float) -> None:
    with _lock:
        values = _histograms.setdefault(name, [])
        values.append(value)
        # Keep last 10,000 observations (memory bound)
        if len(values) > 10_000:
            del values[:-10_000]


def reset() -> None:
    with _lock:
        _counters.clear()
        _histograms.clear()


def _percentile(values: list[float], pct: float) -> float:
    if not values:
        return 0.0
    sorted_vals = sorted(values)
    idx = int(len(sorted_vals) * pct / 100)
    return sorted_vals[min(idx, len(sorted_vals) - 1)]


# ── Prometheus text format renderer ──────────────────────────────────────────

def render_metrics() -> str:
    with _lock:
        counters = dict(_counters)
        histograms = {name: list(values) for name, values in _histograms.items()}

    lines = []
    seen_types = set()

    for key, value in sorted(counters.items()):
        base_name = key.split("{")[0]
        if base_name not in seen_types:
            lines.append(f"# TYPE {base_name} counter")
            seen_types.add(base_name)
        lines.append(f"{key} {value:.2f}")

    for name, values in sorted(histograms.items()):
        lines.append(f"# TYPE {name} summary")
        lines.append(f'{name}{{quantile="0.5"}} {_percentile(values, 50):.6f}')
        lines.append(f'{name}{{quantile="0.95"}} {_percentile(values, 95):.6f}')
        lines.append(f'{name}{{quantile="0.99"}} {_percentile(values, 99):.6f}')
        lines.append(f"{name}_count {len(values)}")
        lines.append(f"{name}_sum {sum(values):.6f}")

    return "\n".join(lines) + "\n"


@contextmanager
def timed(histogram_name: str):
    """
    Context manager that records wall-clock time of a block into a histogram.

    Usage:
        with timed(LOOKUP_SECONDS):
            raw = store.get(key)
    """
    start = _time.monotonic()
    try:
        yield
    finally:
        observe_histogram(histogram_name, _time.monotonic() - start)
