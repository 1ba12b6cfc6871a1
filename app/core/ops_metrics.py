"""In-memory operational metrics for the public fill-in API.

This module keeps lightweight runtime counters to expose:
- p95 latency per /public endpoint
- duplicate rate of response submissions
- rejection rate (required questions unanswered)

Note: in-memory metrics reset on process restart.
"""

from collections import defaultdict, deque
from statistics import median
from threading import Lock
from typing import Dict, Deque


_LOCK = Lock()

_PUBLIC_LATENCY_MS: Dict[str, Deque[float]] = defaultdict(lambda: deque(maxlen=400))
_SUBMISSIONS_TOTAL = 0
_SUBMISSIONS_DUPLICATE = 0
_SUBMISSIONS_REJECTED = 0


def observe_public_latency(endpoint: str, elapsed_ms: float) -> None:
    with _LOCK:
        _PUBLIC_LATENCY_MS[endpoint].append(max(elapsed_ms, 0.0))


def observe_submission(duplicate: bool = False, rejected: bool = False) -> None:
    global _SUBMISSIONS_TOTAL, _SUBMISSIONS_DUPLICATE, _SUBMISSIONS_REJECTED
    with _LOCK:
        _SUBMISSIONS_TOTAL += 1
        if duplicate:
            _SUBMISSIONS_DUPLICATE += 1
        if rejected:
            _SUBMISSIONS_REJECTED += 1


def reset_ops_metrics() -> None:
    global _SUBMISSIONS_TOTAL, _SUBMISSIONS_DUPLICATE, _SUBMISSIONS_REJECTED
    with _LOCK:
        _PUBLIC_LATENCY_MS.clear()
        _SUBMISSIONS_TOTAL = 0
        _SUBMISSIONS_DUPLICATE = 0
        _SUBMISSIONS_REJECTED = 0


def _p95(samples: list[float]) -> float:
    if not samples:
        return 0.0
    ordered = sorted(samples)
    idx = max(int(0.95 * len(ordered)) - 1, 0)
    return round(ordered[idx], 2)


def _rate(part: int, total: int) -> float:
    return round((part / total) * 100, 2) if total > 0 else 0.0


def get_public_ops_metrics() -> dict:
    with _LOCK:
        latency_snapshot = {
            endpoint: {
                "count": len(samples),
                "p95_ms": _p95(list(samples)),
                "median_ms": round(median(samples), 2) if samples else 0.0,
            }
            for endpoint, samples in _PUBLIC_LATENCY_MS.items()
        }

        return {
            "public_latency": latency_snapshot,
            "submissions_total": _SUBMISSIONS_TOTAL,
            "submissions_duplicate": _SUBMISSIONS_DUPLICATE,
            "submissions_rejected": _SUBMISSIONS_REJECTED,
            "duplicate_rate_pct": _rate(_SUBMISSIONS_DUPLICATE, _SUBMISSIONS_TOTAL),
            "rejection_rate_pct": _rate(_SUBMISSIONS_REJECTED, _SUBMISSIONS_TOTAL),
        }
