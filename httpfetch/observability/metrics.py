"""
In-memory metrics for fetch calls.

``FetchClient`` records one ``RequestMetrics`` per settled call: network
dispatch, cache hit or raised error. The collector tallies outcomes by
transport path, status, error type and host, and keeps a bounded window of
durations for the latency figures in each snapshot.
"""

from __future__ import annotations

import math
import threading
from collections import Counter, deque
from typing import Deque, Optional

import httpx

from ..models.metrics import MetricsSnapshot, RequestMetrics

DEFAULT_DURATION_WINDOW = 10_000


def _nearest_rank(ordered: list[float], fraction: float) -> float:
    # ordered is non-empty and ascending
    index = max(0, min(len(ordered) - 1, math.ceil(fraction * len(ordered)) - 1))
    return ordered[index]


class MetricsCollector:
    """Thread-safe tally of settled fetch calls."""

    def __init__(self, *, max_duration_samples: int = DEFAULT_DURATION_WINDOW):
        self._window = max_duration_samples
        self._lock = threading.Lock()
        self._clear()

    def _clear(self) -> None:
        self._count = 0
        self._failures = 0
        self._duration_sum = 0.0
        self._durations: Deque[float] = deque(maxlen=self._window)
        self._statuses: Counter = Counter()
        self._errors: Counter = Counter()
        self._transports: Counter = Counter()
        self._hosts: Counter = Counter()
        self._cache_hits = 0
        self._redirected = 0

    def record_request(self, metrics: RequestMetrics) -> None:
        duration = max(0.0, float(metrics.duration_ms))
        try:
            host = httpx.URL(metrics.url).host
        except httpx.InvalidURL:
            host = ""

        with self._lock:
            self._count += 1
            self._duration_sum += duration
            self._durations.append(duration)
            self._transports[metrics.transport] += 1
            if metrics.failed:
                self._failures += 1
                self._errors[metrics.error_type] += 1
            if metrics.status_code is not None:
                self._statuses[metrics.status_code] += 1
            if host:
                self._hosts[host] += 1
            self._cache_hits += metrics.cache_hit
            self._redirected += metrics.redirected

    def get_snapshot(self) -> MetricsSnapshot:
        with self._lock:
            return self._snapshot()

    def reset(self) -> MetricsSnapshot:
        """Return the current snapshot and start over."""
        with self._lock:
            snapshot = self._snapshot()
            self._clear()
        return snapshot

    def _snapshot(self) -> MetricsSnapshot:
        snapshot = MetricsSnapshot(
            total_requests=self._count,
            successful_requests=self._count - self._failures,
            failed_requests=self._failures,
            status_codes=dict(self._statuses),
            error_types=dict(self._errors),
            requests_per_transport=dict(self._transports),
            cache_hits=self._cache_hits,
            redirected_requests=self._redirected,
            requests_per_host=dict(self._hosts),
        )
        if not self._count:
            return snapshot

        snapshot.success_rate = snapshot.successful_requests / self._count
        snapshot.avg_duration_ms = self._duration_sum / self._count
        ordered = sorted(self._durations)
        snapshot.min_duration_ms = ordered[0]
        snapshot.max_duration_ms = ordered[-1]
        snapshot.p50_duration_ms = _nearest_rank(ordered, 0.50)
        snapshot.p95_duration_ms = _nearest_rank(ordered, 0.95)
        snapshot.p99_duration_ms = _nearest_rank(ordered, 0.99)
        return snapshot


_global_collector: Optional[MetricsCollector] = None
_collector_lock = threading.Lock()


def get_metrics_collector() -> MetricsCollector:
    """Return the process-wide collector, creating it on first use."""
    global _global_collector
    with _collector_lock:
        if _global_collector is None:
            _global_collector = MetricsCollector()
        return _global_collector


def reset_metrics_collector() -> None:
    """Drop the process-wide collector; the next lookup creates a fresh one."""
    global _global_collector
    with _collector_lock:
        _global_collector = None


def format_snapshot(snapshot: MetricsSnapshot) -> str:
    """Render a snapshot as a short plain-text report."""
    lines = [
        "=== Fetch Metrics ===",
        f"Requests: {snapshot.total_requests} "
        f"(ok {snapshot.successful_requests}, failed {snapshot.failed_requests}, "
        f"{snapshot.success_rate:.0%} success)",
    ]

    if snapshot.total_requests:
        lines.append(
            f"Latency ms: avg {snapshot.avg_duration_ms:.2f}"
            f" p50 {snapshot.p50_duration_ms:.2f}"
            f" p95 {snapshot.p95_duration_ms:.2f}"
            f" p99 {snapshot.p99_duration_ms:.2f}"
            f" max {snapshot.max_duration_ms:.2f}"
        )

    if snapshot.requests_per_transport:
        paths = ", ".join(f"{name}={count}" for name, count in sorted(snapshot.requests_per_transport.items()))
        lines.append(f"Paths: {paths}")
    if snapshot.cache_hits or snapshot.redirected_requests:
        lines.append(f"Cache hits: {snapshot.cache_hits}, redirected: {snapshot.redirected_requests}")
    if snapshot.status_codes:
        statuses = ", ".join(f"{code}={count}" for code, count in sorted(snapshot.status_codes.items()))
        lines.append(f"Statuses: {statuses}")
    if snapshot.error_types:
        errors = ", ".join(f"{name}={count}" for name, count in Counter(snapshot.error_types).most_common())
        lines.append(f"Errors: {errors}")
    if snapshot.requests_per_host:
        hosts = ", ".join(f"{host}={count}" for host, count in Counter(snapshot.requests_per_host).most_common(5))
        lines.append(f"Top hosts: {hosts}")

    return "\n".join(lines)
