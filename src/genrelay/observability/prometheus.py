"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Prometheus metrics adapter for client observability.
"""

from __future__ import annotations

from typing import Any

from .events import (
    CACHE_ERROR,
    CACHE_HIT,
    CACHE_MISS,
    REQUEST_FAILURE,
    REQUEST_START,
    REQUEST_SUCCESS,
    RETRY_SCHEDULED,
    STREAM_COMPLETE,
    STREAM_START,
    ClientEvent,
    ClientObserver,
)


class PrometheusClientMetrics(ClientObserver):
    """
    Prometheus-backed client metrics observer.

    Requires `prometheus_client` package. Metrics are registered on a private
    `CollectorRegistry` unless one is passed, so several clients can coexist
    in one process.
    """

    def __init__(self, *, namespace: str = "genrelay", registry: Any = None) -> None:
        try:
            from prometheus_client import CollectorRegistry, Counter, Histogram
        except ModuleNotFoundError as exc:  # pragma: no cover
            raise RuntimeError(
                "PrometheusClientMetrics requires `prometheus_client` to be installed."
            ) from exc

        self.registry = registry if registry is not None else CollectorRegistry()
        self._requests = Counter(
            "requests",
            "Generative requests started",
            labelnames=("operation",),
            namespace=namespace,
            registry=self.registry,
        )
        self._failures = Counter(
            "request_failures",
            "Generative requests that failed after retries",
            labelnames=("operation", "error"),
            namespace=namespace,
            registry=self.registry,
        )
        self._cache = Counter(
            "cache_lookups",
            "Response cache lookups by outcome",
            labelnames=("outcome",),
            namespace=namespace,
            registry=self.registry,
        )
        self._retries = Counter(
            "retries",
            "Retry attempts scheduled",
            labelnames=("operation",),
            namespace=namespace,
            registry=self.registry,
        )
        self._latency = Histogram(
            "request_latency_seconds",
            "Latency of successful generative requests",
            labelnames=("operation",),
            namespace=namespace,
            registry=self.registry,
        )

    def on_event(self, event: ClientEvent) -> None:
        operation = event.operation or "unknown"
        if event.name in (REQUEST_START, STREAM_START):
            self._requests.labels(operation).inc()
        elif event.name in (REQUEST_SUCCESS, STREAM_COMPLETE):
            if event.duration_s is not None:
                self._latency.labels(operation).observe(event.duration_s)
        elif event.name == REQUEST_FAILURE:
            error_name = type(event.error).__name__ if event.error is not None else "unknown"
            self._failures.labels(operation, error_name).inc()
        elif event.name == CACHE_HIT:
            self._cache.labels("hit").inc()
        elif event.name == CACHE_MISS:
            self._cache.labels("miss").inc()
        elif event.name == CACHE_ERROR:
            self._cache.labels("error").inc()
        elif event.name == RETRY_SCHEDULED:
            self._retries.labels(operation).inc()

    def sample(self, name: str, labels: dict[str, str] | None = None) -> float | None:
        """Read one sample value from the backing registry."""
        return self.registry.get_sample_value(name, labels or {})
