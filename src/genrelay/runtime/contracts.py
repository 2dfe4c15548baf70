"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Typed runtime policies for resilient generative calls.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..errors import ConfigurationError
from ..utils import backoff_delay


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Bounded exponential backoff for one request path."""

    max_attempts: int = 3
    base_delay_s: float = 1.0
    backoff_multiplier: float = 2.0
    max_delay_s: float = 10.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ConfigurationError("RetryPolicy.max_attempts must be >= 1")
        if self.base_delay_s < 0:
            raise ConfigurationError("RetryPolicy.base_delay_s must be >= 0")
        if self.backoff_multiplier <= 1.0:
            raise ConfigurationError("RetryPolicy.backoff_multiplier must be > 1")
        if self.max_delay_s < self.base_delay_s:
            raise ConfigurationError(
                "RetryPolicy.max_delay_s must be >= base_delay_s"
            )

    def delay_for(self, attempt: int) -> float:
        """Delay to wait after failed `attempt` (1-based)."""
        return backoff_delay(
            attempt,
            self.base_delay_s,
            self.backoff_multiplier,
            self.max_delay_s,
        )


@dataclass(frozen=True, slots=True)
class TimeoutPolicy:
    """Timeout semantics for unary and stream operations."""

    request_timeout_s: float | None = 30.0
    stream_idle_timeout_s: float | None = 45.0

    def __post_init__(self) -> None:
        for name in ("request_timeout_s", "stream_idle_timeout_s"):
            value = getattr(self, name)
            if value is not None and value <= 0:
                raise ConfigurationError(f"TimeoutPolicy.{name} must be > 0 or None")


@dataclass(frozen=True, slots=True)
class AdmissionPolicy:
    """
    Admission limits per client.

    `concurrency` bounds in-flight transport calls. `requests_per_second`
    and `burst` drive an optional token bucket (0 disables it), and
    `requests_per_day` caps admissions over a rolling 24h window.
    """

    concurrency: int = 5
    requests_per_second: float = 0.0
    burst: int = 1
    requests_per_day: int | None = None

    def __post_init__(self) -> None:
        if self.concurrency < 1:
            raise ConfigurationError("AdmissionPolicy.concurrency must be >= 1")
        if self.requests_per_second < 0:
            raise ConfigurationError(
                "AdmissionPolicy.requests_per_second must be >= 0"
            )
        if self.burst < 1:
            raise ConfigurationError("AdmissionPolicy.burst must be >= 1")
        if self.requests_per_day is not None and self.requests_per_day < 1:
            raise ConfigurationError(
                "AdmissionPolicy.requests_per_day must be >= 1 or None"
            )


@dataclass(frozen=True, slots=True)
class CachePolicy:
    """Response cache controls."""

    enabled: bool = True
    ttl_s: float = 3600.0
    max_size: int | None = 1000
    sweep_interval_s: float = 300.0

    def __post_init__(self) -> None:
        if self.ttl_s <= 0:
            raise ConfigurationError("CachePolicy.ttl_s must be > 0")
        if self.max_size is not None and self.max_size < 1:
            raise ConfigurationError("CachePolicy.max_size must be >= 1 or None")
        if self.sweep_interval_s < 0:
            raise ConfigurationError("CachePolicy.sweep_interval_s must be >= 0")
