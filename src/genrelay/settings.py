"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Client settings and explicit environment loading.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any

from .runtime.contracts import AdmissionPolicy, CachePolicy, RetryPolicy, TimeoutPolicy
from .types import SafetySetting

_TRUTHY = {"1", "true", "yes", "on"}


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUTHY


def _env_optional_float(name: str, default: float | None) -> float | None:
    value = os.getenv(name)
    if value is None:
        return default
    value = value.strip().lower()
    if value in ("", "none", "off"):
        return None
    return float(value)


def _env_optional_int(name: str, default: int | None) -> int | None:
    value = _env_optional_float(name, default)
    return None if value is None else int(value)


@dataclass(frozen=True, slots=True)
class ClientSettings:
    """Explicit settings used by the generative client and its transport."""

    api_key: str | None = None
    model: str = "gemini-1.5-flash"
    temperature: float = 0.7
    max_tokens: int = 2048
    top_k: int = 40
    top_p: float = 0.95
    safety_settings: list[SafetySetting] = field(default_factory=list)

    cache: CachePolicy = field(default_factory=CachePolicy)
    rate_limit: AdmissionPolicy = field(default_factory=AdmissionPolicy)
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    timeout: TimeoutPolicy = field(default_factory=TimeoutPolicy)

    @staticmethod
    def from_env() -> "ClientSettings":
        """Load settings from `GENRELAY_*` environment variables."""
        return ClientSettings(
            api_key=os.getenv("GENRELAY_API_KEY"),
            model=os.getenv("GENRELAY_MODEL", "gemini-1.5-flash"),
            temperature=float(os.getenv("GENRELAY_TEMPERATURE", "0.7")),
            max_tokens=int(os.getenv("GENRELAY_MAX_TOKENS", "2048")),
            top_k=int(os.getenv("GENRELAY_TOP_K", "40")),
            top_p=float(os.getenv("GENRELAY_TOP_P", "0.95")),
            cache=CachePolicy(
                enabled=_env_bool("GENRELAY_CACHE_ENABLED", True),
                ttl_s=float(os.getenv("GENRELAY_CACHE_TTL_S", "3600")),
                max_size=int(os.getenv("GENRELAY_CACHE_MAX_SIZE", "1000")),
            ),
            rate_limit=AdmissionPolicy(
                concurrency=int(os.getenv("GENRELAY_CONCURRENCY", "5")),
                requests_per_second=float(
                    os.getenv("GENRELAY_REQUESTS_PER_SECOND", "0")
                ),
                burst=int(os.getenv("GENRELAY_BURST", "1")),
                requests_per_day=_env_optional_int("GENRELAY_REQUESTS_PER_DAY", None),
            ),
            retry=RetryPolicy(
                max_attempts=int(os.getenv("GENRELAY_MAX_ATTEMPTS", "3")),
                base_delay_s=float(os.getenv("GENRELAY_BASE_DELAY_S", "1")),
                backoff_multiplier=float(
                    os.getenv("GENRELAY_BACKOFF_MULTIPLIER", "2")
                ),
                max_delay_s=float(os.getenv("GENRELAY_MAX_DELAY_S", "10")),
            ),
            timeout=TimeoutPolicy(
                request_timeout_s=_env_optional_float("GENRELAY_TIMEOUT_S", 30.0),
                stream_idle_timeout_s=_env_optional_float(
                    "GENRELAY_STREAM_IDLE_TIMEOUT_S", 45.0
                ),
            ),
        )

    def config_summary(self) -> dict[str, Any]:
        """Flat, log-safe view of the effective configuration (no api key)."""
        return {
            "model": self.model,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "top_k": self.top_k,
            "top_p": self.top_p,
            "timeout_s": self.timeout.request_timeout_s,
            "concurrency": self.rate_limit.concurrency,
            "requests_per_second": self.rate_limit.requests_per_second,
            "max_attempts": self.retry.max_attempts,
        }
