"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: builder.py.
"""

from __future__ import annotations

from dataclasses import replace

from .cache.base import CacheBackend
from .errors import ConfigurationError
from .observability.events import ClientObserver, ErrorHook
from .profiles import PROFILES
from .runtime.client import GenerativeClient
from .runtime.contracts import AdmissionPolicy, CachePolicy, RetryPolicy, TimeoutPolicy
from .settings import ClientSettings
from .transports.contracts import GenerativeTransport


class ClientBuilder:
    """Builder-first DX for creating configured generative clients."""

    def __init__(self) -> None:
        self._transport: GenerativeTransport | None = None
        self._settings = ClientSettings.from_env()
        self._observers: list[ClientObserver] | None = None
        self._cache_backend: str | CacheBackend | None = None
        self._on_error: ErrorHook | None = None

        self._retry_policy: RetryPolicy | None = None
        self._timeout_policy: TimeoutPolicy | None = None
        self._admission_policy: AdmissionPolicy | None = None
        self._cache_policy: CachePolicy | None = None

    def transport(self, transport: GenerativeTransport) -> "ClientBuilder":
        """Use an explicit transport instead of the default Google GenAI one."""
        self._transport = transport
        return self

    def model(self, model: str) -> "ClientBuilder":
        """Override the model in builder settings."""
        self._settings = replace(self._settings, model=model)
        return self

    def api_key(self, api_key: str) -> "ClientBuilder":
        self._settings = replace(self._settings, api_key=api_key)
        return self

    def settings(self, settings: ClientSettings) -> "ClientBuilder":
        """Replace builder settings with an explicit `ClientSettings` instance."""
        self._settings = settings
        return self

    def profile(self, name: str) -> "ClientBuilder":
        """Apply one named runtime profile from `genrelay.profiles.PROFILES`."""
        key = name.strip().lower()
        row = PROFILES.get(key)
        if row is None:
            raise ConfigurationError(f"Unknown client profile '{name}'")
        self._retry_policy = row["retry"]
        self._timeout_policy = row["timeout"]
        self._admission_policy = row["admission"]
        self._cache_policy = row["cache"]
        return self

    def with_retry(self, policy: RetryPolicy) -> "ClientBuilder":
        self._retry_policy = policy
        return self

    def with_timeout(self, policy: TimeoutPolicy) -> "ClientBuilder":
        self._timeout_policy = policy
        return self

    def _admission(self) -> AdmissionPolicy:
        return self._admission_policy or self._settings.rate_limit

    def with_concurrency(self, concurrency: int) -> "ClientBuilder":
        self._admission_policy = replace(self._admission(), concurrency=concurrency)
        return self

    def with_rate_limit(
        self,
        requests_per_second: float,
        *,
        burst: int = 1,
        requests_per_day: int | None = None,
    ) -> "ClientBuilder":
        """Throttle admissions with a token bucket and optional daily cap."""
        self._admission_policy = replace(
            self._admission(),
            requests_per_second=requests_per_second,
            burst=burst,
            requests_per_day=requests_per_day,
        )
        return self

    def with_cache_policy(self, policy: CachePolicy) -> "ClientBuilder":
        self._cache_policy = policy
        return self

    def with_observers(self, observers: list[ClientObserver]) -> "ClientBuilder":
        """Configure lifecycle observers for best-effort telemetry callbacks."""
        self._observers = list(observers)
        return self

    def with_cache(self, cache_backend: str | CacheBackend) -> "ClientBuilder":
        """Select one cache backend instance or registered backend id."""
        self._cache_backend = cache_backend
        return self

    def on_error(self, hook: ErrorHook) -> "ClientBuilder":
        """Register a callback notified of every failed call before it re-raises."""
        self._on_error = hook
        return self

    def build(self) -> GenerativeClient:
        """Materialize one configured `GenerativeClient` instance."""
        return GenerativeClient(
            self._transport,
            settings=self._settings,
            retry_policy=self._retry_policy,
            timeout_policy=self._timeout_policy,
            cache_policy=self._cache_policy,
            admission_policy=self._admission_policy,
            cache_backend=self._cache_backend,
            observers=self._observers,
            on_error=self._on_error,
        )
