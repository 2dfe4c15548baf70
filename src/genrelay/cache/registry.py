"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: cache/registry.py.
"""

from __future__ import annotations

from collections.abc import Callable
from threading import Lock

from ..errors import ConfigurationError
from .base import CacheBackend
from .inmemory import InMemoryCache

CacheBackendFactory = Callable[..., CacheBackend]

_REGISTRY: dict[str, CacheBackendFactory] = {"inmemory": InMemoryCache}
_LOCK = Lock()


class CacheBackendError(ConfigurationError):
    """Raised when cache backend resolution fails."""


def register_cache_backend(
    backend_id: str,
    factory: CacheBackendFactory,
    *,
    overwrite: bool = False,
) -> None:
    """Register one cache backend factory by id."""
    key = backend_id.strip().lower()
    if not key:
        raise CacheBackendError("Cache backend id must be non-empty")

    with _LOCK:
        if key in _REGISTRY and not overwrite:
            raise CacheBackendError(f"Cache backend already registered: {key}")
        _REGISTRY[key] = factory


def create_cache_backend(
    backend: str | CacheBackend | None = None,
    *,
    max_size: int | None = None,
) -> CacheBackend:
    """
    Resolve a cache backend from id/instance/default.

    Every client gets its own store; ids resolve to a fresh instance built
    by the registered factory.
    """
    if backend is not None and not isinstance(backend, str):
        return backend

    key = (backend or "inmemory").strip().lower()
    with _LOCK:
        factory = _REGISTRY.get(key)
    if factory is None:
        raise CacheBackendError(f"Unknown cache backend '{backend}'")
    return factory(max_size=max_size)


def list_cache_backends() -> list[str]:
    """List registered cache backend ids."""
    with _LOCK:
        return sorted(_REGISTRY.keys())
