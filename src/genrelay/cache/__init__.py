"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: cache/__init__.py.
"""

from .base import CacheBackend, CacheEntry, CacheStats
from .inmemory import InMemoryCache
from .manager import CacheManager
from .registry import (
    CacheBackendError,
    create_cache_backend,
    list_cache_backends,
    register_cache_backend,
)

__all__ = [
    "CacheBackend",
    "CacheEntry",
    "CacheStats",
    "CacheManager",
    "InMemoryCache",
    "CacheBackendError",
    "register_cache_backend",
    "create_cache_backend",
    "list_cache_backends",
]
