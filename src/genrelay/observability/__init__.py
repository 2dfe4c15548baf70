"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: observability/__init__.py.
"""

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
    ErrorHook,
    EventDispatcher,
)
from .logging import LoggingObserver
from .prometheus import PrometheusClientMetrics

__all__ = [
    "ClientEvent",
    "ClientObserver",
    "ErrorHook",
    "EventDispatcher",
    "LoggingObserver",
    "PrometheusClientMetrics",
    "REQUEST_START",
    "REQUEST_SUCCESS",
    "REQUEST_FAILURE",
    "CACHE_HIT",
    "CACHE_MISS",
    "CACHE_ERROR",
    "RETRY_SCHEDULED",
    "STREAM_START",
    "STREAM_COMPLETE",
]
