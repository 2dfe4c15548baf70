"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Logger-backed observer.
"""

from __future__ import annotations

import logging

from .events import (
    CACHE_ERROR,
    REQUEST_FAILURE,
    RETRY_SCHEDULED,
    ClientEvent,
    ClientObserver,
)

_WARNING_EVENTS = {CACHE_ERROR, RETRY_SCHEDULED}


class LoggingObserver(ClientObserver):
    """Write every lifecycle event to a standard library logger."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger("genrelay.events")

    def on_event(self, event: ClientEvent) -> None:
        if event.name == REQUEST_FAILURE:
            level = logging.ERROR
        elif event.name in _WARNING_EVENTS:
            level = logging.WARNING
        else:
            level = logging.DEBUG
        if not self._logger.isEnabledFor(level):
            return

        parts = [event.name]
        if event.operation:
            parts.append(f"op={event.operation}")
        if event.request_id:
            parts.append(f"request_id={event.request_id[:8]}")
        if event.attempt is not None:
            parts.append(f"attempt={event.attempt}")
        if event.delay_s is not None:
            parts.append(f"delay_s={event.delay_s:.3f}")
        if event.duration_s is not None:
            parts.append(f"duration_ms={event.duration_s * 1000:.1f}")
        if event.error is not None:
            parts.append(f"error={event.error!r}")
        self._logger.log(level, " ".join(parts))
