"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Lifecycle events and observer dispatch for the generative client.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from ..types import JSONValue

if TYPE_CHECKING:
    from ..types import RequestContext

logger = logging.getLogger("genrelay.observability")

REQUEST_START = "request.start"
REQUEST_SUCCESS = "request.success"
REQUEST_FAILURE = "request.failure"
CACHE_HIT = "cache.hit"
CACHE_MISS = "cache.miss"
CACHE_ERROR = "cache.error"
RETRY_SCHEDULED = "retry.scheduled"
STREAM_START = "stream.start"
STREAM_COMPLETE = "stream.complete"


@dataclass(frozen=True, slots=True)
class ClientEvent:
    """One best-effort lifecycle notification."""
    name: str
    operation: str | None = None
    request_id: str | None = None
    attempt: int | None = None
    duration_s: float | None = None
    delay_s: float | None = None
    error: BaseException | None = None
    metadata: dict[str, JSONValue] = field(default_factory=dict)
    timestamp_s: float = field(default_factory=time.time)


@runtime_checkable
class ClientObserver(Protocol):
    """Observer receiving client lifecycle events."""

    def on_event(self, event: ClientEvent) -> None: ...


ErrorHook = Callable[[BaseException, "RequestContext | None"], None]


class EventDispatcher:
    """
    Fan out events to observers and the error hook.

    Observer failures are logged and swallowed so they can never mask the
    error or result of the call being observed.
    """

    def __init__(
        self,
        observers: Iterable[ClientObserver] | None = None,
        *,
        on_error: ErrorHook | None = None,
    ) -> None:
        self._observers = list(observers or [])
        self._on_error = on_error

    @property
    def observers(self) -> list[ClientObserver]:
        return list(self._observers)

    def add(self, observer: ClientObserver) -> None:
        self._observers.append(observer)

    def emit(self, event: ClientEvent) -> None:
        for observer in self._observers:
            try:
                observer.on_event(event)
            except Exception:  # noqa: BLE001
                logger.exception(
                    "Observer %s failed on event %s",
                    type(observer).__name__,
                    event.name,
                )

    def report_error(
        self,
        error: BaseException,
        context: RequestContext | None,
    ) -> None:
        if self._on_error is None:
            return
        try:
            self._on_error(error, context)
        except Exception:  # noqa: BLE001
            logger.exception("on_error hook failed while reporting %r", error)
