from __future__ import annotations

import logging

from genrelay.errors import TransportError
from genrelay.observability import (
    REQUEST_FAILURE,
    REQUEST_START,
    RETRY_SCHEDULED,
    ClientEvent,
    EventDispatcher,
    LoggingObserver,
)
from genrelay.types import RequestContext, RequestOptions


class _Recorder:
    def __init__(self) -> None:
        self.events = []

    def on_event(self, event) -> None:
        self.events.append(event)


class _Exploding:
    def on_event(self, event) -> None:
        raise RuntimeError("observer down")


def test_dispatcher_isolates_failing_observers():
    recorder = _Recorder()
    dispatcher = EventDispatcher([_Exploding(), recorder])

    dispatcher.emit(ClientEvent(name=REQUEST_START, operation="generate_text"))

    assert [event.name for event in recorder.events] == [REQUEST_START]


def test_error_hook_receives_context_and_its_failures_are_swallowed():
    seen = []
    ctx = RequestContext(
        operation="generate_text",
        prompt="hi",
        options=RequestOptions(),
        request_id="abc123",
    )
    error = TransportError("boom")

    EventDispatcher(on_error=lambda exc, context: seen.append((exc, context))).report_error(error, ctx)
    assert seen == [(error, ctx)]

    def _broken(exc, context):
        raise ValueError("hook down")

    EventDispatcher(on_error=_broken).report_error(error, ctx)


def test_logging_observer_levels(caplog):
    observer = LoggingObserver(logging.getLogger("genrelay.test.events"))

    with caplog.at_level(logging.DEBUG, logger="genrelay.test.events"):
        observer.on_event(
            ClientEvent(
                name=RETRY_SCHEDULED,
                operation="generate_text",
                request_id="0123456789abcdef",
                attempt=1,
                delay_s=0.5,
            )
        )
        observer.on_event(
            ClientEvent(
                name=REQUEST_FAILURE,
                operation="generate_text",
                error=TransportError("boom"),
            )
        )

    levels = [record.levelno for record in caplog.records]
    assert levels == [logging.WARNING, logging.ERROR]
    assert "attempt=1" in caplog.records[0].getMessage()
    assert "request_id=01234567" in caplog.records[0].getMessage()
    assert "TransportError" in caplog.records[1].getMessage()
