from __future__ import annotations

import asyncio
from contextlib import aclosing

import pytest

from genrelay import (
    AuthenticationError,
    CachePolicy,
    ClientDestroyedError,
    ClientSettings,
    GenerativeClient,
    NoCandidateError,
    NoFunctionCallError,
    RequestTimeoutError,
    RetryPolicy,
    TimeoutPolicy,
    TransportError,
)
from genrelay.observability import (
    CACHE_HIT,
    CACHE_MISS,
    REQUEST_FAILURE,
    RETRY_SCHEDULED,
    STREAM_COMPLETE,
)
from genrelay.runtime import AdmissionPolicy, CONTINUE_PROMPT
from genrelay.types import (
    Candidate,
    Content,
    FunctionCall,
    FunctionDeclaration,
    FunctionResponse,
    GenerateContentResponse,
    Part,
    PromptFeedback,
    RequestOptions,
)


def _response(text: str | None = "hello", *, calls=()) -> GenerateContentResponse:
    parts = [Part(text=text)] if text else []
    parts.extend(Part(function_call=call) for call in calls)
    return GenerateContentResponse(
        candidates=[
            Candidate(content=Content(role="model", parts=parts), finish_reason="STOP")
        ]
    )


class _Transport:
    transport_id = "fake"

    def __init__(
        self,
        response: GenerateContentResponse | None = None,
        *,
        errors=(),
        delay_s: float = 0.0,
        stream_chunks=(),
    ) -> None:
        self.response = response or _response()
        self.errors = list(errors)
        self.delay_s = delay_s
        self.stream_chunks = list(stream_chunks)
        self.requests = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.stream_closed = False

    async def generate(self, request):
        self.requests.append(request)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay_s:
                await asyncio.sleep(self.delay_s)
            if self.errors:
                raise self.errors.pop(0)
            return self.response
        finally:
            self.in_flight -= 1

    async def generate_stream(self, request):
        self.requests.append(request)
        if self.errors:
            raise self.errors.pop(0)
        chunks = list(self.stream_chunks)

        async def _iter():
            try:
                for chunk in chunks:
                    await asyncio.sleep(0)
                    yield chunk
            finally:
                self.stream_closed = True

        return _iter()


class _Recorder:
    def __init__(self) -> None:
        self.events = []

    def on_event(self, event) -> None:
        self.events.append(event)

    def names(self) -> list[str]:
        return [event.name for event in self.events]


def _client(transport, **kwargs) -> GenerativeClient:
    kwargs.setdefault(
        "retry_policy",
        RetryPolicy(max_attempts=3, base_delay_s=0.01, max_delay_s=0.05),
    )
    kwargs.setdefault("cache_policy", CachePolicy(sweep_interval_s=0))
    return GenerativeClient(transport, settings=ClientSettings(), **kwargs)


def run_async(coro):
    return asyncio.run(coro)


def test_repeated_prompt_is_served_from_cache():
    transport = _Transport()
    recorder = _Recorder()
    client = _client(transport, observers=[recorder])

    async def _scenario():
        first = await client.generate_text("Hello")
        second = await client.generate_text("Hello")
        return first, second

    assert run_async(_scenario()) == ("hello", "hello")
    assert len(transport.requests) == 1
    assert recorder.names().count(CACHE_MISS) == 1
    assert recorder.names().count(CACHE_HIT) == 1
    assert client.get_stats().cache.hits == 1


def test_cache_key_ignores_request_id_but_respects_parameters():
    transport = _Transport()
    client = _client(transport)

    async def _scenario():
        await client.generate_text("Hello", RequestOptions(request_id="a"))
        await client.generate_text("Hello", RequestOptions(request_id="b"))
        await client.generate_text("Hello", RequestOptions(temperature=0.0))

    run_async(_scenario())

    assert len(transport.requests) == 2
    assert transport.requests[-1].generation_config.temperature == 0.0


def test_cache_opt_out_and_clear_cache():
    transport = _Transport()
    client = _client(transport)

    async def _scenario():
        await client.generate_text("Hello", RequestOptions(cache=False))
        await client.generate_text("Hello", RequestOptions(cache=False))
        await client.generate_text("Hello")
        await client.clear_cache()
        await client.generate_text("Hello")

    run_async(_scenario())

    assert len(transport.requests) == 4


def test_per_call_cache_ttl_overrides_policy_ttl():
    transport = _Transport()
    client = _client(transport, cache_policy=CachePolicy(ttl_s=5.0, sweep_interval_s=0))

    async def _scenario():
        await client.generate_text("Yo", RequestOptions(cache_ttl_s=0))
        await asyncio.sleep(0.01)
        await client.generate_text("Yo")
        await client.generate_text("Short", RequestOptions(cache_ttl_s=0.02))
        await client.generate_text("Short")
        await asyncio.sleep(0.05)
        await client.generate_text("Short")

    run_async(_scenario())

    prompts = [request.contents[0].parts[0].text for request in transport.requests]
    assert prompts == ["Yo", "Yo", "Short", "Short"]


def test_requests_per_second_caps_transport_rate():
    transport = _Transport()
    client = _client(
        transport,
        admission_policy=AdmissionPolicy(concurrency=5, requests_per_second=20, burst=1),
    )

    async def _scenario():
        loop = asyncio.get_running_loop()
        started = loop.time()
        await asyncio.gather(
            *(client.generate_text(f"prompt {index}") for index in range(4))
        )
        return loop.time() - started

    elapsed = run_async(_scenario())

    assert len(transport.requests) == 4
    assert elapsed >= 0.13
    assert client.get_stats().config["requests_per_second"] == 20


def test_concurrency_bound_holds_across_parallel_calls():
    transport = _Transport(delay_s=0.02)
    client = _client(transport, admission_policy=AdmissionPolicy(concurrency=2))

    async def _scenario():
        return await asyncio.gather(
            *(client.generate_text(f"prompt {index}") for index in range(5))
        )

    results = run_async(_scenario())

    assert results == ["hello"] * 5
    assert transport.max_in_flight == 2
    status = client.get_stats().rate_limiter
    assert status.in_use == 0
    assert status.peak_in_use == 2


def test_transient_failure_is_retried_and_observed():
    transport = _Transport(errors=[TransportError("503 unavailable", status_code=503)])
    recorder = _Recorder()
    client = _client(transport, observers=[recorder])

    assert run_async(client.generate_text("Hello")) == "hello"
    assert len(transport.requests) == 2
    retry_events = [event for event in recorder.events if event.name == RETRY_SCHEDULED]
    assert len(retry_events) == 1
    assert retry_events[0].attempt == 1
    assert retry_events[0].operation == "generate_text"


def test_non_retryable_failure_reaches_hook_and_is_rethrown_unchanged():
    error = AuthenticationError("API key not valid")
    transport = _Transport(errors=[error])
    seen = []
    recorder = _Recorder()
    client = _client(
        transport,
        observers=[recorder],
        on_error=lambda exc, ctx: seen.append((exc, ctx.operation)),
    )

    with pytest.raises(AuthenticationError) as excinfo:
        run_async(client.generate_text("Hello"))

    assert excinfo.value is error
    assert len(transport.requests) == 1
    assert seen == [(error, "generate_text")]
    assert REQUEST_FAILURE in recorder.names()
    assert client.get_stats().rate_limiter.in_use == 0


def test_failing_error_hook_does_not_mask_original_error():
    def _hook(exc, ctx):
        raise RuntimeError("hook down")

    transport = _Transport(errors=[AuthenticationError("denied")])
    client = _client(transport, on_error=_hook)

    with pytest.raises(AuthenticationError):
        run_async(client.generate_text("Hello"))


def test_each_attempt_is_bounded_by_request_timeout():
    transport = _Transport(delay_s=0.5)
    client = _client(
        transport,
        retry_policy=RetryPolicy(max_attempts=2, base_delay_s=0.01, max_delay_s=0.01),
        timeout_policy=TimeoutPolicy(request_timeout_s=0.05),
    )

    with pytest.raises(RequestTimeoutError):
        run_async(client.generate_text("Hello"))

    assert len(transport.requests) == 2
    assert client.get_stats().rate_limiter.in_use == 0


def test_empty_candidates_raise_with_block_reason():
    transport = _Transport(
        GenerateContentResponse(prompt_feedback=PromptFeedback(block_reason="SAFETY"))
    )
    client = _client(transport)

    with pytest.raises(NoCandidateError) as excinfo:
        run_async(client.generate_text("Hello"))

    assert excinfo.value.block_reason == "SAFETY"
    assert len(transport.requests) == 1


def test_generate_raw_content_returns_full_response():
    response = _response("hi")
    client = _client(_Transport(response))

    raw = run_async(client.generate_raw_content("Hello"))

    assert raw is response
    assert raw.candidates[0].finish_reason == "STOP"


def test_execute_function_call_returns_requested_call():
    call = FunctionCall(name="get_weather", args={"city": "Oslo"})
    transport = _Transport(_response(None, calls=[call]))
    client = _client(transport)
    decl = FunctionDeclaration(
        name="get_weather",
        description="Current weather for a city",
        parameters={"type": "object", "properties": {"city": {"type": "string"}}},
    )

    result = run_async(client.execute_function_call("Weather in Oslo?", [decl]))

    assert result == call
    assert transport.requests[0].tools == [decl]


def test_execute_function_call_without_call_is_not_retried():
    transport = _Transport(_response("It is sunny."))
    seen = []
    client = _client(transport, on_error=lambda exc, ctx: seen.append(ctx.operation))

    with pytest.raises(NoFunctionCallError):
        run_async(client.execute_function_call("Weather?", [FunctionDeclaration(name="get_weather")]))

    assert len(transport.requests) == 1
    assert seen == ["execute_function_call"]


def test_send_function_response_builds_turns_and_skips_cache():
    transport = _Transport(_response("It is 21 degrees."))
    client = _client(transport)
    reply = FunctionResponse(name="get_weather", response={"temp_c": 21})

    async def _scenario():
        first = await client.send_function_response(reply)
        await client.send_function_response(reply)
        return first

    result = run_async(_scenario())

    assert result.text == "It is 21 degrees."
    assert len(transport.requests) == 2
    contents = transport.requests[0].contents
    assert contents[0] == Content.user_text(CONTINUE_PROMPT)
    assert contents[1].role == "model"
    assert contents[1].parts[0].function_response == reply


def test_stream_yields_deltas_and_one_terminal_chunk():
    chunks = [_response("Hel"), _response("lo")]
    transport = _Transport(stream_chunks=chunks)
    recorder = _Recorder()
    client = _client(transport, observers=[recorder])

    async def _scenario():
        return [chunk async for chunk in client.generate_stream("Hello")]

    out = run_async(_scenario())

    assert [chunk.text for chunk in out if not chunk.is_complete] == ["Hel", "lo"]
    assert [chunk.is_complete for chunk in out].count(True) == 1
    assert out[-1].is_complete is True
    assert out[-1].metadata.finish_reason == "STOP"
    assert STREAM_COMPLETE in recorder.names()
    assert client.get_stats().rate_limiter.in_use == 0


def test_abandoned_stream_releases_permit():
    transport = _Transport(stream_chunks=[_response(str(i)) for i in range(10)])
    client = _client(transport, admission_policy=AdmissionPolicy(concurrency=1))

    async def _scenario():
        seen = []
        async with aclosing(client.generate_stream("Hello")) as stream:
            async for chunk in stream:
                seen.append(chunk.text)
                break
        status = client.get_stats().rate_limiter
        follow_up = await client.generate_text("next")
        return seen, status, follow_up

    seen, status, follow_up = run_async(_scenario())

    assert seen == ["0"]
    assert status.in_use == 0
    assert transport.stream_closed is True
    assert follow_up == "hello"


def test_stream_start_failures_are_retried():
    transport = _Transport(
        errors=[TransportError("connection reset")],
        stream_chunks=[_response("ok")],
    )
    client = _client(transport)

    async def _scenario():
        return [chunk async for chunk in client.generate_stream("Hello")]

    out = run_async(_scenario())

    assert out[0].text == "ok"
    assert len(transport.requests) == 2


def test_destroy_rejects_queued_and_future_calls():
    transport = _Transport(delay_s=0.05)
    client = _client(transport, admission_policy=AdmissionPolicy(concurrency=1))

    async def _scenario():
        running = asyncio.create_task(client.generate_text("first"))
        await asyncio.sleep(0)
        queued = asyncio.create_task(client.generate_text("second"))
        await asyncio.sleep(0)
        client.destroy()
        client.destroy()
        results = await asyncio.gather(running, queued, return_exceptions=True)
        with pytest.raises(ClientDestroyedError):
            await client.generate_text("third")
        return results

    first, second = run_async(_scenario())

    assert first == "hello"
    assert isinstance(second, ClientDestroyedError)
    assert client.destroyed is True


def test_async_context_manager_destroys_on_exit():
    client = _client(_Transport())

    async def _scenario():
        async with client as active:
            return await active.generate_text("Hello")

    assert run_async(_scenario()) == "hello"
    assert client.destroyed is True


def test_generate_text_sync_runs_outside_event_loop():
    client = _client(_Transport())

    assert client.generate_text_sync("Hello") == "hello"


def test_stats_expose_effective_config():
    client = _client(_Transport(), admission_policy=AdmissionPolicy(concurrency=3))

    config = client.get_stats().config

    assert config["model"] == "gemini-1.5-flash"
    assert config["concurrency"] == 3
    assert config["max_attempts"] == 3
    assert config["timeout_s"] == 30.0
    assert "api_key" not in config
