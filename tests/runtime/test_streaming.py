from __future__ import annotations

import asyncio

from genrelay.runtime import aggregate_stream
from genrelay.types import (
    Candidate,
    Content,
    FunctionCall,
    GenerateContentResponse,
    Part,
    SafetyRating,
    UsageMetadata,
)


def _chunk(*parts: Part, finish_reason=None, usage=None, ratings=()):
    return GenerateContentResponse(
        candidates=[
            Candidate(
                content=Content(role="model", parts=list(parts)),
                finish_reason=finish_reason,
                safety_ratings=list(ratings),
            )
        ],
        usage=usage,
    )


async def _source(chunks):
    for chunk in chunks:
        await asyncio.sleep(0)
        yield chunk


def run_async(coro):
    return asyncio.run(coro)


async def _collect(chunks):
    return [item async for item in aggregate_stream(_source(chunks))]


def test_text_deltas_then_single_terminal_chunk():
    rating = SafetyRating(category="HARM_CATEGORY_HARASSMENT", probability="NEGLIGIBLE")
    out = run_async(
        _collect(
            [
                _chunk(Part(text="Hel")),
                _chunk(Part(text="lo")),
                _chunk(
                    Part(text="!"),
                    finish_reason="STOP",
                    usage=UsageMetadata(candidates_token_count=3),
                    ratings=[rating],
                ),
            ]
        )
    )

    assert [chunk.text for chunk in out[:-1]] == ["Hel", "lo", "!"]
    assert [chunk.is_complete for chunk in out] == [False, False, False, True]
    terminal = out[-1]
    assert terminal.metadata.finish_reason == "STOP"
    assert terminal.metadata.token_count == 3
    assert terminal.metadata.safety_ratings == [rating]


def test_terminal_chunk_defaults_when_service_reports_nothing():
    out = run_async(_collect([_chunk(Part(text="abc")), _chunk(Part(text="de"))]))

    terminal = out[-1]
    assert terminal.is_complete is True
    assert terminal.metadata.finish_reason == "STOP"
    assert terminal.metadata.token_count == 5


def test_empty_stream_still_completes():
    out = run_async(_collect([]))

    assert len(out) == 1
    assert out[0].is_complete is True
    assert out[0].metadata.token_count == 0


def test_function_call_parts_are_surfaced_as_chunks():
    call = FunctionCall(name="get_weather", args={"city": "Oslo"})
    out = run_async(
        _collect(
            [
                GenerateContentResponse(candidates=[]),
                _chunk(Part(function_call=call), finish_reason="STOP"),
            ]
        )
    )

    assert out[0].function_call == call
    assert out[0].text is None
    assert out[-1].is_complete is True
    assert sum(1 for chunk in out if chunk.is_complete) == 1
