"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: runtime/streaming.py.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator

from ..types import GenerateContentResponse, SafetyRating, StreamChunk, StreamMetadata

logger = logging.getLogger("genrelay.runtime.streaming")

DEFAULT_FINISH_REASON = "STOP"


async def aggregate_stream(
    source: AsyncIterator[GenerateContentResponse],
) -> AsyncIterator[StreamChunk]:
    """
    Turn transport chunks into typed stream chunks.

    Yields one text chunk per transport delta carrying text, one chunk per
    function-call part, and exactly one terminal `is_complete` chunk last.
    """
    text_chars = 0
    finish_reason: str | None = None
    token_count: int | None = None
    safety_ratings: list[SafetyRating] = []

    async for chunk in source:
        if chunk.usage is not None and chunk.usage.candidates_token_count is not None:
            token_count = chunk.usage.candidates_token_count
        candidate = chunk.first_candidate
        if candidate is None:
            continue
        if candidate.finish_reason:
            finish_reason = candidate.finish_reason
        if candidate.safety_ratings:
            safety_ratings = list(candidate.safety_ratings)
        if candidate.token_count is not None and token_count is None:
            token_count = candidate.token_count

        text = chunk.text
        if text:
            text_chars += len(text)
            yield StreamChunk(text=text)
        for call in chunk.function_calls:
            yield StreamChunk(function_call=call)

    yield StreamChunk(
        is_complete=True,
        metadata=StreamMetadata(
            finish_reason=finish_reason or DEFAULT_FINISH_REASON,
            # Character count approximates tokens when usage is not reported.
            token_count=token_count if token_count is not None else text_chars,
            safety_ratings=safety_ratings,
        ),
    )


async def close_stream(source: object) -> None:
    """Close a transport stream if it supports `aclose`; failures are logged."""
    aclose = getattr(source, "aclose", None)
    if aclose is None:
        return
    try:
        await aclose()
    except Exception:  # noqa: BLE001
        logger.exception("Failed to close transport stream")
