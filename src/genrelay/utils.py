"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Shared helpers for runtime modules.
"""

from __future__ import annotations

import asyncio
import dataclasses
import json
import uuid
from collections.abc import Coroutine, Mapping
from typing import Any, TypeVar

T = TypeVar("T")


def backoff_delay(
    attempt: int,
    base_delay_s: float,
    multiplier: float,
    max_delay_s: float,
) -> float:
    """
    Exponential backoff delay after failed `attempt` (1-based).

    `min(base * multiplier^(attempt-1), max)`; never negative.
    """
    if attempt < 1:
        attempt = 1
    delay = base_delay_s * (multiplier ** (attempt - 1))
    return max(0.0, min(delay, max_delay_s))


def to_jsonable(value: Any) -> Any:
    """Normalize dataclasses, pydantic models and containers into JSON-safe data."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {
            f.name: to_jsonable(getattr(value, f.name))
            for f in dataclasses.fields(value)
        }
    if hasattr(value, "model_dump") and callable(value.model_dump):
        return to_jsonable(value.model_dump())
    if isinstance(value, Mapping):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    if isinstance(value, (set, frozenset)):
        return sorted((to_jsonable(v) for v in value), key=repr)
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return str(value)


def canonical_json(value: Any) -> str:
    """Serialize with sorted keys and compact separators for stable hashing."""
    return json.dumps(
        to_jsonable(value),
        ensure_ascii=True,
        sort_keys=True,
        separators=(",", ":"),
    )


def new_request_id() -> str:
    return uuid.uuid4().hex


def run_sync(coro: Coroutine[Any, Any, T]) -> T:
    """Run coroutine to completion from synchronous code."""
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    coro.close()
    raise RuntimeError(
        "Synchronous wrapper called inside a running event loop; "
        "await the async method instead"
    )
