"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: runtime/retry.py.
"""

from __future__ import annotations

import asyncio
import logging
import socket
from collections.abc import Awaitable, Callable
from typing import TypeVar

from ..errors import (
    AuthenticationError,
    GenerationError,
    QuotaExceededError,
    RateLimitedError,
    RequestTimeoutError,
    TransportError,
)
from .contracts import RetryPolicy
from .timeouts import await_with_timeout

T = TypeVar("T")

logger = logging.getLogger("genrelay.runtime.retry")

RetryHook = Callable[[int, float, BaseException], None]

_AUTH_PHRASES = (
    "invalid api key",
    "api key not valid",
    "authentication",
    "unauthenticated",
    "permission denied",
)
_QUOTA_PHRASES = ("quota exceeded", "resource exhausted", "resource_exhausted")
_RATE_LIMIT_PHRASES = ("rate limit exceeded",)


def _status_code(error: BaseException) -> int | None:
    for attr in ("status_code", "code", "status"):
        value = getattr(error, attr, None)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    return None


def classify_error(error: BaseException) -> GenerationError:
    """
    Map an untyped exception onto the genrelay taxonomy.

    Legacy adapter for third-party errors that carry only a status code or a
    message. Typed `GenerationError` instances are returned unchanged.
    """
    if isinstance(error, GenerationError):
        return error
    if isinstance(error, (asyncio.TimeoutError, TimeoutError, socket.timeout)):
        return RequestTimeoutError(None, str(error) or None)

    status = _status_code(error)
    if status in (401, 403):
        return AuthenticationError(str(error))

    msg = str(error).lower()
    if status == 429:
        if any(token in msg for token in _QUOTA_PHRASES):
            return QuotaExceededError(str(error))
        return RateLimitedError(str(error))

    if any(token in msg for token in _AUTH_PHRASES):
        return AuthenticationError(str(error))
    if any(token in msg for token in _QUOTA_PHRASES):
        return QuotaExceededError(str(error))
    if any(token in msg for token in _RATE_LIMIT_PHRASES):
        return RateLimitedError(str(error))
    return TransportError(str(error), status_code=status)


def is_retryable(error: BaseException) -> bool:
    return classify_error(error).retryable


async def call_with_retry(
    fn: Callable[[], Awaitable[T]],
    *,
    policy: RetryPolicy,
    timeout_s: float | None = None,
    on_retry: RetryHook | None = None,
) -> T:
    """
    Execute callable under bounded retry policy.

    Each attempt runs under `timeout_s`. `fn` is invoked at most
    `policy.max_attempts` times and exactly once when the first failure is
    non-retryable. The original exception is re-raised unchanged.
    """
    for attempt in range(1, policy.max_attempts + 1):
        try:
            return await await_with_timeout(fn(), timeout_s)
        except Exception as error:
            if not is_retryable(error):
                raise
            if attempt >= policy.max_attempts:
                raise
            delay_s = policy.delay_for(attempt)
            logger.warning(
                "Attempt %d/%d failed (%s); retrying in %.3fs",
                attempt,
                policy.max_attempts,
                error,
                delay_s,
            )
            if on_retry is not None:
                try:
                    on_retry(attempt, delay_s, error)
                except Exception:  # noqa: BLE001
                    logger.exception("Retry hook failed")
            await asyncio.sleep(delay_s)
    raise GenerationError("Retry loop exhausted")
