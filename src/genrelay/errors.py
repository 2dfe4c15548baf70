"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Typed error taxonomy for generative-service calls.

Every error carries a `retryable` flag consumed by the retry executor.
Untyped third-party errors are mapped onto this taxonomy by
`genrelay.runtime.retry.classify_error`.
"""

from __future__ import annotations


class GenerationError(Exception):
    """Base error for all genrelay failures."""

    retryable: bool = False


class RetryableGenerationError(GenerationError):
    """Transient failure; the retry executor may try again."""

    retryable = True


class TransportError(RetryableGenerationError):
    """Network or upstream failure raised while talking to the transport."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RequestTimeoutError(RetryableGenerationError):
    """One attempt exceeded its deadline."""

    def __init__(self, timeout_s: float | None, message: str | None = None) -> None:
        if message is None:
            message = (
                "Request timed out"
                if timeout_s is None
                else f"Request timeout after {timeout_s:g}s"
            )
        super().__init__(message)
        self.timeout_s = timeout_s


class NonRetryableGenerationError(GenerationError):
    """Failure that must surface on the first attempt."""


class AuthenticationError(NonRetryableGenerationError):
    """Invalid credentials or permission denied."""


class QuotaExceededError(NonRetryableGenerationError):
    """Upstream quota is exhausted."""


class RateLimitedError(NonRetryableGenerationError):
    """Upstream rejected the call for exceeding its rate limit."""


class InvalidResponseError(NonRetryableGenerationError):
    """Transport answered, but not with the expected shape."""


class NoCandidateError(InvalidResponseError):
    """Response carried no candidates."""

    def __init__(self, message: str = "No response candidates returned", *, block_reason: str | None = None) -> None:
        super().__init__(message)
        self.block_reason = block_reason


class NoFunctionCallError(InvalidResponseError):
    """First candidate did not contain a function-call part."""

    def __init__(self, message: str = "No function call found in response") -> None:
        super().__init__(message)


class ClientDestroyedError(GenerationError):
    """Raised for calls made (or still queued) after `destroy()`."""


class ConfigurationError(GenerationError):
    """Invalid client or policy configuration."""


class CacheError(GenerationError):
    """
    Cache backend failure.

    Never raised to callers of the client; the cache manager reports it to
    observers and degrades to a miss.
    """

    def __init__(self, operation: str, cause: BaseException) -> None:
        super().__init__(f"Cache {operation} failed: {cause}")
        self.operation = operation
        self.cause = cause
