"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: runtime/client.py.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator, Callable, Iterable, Sequence
from contextlib import aclosing
from dataclasses import dataclass, field, replace
from typing import Any, TypeVar

from ..cache.base import CacheBackend, CacheStats
from ..cache.manager import CacheManager
from ..errors import CacheError, ClientDestroyedError
from ..observability.events import (
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
from ..settings import ClientSettings
from ..transports.contracts import GenerativeTransport
from ..types import (
    Content,
    FunctionCall,
    FunctionDeclaration,
    FunctionResponse,
    GenerateContentResponse,
    GenerationConfig,
    RequestContext,
    RequestOptions,
    StreamChunk,
    TransportRequest,
)
from ..utils import new_request_id, run_sync
from .contracts import AdmissionPolicy, CachePolicy, RetryPolicy, TimeoutPolicy
from .functions import (
    ensure_candidates,
    extract_function_call,
    function_response_turns,
    with_functions,
)
from .rate_limit import AdmissionGate, AdmissionPermit, GateStatus
from .retry import RetryHook, call_with_retry
from .streaming import aggregate_stream, close_stream
from .timeouts import iter_with_idle_timeout

T = TypeVar("T")

logger = logging.getLogger("genrelay.runtime.client")

CACHE_NAMESPACE = "genrelay"


@dataclass(frozen=True, slots=True)
class ClientStats:
    """Snapshot returned by `GenerativeClient.get_stats()`."""

    cache: CacheStats
    rate_limiter: GateStatus
    config: dict[str, Any] = field(default_factory=dict)


def _response_text(response: GenerateContentResponse) -> str:
    ensure_candidates(response)
    return response.text


def _identity(response: GenerateContentResponse) -> GenerateContentResponse:
    return response


class GenerativeClient:
    """
    Resilient façade over one generative transport.

    Unary calls consult the response cache first; on a miss they take one
    admission permit, run the transport call under the retry policy with a
    per-attempt timeout, write the result back to the cache and release the
    permit whatever the outcome. Streams hold one permit until the consumer
    finishes or abandons iteration.
    """

    def __init__(
        self,
        transport: GenerativeTransport | None = None,
        *,
        settings: ClientSettings | None = None,
        retry_policy: RetryPolicy | None = None,
        timeout_policy: TimeoutPolicy | None = None,
        cache_policy: CachePolicy | None = None,
        admission_policy: AdmissionPolicy | None = None,
        cache_backend: str | CacheBackend | None = None,
        observers: Iterable[ClientObserver] | None = None,
        on_error: ErrorHook | None = None,
    ) -> None:
        self.settings = settings or ClientSettings()
        if transport is None:
            from ..transports.google import GoogleGenAITransport

            transport = GoogleGenAITransport(api_key=self.settings.api_key)
        self._transport = transport

        self._retry_policy = retry_policy or self.settings.retry
        self._timeout_policy = timeout_policy or self.settings.timeout
        self._cache_policy = cache_policy or self.settings.cache
        self._admission_policy = admission_policy or self.settings.rate_limit

        self._events = EventDispatcher(observers, on_error=on_error)
        self._cache = CacheManager(
            self._cache_policy,
            backend=cache_backend,
            reporter=self._on_cache_error,
        )
        self._gate = AdmissionGate(self._admission_policy)
        self._destroyed = False

    @property
    def transport(self) -> GenerativeTransport:
        return self._transport

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    async def __aenter__(self) -> "GenerativeClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.destroy()

    # ------------------------------------------------------------------
    # Request building
    # ------------------------------------------------------------------

    def _ensure_open(self) -> None:
        if self._destroyed:
            raise ClientDestroyedError("Client has been destroyed")

    def _context(
        self,
        operation: str,
        prompt: str | None,
        options: RequestOptions | None,
    ) -> RequestContext:
        opts = options or RequestOptions()
        return RequestContext(
            operation=operation,
            prompt=prompt,
            options=opts,
            request_id=opts.request_id or new_request_id(),
        )

    def _generation_config(self, options: RequestOptions) -> GenerationConfig:
        s = self.settings
        return GenerationConfig(
            temperature=s.temperature if options.temperature is None else options.temperature,
            max_output_tokens=(
                s.max_tokens
                if options.max_output_tokens is None
                else options.max_output_tokens
            ),
            top_k=s.top_k if options.top_k is None else options.top_k,
            top_p=s.top_p if options.top_p is None else options.top_p,
            stop_sequences=list(options.stop_sequences) if options.stop_sequences else None,
        )

    def _build_request(
        self,
        ctx: RequestContext,
        contents: Sequence[Content],
    ) -> TransportRequest:
        opts = ctx.options
        tools = None
        if opts.enable_function_calling and opts.available_functions:
            tools = list(opts.available_functions)
        safety = opts.safety_settings or self.settings.safety_settings or None
        return TransportRequest(
            model=self.settings.model,
            contents=list(contents),
            generation_config=self._generation_config(opts),
            tools=tools,
            safety_settings=list(safety) if safety else None,
            request_id=ctx.request_id,
        )

    def _cache_key(self, ctx: RequestContext, request: TransportRequest) -> str:
        """Deterministic key for operation + resolved request, minus per-call tags."""
        return CacheManager.create_hash_key(
            CACHE_NAMESPACE,
            {
                "operation": ctx.operation,
                "request": replace(request, request_id=None),
            },
        )

    def _use_cache(self, ctx: RequestContext) -> bool:
        return self._cache.enabled and ctx.options.cache is not False

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def _emit(self, name: str, ctx: RequestContext | None, **kwargs: Any) -> None:
        self._events.emit(
            ClientEvent(
                name=name,
                operation=ctx.operation if ctx is not None else None,
                request_id=ctx.request_id if ctx is not None else None,
                **kwargs,
            )
        )

    def _retry_hook(self, ctx: RequestContext) -> RetryHook:
        def _on_retry(attempt: int, delay_s: float, error: BaseException) -> None:
            self._emit(
                RETRY_SCHEDULED,
                ctx,
                attempt=attempt,
                delay_s=delay_s,
                error=error,
            )

        return _on_retry

    def _on_cache_error(self, error: CacheError) -> None:
        self._emit(CACHE_ERROR, None, error=error, metadata={"operation": error.operation})

    def _fail(
        self,
        ctx: RequestContext,
        error: BaseException,
        started: float | None,
    ) -> None:
        duration_s = time.monotonic() - started if started is not None else None
        logger.error(
            "%s failed (request_id=%s): %s: %s",
            ctx.operation,
            ctx.request_id[:8],
            type(error).__name__,
            error,
        )
        self._emit(REQUEST_FAILURE, ctx, error=error, duration_s=duration_s)
        self._events.report_error(error, ctx)

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def _call_transport(
        self,
        ctx: RequestContext,
        request: TransportRequest,
    ) -> GenerateContentResponse:
        permit: AdmissionPermit = await self._gate.acquire()
        try:
            return await call_with_retry(
                lambda: self._transport.generate(request),
                policy=self._retry_policy,
                timeout_s=self._timeout_policy.request_timeout_s,
                on_retry=self._retry_hook(ctx),
            )
        finally:
            self._gate.release(permit)

    async def _execute(
        self,
        ctx: RequestContext,
        request: TransportRequest,
        *,
        transform: Callable[[GenerateContentResponse], T],
        cacheable: bool = True,
    ) -> T:
        """Cache read-through, admission, retry and write-back for one call."""
        started = time.monotonic()
        self._emit(REQUEST_START, ctx)
        try:
            self._ensure_open()
            key = None
            if cacheable and self._use_cache(ctx):
                key = self._cache_key(ctx, request)
                cached = await self._cache.get(key)
                if cached is not None:
                    logger.debug(
                        "Cache hit for %s (request_id=%s)", ctx.operation, ctx.request_id[:8]
                    )
                    self._emit(CACHE_HIT, ctx)
                    self._emit(
                        REQUEST_SUCCESS,
                        ctx,
                        duration_s=time.monotonic() - started,
                        metadata={"cached": True},
                    )
                    return cached
                self._emit(CACHE_MISS, ctx)

            response = await self._call_transport(ctx, request)
            result = transform(response)
            if key is not None:
                await self._cache.set(key, result, ttl_s=ctx.options.cache_ttl_s)
        except Exception as error:
            self._fail(ctx, error, started)
            raise

        duration_s = time.monotonic() - started
        logger.debug(
            "%s took %.1fms (request_id=%s)",
            ctx.operation,
            duration_s * 1000,
            ctx.request_id[:8],
        )
        self._emit(REQUEST_SUCCESS, ctx, duration_s=duration_s)
        return result

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def generate_text(
        self,
        prompt: str,
        options: RequestOptions | None = None,
    ) -> str:
        """Generate text for `prompt`; raises `NoCandidateError` on an empty response."""
        ctx = self._context("generate_text", prompt, options)
        request = self._build_request(ctx, [Content.user_text(prompt)])
        return await self._execute(ctx, request, transform=_response_text)

    def generate_text_sync(
        self,
        prompt: str,
        options: RequestOptions | None = None,
    ) -> str:
        """Synchronous wrapper around `generate_text`."""
        return run_sync(self.generate_text(prompt, options))

    async def generate_raw_content(
        self,
        prompt: str,
        options: RequestOptions | None = None,
    ) -> GenerateContentResponse:
        """Return the full normalized response (candidates, usage, feedback)."""
        ctx = self._context("generate_raw_content", prompt, options)
        request = self._build_request(ctx, [Content.user_text(prompt)])
        return await self._execute(ctx, request, transform=_identity)

    async def generate_stream(
        self,
        prompt: str,
        options: RequestOptions | None = None,
    ) -> AsyncIterator[StreamChunk]:
        """
        Stream text chunks for `prompt`.

        One admission permit is held from stream start until the consumer
        reaches the terminal chunk, fails, or closes the iterator early.
        Streams are never cached.
        """
        ctx = self._context("generate_stream", prompt, options)
        request = self._build_request(ctx, [Content.user_text(prompt)])
        started = time.monotonic()
        self._emit(STREAM_START, ctx)

        permit: AdmissionPermit | None = None
        source: Any = None
        try:
            self._ensure_open()
            permit = await self._gate.acquire()
            source = await call_with_retry(
                lambda: self._transport.generate_stream(request),
                policy=self._retry_policy,
                timeout_s=self._timeout_policy.request_timeout_s,
                on_retry=self._retry_hook(ctx),
            )
            chunks = aggregate_stream(
                iter_with_idle_timeout(
                    source,
                    idle_timeout_s=self._timeout_policy.stream_idle_timeout_s,
                )
            )
            async with aclosing(chunks):
                async for chunk in chunks:
                    if chunk.is_complete:
                        self._emit(
                            STREAM_COMPLETE,
                            ctx,
                            duration_s=time.monotonic() - started,
                            metadata={
                                "finish_reason": chunk.metadata.finish_reason,
                                "token_count": chunk.metadata.token_count,
                            },
                        )
                    yield chunk
        except Exception as error:
            self._fail(ctx, error, started)
            raise
        finally:
            if permit is not None:
                self._gate.release(permit)
            if source is not None:
                await close_stream(source)

    async def execute_function_call(
        self,
        prompt: str,
        functions: Iterable[FunctionDeclaration],
        options: RequestOptions | None = None,
    ) -> FunctionCall:
        """
        Offer `functions` to the model and return the call it requested.

        The call is returned as data; executing it is up to the caller.
        Raises `NoFunctionCallError` when the model answered without a call.
        """
        opts = with_functions(options or RequestOptions(), functions)
        if opts.request_id is None:
            opts = replace(opts, request_id=new_request_id())
        response = await self.generate_raw_content(prompt, opts)
        try:
            return extract_function_call(response)
        except Exception as error:
            self._fail(self._context("execute_function_call", prompt, opts), error, None)
            raise

    async def send_function_response(
        self,
        function_response: FunctionResponse,
        options: RequestOptions | None = None,
        *,
        history: Sequence[Content] | None = None,
    ) -> GenerateContentResponse:
        """
        Continue a tool-use exchange with the caller's function result.

        Prior turns come from `history`. The response is never cached.
        """
        ctx = self._context("send_function_response", None, options)
        turns = function_response_turns(function_response, history)
        request = self._build_request(ctx, turns)
        return await self._execute(
            ctx,
            request,
            transform=_identity,
            cacheable=False,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def get_stats(self) -> ClientStats:
        return ClientStats(
            cache=self._cache.get_stats(),
            rate_limiter=self._gate.get_status(),
            config={
                **self.settings.config_summary(),
                "timeout_s": self._timeout_policy.request_timeout_s,
                "concurrency": self._gate.limit,
                "requests_per_second": self._admission_policy.requests_per_second,
                "max_attempts": self._retry_policy.max_attempts,
            },
        )

    async def clear_cache(self) -> None:
        await self._cache.clear()
        logger.info("Response cache cleared")

    def destroy(self) -> None:
        """Stop background work and reject queued callers. Idempotent."""
        if self._destroyed:
            return
        self._destroyed = True
        self._cache.destroy()
        self._gate.close()
        logger.info("Generative client destroyed")
