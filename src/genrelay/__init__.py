"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

genrelay: resilient async client for generateContent-style generative services.
"""

from __future__ import annotations

from .errors import (
    AuthenticationError,
    CacheError,
    ClientDestroyedError,
    ConfigurationError,
    GenerationError,
    InvalidResponseError,
    NoCandidateError,
    NoFunctionCallError,
    NonRetryableGenerationError,
    QuotaExceededError,
    RateLimitedError,
    RequestTimeoutError,
    RetryableGenerationError,
    TransportError,
)
from .types import (
    Candidate,
    Content,
    FunctionCall,
    FunctionDeclaration,
    FunctionResponse,
    GenerateContentResponse,
    GenerationConfig,
    GenerationOptions,
    Part,
    PromptFeedback,
    RawResponse,
    RequestContext,
    RequestOptions,
    SafetyRating,
    SafetySetting,
    StreamChunk,
    StreamMetadata,
    TransportRequest,
    UsageMetadata,
)
from .runtime import (
    AdmissionGate,
    AdmissionPolicy,
    CachePolicy,
    GateStatus,
    RetryPolicy,
    TimeoutPolicy,
)
from .cache import CacheBackend, CacheManager, CacheStats, InMemoryCache
from .observability import (
    ClientEvent,
    ClientObserver,
    LoggingObserver,
    PrometheusClientMetrics,
)
from .runtime.client import ClientStats, GenerativeClient
from .settings import ClientSettings
from .profiles import PROFILES
from .builder import ClientBuilder
from .transports import GenerativeTransport, GoogleGenAITransport

__all__ = [
    "GenerativeClient",
    "ClientBuilder",
    "ClientSettings",
    "ClientStats",
    "PROFILES",
    "GenerativeTransport",
    "GoogleGenAITransport",
    "AdmissionGate",
    "AdmissionPolicy",
    "CachePolicy",
    "GateStatus",
    "RetryPolicy",
    "TimeoutPolicy",
    "CacheBackend",
    "CacheManager",
    "CacheStats",
    "InMemoryCache",
    "ClientEvent",
    "ClientObserver",
    "LoggingObserver",
    "PrometheusClientMetrics",
    "Candidate",
    "Content",
    "FunctionCall",
    "FunctionDeclaration",
    "FunctionResponse",
    "GenerateContentResponse",
    "GenerationConfig",
    "GenerationOptions",
    "Part",
    "PromptFeedback",
    "RawResponse",
    "RequestContext",
    "RequestOptions",
    "SafetyRating",
    "SafetySetting",
    "StreamChunk",
    "StreamMetadata",
    "TransportRequest",
    "UsageMetadata",
    "GenerationError",
    "RetryableGenerationError",
    "NonRetryableGenerationError",
    "TransportError",
    "RequestTimeoutError",
    "AuthenticationError",
    "QuotaExceededError",
    "RateLimitedError",
    "InvalidResponseError",
    "NoCandidateError",
    "NoFunctionCallError",
    "ClientDestroyedError",
    "ConfigurationError",
    "CacheError",
]
