"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

This module defines transport-agnostic types exchanged with generative services.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Literal, TypeAlias

if TYPE_CHECKING:
    from pydantic import BaseModel


JSONPrimitive: TypeAlias = str | int | float | bool | None
JSONValue: TypeAlias = JSONPrimitive | list["JSONValue"] | dict[str, "JSONValue"]
JSONObject: TypeAlias = dict[str, JSONValue]
JSONSchema: TypeAlias = dict[str, JSONValue]

Role = Literal["user", "model"]


@dataclass(frozen=True, slots=True)
class SafetySetting:
    """Content filtering threshold for one harm category."""
    category: str
    threshold: str


@dataclass(frozen=True, slots=True)
class FunctionDeclaration:
    """Tool declaration offered to the model."""
    name: str
    description: str = ""
    parameters: JSONSchema | None = None

    @classmethod
    def from_model(
        cls,
        name: str,
        description: str,
        model: type["BaseModel"],
    ) -> "FunctionDeclaration":
        """Build a declaration whose parameters mirror a pydantic model schema."""
        from .tool_export import normalize_json_schema

        return cls(
            name=name,
            description=description,
            parameters=normalize_json_schema(model.model_json_schema()),
        )


@dataclass(frozen=True, slots=True)
class FunctionCall:
    """
    Data-only representation of a model-requested function call.
    The caller decides if/when/how to execute it.
    """

    name: str
    args: JSONObject = field(default_factory=dict)

    def parse_args(self, model: type["BaseModel"]) -> "BaseModel":
        """Validate call arguments into a pydantic model instance."""
        return model.model_validate(self.args)


@dataclass(frozen=True, slots=True)
class FunctionResponse:
    """Caller-supplied function result used to continue the conversation."""
    name: str
    response: JSONObject = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class Part:
    """One content part; exactly one field is normally populated."""
    text: str | None = None
    function_call: FunctionCall | None = None
    function_response: FunctionResponse | None = None


@dataclass(frozen=True, slots=True)
class Content:
    """One conversation turn."""
    role: Role
    parts: list[Part] = field(default_factory=list)

    @classmethod
    def user_text(cls, text: str) -> "Content":
        return cls(role="user", parts=[Part(text=text)])


@dataclass(frozen=True, slots=True)
class SafetyRating:
    """Safety classification attached to a candidate."""
    category: str
    probability: str
    blocked: bool = False


@dataclass(frozen=True, slots=True)
class UsageMetadata:
    """Token usage counters returned by the service."""
    prompt_token_count: int | None = None
    candidates_token_count: int | None = None
    total_token_count: int | None = None


@dataclass(frozen=True, slots=True)
class PromptFeedback:
    """Prompt-level feedback, set when the prompt itself was blocked."""
    block_reason: str | None = None
    block_reason_message: str | None = None
    safety_ratings: list[SafetyRating] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class Candidate:
    """One generated candidate."""
    content: Content
    finish_reason: str | None = None
    index: int = 0
    safety_ratings: list[SafetyRating] = field(default_factory=list)
    token_count: int | None = None


@dataclass(frozen=True, slots=True)
class GenerateContentResponse:
    """Normalized raw response for one generate call (or one stream chunk)."""
    candidates: list[Candidate] = field(default_factory=list)
    usage: UsageMetadata | None = None
    prompt_feedback: PromptFeedback | None = None
    model_version: str | None = None
    raw: dict[str, Any] = field(default_factory=dict)

    @property
    def first_candidate(self) -> Candidate | None:
        return self.candidates[0] if self.candidates else None

    @property
    def text(self) -> str:
        """Concatenated text parts of the first candidate."""
        candidate = self.first_candidate
        if candidate is None:
            return ""
        return "".join(part.text for part in candidate.content.parts if part.text)

    @property
    def function_calls(self) -> list[FunctionCall]:
        """Function-call parts of the first candidate, in order."""
        candidate = self.first_candidate
        if candidate is None:
            return []
        return [
            part.function_call
            for part in candidate.content.parts
            if part.function_call is not None
        ]


RawResponse: TypeAlias = GenerateContentResponse


@dataclass(frozen=True, slots=True)
class GenerationOptions:
    """Per-call generation parameters; `None` falls back to client settings."""
    temperature: float | None = None
    max_output_tokens: int | None = None
    top_k: int | None = None
    top_p: float | None = None
    stop_sequences: list[str] | None = None
    safety_settings: list[SafetySetting] | None = None
    enable_function_calling: bool = False
    available_functions: list[FunctionDeclaration] | None = None


@dataclass(frozen=True, slots=True)
class RequestOptions(GenerationOptions):
    """
    Generation parameters plus per-call controls.

    `cache=False` bypasses the response cache for this call, `cache_ttl_s`
    overrides the cache TTL, and `request_id` tags logs and observer events.
    """

    cache: bool | None = None
    cache_ttl_s: float | None = None
    request_id: str | None = None


@dataclass(frozen=True, slots=True)
class GenerationConfig:
    """Resolved generation config sent to the transport."""
    temperature: float | None = None
    max_output_tokens: int | None = None
    top_k: int | None = None
    top_p: float | None = None
    stop_sequences: list[str] | None = None


@dataclass(frozen=True, slots=True)
class TransportRequest:
    """
    Canonical request handed to a transport.
    """

    model: str
    contents: list[Content] = field(default_factory=list)
    generation_config: GenerationConfig = field(default_factory=GenerationConfig)
    tools: list[FunctionDeclaration] | None = None
    safety_settings: list[SafetySetting] | None = None
    request_id: str | None = None


@dataclass(frozen=True, slots=True)
class RequestContext:
    """Per-call context used for cache keys and error reporting."""
    operation: str
    prompt: str | None
    options: RequestOptions
    request_id: str


@dataclass(frozen=True, slots=True)
class StreamMetadata:
    """Metadata carried by the terminal stream chunk."""
    finish_reason: str | None = None
    token_count: int | None = None
    safety_ratings: list[SafetyRating] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class StreamChunk:
    """One unit of a streamed response; exactly one per stream is complete."""
    text: str | None = None
    function_call: FunctionCall | None = None
    is_complete: bool = False
    metadata: StreamMetadata | None = None
