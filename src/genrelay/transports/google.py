"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Google GenAI backed transport built on the `google-genai` async client.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from typing import Any

from ..errors import ConfigurationError, GenerationError
from ..runtime.retry import classify_error
from ..tool_export import to_tools_payload
from ..types import (
    Candidate,
    Content,
    FunctionCall,
    FunctionResponse,
    GenerateContentResponse,
    Part,
    PromptFeedback,
    SafetyRating,
    TransportRequest,
    UsageMetadata,
)
from ..utils import to_jsonable

logger = logging.getLogger("genrelay.transports.google")


def _enum_text(value: Any) -> str | None:
    """SDK enums are str-valued; plain strings pass through."""
    if value is None:
        return None
    return str(getattr(value, "value", value))


def _content_to_dict(content: Content) -> dict[str, Any]:
    parts: list[dict[str, Any]] = []
    for part in content.parts:
        if part.text is not None:
            parts.append({"text": part.text})
        elif part.function_call is not None:
            parts.append(
                {
                    "function_call": {
                        "name": part.function_call.name,
                        "args": dict(part.function_call.args),
                    }
                }
            )
        elif part.function_response is not None:
            parts.append(
                {
                    "function_response": {
                        "name": part.function_response.name,
                        "response": dict(part.function_response.response),
                    }
                }
            )
    return {"role": content.role, "parts": parts}


def _safety_ratings(rows: Any) -> list[SafetyRating]:
    out: list[SafetyRating] = []
    for row in rows or []:
        out.append(
            SafetyRating(
                category=_enum_text(getattr(row, "category", None)) or "",
                probability=_enum_text(getattr(row, "probability", None)) or "",
                blocked=bool(getattr(row, "blocked", False)),
            )
        )
    return out


def _part_from_sdk(part: Any) -> Part | None:
    text = getattr(part, "text", None)
    if isinstance(text, str):
        return Part(text=text)
    call = getattr(part, "function_call", None)
    if call is not None:
        return Part(
            function_call=FunctionCall(
                name=getattr(call, "name", None) or "",
                args=dict(getattr(call, "args", None) or {}),
            )
        )
    reply = getattr(part, "function_response", None)
    if reply is not None:
        return Part(
            function_response=FunctionResponse(
                name=getattr(reply, "name", None) or "",
                response=dict(getattr(reply, "response", None) or {}),
            )
        )
    return None


def _candidate_from_sdk(candidate: Any, position: int) -> Candidate:
    sdk_content = getattr(candidate, "content", None)
    parts = [
        part
        for part in (
            _part_from_sdk(row) for row in getattr(sdk_content, "parts", None) or []
        )
        if part is not None
    ]
    role = getattr(sdk_content, "role", None)
    index = getattr(candidate, "index", None)
    return Candidate(
        content=Content(role="user" if role == "user" else "model", parts=parts),
        finish_reason=_enum_text(getattr(candidate, "finish_reason", None)),
        index=index if isinstance(index, int) else position,
        safety_ratings=_safety_ratings(getattr(candidate, "safety_ratings", None)),
        token_count=getattr(candidate, "token_count", None),
    )


def response_from_sdk(response: Any) -> GenerateContentResponse:
    """Convert one SDK `GenerateContentResponse` into package types."""
    usage_row = getattr(response, "usage_metadata", None)
    usage = None
    if usage_row is not None:
        usage = UsageMetadata(
            prompt_token_count=getattr(usage_row, "prompt_token_count", None),
            candidates_token_count=getattr(usage_row, "candidates_token_count", None),
            total_token_count=getattr(usage_row, "total_token_count", None),
        )

    feedback_row = getattr(response, "prompt_feedback", None)
    feedback = None
    if feedback_row is not None:
        feedback = PromptFeedback(
            block_reason=_enum_text(getattr(feedback_row, "block_reason", None)),
            block_reason_message=getattr(feedback_row, "block_reason_message", None),
            safety_ratings=_safety_ratings(getattr(feedback_row, "safety_ratings", None)),
        )

    raw: dict[str, Any] = {}
    if hasattr(response, "model_dump"):
        raw = response.model_dump(mode="json", exclude_none=True)

    return GenerateContentResponse(
        candidates=[
            _candidate_from_sdk(row, position)
            for position, row in enumerate(getattr(response, "candidates", None) or [])
        ],
        usage=usage,
        prompt_feedback=feedback,
        model_version=getattr(response, "model_version", None),
        raw=raw,
    )


class GoogleGenAITransport:
    """
    Concrete transport using `google.genai.Client().aio.models`.

    The SDK is imported on first use. SDK errors are mapped onto the
    genrelay error taxonomy before they leave the transport.
    """

    def __init__(self, api_key: str | None = None, *, client: Any = None) -> None:
        self._api_key = api_key
        self._client = client

    @property
    def transport_id(self) -> str:
        return "google-genai"

    def _build_client(self) -> Any:
        """Construct or return cached SDK client."""
        if self._client is not None:
            return self._client

        try:
            from google import genai
        except Exception as e:  # pragma: no cover - environment dependent
            raise ConfigurationError(
                "google-genai package is not installed. "
                "Install it with: pip install google-genai"
            ) from e

        kwargs: dict[str, Any] = {}
        if self._api_key:
            kwargs["api_key"] = self._api_key
        self._client = genai.Client(**kwargs)
        return self._client

    def build_payload(self, request: TransportRequest) -> dict[str, Any]:
        """Convert a transport request into `generate_content` keyword args."""
        config: dict[str, Any] = {
            key: value
            for key, value in to_jsonable(request.generation_config).items()
            if value is not None
        }
        if request.safety_settings:
            config["safety_settings"] = [
                {"category": row.category, "threshold": row.threshold}
                for row in request.safety_settings
            ]
        if request.tools:
            config["tools"] = to_tools_payload(request.tools)
        return {
            "model": request.model,
            "contents": [_content_to_dict(content) for content in request.contents],
            "config": config,
        }

    @staticmethod
    def _wrap(error: Exception) -> GenerationError:
        wrapped = classify_error(error)
        logger.debug(
            "google-genai call failed: %s -> %s", error, type(wrapped).__name__
        )
        return wrapped

    async def generate(self, request: TransportRequest) -> GenerateContentResponse:
        client = self._build_client()
        try:
            response = await client.aio.models.generate_content(
                **self.build_payload(request)
            )
        except GenerationError:
            raise
        except Exception as error:
            raise self._wrap(error) from error
        return response_from_sdk(response)

    async def generate_stream(
        self,
        request: TransportRequest,
    ) -> AsyncIterator[GenerateContentResponse]:
        client = self._build_client()
        try:
            sdk_stream = await client.aio.models.generate_content_stream(
                **self.build_payload(request)
            )
        except GenerationError:
            raise
        except Exception as error:
            raise self._wrap(error) from error
        return self._iter_stream(sdk_stream)

    async def _iter_stream(self, sdk_stream: Any) -> AsyncIterator[GenerateContentResponse]:
        try:
            async for chunk in sdk_stream:
                yield response_from_sdk(chunk)
        except GenerationError:
            raise
        except Exception as error:
            raise self._wrap(error) from error
        finally:
            aclose = getattr(sdk_stream, "aclose", None)
            if aclose is not None:
                await aclose()
