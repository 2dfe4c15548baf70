"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Function-call negotiation helpers.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import replace

from ..errors import NoCandidateError, NoFunctionCallError
from ..types import (
    Content,
    FunctionCall,
    FunctionDeclaration,
    FunctionResponse,
    GenerateContentResponse,
    Part,
    RequestOptions,
)

CONTINUE_PROMPT = "Continue the conversation"


def with_functions(
    options: RequestOptions,
    functions: Iterable[FunctionDeclaration],
) -> RequestOptions:
    """Return options with `functions` attached as available tool declarations."""
    return replace(
        options,
        enable_function_calling=True,
        available_functions=list(functions),
    )


def ensure_candidates(response: GenerateContentResponse) -> None:
    """Raise `NoCandidateError` when the response carries no candidates."""
    if response.candidates:
        return
    feedback = response.prompt_feedback
    block_reason = feedback.block_reason if feedback is not None else None
    if block_reason:
        raise NoCandidateError(
            f"No response candidates returned (prompt blocked: {block_reason})",
            block_reason=block_reason,
        )
    raise NoCandidateError()


def extract_function_call(response: GenerateContentResponse) -> FunctionCall:
    """
    Return the first function-call part of the first candidate.

    Raises `NoCandidateError` when no candidate exists and
    `NoFunctionCallError` when the model answered without calling a tool.
    """
    ensure_candidates(response)
    calls = response.function_calls
    if not calls:
        raise NoFunctionCallError()
    return calls[0]


def function_response_turns(
    function_response: FunctionResponse,
    history: Sequence[Content] | None = None,
) -> list[Content]:
    """
    Conversation turns that continue a tool-use exchange.

    Prior turns come from `history`; without it a single user turn asking
    the model to continue is used. The function response is appended as a
    model-role message.
    """
    turns = list(history) if history else [Content.user_text(CONTINUE_PROMPT)]
    turns.append(Content(role="model", parts=[Part(function_response=function_response)]))
    return turns
