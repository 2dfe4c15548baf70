"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: runtime/__init__.py.
"""

from .contracts import AdmissionPolicy, CachePolicy, RetryPolicy, TimeoutPolicy
from .functions import (
    CONTINUE_PROMPT,
    extract_function_call,
    function_response_turns,
    with_functions,
)
from .rate_limit import AdmissionGate, AdmissionPermit, GateStatus
from .retry import call_with_retry, classify_error, is_retryable
from .streaming import aggregate_stream
from .timeouts import await_with_timeout, iter_with_idle_timeout

__all__ = [
    "AdmissionPolicy",
    "CachePolicy",
    "RetryPolicy",
    "TimeoutPolicy",
    "AdmissionGate",
    "AdmissionPermit",
    "GateStatus",
    "call_with_retry",
    "classify_error",
    "is_retryable",
    "await_with_timeout",
    "iter_with_idle_timeout",
    "aggregate_stream",
    "CONTINUE_PROMPT",
    "extract_function_call",
    "function_response_turns",
    "with_functions",
]
