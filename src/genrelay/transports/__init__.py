"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Transport adapters for generateContent-style services.
"""

from .contracts import GenerativeTransport
from .google import GoogleGenAITransport, response_from_sdk

__all__ = [
    "GenerativeTransport",
    "GoogleGenAITransport",
    "response_from_sdk",
]
