"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Transport contract consumed by the generative client.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Protocol

from ..types import GenerateContentResponse, TransportRequest


class GenerativeTransport(Protocol):
    """
    Adapter-facing transport interface.

    `generate_stream` is awaited to establish the stream and returns an
    async iterator of partial responses, so stream start-up can be retried
    and timed out like a unary call.
    """

    @property
    def transport_id(self) -> str: ...

    async def generate(self, request: TransportRequest) -> GenerateContentResponse: ...

    async def generate_stream(
        self,
        request: TransportRequest,
    ) -> AsyncIterator[GenerateContentResponse]: ...
