"""Provider adapter contract consumed by the model bus."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from agentOrchestra.models.schema import ChatInput, ChatResult


@runtime_checkable
class ProviderAdapter(Protocol):
    """Uniform chat-completion interface, one implementation per vendor.

    Implementations must raise on transport or vendor-reported errors rather
    than returning an empty result.
    """

    id: str

    async def chat(self, request: ChatInput) -> ChatResult:
        ...
