"""Offline echo provider for development and tests."""

from __future__ import annotations

from agentOrchestra.models.schema import ChatInput, ChatResult, TokenUsage


class MockAdapter:
    """Echoes the last message back instead of calling a vendor."""

    def __init__(self, provider_id: str = "mock"):
        self.id = provider_id

    async def chat(self, request: ChatInput) -> ChatResult:
        last = request.messages[-1].content if request.messages else ""
        return ChatResult(
            text=f"(mock {self.id}) Echo: {last}",
            usage=TokenUsage(prompt_tokens=0, completion_tokens=0, total_tokens=0),
        )
