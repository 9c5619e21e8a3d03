"""Chat schemas and the model bus."""

from .schema import (
    AgentSpec,
    ChatInput,
    ChatMessage,
    ChatResult,
    FallbackTarget,
    ModelConfig,
    RouteAlternative,
    RouteDecision,
    TokenUsage,
)
from .bus import ModelBus

__all__ = [
    "AgentSpec",
    "ChatInput",
    "ChatMessage",
    "ChatResult",
    "FallbackTarget",
    "ModelConfig",
    "RouteAlternative",
    "RouteDecision",
    "TokenUsage",
    "ModelBus",
]
