"""Chat, model and agent schemas shared across the engine."""

from __future__ import annotations

from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

Role = Literal["system", "user", "assistant", "tool"]


class ChatMessage(BaseModel):
    """Single conversation turn. Immutable once created."""

    model_config = ConfigDict(frozen=True)

    role: Role
    content: str

    @classmethod
    def system(cls, content: str) -> "ChatMessage":
        return cls(role="system", content=content)

    @classmethod
    def user(cls, content: str) -> "ChatMessage":
        return cls(role="user", content=content)

    @classmethod
    def assistant(cls, content: str) -> "ChatMessage":
        return cls(role="assistant", content=content)

    @classmethod
    def tool(cls, content: str) -> "ChatMessage":
        return cls(role="tool", content=content)


class TokenUsage(BaseModel):
    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None
    total_tokens: Optional[int] = None


class ChatInput(BaseModel):
    """Request handed to a provider adapter."""

    messages: List[ChatMessage]
    model: Optional[str] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = Field(default=None, ge=1)
    stop: Optional[List[str]] = None


class ChatResult(BaseModel):
    """Normalized completion returned by every adapter."""

    text: str
    usage: Optional[TokenUsage] = None
    raw: Any = Field(default=None, exclude=True, repr=False)


class FallbackTarget(BaseModel):
    provider: str = Field(min_length=1)
    name: str = Field(min_length=1)


class ModelConfig(BaseModel):
    """Logical model id bound to a provider-facing model name."""

    model_config = ConfigDict(frozen=True, protected_namespaces=())

    id: str = Field(min_length=1)
    provider: str = Field(min_length=1)
    name: str = Field(min_length=1)
    max_tokens: Optional[int] = Field(default=None, ge=1)
    cost_tier: Optional[str] = None
    fallback: Optional[FallbackTarget] = None


class AgentSpec(BaseModel):
    """Named agent: a model plus behaviour."""

    model_config = ConfigDict(frozen=True, protected_namespaces=())

    id: str = Field(min_length=1)
    model_id: str = Field(min_length=1)
    roles: List[str] = Field(default_factory=list)
    capabilities: List[str] = Field(default_factory=list)
    tools: List[str] = Field(default_factory=list)
    system_prompt: Optional[str] = None
    max_tokens: Optional[int] = Field(default=None, ge=1)


class RouteAlternative(BaseModel):
    agent_id: str
    score: float


class RouteDecision(BaseModel):
    agent_id: str
    confidence: float = Field(ge=0.0, le=1.0)
    reasoning: Optional[str] = None
    alternatives: Optional[List[RouteAlternative]] = None
