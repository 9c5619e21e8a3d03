"""OpenAI-compatible providers backed by LangChain chat models.

Covers OpenAI itself and any vendor exposing the same API (OpenRouter,
self-hosted gateways). Model clients are created lazily, one per
provider-facing model name, and reused across calls.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI

from agentOrchestra.models.schema import ChatInput, ChatMessage, ChatResult, TokenUsage
from agentOrchestra.utils.errors import (
    ProviderError,
    ProviderRateLimitError,
    ProviderTimeoutError,
)

LOGGER = logging.getLogger(__name__)

ModelFactory = Callable[[str], BaseChatModel]


def to_langchain_messages(messages: List[ChatMessage]) -> List[BaseMessage]:
    """Convert engine messages to LangChain messages.

    Tool results carry no tool_call_id in this engine, so they are replayed
    to the model as user turns.
    """
    converted: List[BaseMessage] = []
    for message in messages:
        if message.role == "system":
            converted.append(SystemMessage(content=message.content))
        elif message.role == "assistant":
            converted.append(AIMessage(content=message.content))
        elif message.role == "tool":
            converted.append(HumanMessage(content=f"Tool result:\n{message.content}"))
        else:
            converted.append(HumanMessage(content=message.content))
    return converted


def _stringify_content(content: Any) -> str:
    if isinstance(content, list):
        pieces: List[str] = []
        for item in content:
            if isinstance(item, dict):
                if item.get("type", "text") == "text" and "text" in item:
                    pieces.append(str(item["text"]))
            else:
                pieces.append(str(item))
        return "".join(pieces)
    return str(content or "")


def extract_usage(message: AIMessage) -> Optional[TokenUsage]:
    """Read token usage from LangChain usage metadata or raw response metadata."""
    usage = getattr(message, "usage_metadata", None)
    if usage:
        return TokenUsage(
            prompt_tokens=usage.get("input_tokens"),
            completion_tokens=usage.get("output_tokens"),
            total_tokens=usage.get("total_tokens"),
        )

    token_usage = (getattr(message, "response_metadata", None) or {}).get("token_usage")
    if token_usage:
        return TokenUsage(
            prompt_tokens=token_usage.get("prompt_tokens"),
            completion_tokens=token_usage.get("completion_tokens"),
            total_tokens=token_usage.get("total_tokens"),
        )
    return None


class LangChainChatAdapter:
    """Provider adapter delegating to a LangChain chat model."""

    def __init__(self, provider_id: str, model_factory: ModelFactory, timeout: Optional[float] = None):
        self.id = provider_id
        self._model_factory = model_factory
        self._timeout = timeout
        self._clients: Dict[str, BaseChatModel] = {}

    def _client(self, model_name: str) -> BaseChatModel:
        if model_name not in self._clients:
            LOGGER.debug(f"Creating chat client for {self.id}/{model_name}")
            self._clients[model_name] = self._model_factory(model_name)
        return self._clients[model_name]

    async def chat(self, request: ChatInput) -> ChatResult:
        if not request.model:
            raise ProviderError(self.id, "no model name supplied", retryable=False)

        client = self._client(request.model)
        kwargs: Dict[str, Any] = {}
        if request.temperature is not None:
            kwargs["temperature"] = request.temperature
        if request.max_tokens is not None:
            kwargs["max_tokens"] = request.max_tokens

        try:
            response = await client.ainvoke(
                to_langchain_messages(request.messages),
                stop=request.stop,
                **kwargs,
            )
        except asyncio.TimeoutError:
            raise ProviderTimeoutError(self.id, self._timeout or 0)
        except ProviderError:
            raise
        except Exception as e:
            raise _translate_error(self.id, e, self._timeout) from e

        return ChatResult(
            text=_stringify_content(response.content),
            usage=extract_usage(response),
            raw=response,
        )


def _translate_error(provider_id: str, error: Exception, timeout: Optional[float]) -> ProviderError:
    status = getattr(error, "status_code", None)
    name = type(error).__name__.lower()

    if status == 429 or "ratelimit" in name:
        return ProviderRateLimitError(provider_id)
    if "timeout" in name:
        return ProviderTimeoutError(provider_id, timeout or 0)
    if status is not None and 400 <= status < 500 and status != 408:
        return ProviderError(provider_id, str(error), retryable=False, details={"status": status})
    return ProviderError(provider_id, str(error), retryable=True, details={"status": status})


def openai_compatible_adapter(
    provider_id: str,
    *,
    api_key: Optional[str],
    base_url: Optional[str] = None,
    timeout: Optional[float] = None,
    default_headers: Optional[Dict[str, str]] = None,
) -> LangChainChatAdapter:
    """Build an adapter for an OpenAI-compatible endpoint."""

    def factory(model_name: str) -> BaseChatModel:
        if not api_key:
            raise ProviderError(provider_id, "API key not configured", retryable=False)
        kwargs: Dict[str, Any] = {"model": model_name, "api_key": api_key, "max_retries": 0}
        if base_url:
            kwargs["base_url"] = base_url
        if timeout:
            kwargs["timeout"] = timeout
        if default_headers:
            kwargs["default_headers"] = default_headers
        return ChatOpenAI(**kwargs)

    return LangChainChatAdapter(provider_id, factory, timeout=timeout)
