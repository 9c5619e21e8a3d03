"""Anthropic Messages API adapter over httpx."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

import httpx

from agentOrchestra.models.schema import ChatInput, ChatMessage, ChatResult, TokenUsage
from agentOrchestra.utils.errors import ProviderError, ProviderRateLimitError, ProviderTimeoutError

LOGGER = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.anthropic.com"
API_VERSION = "2023-06-01"
DEFAULT_MAX_TOKENS = 4096


def convert_messages(messages: List[ChatMessage]) -> Tuple[Optional[str], List[Dict[str, str]]]:
    """Split system prompts from the conversation.

    Anthropic takes the system prompt as a separate field; tool results are
    sent back as user turns.
    """
    system_parts: List[str] = []
    conversation: List[Dict[str, str]] = []
    for message in messages:
        if message.role == "system":
            system_parts.append(message.content)
        elif message.role == "assistant":
            conversation.append({"role": "assistant", "content": message.content})
        elif message.role == "tool":
            conversation.append({"role": "user", "content": f"Tool result:\n{message.content}"})
        else:
            conversation.append({"role": "user", "content": message.content})

    system = "\n\n".join(system_parts) if system_parts else None
    return system, conversation


class AnthropicAdapter:
    """Claude models via the Messages API."""

    def __init__(
        self,
        api_key: Optional[str],
        base_url: Optional[str] = None,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        provider_id: str = "anthropic",
    ):
        self.id = provider_id
        self._api_key = api_key
        self._base_url = (base_url or DEFAULT_BASE_URL).rstrip("/")
        self._timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

        if not api_key:
            LOGGER.warning(f"[{provider_id}] API key not set; calls will fail until it is configured")

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                transport=self._transport,
            )
        return self._client

    async def chat(self, request: ChatInput) -> ChatResult:
        if not self._api_key:
            raise ProviderError(self.id, "API key not configured", retryable=False)

        system, messages = convert_messages(request.messages)
        body: Dict[str, Any] = {
            "model": request.model,
            "max_tokens": request.max_tokens or DEFAULT_MAX_TOKENS,
            "messages": messages,
        }
        if system:
            body["system"] = system
        if request.temperature is not None:
            body["temperature"] = request.temperature
        if request.stop:
            body["stop_sequences"] = request.stop

        try:
            response = await self._http().post(
                "/v1/messages",
                json=body,
                headers={
                    "x-api-key": self._api_key,
                    "anthropic-version": API_VERSION,
                },
            )
        except httpx.TimeoutException as e:
            raise ProviderTimeoutError(self.id, self._timeout) from e
        except httpx.HTTPError as e:
            raise ProviderError(self.id, str(e), retryable=True) from e

        if response.status_code == 429:
            retry_after = response.headers.get("retry-after")
            raise ProviderRateLimitError(self.id, float(retry_after) if retry_after else None)
        if response.status_code >= 400:
            raise ProviderError(
                self.id,
                f"{response.status_code} - {response.text}",
                retryable=response.status_code >= 500,
                details={"status": response.status_code},
            )

        data = response.json()
        text = "".join(
            block.get("text", "")
            for block in data.get("content", [])
            if block.get("type") == "text"
        )
        usage = data.get("usage") or {}
        prompt_tokens = usage.get("input_tokens")
        completion_tokens = usage.get("output_tokens")
        return ChatResult(
            text=text,
            usage=TokenUsage(
                prompt_tokens=prompt_tokens,
                completion_tokens=completion_tokens,
                total_tokens=(prompt_tokens or 0) + (completion_tokens or 0),
            ),
            raw=data,
        )

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
