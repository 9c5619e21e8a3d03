"""Provider adapters (one per model vendor)."""

from .anthropic import AnthropicAdapter
from .base import ProviderAdapter
from .factory import build_provider_adapters
from .langchain_adapter import LangChainChatAdapter, openai_compatible_adapter, to_langchain_messages
from .mock import MockAdapter

__all__ = [
    "AnthropicAdapter",
    "ProviderAdapter",
    "build_provider_adapters",
    "LangChainChatAdapter",
    "openai_compatible_adapter",
    "to_langchain_messages",
    "MockAdapter",
]
