"""Build provider adapters from settings and the application config."""

from __future__ import annotations

import logging
import os
from typing import Dict, Mapping, Optional

from agentOrchestra.config.app_config import ProviderConfig
from agentOrchestra.config.settings import ProviderSettings

from .anthropic import AnthropicAdapter
from .base import ProviderAdapter
from .langchain_adapter import openai_compatible_adapter
from .mock import MockAdapter

LOGGER = logging.getLogger(__name__)

_KNOWN_KINDS = {"openai": "openai", "openrouter": "openai", "anthropic": "anthropic", "mock": "mock"}


def _settings_key(settings: ProviderSettings, provider_id: str) -> Optional[str]:
    return getattr(settings, f"{provider_id}_api_key", None)


def _settings_base_url(settings: ProviderSettings, provider_id: str) -> Optional[str]:
    return getattr(settings, f"{provider_id}_base_url", None)


def build_provider_adapters(
    settings: ProviderSettings,
    providers: Optional[Mapping[str, ProviderConfig]] = None,
) -> Dict[str, ProviderAdapter]:
    """Instantiate one adapter per configured provider id.

    The adapter kind comes from ``ProviderConfig.kind`` or, for the well-known
    ids (openai, openrouter, anthropic), from the id itself. Keys are read
    from ``api_key_env`` when given, otherwise from the matching settings
    field. With ``MOCK_PROVIDERS`` every provider becomes an echo adapter.

    Args:
        settings: Provider credentials and endpoints
        providers: Provider section of the application config

    Returns:
        Dict mapping provider id to adapter
    """
    providers = dict(providers or {})
    for provider_id in ("openai", "openrouter", "anthropic"):
        providers.setdefault(provider_id, ProviderConfig())

    adapters: Dict[str, ProviderAdapter] = {}
    for provider_id, cfg in providers.items():
        kind = cfg.kind or _KNOWN_KINDS.get(provider_id)
        if kind is None:
            LOGGER.warning(f"  Skipping provider '{provider_id}': unknown kind")
            continue

        if settings.mock_providers or kind == "mock":
            adapters[provider_id] = MockAdapter(provider_id)
            LOGGER.info(f"  ✓ Provider {provider_id}: mock")
            continue

        api_key = (os.getenv(cfg.api_key_env) if cfg.api_key_env else None) or _settings_key(settings, provider_id)
        base_url = cfg.base_url or _settings_base_url(settings, provider_id)

        if kind == "anthropic":
            adapters[provider_id] = AnthropicAdapter(
                api_key=api_key,
                base_url=base_url,
                timeout=settings.request_timeout,
                provider_id=provider_id,
            )
        else:
            adapters[provider_id] = openai_compatible_adapter(
                provider_id,
                api_key=api_key,
                base_url=base_url,
                timeout=settings.request_timeout,
            )
        LOGGER.info(f"  ✓ Provider {provider_id}: {kind}{' (no API key)' if not api_key else ''}")

    return adapters
