"""Model bus: logical model id → provider call, with a single fallback hop."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from agentOrchestra.resilience import BreakerRegistry
from agentOrchestra.utils.errors import ModelNotFoundError, ProviderUnavailableError
from agentOrchestra.utils.logging_utils import log_model_selection

from .schema import ChatInput, ChatMessage, ChatResult, ModelConfig

if TYPE_CHECKING:
    from agentOrchestra.providers.base import ProviderAdapter

LOGGER = logging.getLogger(__name__)


class ModelBus:
    """Resolves model ids and dispatches chat calls to provider adapters.

    The model and provider maps are read-only after construction. When a
    breaker registry is supplied, each adapter call runs through the breaker
    named after its provider id.
    """

    def __init__(
        self,
        models: Union[Mapping[str, ModelConfig], Iterable[ModelConfig]],
        providers: Mapping[str, ProviderAdapter],
        breakers: Optional[BreakerRegistry] = None,
    ) -> None:
        if isinstance(models, Mapping):
            self._models: Dict[str, ModelConfig] = dict(models)
        else:
            self._models = {model.id: model for model in models}
        self._providers: Dict[str, ProviderAdapter] = dict(providers)
        self._breakers = breakers

    def get_model(self, model_id: str) -> ModelConfig:
        """Return the config for a model id."""
        model = self._models.get(model_id)
        if model is None:
            raise ModelNotFoundError(model_id)
        return model

    def list_models(self) -> List[str]:
        return list(self._models)

    def list_providers(self) -> List[str]:
        return list(self._providers)

    async def call(
        self,
        model_id: str,
        messages: Sequence[ChatMessage],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> ChatResult:
        """Invoke the model behind ``model_id``.

        The primary provider is tried once. On any error, a configured
        fallback provider/model is tried once and its outcome is final.

        Raises:
            ModelNotFoundError: Unknown model id
            ProviderUnavailableError: Provider id not registered
        """
        model = self.get_model(model_id)
        request = ChatInput(
            messages=list(messages),
            temperature=temperature,
            max_tokens=max_tokens if max_tokens is not None else model.max_tokens,
        )

        log_model_selection(LOGGER, model_id, model.provider, model.name)
        try:
            return await self._dispatch(model.provider, model.name, request)
        except Exception as primary_error:
            fallback = model.fallback
            if fallback is None:
                raise

            LOGGER.warning(
                f"Primary {model.provider}/{model.name} failed for '{model_id}' "
                f"({type(primary_error).__name__}: {primary_error}); "
                f"falling back to {fallback.provider}/{fallback.name}"
            )
            return await self._dispatch(fallback.provider, fallback.name, request)

    async def _dispatch(self, provider_id: str, model_name: str, request: ChatInput) -> ChatResult:
        adapter = self._providers.get(provider_id)
        if adapter is None:
            raise ProviderUnavailableError(provider_id)

        provider_request = request.model_copy(update={"model": model_name})

        async def invoke() -> ChatResult:
            return await adapter.chat(provider_request)

        if self._breakers is None:
            return await invoke()
        return await self._breakers.get(provider_id).execute(invoke)
