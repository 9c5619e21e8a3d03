"""Unit tests for model resolution and the single fallback hop."""

import pytest

from agentOrchestra.models import ChatMessage, ChatResult, ModelBus, ModelConfig
from agentOrchestra.resilience import BreakerOptions, BreakerRegistry
from agentOrchestra.utils.errors import (
    BreakerOpenError,
    ModelNotFoundError,
    ProviderError,
    ProviderUnavailableError,
)


class RecordingAdapter:
    """Adapter double that records requests and replays scripted outcomes."""

    def __init__(self, provider_id, outcomes=None):
        self.id = provider_id
        self.outcomes = list(outcomes or [])
        self.requests = []

    async def chat(self, request):
        self.requests.append(request)
        outcome = self.outcomes.pop(0) if self.outcomes else f"{self.id}:{request.model}"
        if isinstance(outcome, Exception):
            raise outcome
        return ChatResult(text=outcome)


MESSAGES = [ChatMessage.user("hello")]


def _model(**overrides):
    data = {"id": "smart", "provider": "primary", "name": "big-model", "max_tokens": 512}
    data.update(overrides)
    return ModelConfig(**data)


class TestModelBus:
    """Model Bus call semantics"""

    @pytest.mark.asyncio
    async def test_primary_success(self):
        primary = RecordingAdapter("primary")
        bus = ModelBus([_model()], {"primary": primary})

        result = await bus.call("smart", MESSAGES)

        assert result.text == "primary:big-model"
        assert len(primary.requests) == 1
        assert primary.requests[0].max_tokens == 512
        assert primary.requests[0].messages == MESSAGES

    @pytest.mark.asyncio
    async def test_caller_max_tokens_and_temperature_win(self):
        primary = RecordingAdapter("primary")
        bus = ModelBus([_model()], {"primary": primary})

        await bus.call("smart", MESSAGES, temperature=0.2, max_tokens=64)

        request = primary.requests[0]
        assert request.max_tokens == 64
        assert request.temperature == 0.2

    @pytest.mark.asyncio
    async def test_unknown_model(self):
        bus = ModelBus([_model()], {"primary": RecordingAdapter("primary")})
        with pytest.raises(ModelNotFoundError):
            await bus.call("missing", MESSAGES)

    @pytest.mark.asyncio
    async def test_unregistered_primary_provider(self):
        bus = ModelBus([_model()], {})
        with pytest.raises(ProviderUnavailableError, match="primary"):
            await bus.call("smart", MESSAGES)

    @pytest.mark.asyncio
    async def test_fallback_used_once_with_fallback_name(self):
        primary = RecordingAdapter("primary", [ProviderError("primary", "down")])
        backup = RecordingAdapter("backup")
        model = _model(fallback={"provider": "backup", "name": "small-model"})
        bus = ModelBus([model], {"primary": primary, "backup": backup})

        result = await bus.call("smart", MESSAGES)

        assert result.text == "backup:small-model"
        assert len(primary.requests) == 1
        assert len(backup.requests) == 1
        assert backup.requests[0].model == "small-model"

    @pytest.mark.asyncio
    async def test_fallback_error_is_final(self):
        primary = RecordingAdapter("primary", [RuntimeError("primary down")])
        backup = RecordingAdapter("backup", [RuntimeError("backup down")])
        model = _model(fallback={"provider": "backup", "name": "small-model"})
        bus = ModelBus([model], {"primary": primary, "backup": backup})

        with pytest.raises(RuntimeError, match="backup down"):
            await bus.call("smart", MESSAGES)
        assert len(primary.requests) == 1
        assert len(backup.requests) == 1

    @pytest.mark.asyncio
    async def test_unregistered_fallback_provider(self):
        primary = RecordingAdapter("primary", [RuntimeError("down")])
        model = _model(fallback={"provider": "ghost", "name": "x"})
        bus = ModelBus([model], {"primary": primary})

        with pytest.raises(ProviderUnavailableError, match="ghost"):
            await bus.call("smart", MESSAGES)

    @pytest.mark.asyncio
    async def test_no_fallback_propagates_primary_error(self):
        error = ProviderError("primary", "bad request", retryable=False)
        primary = RecordingAdapter("primary", [error])
        bus = ModelBus([_model()], {"primary": primary})

        with pytest.raises(ProviderError) as exc_info:
            await bus.call("smart", MESSAGES)
        assert exc_info.value is error

    @pytest.mark.asyncio
    async def test_open_breaker_triggers_fallback(self):
        primary = RecordingAdapter("primary", [RuntimeError("down")])
        backup = RecordingAdapter("backup")
        model = _model(fallback={"provider": "backup", "name": "small-model"})
        breakers = BreakerRegistry(BreakerOptions(failure_threshold=1))
        bus = ModelBus([model], {"primary": primary, "backup": backup}, breakers)

        assert (await bus.call("smart", MESSAGES)).text == "backup:small-model"
        assert (await bus.call("smart", MESSAGES)).text == "backup:small-model"

        # Second call never reached the primary adapter
        assert len(primary.requests) == 1
        assert breakers.get("primary").get_state() == "OPEN"

    @pytest.mark.asyncio
    async def test_open_breaker_without_fallback(self):
        primary = RecordingAdapter("primary", [RuntimeError("down")])
        breakers = BreakerRegistry(BreakerOptions(failure_threshold=1))
        bus = ModelBus([_model()], {"primary": primary}, breakers)

        with pytest.raises(RuntimeError):
            await bus.call("smart", MESSAGES)
        with pytest.raises(BreakerOpenError):
            await bus.call("smart", MESSAGES)

    def test_introspection(self):
        bus = ModelBus({"smart": _model()}, {"primary": RecordingAdapter("primary")})
        assert bus.list_models() == ["smart"]
        assert bus.list_providers() == ["primary"]
        assert bus.get_model("smart").name == "big-model"
        with pytest.raises(ModelNotFoundError):
            bus.get_model("nope")
