"""Runtime assembly: wire settings and config into ready-to-use services."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Optional

from agentOrchestra.config import AppConfig, Settings, get_settings, load_app_config
from agentOrchestra.models.bus import ModelBus
from agentOrchestra.planner.executor import LinearExecutor
from agentOrchestra.planner.generator import PlanGenerator
from agentOrchestra.providers import ProviderAdapter, build_provider_adapters
from agentOrchestra.resilience import BreakerOptions, BreakerRegistry
from agentOrchestra.routing.router import RuleRouter
from agentOrchestra.tools.mcp.bridge import ToolProcessBridge
from agentOrchestra.tools.mcp.catalog import StaticToolCatalog

from .chat import ChatService
from .planner_service import PlannerService

LOGGER = logging.getLogger(__name__)


@dataclass
class Application:
    settings: Settings
    config: AppConfig
    providers: Dict[str, ProviderAdapter]
    breakers: Optional[BreakerRegistry]
    model_bus: ModelBus
    router: RuleRouter
    catalog: StaticToolCatalog
    bridge: ToolProcessBridge
    chat: ChatService
    planner: PlannerService

    async def aclose(self) -> None:
        """Stop tool processes and release provider clients."""
        await self.bridge.shutdown()
        for provider_id, adapter in self.providers.items():
            close = getattr(adapter, "aclose", None)
            if close is None:
                continue
            try:
                await close()
            except Exception as e:
                LOGGER.warning(f"  Failed to close provider {provider_id}: {e}")


def build_application(
    settings: Optional[Settings] = None,
    app_config: Optional[AppConfig] = None,
) -> Application:
    """Build every component from settings and the application config.

    Args:
        settings: Environment settings (defaults to ``get_settings()``)
        app_config: Parsed config (defaults to loading ``AGENT_CONFIG_PATH``
            or the packaged ``agents.yaml``)

    Returns:
        Application holding the wired services
    """
    settings = settings or get_settings()
    app_config = app_config or load_app_config(settings.agent_config_path)

    providers = build_provider_adapters(settings.providers, app_config.providers)
    LOGGER.info(f"Providers: {sorted(providers)}")

    breakers: Optional[BreakerRegistry] = None
    if settings.breaker.enabled:
        breakers = BreakerRegistry(
            BreakerOptions(
                failure_threshold=settings.breaker.failure_threshold,
                success_threshold=settings.breaker.success_threshold,
                timeout=settings.breaker.timeout,
                reset_timeout=settings.breaker.reset_timeout,
            )
        )

    model_bus = ModelBus(app_config.model_map(), providers, breakers)
    router = RuleRouter.from_config(app_config.routing)
    agents = app_config.agent_map()

    if app_config.planner.default_strategy != "linear":
        LOGGER.warning(f"Planner strategy '{app_config.planner.default_strategy}' not available, using linear")
    generator = PlanGenerator(
        max_steps=app_config.planner.max_steps,
        default_parallel_limit=app_config.planner.parallel_limit,
    )
    executor = LinearExecutor(
        model_bus,
        agents,
        max_retries=settings.executor.max_retries,
        retry_delay=settings.executor.retry_delay,
        default_agent_id=settings.executor.default_agent,
    )

    catalog = StaticToolCatalog.from_config(app_config.tool_servers)
    bridge = ToolProcessBridge(
        catalog,
        request_timeout=settings.bridge.request_timeout,
        startup_timeout=settings.bridge.startup_timeout,
    )

    chat = ChatService(
        router,
        model_bus,
        agents,
        bridge=bridge,
        max_tool_rounds=settings.bridge.max_tool_rounds,
    )
    planner = PlannerService(generator, executor)

    LOGGER.info(
        f"✓ Application ready: {len(app_config.models)} models, {len(agents)} agents, "
        f"{len(app_config.tool_servers)} tool servers"
    )
    return Application(
        settings=settings,
        config=app_config,
        providers=providers,
        breakers=breakers,
        model_bus=model_bus,
        router=router,
        catalog=catalog,
        bridge=bridge,
        chat=chat,
        planner=planner,
    )
