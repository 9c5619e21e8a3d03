"""Configuration: environment settings and the YAML application config."""

from .app_config import (
    DEFAULT_CONFIG_PATH,
    AppConfig,
    PlannerConfig,
    ProviderConfig,
    RoutingConfig,
    RoutingRuleConfig,
    ToolConfig,
    ToolServerConfig,
    load_app_config,
    parse_app_config,
)
from .settings import (
    BreakerSettings,
    BridgeSettings,
    ExecutorSettings,
    ObservabilitySettings,
    ProviderSettings,
    Settings,
    get_settings,
)

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "AppConfig",
    "PlannerConfig",
    "ProviderConfig",
    "RoutingConfig",
    "RoutingRuleConfig",
    "ToolConfig",
    "ToolServerConfig",
    "load_app_config",
    "parse_app_config",
    "BreakerSettings",
    "BridgeSettings",
    "ExecutorSettings",
    "ObservabilitySettings",
    "ProviderSettings",
    "Settings",
    "get_settings",
]
