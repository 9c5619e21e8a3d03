"""Application config loader: providers, models, agents, routing, tool servers.

The config file is YAML and is validated with Pydantic. Cross references
(agent → model, routing target → agent) are checked after field validation
so that one load reports every problem at once.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from agentOrchestra.models.schema import AgentSpec, ModelConfig
from agentOrchestra.utils.errors import ConfigError

LOGGER = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent / "agents.yaml"


class ProviderConfig(BaseModel):
    """How to reach one provider id."""

    kind: Optional[Literal["openai", "anthropic", "mock"]] = None
    api_key_env: Optional[str] = None
    base_url: Optional[str] = None


class RoutingRuleConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    pattern: str = Field(alias="if", min_length=1)
    route_to: str = Field(min_length=1)


class RoutingConfig(BaseModel):
    strategy: Literal["hybrid", "rules", "llm", "embeddings"] = "hybrid"
    rules: List[RoutingRuleConfig] = Field(default_factory=list)
    fallback: str = Field(min_length=1)


class PlannerConfig(BaseModel):
    enabled: bool = True
    max_steps: int = Field(default=10, ge=1)
    parallel_limit: int = Field(default=1, ge=1)
    default_strategy: Literal["linear", "task-graph"] = "linear"


class ToolConfig(BaseModel):
    description: Optional[str] = None
    schema_: Dict[str, Any] = Field(default_factory=lambda: {"type": "object", "properties": {}}, alias="schema")
    enabled: bool = True

    model_config = ConfigDict(populate_by_name=True)


class ToolServerConfig(BaseModel):
    name: Optional[str] = None
    command: str = Field(min_length=1)
    args: List[str] = Field(default_factory=list)
    env: Dict[str, str] = Field(default_factory=dict)
    enabled: bool = True
    description: Optional[str] = None
    tools: Dict[str, ToolConfig] = Field(default_factory=dict)


class AppConfig(BaseModel):
    """Resolved application configuration."""

    providers: Dict[str, ProviderConfig] = Field(default_factory=dict)
    models: List[ModelConfig]
    agents: List[AgentSpec]
    routing: RoutingConfig
    planner: PlannerConfig = Field(default_factory=PlannerConfig)
    tool_servers: Dict[str, ToolServerConfig] = Field(default_factory=dict)

    def model_map(self) -> Dict[str, ModelConfig]:
        return {model.id: model for model in self.models}

    def agent_map(self) -> Dict[str, AgentSpec]:
        return {agent.id: agent for agent in self.agents}

    def cross_reference_issues(self) -> List[str]:
        """Return references that point at unknown ids."""
        issues: List[str] = []
        model_ids = {model.id for model in self.models}
        agent_ids = {agent.id for agent in self.agents}

        if len(model_ids) != len(self.models):
            issues.append("models: duplicate model id")
        if len(agent_ids) != len(self.agents):
            issues.append("agents: duplicate agent id")

        for agent in self.agents:
            if agent.model_id not in model_ids:
                issues.append(f"agents.{agent.id}.model_id: unknown model '{agent.model_id}'")
        for idx, rule in enumerate(self.routing.rules):
            if rule.route_to not in agent_ids:
                issues.append(f"routing.rules.{idx}.route_to: unknown agent '{rule.route_to}'")
        if self.routing.fallback not in agent_ids:
            issues.append(f"routing.fallback: unknown agent '{self.routing.fallback}'")
        return issues


def parse_app_config(data: Any) -> AppConfig:
    """Validate a decoded config mapping.

    Raises:
        ConfigError: With every issue joined by ``; ``
    """
    if not isinstance(data, dict):
        raise ConfigError("Invalid config: top-level value must be a mapping")

    try:
        config = AppConfig.model_validate(data)
    except ValidationError as e:
        issues = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ConfigError(f"Invalid config: {issues}") from e

    issues = config.cross_reference_issues()
    if issues:
        raise ConfigError(f"Invalid config: {'; '.join(issues)}")
    return config


def load_app_config(config_path: Optional[Union[str, Path]] = None) -> AppConfig:
    """
    Load application configuration from a YAML file.

    Args:
        config_path: Path to the YAML file (defaults to the packaged agents.yaml)

    Returns:
        Validated AppConfig

    Raises:
        ConfigError: If the file is missing, not valid YAML or fails validation
    """
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
    if not path.exists():
        raise ConfigError(f"Agent config not found: {path}")

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    config = parse_app_config(data or {})
    LOGGER.info(
        f"Loaded config {path}: {len(config.models)} models, {len(config.agents)} agents, "
        f"{len(config.routing.rules)} routing rules, {len(config.tool_servers)} tool servers"
    )
    return config
