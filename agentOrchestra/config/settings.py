"""Environment-bound configuration objects.

This module provides Pydantic BaseSettings-based configuration loading from .env files.
Every group reads its own environment variables; the root ``Settings`` nests them.

Example:
    from agentOrchestra.config import get_settings

    settings = get_settings()  # Cached singleton
    retries = settings.executor.max_retries
    timeout = settings.bridge.request_timeout
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


load_dotenv()

_ENV_CONFIG = SettingsConfigDict(
    env_file=".env",
    env_file_encoding="utf-8",
    extra="ignore",
    populate_by_name=True,
)


class ProviderSettings(BaseSettings):
    """Vendor credentials and endpoints.

    Each provider id used in the application config looks up its key here
    unless the config names a different ``api_key_env``.
    """

    openai_api_key: Optional[str] = Field(default=None, alias="OPENAI_API_KEY")
    openai_base_url: Optional[str] = Field(default=None, alias="OPENAI_BASE_URL")

    openrouter_api_key: Optional[str] = Field(default=None, alias="OPENROUTER_API_KEY")
    openrouter_base_url: str = Field(default="https://openrouter.ai/api/v1", alias="OPENROUTER_BASE_URL")

    anthropic_api_key: Optional[str] = Field(default=None, alias="ANTHROPIC_API_KEY")
    anthropic_base_url: Optional[str] = Field(default=None, alias="ANTHROPIC_BASE_URL")

    mock_providers: bool = Field(default=False, alias="MOCK_PROVIDERS")
    request_timeout: float = Field(default=60.0, gt=0, alias="PROVIDER_TIMEOUT")

    model_config = _ENV_CONFIG


class BreakerSettings(BaseSettings):
    """Circuit breaker defaults applied to every provider breaker."""

    enabled: bool = Field(default=True, alias="BREAKER_ENABLED")
    failure_threshold: int = Field(default=5, ge=1, alias="BREAKER_FAILURE_THRESHOLD")
    success_threshold: int = Field(default=2, ge=1, alias="BREAKER_SUCCESS_THRESHOLD")
    timeout: float = Field(default=60.0, ge=0, alias="BREAKER_TIMEOUT")
    reset_timeout: float = Field(default=30.0, ge=0, alias="BREAKER_RESET_TIMEOUT")

    model_config = _ENV_CONFIG


class ExecutorSettings(BaseSettings):
    """Linear executor retry policy and default agent."""

    max_retries: int = Field(default=3, ge=0, le=10, alias="EXECUTOR_MAX_RETRIES")
    retry_delay: float = Field(default=1.0, ge=0, alias="EXECUTOR_RETRY_DELAY")
    default_agent: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("EXECUTOR_DEFAULT_AGENT", "DEFAULT_AGENT"),
    )

    model_config = _ENV_CONFIG


class BridgeSettings(BaseSettings):
    """Tool process bridge timeouts and chat tool-loop budget."""

    request_timeout: float = Field(default=30.0, gt=0, alias="TOOL_REQUEST_TIMEOUT")
    startup_timeout: float = Field(default=30.0, gt=0, alias="TOOL_STARTUP_TIMEOUT")
    max_tool_rounds: int = Field(default=3, ge=0, le=20, alias="CHAT_MAX_TOOL_ROUNDS")

    model_config = _ENV_CONFIG


class ObservabilitySettings(BaseSettings):
    """Logging configuration."""

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_dir: Optional[str] = Field(default="logs", alias="LOG_DIR")
    log_prompt_max_length: int = Field(default=500, ge=100, le=5000, alias="LOG_PROMPT_MAX_LENGTH")

    model_config = _ENV_CONFIG


class Settings(BaseSettings):
    """Root application settings loaded from .env file.

    Groups:
    - providers: API keys and endpoints (ProviderSettings)
    - breaker: Circuit breaker defaults (BreakerSettings)
    - executor: Plan execution retry policy (ExecutorSettings)
    - bridge: Tool process bridge timeouts (BridgeSettings)
    - observability: Logging (ObservabilitySettings)

    ``agent_config_path`` points at the YAML application config; when unset
    the packaged ``agents.yaml`` is used.
    """

    environment: str = Field(default="dev", alias="APP_ENV")
    agent_config_path: Optional[str] = Field(default=None, alias="AGENT_CONFIG_PATH")
    providers: ProviderSettings = Field(default_factory=ProviderSettings)
    breaker: BreakerSettings = Field(default_factory=BreakerSettings)
    executor: ExecutorSettings = Field(default_factory=ExecutorSettings)
    bridge: BridgeSettings = Field(default_factory=BridgeSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        validate_assignment=True,
        case_sensitive=False,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached singleton Settings instance.

    Returns:
        Settings: Cached application settings instance
    """
    return Settings()
