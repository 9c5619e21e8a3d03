"""Shared helpers: error taxonomy and logging."""

from .errors import (
    AgentNotFoundError,
    BreakerOpenError,
    ConfigError,
    ErrorCode,
    ModelNotFoundError,
    OrchestraError,
    PlanGenerationError,
    ProviderError,
    ProviderRateLimitError,
    ProviderTimeoutError,
    ProviderUnavailableError,
    StepExecutionError,
    ToolBridgeError,
    ToolProtocolError,
    ToolServerDisabledError,
    ToolServerNotFoundError,
    ToolSpawnError,
    ToolTimeoutError,
    handle_model_error,
)
from .logging_utils import (
    get_logger,
    log_agent_response,
    log_error,
    log_model_selection,
    log_plan_created,
    log_routing_decision,
    log_step_execution,
    log_tool_call,
    log_tool_result,
    log_user_message,
    setup_logging,
)

__all__ = [
    "AgentNotFoundError",
    "BreakerOpenError",
    "ConfigError",
    "ErrorCode",
    "ModelNotFoundError",
    "OrchestraError",
    "PlanGenerationError",
    "ProviderError",
    "ProviderRateLimitError",
    "ProviderTimeoutError",
    "ProviderUnavailableError",
    "StepExecutionError",
    "ToolBridgeError",
    "ToolProtocolError",
    "ToolServerDisabledError",
    "ToolServerNotFoundError",
    "ToolSpawnError",
    "ToolTimeoutError",
    "handle_model_error",
    "get_logger",
    "log_agent_response",
    "log_error",
    "log_model_selection",
    "log_plan_created",
    "log_routing_decision",
    "log_step_execution",
    "log_tool_call",
    "log_tool_result",
    "log_user_message",
    "setup_logging",
]
