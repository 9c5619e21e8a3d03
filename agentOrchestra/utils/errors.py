"""Error taxonomy for the orchestration engine."""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    """Stable machine-readable error codes."""

    INTERNAL_ERROR = "INTERNAL_ERROR"
    CONFIG_INVALID = "CONFIG_INVALID"

    PROVIDER_ERROR = "PROVIDER_ERROR"
    PROVIDER_TIMEOUT = "PROVIDER_TIMEOUT"
    PROVIDER_RATE_LIMIT = "PROVIDER_RATE_LIMIT"
    PROVIDER_UNAVAILABLE = "PROVIDER_UNAVAILABLE"
    BREAKER_OPEN = "BREAKER_OPEN"

    AGENT_NOT_FOUND = "AGENT_NOT_FOUND"
    MODEL_NOT_FOUND = "MODEL_NOT_FOUND"

    PLAN_GENERATION_FAILED = "PLAN_GENERATION_FAILED"
    STEP_EXECUTION_FAILED = "STEP_EXECUTION_FAILED"

    TOOL_SERVER_NOT_FOUND = "TOOL_SERVER_NOT_FOUND"
    TOOL_SERVER_DISABLED = "TOOL_SERVER_DISABLED"
    TOOL_SPAWN_FAILED = "TOOL_SPAWN_FAILED"
    TOOL_PROTOCOL_ERROR = "TOOL_PROTOCOL_ERROR"
    TOOL_TIMEOUT = "TOOL_TIMEOUT"


class OrchestraError(Exception):
    """Base exception for agentOrchestra errors."""

    code: ErrorCode = ErrorCode.INTERNAL_ERROR
    retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        user_message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.user_message = user_message or message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": False,
            "error": {
                "code": self.code.value,
                "message": self.message,
                "details": self.details,
            },
        }


class ConfigError(OrchestraError):
    """Configuration is missing or invalid."""

    code = ErrorCode.CONFIG_INVALID


class ModelNotFoundError(OrchestraError):
    code = ErrorCode.MODEL_NOT_FOUND

    def __init__(self, model_id: str):
        super().__init__(f"Model '{model_id}' not found", details={"model_id": model_id})
        self.model_id = model_id


class ProviderUnavailableError(OrchestraError):
    """Provider id is not registered with the model bus."""

    code = ErrorCode.PROVIDER_UNAVAILABLE

    def __init__(self, provider_id: str):
        super().__init__(
            f"Provider not configured: {provider_id}",
            details={"provider_id": provider_id},
        )
        self.provider_id = provider_id


class ProviderError(OrchestraError):
    """Transport or vendor-reported failure from a provider adapter."""

    code = ErrorCode.PROVIDER_ERROR

    def __init__(
        self,
        provider_id: str,
        message: str,
        retryable: bool = True,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            f"Provider '{provider_id}' error: {message}",
            details={**(details or {}), "provider_id": provider_id, "retryable": retryable},
        )
        self.provider_id = provider_id
        self.retryable = retryable


class ProviderTimeoutError(ProviderError):
    code = ErrorCode.PROVIDER_TIMEOUT

    def __init__(self, provider_id: str, timeout: float):
        super().__init__(
            provider_id,
            f"timed out after {timeout}s",
            retryable=True,
            details={"timeout": timeout},
        )


class ProviderRateLimitError(ProviderError):
    code = ErrorCode.PROVIDER_RATE_LIMIT

    def __init__(self, provider_id: str, retry_after: Optional[float] = None):
        super().__init__(
            provider_id,
            "rate limit exceeded",
            retryable=True,
            details={"retry_after": retry_after},
        )
        self.retry_after = retry_after


class BreakerOpenError(OrchestraError):
    """Raised instead of calling a dependency whose circuit is open."""

    code = ErrorCode.BREAKER_OPEN
    retryable = True

    def __init__(self, name: str, retry_after: int):
        super().__init__(
            f"Circuit breaker '{name}' is OPEN. Try again in {retry_after}s",
            user_message=f"Service temporarily unavailable, try again in {retry_after}s",
            details={"breaker": name, "retry_after": retry_after},
        )
        self.name = name
        self.retry_after = retry_after


class AgentNotFoundError(OrchestraError):
    code = ErrorCode.AGENT_NOT_FOUND

    def __init__(self, agent_id: str):
        super().__init__(f"Agent '{agent_id}' not found", details={"agent_id": agent_id})
        self.agent_id = agent_id


class PlanGenerationError(OrchestraError):
    code = ErrorCode.PLAN_GENERATION_FAILED


class StepExecutionError(OrchestraError):
    code = ErrorCode.STEP_EXECUTION_FAILED

    def __init__(self, step_id: str, attempts: int, cause: Optional[BaseException] = None):
        super().__init__(
            f"Step {step_id} failed after {attempts} attempts: {cause}",
            details={"step_id": step_id, "attempts": attempts},
        )
        self.step_id = step_id
        self.attempts = attempts


class ToolBridgeError(OrchestraError):
    """Base class for tool process bridge failures."""

    code = ErrorCode.TOOL_PROTOCOL_ERROR


class ToolServerNotFoundError(ToolBridgeError):
    code = ErrorCode.TOOL_SERVER_NOT_FOUND

    def __init__(self, server_id: str):
        super().__init__(f"MCP server not found: {server_id}", details={"server_id": server_id})


class ToolServerDisabledError(ToolBridgeError):
    code = ErrorCode.TOOL_SERVER_DISABLED

    def __init__(self, server_name: str):
        super().__init__(f"MCP server is disabled: {server_name}", details={"server": server_name})


class ToolSpawnError(ToolBridgeError):
    code = ErrorCode.TOOL_SPAWN_FAILED


class ToolProtocolError(ToolBridgeError):
    """Malformed response, RPC error or a process that went away mid-request."""

    code = ErrorCode.TOOL_PROTOCOL_ERROR


class ToolTimeoutError(ToolBridgeError):
    code = ErrorCode.TOOL_TIMEOUT
    retryable = True


def handle_model_error(error: BaseException) -> str:
    """Convert model invocation errors to user-friendly messages.

    Args:
        error: Exception raised during model invocation

    Returns:
        User-friendly error message
    """
    if isinstance(error, OrchestraError) and error.user_message != error.message:
        return error.user_message

    error_str = str(error).lower()

    if "rate limit" in error_str or "rate_limit" in error_str or "429" in error_str:
        return "Too many requests, please try again shortly"

    if "timeout" in error_str or "timed out" in error_str:
        return "The model took too long to respond, please retry"

    if "context_length" in error_str or "maximum context" in error_str:
        return "The conversation is too long, please start a new one"

    if "invalid_api_key" in error_str or "authentication" in error_str or "401" in error_str:
        return "The provider rejected the API key"

    if "quota" in error_str or "insufficient" in error_str:
        return "The provider quota is exhausted"

    return f"Model service temporarily unavailable: {error}"
