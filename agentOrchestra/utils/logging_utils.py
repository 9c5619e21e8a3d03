"""Logging utilities for agentOrchestra."""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Union

ROOT_LOGGER_NAME = "agentOrchestra"


def setup_logging(
    level: Union[int, str] = logging.INFO,
    log_dir: Optional[Union[str, Path]] = "logs",
) -> logging.Logger:
    """Setup logging configuration for agentOrchestra.

    Args:
        level: Console-independent level for the package logger (default: INFO)
        log_dir: Directory for the session log file; ``None`` disables the file handler

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    # Clear existing handlers
    logger.handlers = []

    log_file = None
    if log_dir is not None:
        logs_path = Path(log_dir)
        logs_path.mkdir(parents=True, exist_ok=True)
        log_file = logs_path / f"orchestra_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"

        # File handler (detailed logs)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        logger.addHandler(file_handler)

    # Console handler (user-friendly)
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.WARNING)
    console_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    logger.addHandler(console_handler)

    logger.info("=" * 80)
    logger.info("agentOrchestra session started")
    if log_file:
        logger.info(f"Log file: {log_file}")
    logger.info("=" * 80)

    return logger


def _truncate(text: str, limit: int = 500) -> str:
    if len(text) > limit:
        return text[:limit] + "... (truncated)"
    return text


def log_tool_call(logger: logging.Logger, server_id: str, tool_name: str, args: Dict[str, Any]) -> None:
    """Log tool invocation.

    Args:
        logger: Logger instance
        server_id: Tool server the call is routed to
        tool_name: Name of the tool being called
        args: Tool arguments
    """
    logger.info(f"Tool call: {server_id}.{tool_name}")
    logger.debug(f"  Arguments: {json.dumps(args, ensure_ascii=False, default=str)}")


def log_tool_result(logger: logging.Logger, tool_name: str, result: Any, success: bool = True) -> None:
    """Log tool execution result.

    Args:
        logger: Logger instance
        tool_name: Name of the tool
        result: Tool execution result
        success: Whether the tool executed successfully
    """
    status = "✓ Success" if success else "✗ Failed"
    logger.info(f"Tool result: {tool_name} - {status}")
    logger.debug(f"  Result: {_truncate(str(result))}")


def log_model_selection(logger: logging.Logger, model_id: str, provider: str, model_name: str, reason: str = "") -> None:
    """Log which provider/model a logical model id resolved to."""
    logger.info(f"Model resolved: {model_id} → {provider}/{model_name}")
    if reason:
        logger.debug(f"  Reason: {reason}")


def log_error(logger: logging.Logger, error: BaseException, context: str = "") -> None:
    """Log error with context.

    Args:
        logger: Logger instance
        error: Exception instance
        context: Additional context about where the error occurred
    """
    logger.error(f"Error occurred: {type(error).__name__}: {error}")
    if context:
        logger.error(f"  Context: {context}")
    logger.debug("Full traceback:", exc_info=error)


def log_routing_decision(logger: logging.Logger, text: str, decision: str, reason: str = "") -> None:
    """Log routing decision.

    Args:
        logger: Logger instance
        text: Routed input (truncated)
        decision: Selected agent id
        reason: Reason for the routing decision
    """
    logger.info(f"Routing decision for: {text[:100]}{'...' if len(text) > 100 else ''}")
    logger.info(f"  → Agent: {decision}")
    if reason:
        logger.info(f"  → Reason: {reason}")


def log_plan_created(logger: logging.Logger, plan: Dict[str, Any]) -> None:
    """Log plan creation details.

    Args:
        logger: Logger instance
        plan: Plan dictionary
    """
    logger.info(f"\n{'='*80}")
    logger.info("Plan created:")
    logger.info(f"  Goal: {plan.get('goal', 'N/A')}")
    logger.info(f"  Total steps: {len(plan.get('steps', []))}")
    for i, step in enumerate(plan.get("steps", []), 1):
        logger.info(f"  Step {i}:")
        logger.info(f"    - ID: {step.get('id')}")
        logger.info(f"    - Title: {step.get('title')}")
        logger.info(f"    - Depends on: {step.get('depends_on') or []}")
        logger.info(f"    - Agent hint: {step.get('agent_hint')}")
    logger.info(f"{'='*80}\n")


def log_step_execution(logger: logging.Logger, step_idx: int, step: Dict[str, Any], agent_id: str, attempt: int, max_attempts: int) -> None:
    """Log step execution details.

    Args:
        logger: Logger instance
        step_idx: Current step index
        step: Step dictionary
        agent_id: Agent executing the step
        attempt: Current attempt number (1-based)
        max_attempts: Maximum allowed attempts
    """
    logger.info(f"Executing Step {step_idx + 1}: {step.get('id')}")
    logger.info(f"  Title: {step.get('title')}")
    logger.info(f"  Agent: {agent_id}")
    logger.info(f"  Attempt: {attempt}/{max_attempts}")
    logger.debug(f"  Inputs: {json.dumps(step.get('inputs', {}), ensure_ascii=False, default=str)}")


def log_user_message(logger: logging.Logger, content: str) -> None:
    logger.info(f"User input: {content[:100]}{'...' if len(content) > 100 else ''}")


def log_agent_response(logger: logging.Logger, content: str) -> None:
    logger.info(f"Agent response: {content[:100]}{'...' if len(content) > 100 else ''}")


# Singleton logger instance
_global_logger: Optional[logging.Logger] = None


def get_logger() -> logging.Logger:
    """Get or create the global logger instance.

    Returns:
        Global logger instance
    """
    global _global_logger
    if _global_logger is None:
        from agentOrchestra.config import get_settings

        observability = get_settings().observability
        _global_logger = setup_logging(observability.log_level, observability.log_dir)
    return _global_logger
