"""Plan generation and linear execution."""

from .executor import DEFAULT_SYSTEM_PROMPT, LinearExecutor
from .generator import DecompositionStrategy, LinearDecomposition, PlanGenerator, generate_step_id
from .plan import ExecutionResult, PlanModel, StepModel, StepResult, StepStatus

__all__ = [
    "DEFAULT_SYSTEM_PROMPT",
    "DecompositionStrategy",
    "ExecutionResult",
    "LinearDecomposition",
    "LinearExecutor",
    "PlanGenerator",
    "PlanModel",
    "StepModel",
    "StepResult",
    "StepStatus",
    "generate_step_id",
]
