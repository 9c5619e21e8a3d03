"""Goal decomposition into ordered, dependency-linked steps."""

from __future__ import annotations

import logging
import secrets
import string
import time
from typing import Any, Dict, List, Optional, Protocol

from agentOrchestra.utils.errors import PlanGenerationError
from agentOrchestra.utils.logging_utils import log_plan_created

from .plan import PlanModel, StepModel

LOGGER = logging.getLogger(__name__)

_ID_ALPHABET = string.digits + string.ascii_lowercase


def generate_step_id() -> str:
    """Return ``step_<epoch-ms>_<9 base36 chars>``."""
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"step_{int(time.time() * 1000)}_{suffix}"


class DecompositionStrategy(Protocol):
    """Turns a goal into ordered steps."""

    def decompose(self, goal: str, context: Optional[Dict[str, Any]] = None) -> List[StepModel]:
        ...


class LinearDecomposition:
    """Fixed four-step chain: analyze → research → execute → summarize."""

    def decompose(self, goal: str, context: Optional[Dict[str, Any]] = None) -> List[StepModel]:
        templates = [
            (f'Analyze and understand the goal: "{goal}"', {"goal": goal}),
            ("Research and gather necessary information", {"task": "research", "goal": goal}),
            ("Generate solution or execute action", {"task": "execute", "goal": goal}),
            ("Verify results and create summary", {"task": "summarize", "goal": goal}),
        ]

        steps: List[StepModel] = []
        for title, inputs in templates:
            steps.append(
                StepModel(
                    id=generate_step_id(),
                    title=title,
                    inputs=inputs,
                    depends_on=[steps[-1].id] if steps else [],
                )
            )
        return steps


class PlanGenerator:
    """Generates a structured plan from a goal.

    ``max_steps`` and ``default_parallel_limit`` are kept for richer
    strategies; the default linear strategy always yields four steps.
    """

    def __init__(
        self,
        max_steps: int = 10,
        default_parallel_limit: int = 1,
        strategy: Optional[DecompositionStrategy] = None,
    ):
        self.max_steps = max_steps
        self.default_parallel_limit = default_parallel_limit
        self.strategy: DecompositionStrategy = strategy or LinearDecomposition()

    async def generate_plan(self, goal: str, context: Optional[Dict[str, Any]] = None) -> PlanModel:
        """Decompose ``goal`` into a plan.

        Any string is accepted, including an empty one.

        Raises:
            PlanGenerationError: If the strategy fails
        """
        try:
            steps = self.strategy.decompose(goal, context)
            plan = PlanModel(goal=goal, steps=steps)
        except PlanGenerationError:
            raise
        except Exception as e:
            raise PlanGenerationError(f"Plan generation failed: {e}") from e

        log_plan_created(LOGGER, plan.model_dump())
        return plan
