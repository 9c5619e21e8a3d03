"""Goal → plan → execution, as one service call."""

from __future__ import annotations

import asyncio
import logging
import secrets
import string
import time
from typing import Literal, Optional

from pydantic import BaseModel

from agentOrchestra.planner.executor import LinearExecutor
from agentOrchestra.planner.generator import PlanGenerator
from agentOrchestra.planner.plan import ExecutionResult, PlanModel
from agentOrchestra.utils.logging_utils import log_error

LOGGER = logging.getLogger(__name__)

_RUN_ALPHABET = string.digits + string.ascii_lowercase


def generate_run_id() -> str:
    suffix = "".join(secrets.choice(_RUN_ALPHABET) for _ in range(9))
    return f"run_{int(time.time() * 1000)}_{suffix}"


class RunSummary(BaseModel):
    run_id: str
    plan: PlanModel
    result: Optional[ExecutionResult] = None
    status: Literal["completed", "failed"]
    error: Optional[str] = None


class PlannerService:
    """Thin facade over the plan generator and the linear executor."""

    def __init__(self, generator: PlanGenerator, executor: LinearExecutor):
        self.generator = generator
        self.executor = executor

    async def generate_plan(self, goal: str) -> PlanModel:
        return await self.generator.generate_plan(goal)

    async def execute_plan(self, plan: PlanModel, run_id: Optional[str] = None) -> ExecutionResult:
        return await self.executor.execute(plan, run_id or generate_run_id())

    async def plan_and_execute(self, goal: str) -> RunSummary:
        """Plan ``goal`` and run it.

        Plan generation errors propagate. Execution errors are reported as a
        ``failed`` summary.
        """
        plan = await self.generate_plan(goal)
        run_id = generate_run_id()
        LOGGER.info(f"Run {run_id} started")

        try:
            result = await self.executor.execute(plan, run_id)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            log_error(LOGGER, e, context=f"run={run_id}")
            return RunSummary(run_id=run_id, plan=plan, status="failed", error=str(e))

        LOGGER.info(f"✓ Run {run_id} finished: {len(result.completed)}/{len(result.steps)} steps completed")
        return RunSummary(run_id=run_id, plan=plan, result=result, status="completed")
