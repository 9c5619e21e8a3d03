"""Sequential plan execution with per-step retry and exponential backoff."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Mapping, Optional, Union

from agentOrchestra.models.bus import ModelBus
from agentOrchestra.models.schema import AgentSpec, ChatMessage
from agentOrchestra.utils.errors import AgentNotFoundError, StepExecutionError
from agentOrchestra.utils.logging_utils import log_error, log_step_execution

from .plan import ExecutionResult, PlanModel, StepModel, StepResult, StepStatus

LOGGER = logging.getLogger(__name__)

DEFAULT_SYSTEM_PROMPT = "You are a helpful assistant."

STEP_PROMPT_TEMPLATE = """Execute the following step:

Step ID: {step_id}
Title: {title}

Input:
{payload}

Please complete this step and provide the result."""

SleepFn = Callable[[float], Awaitable[Any]]


class LinearExecutor:
    """Runs plan steps one after another in list order.

    Each step gets ``1 + max_retries`` attempts. A step whose dependencies
    did not complete is failed without being attempted. Completed outputs
    (``{"content", "usage"}``) are handed to later steps under
    ``previousSteps``.
    """

    def __init__(
        self,
        model_bus: ModelBus,
        agents: Union[Mapping[str, AgentSpec], Iterable[AgentSpec]],
        max_retries: int = 3,
        retry_delay: float = 1.0,
        default_agent_id: Optional[str] = None,
        sleep: SleepFn = asyncio.sleep,
    ):
        if isinstance(agents, Mapping):
            self._agents: Dict[str, AgentSpec] = dict(agents)
        else:
            self._agents = {agent.id: agent for agent in agents}

        if default_agent_id is not None and default_agent_id not in self._agents:
            raise AgentNotFoundError(default_agent_id)

        self.model_bus = model_bus
        self.max_retries = max(0, max_retries)
        self.retry_delay = retry_delay
        self.default_agent_id = default_agent_id or next(iter(self._agents), None)
        self._sleep = sleep

    async def execute(self, plan: PlanModel, run_id: str) -> ExecutionResult:
        """Execute every step of ``plan``.

        Never raises for step or walk failures; those are reported through
        the returned ``ExecutionResult``.
        """
        outputs: Dict[str, Dict[str, Any]] = {}
        results: List[StepResult] = []

        LOGGER.info(f"Run {run_id}: executing {len(plan.steps)} steps for goal: {plan.goal}")
        try:
            for idx, step in enumerate(plan.steps):
                missing = [dep for dep in step.depends_on if dep not in outputs]
                if missing:
                    LOGGER.warning(f"✗ Step {step.id} skipped, unmet dependencies: {missing}")
                    results.append(StepResult(id=step.id, status=StepStatus.FAILED))
                    continue

                try:
                    outputs[step.id] = await self._run_step(idx, step, outputs, run_id)
                except asyncio.CancelledError:
                    raise
                except Exception as e:
                    log_error(LOGGER, e, context=f"run={run_id} step={step.id}")
                    results.append(StepResult(id=step.id, status=StepStatus.FAILED))
                    continue

                LOGGER.info(f"✓ Step {step.id} completed")
                results.append(StepResult(id=step.id, status=StepStatus.COMPLETED))
        except asyncio.CancelledError:
            raise
        except Exception as e:
            log_error(LOGGER, e, context=f"run={run_id} plan walk")
            return ExecutionResult(output=str(e), steps=results)

        final_output = ""
        for result in reversed(results):
            if result.status is StepStatus.COMPLETED:
                final_output = outputs[result.id]["content"]
                break

        return ExecutionResult(output=final_output, steps=results)

    def select_agent(self, step: StepModel) -> AgentSpec:
        """Return the hinted agent when known, otherwise the default agent."""
        if step.agent_hint and step.agent_hint in self._agents:
            return self._agents[step.agent_hint]
        if self.default_agent_id is None:
            raise AgentNotFoundError(step.agent_hint or "<default>")
        return self._agents[self.default_agent_id]

    async def _run_step(
        self,
        idx: int,
        step: StepModel,
        outputs: Mapping[str, Dict[str, Any]],
        run_id: str,
    ) -> Dict[str, Any]:
        agent = self.select_agent(step)
        messages = [
            ChatMessage.system(agent.system_prompt or DEFAULT_SYSTEM_PROMPT),
            ChatMessage.user(self.build_prompt(step, outputs, run_id)),
        ]

        max_attempts = self.max_retries + 1
        last_error: Optional[BaseException] = None
        for attempt in range(max_attempts):
            if attempt > 0:
                delay = self.retry_delay * 2 ** (attempt - 1)
                LOGGER.info(f"Retrying step {step.id} in {delay}s")
                await self._sleep(delay)

            log_step_execution(LOGGER, idx, step.model_dump(), agent.id, attempt + 1, max_attempts)
            try:
                result = await self.model_bus.call(
                    agent.model_id,
                    messages,
                    max_tokens=agent.max_tokens,
                )
            except asyncio.CancelledError:
                raise
            except Exception as e:
                last_error = e
                LOGGER.warning(f"Step {step.id} attempt {attempt + 1}/{max_attempts} failed: {e}")
                continue

            usage = result.usage.model_dump(exclude_none=True) if result.usage else None
            return {"content": result.text, "usage": usage}

        raise StepExecutionError(step.id, max_attempts, last_error)

    @staticmethod
    def build_prompt(step: StepModel, outputs: Mapping[str, Dict[str, Any]], run_id: str) -> str:
        """Render the user prompt for ``step`` with its enriched input."""
        enriched: Dict[str, Any] = dict(step.inputs)
        enriched["previousSteps"] = {dep: outputs[dep] for dep in step.depends_on if dep in outputs}
        enriched["runId"] = run_id
        return STEP_PROMPT_TEMPLATE.format(
            step_id=step.id,
            title=step.title,
            payload=json.dumps(enriched, indent=2, ensure_ascii=False, default=str),
        )
