"""Plan schema for decomposition and execution results."""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class StepModel(BaseModel):
    """Single executable step. Never mutated during execution."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    title: str = Field(min_length=1)
    inputs: Dict[str, Any] = Field(default_factory=dict)
    depends_on: List[str] = Field(default_factory=list)
    agent_hint: Optional[str] = None
    tool: Optional[str] = None


class PlanModel(BaseModel):
    """Goal plus ordered steps; list order is execution order."""

    goal: str
    steps: List[StepModel]

    @model_validator(mode="after")
    def _unique_step_ids(self) -> "PlanModel":
        seen = set()
        for step in self.steps:
            if step.id in seen:
                raise ValueError(f"Duplicate step id: {step.id}")
            seen.add(step.id)
        return self


class StepStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class StepResult(BaseModel):
    id: str
    status: StepStatus


class ExecutionResult(BaseModel):
    """One ``steps`` entry per plan step, in plan order."""

    output: str = ""
    steps: List[StepResult] = Field(default_factory=list)

    @property
    def completed(self) -> List[str]:
        return [s.id for s in self.steps if s.status is StepStatus.COMPLETED]

    @property
    def failed(self) -> List[str]:
        return [s.id for s in self.steps if s.status is StepStatus.FAILED]
