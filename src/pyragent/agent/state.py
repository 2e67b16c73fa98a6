"""Agent state for plan → research → synthesize orchestration."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from pyragent.rag.pipeline import SourceAttribution


class AgentPhase(str, Enum):
    """Phases of one orchestration run."""

    PLANNING = "planning"
    RESEARCHING = "researching"
    SYNTHESIZING = "synthesizing"
    DONE = "done"


class StepResult(BaseModel):
    """Outcome of one research step."""

    index: int
    question: str
    answer: str
    sources: list[SourceAttribution] = Field(default_factory=list)
    confidence: float = 0.0
    used_context: bool = False


class AgentState(BaseModel):
    """State owned by a single orchestration run.

    Only the orchestrator's transition methods below mutate it.
    ``accumulated_results`` is append-only and indexed by plan step.
    ``history`` records every state entered, e.g.
    ``["PLANNING", "RESEARCHING(0)", "RESEARCHING(1)", "SYNTHESIZING", "DONE"]``.
    """

    input: str
    phase: AgentPhase = AgentPhase.PLANNING
    plan: list[str] = Field(default_factory=list)
    current_step_index: int = 0
    accumulated_results: list[str] = Field(default_factory=list)
    steps: list[StepResult] = Field(default_factory=list)
    final_answer: Optional[str] = None
    history: list[str] = Field(default_factory=list)

    @property
    def label(self) -> str:
        if self.phase == AgentPhase.RESEARCHING:
            return f"RESEARCHING({self.current_step_index})"
        return self.phase.name

    def _enter(self, phase: AgentPhase) -> None:
        self.phase = phase
        self.history.append(self.label)

    def start_planning(self) -> None:
        self._enter(AgentPhase.PLANNING)

    def start_research(self, plan: list[str]) -> None:
        if not plan:
            raise ValueError("plan must contain at least one step")
        self.plan = list(plan)
        self.current_step_index = 0
        self._enter(AgentPhase.RESEARCHING)

    def record_step(self, step: StepResult) -> None:
        if self.phase != AgentPhase.RESEARCHING or step.index != self.current_step_index:
            raise ValueError(f"Cannot record step {step.index} while in {self.label}")
        self.steps.append(step)
        self.accumulated_results.append(step.answer)

    def advance(self) -> None:
        """Move to the next research step, or to synthesis after the last."""
        if self.current_step_index + 1 < len(self.plan):
            self.current_step_index += 1
            self._enter(AgentPhase.RESEARCHING)
        else:
            self._enter(AgentPhase.SYNTHESIZING)

    def finish(self, final_answer: str) -> None:
        if self.phase != AgentPhase.SYNTHESIZING:
            raise ValueError(f"Cannot finish while in {self.label}")
        self.final_answer = final_answer
        self._enter(AgentPhase.DONE)


class OrchestrationResult(BaseModel):
    """What a finished run returns to its caller."""

    final_answer: str
    plan: list[str]
    accumulated_results: list[str]
    steps: list[StepResult] = Field(default_factory=list)
    history: list[str] = Field(default_factory=list)

    @property
    def confidence(self) -> float:
        """Mean research-step confidence (0 if no step found evidence)."""
        if not self.steps:
            return 0.0
        return sum(step.confidence for step in self.steps) / len(self.steps)
