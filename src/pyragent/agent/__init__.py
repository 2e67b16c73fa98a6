"""Multi-step agent orchestration over a RAG pipeline.

A run plans sub-questions, researches each one through the pipeline and
synthesizes the notes into one final answer.
"""

from .state import AgentPhase, AgentState, OrchestrationResult, StepResult
from .planner import PLAN_INSTRUCTION, STRICT_PLAN_INSTRUCTION, Planner, parse_plan
from .orchestrator import SYNTHESIS_INSTRUCTION, AgentOrchestrator

__all__ = [
    # State
    "AgentPhase",
    "AgentState",
    "OrchestrationResult",
    "StepResult",
    # Planning
    "PLAN_INSTRUCTION",
    "STRICT_PLAN_INSTRUCTION",
    "Planner",
    "parse_plan",
    # Orchestration
    "SYNTHESIS_INSTRUCTION",
    "AgentOrchestrator",
]
