"""Agent orchestrator - plan, research each step, then synthesize.

A run is a bounded state machine:

    PLANNING → RESEARCHING(0) → … → RESEARCHING(n-1) → SYNTHESIZING → DONE

It performs exactly ``len(plan)`` research steps and one synthesis
call. Research steps may run concurrently (``max_concurrency > 1``), but
results are committed to the state in plan order, so synthesis sees the
same input for a given plan regardless of completion order.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Awaitable, Optional

from pyragent.agent.planner import Planner
from pyragent.agent.state import AgentState, OrchestrationResult, StepResult
from pyragent.exceptions import (
    ConfigError,
    InvalidArgument,
    OrchestrationError,
    OrchestrationInterrupted,
    PyRAGError,
)
from pyragent.utils.config import AgentConfig

if TYPE_CHECKING:
    from pyragent.rag.pipeline import RAGPipeline

logger = logging.getLogger(__name__)

SYNTHESIS_INSTRUCTION = """You are writing the final answer to a multi-part question. The context contains research notes, one per sub-question, each produced from a document collection.

Rules:
1. Combine the notes into one coherent answer to the question.
2. Use only the information in the notes. Do not add outside knowledge.
3. If some notes say the context was insufficient, state explicitly which parts of the question could not be answered."""


class _RunControl:
    """Deadline and cancellation token for one run."""

    def __init__(self, deadline: Optional[float], cancel_event: Optional[asyncio.Event]):
        loop = asyncio.get_event_loop()
        self.deadline_at = None if deadline is None else loop.time() + deadline
        self.cancel_event = cancel_event

    def remaining(self) -> Optional[float]:
        if self.deadline_at is None:
            return None
        return max(0.0, self.deadline_at - asyncio.get_event_loop().time())

    def reason(self) -> Optional[str]:
        if self.cancel_event is not None and self.cancel_event.is_set():
            return "cancelled"
        remaining = self.remaining()
        if remaining is not None and remaining <= 0:
            return "deadline exceeded"
        return None


class AgentOrchestrator:
    """Answers complex questions by planning and multi-step retrieval.

    Example:
        ```python
        orchestrator = AgentOrchestrator(pipeline)
        result = await orchestrator.run("Compare the 2022 and 2023 refund policies")
        print(result.plan, result.final_answer)
        ```
    """

    def __init__(self, pipeline: "RAGPipeline", config: Optional[AgentConfig] = None):
        """Initialize the orchestrator.

        Args:
            pipeline: RAG pipeline used for every research step
            config: Agent settings (plan size, concurrency, default deadline)
        """
        if pipeline.generator is None:
            raise ConfigError("The pipeline needs a completion provider for orchestration")

        self.pipeline = pipeline
        self.config = config or AgentConfig()
        self.planner = Planner(
            pipeline.generator,
            min_steps=self.config.min_plan_steps,
            max_steps=self.config.max_plan_steps,
        )

    def _interrupted(self, state: AgentState, reason: str) -> OrchestrationInterrupted:
        logger.warning(f"[ORCHESTRATOR] Run {reason} during {state.label}")
        return OrchestrationInterrupted(
            f"Orchestration {reason} during {state.label}",
            phase=state.phase,
            step_index=state.current_step_index,
            state=state.model_copy(deep=True),
        )

    def _check(self, state: AgentState, control: _RunControl) -> None:
        reason = control.reason()
        if reason is not None:
            raise self._interrupted(state, reason)

    async def _guard(
        self,
        awaitable: Awaitable[Any],
        state: AgentState,
        control: _RunControl,
    ) -> Any:
        """Await an external call, racing it against deadline and cancellation."""
        task = asyncio.ensure_future(awaitable)
        waiters: set[asyncio.Future] = {task}
        if control.cancel_event is not None:
            waiters.add(asyncio.ensure_future(control.cancel_event.wait()))

        try:
            done, _ = await asyncio.wait(
                waiters,
                timeout=control.remaining(),
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            leftovers = [w for w in waiters if not w.done()]
            for waiter in leftovers:
                waiter.cancel()
            # Wait for cancelled work to unwind so nothing outlives the run
            if leftovers:
                await asyncio.gather(*leftovers, return_exceptions=True)

        if task in done:
            return task.result()
        raise self._interrupted(state, control.reason() or "deadline exceeded")

    async def _research_step(self, index: int, question: str) -> StepResult:
        result = await self.pipeline.query(question)
        return StepResult(
            index=index,
            question=question,
            answer=result.answer,
            sources=result.sources,
            confidence=result.confidence,
            used_context=result.used_context,
        )

    async def _research(self, state: AgentState, control: _RunControl) -> None:
        semaphore = asyncio.Semaphore(self.config.max_concurrency)

        async def bounded(index: int, question: str) -> StepResult:
            async with semaphore:
                return await self._research_step(index, question)

        if self.config.max_concurrency > 1:
            tasks = [
                asyncio.ensure_future(bounded(i, q)) for i, q in enumerate(state.plan)
            ]
        else:
            tasks = []

        try:
            for index, question in enumerate(state.plan):
                self._check(state, control)
                logger.info(f"[ORCHESTRATOR] Step {index + 1}/{len(state.plan)}: {question}")

                pending = tasks[index] if tasks else self._research_step(index, question)
                step = await self._guard(pending, state, control)

                state.record_step(step)
                state.advance()
        finally:
            leftovers = [task for task in tasks if not task.done()]
            for task in leftovers:
                task.cancel()
            if leftovers:
                await asyncio.gather(*leftovers, return_exceptions=True)

    def _synthesis_context(self, state: AgentState) -> str:
        return "\n\n".join(
            f"[Step {i + 1}] {question}\n{result}"
            for i, (question, result) in enumerate(zip(state.plan, state.accumulated_results))
        )

    async def run(
        self,
        question: str,
        *,
        deadline: Optional[float] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> OrchestrationResult:
        """Answer ``question`` through plan → research → synthesis.

        Args:
            question: The (possibly multi-part) question
            deadline: Seconds allowed for the whole run (default: config value)
            cancel_event: Cancellation token; setting it interrupts the run

        Returns:
            The final answer with the plan and per-step results

        Raises:
            OrchestrationInterrupted: On deadline or cancellation token
            OrchestrationError: When a provider or backend call fails
        """
        if not question or not question.strip():
            raise InvalidArgument("question must not be empty")

        if deadline is None:
            deadline = self.config.deadline_seconds
        control = _RunControl(deadline, cancel_event)
        state = AgentState(input=question)

        try:
            state.start_planning()
            self._check(state, control)
            plan = await self._guard(self.planner.plan(question), state, control)
            state.start_research(plan)

            await self._research(state, control)

            self._check(state, control)
            generated = await self._guard(
                self.pipeline.generator.answer(
                    question,
                    self._synthesis_context(state),
                    instruction=SYNTHESIS_INSTRUCTION,
                ),
                state,
                control,
            )
            state.finish(generated.text)
        except OrchestrationError:
            raise
        except asyncio.CancelledError:
            logger.warning(f"[ORCHESTRATOR] Task cancelled during {state.label}")
            raise
        except PyRAGError as e:
            logger.error(f"[ORCHESTRATOR] Failed during {state.label}: {e}")
            raise OrchestrationError(
                f"Orchestration failed during {state.label}: {e}",
                phase=state.phase,
                step_index=state.current_step_index,
                state=state.model_copy(deep=True),
            ) from e

        logger.info(f"[ORCHESTRATOR] Done after {len(state.plan)} research steps")
        return OrchestrationResult(
            final_answer=state.final_answer or "",
            plan=state.plan,
            accumulated_results=state.accumulated_results,
            steps=state.steps,
            history=state.history,
        )
