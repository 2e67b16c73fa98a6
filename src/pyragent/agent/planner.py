"""Planner - decomposes a question into ordered sub-questions.

The planner asks the answer generator, with no retrieval context, for
a numbered list of sub-questions. Output that is not a well-formed
ordered list is retried once with a stricter instruction; if that also
fails the plan falls back to the original question as a single step.
"""

import json
import logging
import re

from pyragent.exceptions import PlanParseError
from pyragent.rag.generator import AnswerGenerator

logger = logging.getLogger(__name__)

PLAN_INSTRUCTION = """You are a research planner. Break the question below into {min_steps} to {max_steps} ordered sub-questions. Each sub-question must be answerable on its own by searching a document collection, and together they must cover everything needed to answer the original question.

Output ONLY a numbered list, one sub-question per line:
1. <first sub-question>
2. <second sub-question>"""

STRICT_PLAN_INSTRUCTION = PLAN_INSTRUCTION + """

Your previous reply could not be parsed. Reply with the numbered list and nothing else: no introduction, no explanations, no headings."""

_NUMBERED_ITEM = re.compile(r"^\s*(\d+)[.)]\s+(.*\S)\s*$")


def _strip_code_fence(text: str) -> str:
    # Extract the body of a markdown code block if present
    if "```" in text:
        parts = text.split("```")
        if len(parts) >= 3:
            body = parts[1]
            if "\n" in body:
                first_line, rest = body.split("\n", 1)
                if first_line.strip().isalpha():
                    body = rest
            return body.strip()
    return text.strip()


def parse_plan(text: str, max_steps: int = 5) -> list[str]:
    """Parse planner output into an ordered list of sub-questions.

    Accepts a numbered list (``1.`` or ``1)``, numbered consecutively
    from 1; other lines are ignored) or a JSON array of strings. Plans
    longer than ``max_steps`` are truncated.

    Raises:
        PlanParseError: If the output is not a well-formed ordered list
    """
    body = _strip_code_fence(text)

    if body.startswith("["):
        try:
            data = json.loads(body)
        except json.JSONDecodeError as e:
            raise PlanParseError(text, f"Invalid JSON plan: {e}") from e
        if not isinstance(data, list) or not all(isinstance(s, str) and s.strip() for s in data):
            raise PlanParseError(text, "JSON plan must be a list of non-empty strings")
        steps = [s.strip() for s in data]
    else:
        steps = []
        for line in body.splitlines():
            match = _NUMBERED_ITEM.match(line)
            if not match:
                continue
            number, item = int(match.group(1)), match.group(2)
            if number != len(steps) + 1:
                raise PlanParseError(text, f"Plan numbering jumps to {number}")
            steps.append(item)

    if not steps:
        raise PlanParseError(text, "Plan contains no steps")

    if len(steps) > max_steps:
        logger.debug(f"Truncating plan from {len(steps)} to {max_steps} steps")
        steps = steps[:max_steps]
    return steps


class Planner:
    """Produces the research plan for a question."""

    def __init__(
        self,
        generator: AnswerGenerator,
        min_steps: int = 3,
        max_steps: int = 5,
    ):
        self.generator = generator
        self.min_steps = min_steps
        self.max_steps = max_steps

    async def _attempt(self, question: str, template: str) -> list[str]:
        instruction = template.format(min_steps=self.min_steps, max_steps=self.max_steps)
        generated = await self.generator.answer(question, "", instruction=instruction)
        return parse_plan(generated.text, self.max_steps)

    async def plan(self, question: str) -> list[str]:
        """Return the ordered sub-questions for ``question``.

        Never raises ``PlanParseError``; provider errors propagate.
        """
        try:
            steps = await self._attempt(question, PLAN_INSTRUCTION)
        except PlanParseError as e:
            logger.warning(f"[PLANNER] Unparseable plan ({e.message}), retrying with stricter instruction")
            try:
                steps = await self._attempt(question, STRICT_PLAN_INSTRUCTION)
            except PlanParseError as e:
                logger.warning(f"[PLANNER] Retry failed ({e.message}), using single-step fallback plan")
                return [question]

        if len(steps) < self.min_steps:
            logger.debug(f"[PLANNER] Plan has {len(steps)} steps, fewer than the requested {self.min_steps}")
        logger.info(f"[PLANNER] Generated plan with {len(steps)} steps")
        return steps
