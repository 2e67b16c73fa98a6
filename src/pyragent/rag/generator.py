"""Answer generation from assembled context."""

import logging
from typing import Optional

from pydantic import BaseModel

from ..providers.base import CompletionProvider

logger = logging.getLogger(__name__)

INSUFFICIENT_CONTEXT_MESSAGE = "The provided context is insufficient to answer this question."

NO_CONTEXT_MARKER = "(no context provided)"

ANSWER_INSTRUCTION = f"""You are a careful assistant that answers questions using only the supplied context.

Rules:
1. Answer strictly from the context below. Do not use outside knowledge.
2. If the context does not contain enough information to answer, reply with exactly: "{INSUFFICIENT_CONTEXT_MESSAGE}" and then briefly state what is missing.
3. Cite the [Source: ...] labels you relied on."""

PROMPT_TEMPLATE = """{instruction}

Context:
{context}

Question: {question}

Answer:"""


class GeneratedAnswer(BaseModel):
    """Model output for one question.

    ``used_context`` records whether any context was supplied to the
    model, independent of what the model said.
    """

    text: str
    used_context: bool


class AnswerGenerator:
    """Calls a completion provider with context and question.

    Each call makes exactly one completion request; provider errors
    propagate unchanged.
    """

    def __init__(
        self,
        completion: CompletionProvider,
        instruction: str = ANSWER_INSTRUCTION,
    ):
        self.completion = completion
        self.instruction = instruction

    def build_prompt(
        self,
        question: str,
        context_text: str,
        instruction: Optional[str] = None,
    ) -> str:
        return PROMPT_TEMPLATE.format(
            instruction=instruction or self.instruction,
            context=context_text if context_text else NO_CONTEXT_MARKER,
            question=question,
        )

    async def answer(
        self,
        question: str,
        context_text: str,
        instruction: Optional[str] = None,
    ) -> GeneratedAnswer:
        """Generate an answer to ``question`` from ``context_text``.

        Args:
            question: The question to answer
            context_text: Assembled context (may be empty)
            instruction: Instruction overriding the default answer rules

        Returns:
            The model text and whether context was supplied
        """
        prompt = self.build_prompt(question, context_text, instruction)
        text = await self.completion.complete(prompt)
        logger.debug(f"Generated {len(text)} characters for question {question[:50]!r}")
        return GeneratedAnswer(text=text.strip(), used_context=bool(context_text))
