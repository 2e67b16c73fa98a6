"""Context assembly for answer generation."""

from collections.abc import Sequence
from typing import Union

from pydantic import BaseModel, Field

from ..exceptions import ConfigError
from .document import RetrievalMatch, RetrievalResult


class AssembledContext(BaseModel):
    """Prompt context built from retrieved matches.

    ``confidence`` is the mean score of the matches that made it into
    ``context_text``. It is a ranking heuristic, not a probability; 0
    means no evidence was found.
    """

    context_text: str = ""
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    matches: list[RetrievalMatch] = Field(default_factory=list)


class ContextAssembler:
    """Formats retrieved matches into a character-budgeted context."""

    def __init__(self, max_chars: int = 6000, separator: str = "\n\n---\n\n"):
        if max_chars <= 0:
            raise ConfigError("max_chars must be positive")
        self.max_chars = max_chars
        self.separator = separator

    @staticmethod
    def format_match(match: RetrievalMatch) -> str:
        return f"[Source: {match.title}]\n{match.content}"

    def assemble(
        self,
        matches: Union[RetrievalResult, Sequence[RetrievalMatch]],
    ) -> AssembledContext:
        if isinstance(matches, RetrievalResult):
            matches = matches.matches
        ranked = sorted(matches, key=lambda m: m.score, reverse=True)
        blocks = [self.format_match(m) for m in ranked]

        # Drop lowest-scored matches until the joined text fits
        while len(blocks) > 1 and len(self.separator.join(blocks)) > self.max_chars:
            blocks.pop()
            ranked.pop()

        if not blocks:
            return AssembledContext()

        context_text = self.separator.join(blocks)[: self.max_chars]
        confidence = sum(m.score for m in ranked) / len(ranked)

        return AssembledContext(
            context_text=context_text,
            confidence=max(0.0, min(1.0, confidence)),
            matches=ranked,
        )
