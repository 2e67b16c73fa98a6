"""
PyRAGent exceptions.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from pyragent.agent.state import AgentPhase, AgentState


class PyRAGError(Exception):
    """Base exception for all PyRAGent errors."""

    retryable: bool = False

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class ConfigError(PyRAGError, ValueError):
    """Raised for invalid configuration or parameters. Never retried."""


class InvalidArgument(PyRAGError, ValueError):
    """Raised when an operation receives an invalid argument."""


class DimensionMismatchError(PyRAGError):
    """Raised when a vector does not match the dimension of its index."""

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Vector dimension {actual} does not match index dimension {expected}"
        )


class TransientError(PyRAGError):
    """Base class for provider/backend failures that a caller may retry."""

    retryable = True


class EmbeddingUnavailable(TransientError):
    """Raised when the embedding provider fails."""

    def __init__(self, message: str = "Embedding provider unavailable"):
        super().__init__(message)


class IndexUnavailable(TransientError):
    """Raised when the vector index backend fails."""

    def __init__(self, message: str = "Vector index unavailable"):
        super().__init__(message)


class CompletionUnavailable(TransientError):
    """Raised when the completion provider fails."""

    def __init__(self, message: str = "Completion provider unavailable"):
        super().__init__(message)


class RateLimited(TransientError):
    """Raised when a provider rejects a request due to rate limiting."""

    def __init__(self, message: str = "Rate limited", retry_after: float | None = None):
        self.retry_after = retry_after
        super().__init__(message)


class ProviderRequestError(PyRAGError):
    """Raised when a provider rejects a request outright (bad key, unknown
    model, malformed request). Sending it again will not help."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class ContentFiltered(PyRAGError):
    """Raised when a provider refuses to produce content. Terminal."""

    def __init__(self, message: str = "Response blocked by content filter"):
        super().__init__(message)


class PlanParseError(PyRAGError):
    """Raised when planner output is not a well-formed ordered list."""

    def __init__(self, raw_output: str, message: str = "Could not parse plan"):
        self.raw_output = raw_output
        super().__init__(message)


class OrchestrationError(PyRAGError):
    """Raised when an orchestration run fails.

    Carries the phase and step the run was in, and a snapshot of the
    agent state, so callers can decide whether to resume, restart or
    discard the run. The underlying error is chained as ``__cause__``.
    """

    def __init__(
        self,
        message: str,
        phase: "AgentPhase",
        step_index: int,
        state: "AgentState",
    ):
        self.phase = phase
        self.step_index = step_index
        self.state = state
        super().__init__(message)

    @property
    def retryable(self) -> bool:  # type: ignore[override]
        cause: Any = self.__cause__
        return bool(getattr(cause, "retryable", False))


class OrchestrationInterrupted(OrchestrationError):
    """Raised when a run hits its deadline or its cancellation token is set."""
