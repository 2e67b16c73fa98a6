"""Document, Chunk and retrieval data structures for RAG."""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SourceType(str, Enum):
    """Where a document's raw text came from."""

    PDF = "pdf"
    WEB = "web"
    RAW = "raw"


class Document(BaseModel):
    """A document to be indexed and retrieved.

    Documents are immutable once created.

    Attributes:
        id: Unique identifier for the document
        content: The text content of the document
        source_type: Kind of source the text was extracted from
        metadata: Additional string metadata about the document
        source: Optional source URL or path
    """

    model_config = ConfigDict(frozen=True)

    id: str
    content: str
    source_type: SourceType = SourceType.RAW
    metadata: dict[str, str] = Field(default_factory=dict)
    source: Optional[str] = None

    @property
    def title(self) -> str:
        """Human-readable identifier used when citing the document."""
        return self.metadata.get("title") or self.source or self.id

    def __repr__(self) -> str:
        content_preview = self.content[:50] + "..." if len(self.content) > 50 else self.content
        return f"Document(id={self.id!r}, content={content_preview!r})"


class Chunk(BaseModel):
    """A chunk of a document.

    Chunks are created by the chunker and stored in the vector index.

    Attributes:
        id: Unique identifier, derived from the document id and sequence index
        document_id: ID of the parent document
        content: The text content of the chunk
        sequence_index: Position of the chunk within its document
        overlap_with_previous: Characters shared with the previous chunk
        start_index: Start character index in the original document
        end_index: End character index in the original document
        metadata: Additional metadata (inherited from document + chunk-specific)
    """

    model_config = ConfigDict(frozen=True)

    id: str
    document_id: str
    content: str
    sequence_index: int = 0
    overlap_with_previous: int = 0
    start_index: int = 0
    end_index: int = 0
    metadata: dict[str, Any] = Field(default_factory=dict)

    def __repr__(self) -> str:
        content_preview = self.content[:30] + "..." if len(self.content) > 30 else self.content
        return f"Chunk(id={self.id!r}, doc_id={self.document_id!r}, content={content_preview!r})"


class Embedding(BaseModel):
    """The vector computed for one chunk."""

    model_config = ConfigDict(frozen=True)

    chunk_id: str
    vector: list[float]

    @property
    def dimension(self) -> int:
        return len(self.vector)


class RetrievalMatch(BaseModel):
    """A single ranked match returned by a vector index query.

    Attributes:
        chunk_id: ID of the matching chunk
        content: Text of the matching chunk
        score: Similarity in [0, 1], higher is closer
        metadata: Metadata stored alongside the chunk vector
    """

    chunk_id: str
    content: str
    score: float = Field(ge=0.0, le=1.0)
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def document_id(self) -> Optional[str]:
        return self.metadata.get("document_id")

    @property
    def title(self) -> str:
        return str(self.metadata.get("title") or self.document_id or self.chunk_id)

    def __repr__(self) -> str:
        return f"RetrievalMatch(chunk_id={self.chunk_id!r}, score={self.score:.4f})"


class RetrievalResult(BaseModel):
    """Matches for one query, ranked by descending score."""

    query: str = ""
    matches: list[RetrievalMatch] = Field(default_factory=list)

    @field_validator("matches")
    @classmethod
    def _check_ranking(cls, matches: list[RetrievalMatch]) -> list[RetrievalMatch]:
        for current, following in zip(matches, matches[1:]):
            if current.score < following.score:
                raise ValueError("matches must be ordered by descending score")
        return matches

    @property
    def is_empty(self) -> bool:
        return not self.matches

    def __len__(self) -> int:
        return len(self.matches)
