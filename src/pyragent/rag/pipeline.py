"""RAG pipeline: ingestion plus retrieve → assemble → answer."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from pydantic import BaseModel, Field

from ..exceptions import ConfigError
from ..providers.base import CompletionProvider
from .base import BaseChunker, BaseEmbedding, BaseVectorIndex
from .chunking import FixedSizeChunker
from .context import AssembledContext, ContextAssembler
from .document import Chunk, Document, RetrievalResult
from .generator import AnswerGenerator
from .retriever import VectorRetriever
from .store import DocumentStore

if TYPE_CHECKING:
    from pyragent.agent.orchestrator import AgentOrchestrator
    from pyragent.utils.config import AgentConfig, RAGConfig

logger = logging.getLogger(__name__)


class SourceAttribution(BaseModel):
    """A chunk that contributed to an answer."""

    chunk_id: str
    document_id: Optional[str] = None
    title: str
    score: float


class QueryResult(BaseModel):
    """Answer to a single question with its evidence."""

    question: str
    answer: str
    sources: list[SourceAttribution] = Field(default_factory=list)
    confidence: float = 0.0
    used_context: bool = False


class RAGPipeline:
    """Complete RAG (Retrieval-Augmented Generation) pipeline.

    Wires the document store, retriever, context assembler and answer
    generator around one embedding model and one vector index.

    Example:
        ```python
        pipeline = RAGPipeline(
            embedding=FakeEmbedding(),
            index=MemoryVectorIndex(),
            completion=OpenAICompletion(),
        )

        await pipeline.ingest(Document(id="1", content="Python is a programming language"))
        result = await pipeline.query("What is Python?")
        print(result.answer, result.confidence)
        ```
    """

    def __init__(
        self,
        embedding: BaseEmbedding,
        index: BaseVectorIndex,
        completion: Optional[CompletionProvider] = None,
        chunker: Optional[BaseChunker] = None,
        top_k: int = 5,
        max_context_chars: int = 6000,
    ):
        """Initialize the RAG pipeline.

        Args:
            embedding: Embedding model for documents and queries
            index: Vector index for chunk storage
            completion: Completion provider (required for query())
            chunker: Document chunker (default: FixedSizeChunker)
            top_k: Default number of matches per query
            max_context_chars: Character budget for assembled context
        """
        self.embedding = embedding
        self.index = index
        self.completion = completion
        self.top_k = top_k

        self.store = DocumentStore(embedding, index, chunker or FixedSizeChunker())
        self.retriever = VectorRetriever(embedding, index)
        self.assembler = ContextAssembler(max_chars=max_context_chars)
        self.generator = AnswerGenerator(completion) if completion else None

    @classmethod
    def from_config(
        cls,
        config: "RAGConfig",
        completion: Optional[CompletionProvider] = None,
        embedding: Optional[BaseEmbedding] = None,
        index: Optional[BaseVectorIndex] = None,
    ) -> "RAGPipeline":
        """Build a pipeline from configuration; explicit components win."""
        from ..providers import create_completion
        from .embeddings import create_embedding
        from .vectorstore import create_vector_index

        embedding = embedding or create_embedding(config.embedding)
        return cls(
            embedding=embedding,
            index=index or create_vector_index(config.vector_store, config.embedding.dimension),
            completion=completion or create_completion(config.completion),
            chunker=FixedSizeChunker(
                chunk_size=config.chunking.chunk_size,
                overlap=config.chunking.chunk_overlap,
            ),
            top_k=config.retrieval.top_k,
            max_context_chars=config.retrieval.max_context_chars,
        )

    async def ingest(self, document: Document) -> list[Chunk]:
        """Ingest one document."""
        return await self.store.ingest(document)

    async def index_documents(self, documents: list[Document]) -> list[str]:
        """Ingest several documents.

        Returns:
            List of chunk IDs written
        """
        all_chunk_ids = []

        for document in documents:
            chunks = await self.store.ingest(document)
            all_chunk_ids.extend(chunk.id for chunk in chunks)

        logger.info(f"Indexed {len(documents)} documents ({len(all_chunk_ids)} chunks)")
        return all_chunk_ids

    async def reingest(self, document_id: str, new_content: str) -> list[Chunk]:
        """Replace a document's content."""
        return await self.store.reingest(document_id, new_content)

    async def delete_document(self, document_id: str) -> int:
        """Delete a document and all its chunks."""
        return await self.store.delete(document_id)

    async def retrieve(self, query: str, top_k: Optional[int] = None) -> RetrievalResult:
        """Retrieve ranked matches for a query."""
        return await self.retriever.retrieve(query, self.top_k if top_k is None else top_k)

    def assemble(self, result: RetrievalResult) -> AssembledContext:
        return self.assembler.assemble(result)

    async def query(self, question: str, top_k: Optional[int] = None) -> QueryResult:
        """Retrieve and generate an answer.

        Args:
            question: Question to answer
            top_k: Number of matches to retrieve (default: pipeline top_k)

        Returns:
            The answer with its sources and confidence
        """
        if self.generator is None:
            raise ConfigError("A completion provider is required for query()")

        result = await self.retrieve(question, top_k)
        context = self.assembler.assemble(result)
        generated = await self.generator.answer(question, context.context_text)

        return QueryResult(
            question=question,
            answer=generated.text,
            sources=[
                SourceAttribution(
                    chunk_id=match.chunk_id,
                    document_id=match.document_id,
                    title=match.title,
                    score=match.score,
                )
                for match in context.matches
            ],
            confidence=context.confidence,
            used_context=generated.used_context,
        )

    def orchestrator(self, config: Optional["AgentConfig"] = None) -> "AgentOrchestrator":
        """Create a multi-step agent orchestrator over this pipeline."""
        from pyragent.agent.orchestrator import AgentOrchestrator

        return AgentOrchestrator(self, config)

    async def count_chunks(self) -> int:
        """Return the number of indexed chunks."""
        return await self.index.count()

    async def count_documents(self) -> int:
        """Return the number of ingested documents."""
        return await self.store.count_documents()

    def get_document(self, document_id: str) -> Optional[Document]:
        """Get a document by ID."""
        return self.store.get_document(document_id)
