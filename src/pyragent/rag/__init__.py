"""RAG (Retrieval-Augmented Generation) system for PyRAGent.

This module provides the ingestion → indexing → retrieval → generation
pipeline:
- Document, chunk and retrieval data structures
- Fixed-size overlapping chunking
- Embedding providers (fake, OpenAI, local)
- Vector indexes (memory, ChromaDB)
- Document store with all-or-nothing ingestion
- Retriever, context assembler and answer generator
- Document sources (text, files, web pages)

Example:
    ```python
    from pyragent.rag import Document, FakeEmbedding, MemoryVectorIndex, RAGPipeline
    from pyragent.providers import OpenAICompletion

    pipeline = RAGPipeline(FakeEmbedding(), MemoryVectorIndex(), OpenAICompletion())
    await pipeline.ingest(Document(id="1", content="Python is a programming language"))
    result = await pipeline.query("What is Python?")
    ```
"""

# Data structures
from .document import (
    Chunk,
    Document,
    Embedding,
    RetrievalMatch,
    RetrievalResult,
    SourceType,
)

# Base classes
from .base import (
    BaseChunker,
    BaseDocumentSource,
    BaseEmbedding,
    BaseVectorIndex,
)

# Chunking
from .chunking import FixedSizeChunker, chunk_text

# Embedding providers
from .embeddings import (
    FakeEmbedding,
    LocalEmbedding,
    OpenAIEmbedding,
    create_embedding,
)

# Vector indexes
from .vectorstore import (
    ChromaVectorIndex,
    MemoryVectorIndex,
    cosine_similarity,
    create_vector_index,
)

# Pipeline stages
from .store import DocumentStore
from .retriever import VectorRetriever
from .context import AssembledContext, ContextAssembler
from .generator import (
    INSUFFICIENT_CONTEXT_MESSAGE,
    AnswerGenerator,
    GeneratedAnswer,
)

# Sources
from .sources import FileSource, TextSource, WebSource, load_document

# Pipeline
from .pipeline import QueryResult, RAGPipeline, SourceAttribution

__all__ = [
    # Data structures
    "Chunk",
    "Document",
    "Embedding",
    "RetrievalMatch",
    "RetrievalResult",
    "SourceType",
    # Base classes
    "BaseChunker",
    "BaseDocumentSource",
    "BaseEmbedding",
    "BaseVectorIndex",
    # Chunking
    "FixedSizeChunker",
    "chunk_text",
    # Embeddings
    "FakeEmbedding",
    "LocalEmbedding",
    "OpenAIEmbedding",
    "create_embedding",
    # Vector indexes
    "ChromaVectorIndex",
    "MemoryVectorIndex",
    "cosine_similarity",
    "create_vector_index",
    # Pipeline stages
    "DocumentStore",
    "VectorRetriever",
    "AssembledContext",
    "ContextAssembler",
    "INSUFFICIENT_CONTEXT_MESSAGE",
    "AnswerGenerator",
    "GeneratedAnswer",
    # Sources
    "FileSource",
    "TextSource",
    "WebSource",
    "load_document",
    # Pipeline
    "QueryResult",
    "RAGPipeline",
    "SourceAttribution",
]
