"""
PyRAGent - Retrieval-augmented question answering with a multi-step research agent.
"""

from pyragent.exceptions import (
    ConfigError,
    ContentFiltered,
    DimensionMismatchError,
    InvalidArgument,
    OrchestrationError,
    OrchestrationInterrupted,
    PlanParseError,
    ProviderRequestError,
    PyRAGError,
    RateLimited,
    TransientError,
)
from pyragent.rag import (
    # RAG Core
    Document,
    Chunk,
    RetrievalMatch,
    RetrievalResult,
    SourceType,
    RAGPipeline,
    QueryResult,
    # Embeddings
    FakeEmbedding,
    OpenAIEmbedding,
    LocalEmbedding,
    # Vector indexes
    MemoryVectorIndex,
    ChromaVectorIndex,
    # Stages
    FixedSizeChunker,
    DocumentStore,
    VectorRetriever,
    ContextAssembler,
    AnswerGenerator,
    # Sources
    FileSource,
    TextSource,
    WebSource,
    load_document,
)
from pyragent.agent import AgentOrchestrator, AgentPhase, OrchestrationResult
from pyragent.utils import RAGConfig, configure_logging, load_config

__version__ = "0.1.0"
__all__ = [
    # Errors
    "ConfigError",
    "ContentFiltered",
    "DimensionMismatchError",
    "InvalidArgument",
    "OrchestrationError",
    "OrchestrationInterrupted",
    "PlanParseError",
    "ProviderRequestError",
    "PyRAGError",
    "RateLimited",
    "TransientError",
    # RAG
    "Document",
    "Chunk",
    "RetrievalMatch",
    "RetrievalResult",
    "SourceType",
    "RAGPipeline",
    "QueryResult",
    "FakeEmbedding",
    "OpenAIEmbedding",
    "LocalEmbedding",
    "MemoryVectorIndex",
    "ChromaVectorIndex",
    "FixedSizeChunker",
    "DocumentStore",
    "VectorRetriever",
    "ContextAssembler",
    "AnswerGenerator",
    "FileSource",
    "TextSource",
    "WebSource",
    "load_document",
    # Agent
    "AgentOrchestrator",
    "AgentPhase",
    "OrchestrationResult",
    # Config
    "RAGConfig",
    "load_config",
    "configure_logging",
]
