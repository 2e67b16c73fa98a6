"""Document store: chunk, embed and index documents."""

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, Optional

from .base import BaseChunker, BaseEmbedding, BaseVectorIndex
from .chunking import FixedSizeChunker
from .document import Chunk, Document, Embedding, SourceType

logger = logging.getLogger(__name__)


class DocumentStore:
    """Ingests documents into a vector index.

    Ingestion is all-or-nothing per document: if embedding or indexing
    fails part way, the chunks already written for that document are
    deleted again before the error propagates. Ingestion of different
    documents can run concurrently; calls for the same document id are
    serialized.

    Example:
        ```python
        store = DocumentStore(FakeEmbedding(), MemoryVectorIndex())
        chunks = await store.ingest(Document(id="doc1", content=text))
        await store.reingest("doc1", new_text)
        ```
    """

    def __init__(
        self,
        embedding: BaseEmbedding,
        index: BaseVectorIndex,
        chunker: Optional[BaseChunker] = None,
    ):
        """Initialize the document store.

        Args:
            embedding: Embedding model for chunks
            index: Vector index to write to
            chunker: Document chunker (default: FixedSizeChunker)
        """
        self.embedding = embedding
        self.index = index
        self.chunker = chunker or FixedSizeChunker()

        self._documents: dict[str, Document] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}

    @asynccontextmanager
    async def _document_lock(self, document_id: str) -> AsyncIterator[None]:
        """Hold the mutual-exclusion scope for one document id."""
        lock = self._locks.setdefault(document_id, asyncio.Lock())
        self._lock_users[document_id] = self._lock_users.get(document_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[document_id] -= 1
            if self._lock_users[document_id] == 0:
                del self._lock_users[document_id]
                del self._locks[document_id]

    async def ingest(self, document: Document) -> list[Chunk]:
        """Chunk, embed and index a document.

        Any chunks previously indexed for the same document id are replaced.

        Args:
            document: Document to ingest

        Returns:
            The chunks written to the index
        """
        async with self._document_lock(document.id):
            return await self._ingest_locked(document)

    async def reingest(
        self,
        document_id: str,
        new_content: str,
        metadata: Optional[dict[str, str]] = None,
    ) -> list[Chunk]:
        """Replace a document's content and re-index it.

        Args:
            document_id: ID of the document to replace
            new_content: The new text content
            metadata: Metadata override (defaults to the previous version's)

        Returns:
            The chunks written to the index
        """
        async with self._document_lock(document_id):
            previous = self._documents.get(document_id)
            if previous is not None:
                document = previous.model_copy(update={
                    "content": new_content,
                    "metadata": metadata if metadata is not None else previous.metadata,
                })
            else:
                document = Document(
                    id=document_id,
                    content=new_content,
                    source_type=SourceType.RAW,
                    metadata=metadata or {},
                )
            return await self._ingest_locked(document)

    async def delete(self, document_id: str) -> int:
        """Remove every indexed chunk of a document.

        Returns:
            Number of chunks removed
        """
        async with self._document_lock(document_id):
            removed = await self._remove_chunks(document_id)
            self._documents.pop(document_id, None)
            return removed

    def get_document(self, document_id: str) -> Optional[Document]:
        """Get the last ingested version of a document."""
        return self._documents.get(document_id)

    async def count_documents(self) -> int:
        """Return the number of documents ingested through this store."""
        return len(self._documents)

    async def _remove_chunks(self, document_id: str) -> int:
        ids = await self.index.list_ids({"document_id": document_id})
        for chunk_id in ids:
            await self.index.delete(chunk_id)
        if ids:
            logger.debug(f"Removed {len(ids)} chunks of document {document_id}")
        return len(ids)

    async def _ingest_locked(self, document: Document) -> list[Chunk]:
        await self._remove_chunks(document.id)
        self._documents.pop(document.id, None)

        chunks = self.chunker.chunk(document)
        timestamp = datetime.now(timezone.utc).isoformat()
        written: list[str] = []

        try:
            for chunk in chunks:
                embedding = Embedding(
                    chunk_id=chunk.id,
                    vector=await self.embedding.embed(chunk.content),
                )
                await self.index.upsert(
                    chunk.id,
                    embedding.vector,
                    {
                        "content": chunk.content,
                        "document_id": document.id,
                        "sequence_index": chunk.sequence_index,
                        "title": document.title,
                        "timestamp": timestamp,
                        "source_type": document.source_type.value,
                    },
                )
                written.append(chunk.id)
        except BaseException:
            logger.warning(
                f"Ingestion of document {document.id} failed after "
                f"{len(written)}/{len(chunks)} chunks, rolling back"
            )
            await self._rollback(document.id, written)
            raise

        self._documents[document.id] = document
        logger.info(f"Ingested document {document.id}: {len(chunks)} chunks")
        return chunks

    async def _rollback(self, document_id: str, chunk_ids: list[str]) -> None:
        for chunk_id in chunk_ids:
            try:
                await self.index.delete(chunk_id)
            except Exception:
                logger.exception(
                    f"Rollback could not delete chunk {chunk_id} of document {document_id}"
                )
