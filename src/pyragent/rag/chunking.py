"""Fixed-size overlapping document chunking."""

from ..exceptions import ConfigError
from .base import BaseChunker
from .document import Chunk, Document


def _validate(size: int, overlap: int) -> None:
    if size <= 0:
        raise ConfigError(f"Chunk size must be positive, got {size}")
    if not 0 < overlap < size:
        raise ConfigError(
            f"Overlap must satisfy 0 < overlap < size, got overlap={overlap}, size={size}"
        )


def _windows(length: int, size: int, overlap: int) -> list[tuple[int, int]]:
    windows = []
    start = 0
    while start < length:
        end = min(start + size, length)
        windows.append((start, end))
        if end == length:
            break
        # Next window starts `overlap` characters before this one ended
        start = end - overlap
    return windows


def chunk_text(text: str, size: int, overlap: int) -> list[str]:
    """Split text into windows of ``size`` characters sharing ``overlap``.

    The last window may be shorter than ``size``. Empty text yields no
    chunks. The result depends only on the arguments.

    Raises:
        ConfigError: If ``size <= 0`` or not ``0 < overlap < size``
    """
    _validate(size, overlap)
    return [text[start:end] for start, end in _windows(len(text), size, overlap)]


class FixedSizeChunker(BaseChunker):
    """Chunk documents into fixed-size pieces with overlap.

    Simple but effective chunking strategy that splits text into
    chunks of a specified character count.
    """

    def __init__(
        self,
        chunk_size: int = 1000,
        overlap: int = 200,
    ):
        """Initialize the fixed-size chunker.

        Args:
            chunk_size: Maximum characters per chunk
            overlap: Number of characters shared by consecutive chunks
        """
        _validate(chunk_size, overlap)

        self.chunk_size = chunk_size
        self.overlap = overlap

    def chunk(self, document: Document) -> list[Chunk]:
        """Split document into fixed-size chunks."""
        text = document.content
        windows = _windows(len(text), self.chunk_size, self.overlap)

        return [
            Chunk(
                id=f"{document.id}_chunk_{index}",
                document_id=document.id,
                content=text[start:end],
                sequence_index=index,
                overlap_with_previous=self.overlap if index > 0 else 0,
                start_index=start,
                end_index=end,
                metadata={
                    **document.metadata,
                    "chunk_index": index,
                    "chunker": "fixed_size",
                },
            )
            for index, (start, end) in enumerate(windows)
        ]
