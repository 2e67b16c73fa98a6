"""Document sources: produce raw text from files, URLs or strings."""

import asyncio
import hashlib
import logging
from pathlib import Path
from typing import Optional

import httpx
from bs4 import BeautifulSoup

from ..exceptions import InvalidArgument
from .base import BaseDocumentSource
from .document import Document, SourceType

logger = logging.getLogger(__name__)


class TextSource(BaseDocumentSource):
    """Raw text supplied directly."""

    source_type = SourceType.RAW

    def __init__(self, text: str, metadata: Optional[dict[str, str]] = None):
        self.text = text
        self.metadata = metadata or {}
        self.location: Optional[str] = None

    async def load(self) -> tuple[str, dict[str, str]]:
        return self.text, dict(self.metadata)


class FileSource(BaseDocumentSource):
    """Text extracted from a local file.

    PDFs are read with pypdf; anything else is read as UTF-8 text.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self.location = str(self.path)

    @property
    def source_type(self) -> SourceType:
        return SourceType.PDF if self.path.suffix.lower() == ".pdf" else SourceType.RAW

    def _read(self) -> str:
        if self.path.suffix.lower() == ".pdf":
            import pypdf

            reader = pypdf.PdfReader(str(self.path))
            return "\n".join(page.extract_text() or "" for page in reader.pages)

        return self.path.read_text(encoding="utf-8")

    async def load(self) -> tuple[str, dict[str, str]]:
        if not self.path.is_file():
            raise InvalidArgument(f"Not a file: {self.path}")

        loop = asyncio.get_event_loop()
        text = await loop.run_in_executor(None, self._read)
        return text, {"title": self.path.name, "path": str(self.path)}


class WebSource(BaseDocumentSource):
    """Visible text of a web page."""

    source_type = SourceType.WEB

    def __init__(
        self,
        url: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url
        self.location = url
        self.timeout = timeout
        self._transport = transport

    async def load(self) -> tuple[str, dict[str, str]]:
        async with httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=True,
            transport=self._transport,
        ) as client:
            response = await client.get(self.url)
            response.raise_for_status()

        soup = BeautifulSoup(response.text, "html.parser")
        for tag in soup(["script", "style", "noscript"]):
            tag.decompose()

        metadata = {"url": self.url}
        if soup.title and soup.title.string:
            metadata["title"] = soup.title.string.strip()

        lines = (line.strip() for line in soup.get_text("\n").splitlines())
        return "\n".join(line for line in lines if line), metadata


async def load_document(
    source: BaseDocumentSource,
    document_id: Optional[str] = None,
) -> Document:
    """Load a source into a Document.

    Args:
        source: Source to read
        document_id: Document ID (derived from the source location if None)

    Returns:
        The loaded document
    """
    text, metadata = await source.load()
    location = getattr(source, "location", None)

    if document_id is None:
        basis = location or text
        document_id = hashlib.sha256(basis.encode("utf-8")).hexdigest()[:16]

    logger.debug(f"Loaded {len(text)} characters from {location or 'raw text'}")
    return Document(
        id=document_id,
        content=text,
        source_type=getattr(source, "source_type", SourceType.RAW),
        metadata=metadata,
        source=location,
    )
