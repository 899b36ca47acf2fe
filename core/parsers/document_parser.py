"""Text extraction for uploaded resumes (PDF, DOCX, plain text)."""

import asyncio
import logging
import re
from io import BytesIO
from pathlib import PurePosixPath
from typing import Iterable, Union

import pdfplumber
from docx import Document


logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = frozenset({".pdf", ".docx", ".txt"})

StreamLike = Union[BytesIO, bytes, bytearray, memoryview]


class UnsupportedDocumentError(ValueError):
    """Raised for file types we cannot extract text from."""


async def extract_text(data: StreamLike, filename: str) -> str:
    """
    Extract normalized text from a document, choosing the parser by extension.

    Args:
        data: Raw file contents
        filename: Name or storage path used to pick the parser

    Returns:
        Normalized text (may be empty)

    Raises:
        UnsupportedDocumentError: If the extension is not supported
    """
    suffix = PurePosixPath(filename).suffix.lower()
    if suffix == ".pdf":
        return await extract_text_from_pdf_stream(data)
    if suffix == ".docx":
        return await extract_text_from_docx_stream(data)
    if suffix == ".txt":
        raw = bytes(data.getvalue() if isinstance(data, BytesIO) else data)
        return _normalize_text(raw.decode("utf-8", errors="replace").splitlines())
    raise UnsupportedDocumentError(f"Unsupported document type: {suffix or filename}")


async def extract_text_from_pdf_stream(file_stream: StreamLike) -> str:
    """Return normalized text from a PDF without blocking the event loop."""
    stream = _prepare_stream(file_stream)
    return await asyncio.to_thread(_extract_pdf_text_sync, stream)


async def extract_text_from_docx_stream(file_stream: StreamLike) -> str:
    """Return normalized text from a DOCX, table cells included, off the event loop."""
    stream = _prepare_stream(file_stream)
    return await asyncio.to_thread(_extract_docx_text_sync, stream)


def _extract_pdf_text_sync(file_stream: BytesIO) -> str:
    chunks: list[str] = []
    with pdfplumber.open(file_stream) as pdf:
        for page_number, page in enumerate(pdf.pages, start=1):
            try:
                page_text = page.extract_text() or ""
            except Exception as exc:  # pragma: no cover - pdfplumber internals
                logger.warning("Skipping unreadable PDF page %s: %s", page_number, exc)
                continue
            chunks.append(page_text)

    text = _normalize_text(chunks)
    if not text:
        logger.info("PDF contained no extractable text")
    return text


def _extract_docx_text_sync(file_stream: BytesIO) -> str:
    doc = Document(file_stream)
    text = _normalize_text(_iter_docx_text(doc))
    if not text:
        logger.info("DOCX contained no extractable text")
    return text


def _iter_docx_text(doc) -> Iterable[str]:
    for para in doc.paragraphs:
        yield para.text
    for table in doc.tables:
        for row in table.rows:
            for cell in row.cells:
                yield cell.text


def _normalize_text(chunks: Iterable[str]) -> str:
    """Drop blank chunks, join with newlines and cap runs of blank lines."""
    cleaned = [chunk.strip() for chunk in chunks if chunk and chunk.strip()]
    if not cleaned:
        return ""
    text = "\n".join(cleaned)
    return re.sub(r"\n{3,}", "\n\n", text).strip()


def _prepare_stream(file_stream: StreamLike) -> BytesIO:
    if isinstance(file_stream, (bytes, bytearray, memoryview)):
        stream = BytesIO(bytes(file_stream))
    else:
        stream = file_stream

    if stream.closed:
        raise ValueError("file_stream is closed")

    stream.seek(0)
    return stream
