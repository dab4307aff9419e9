"""Extraction collaborator implementations and contracts."""

from __future__ import annotations

from dataclasses import dataclass
import logging

from .base import PdfTextSource, TextDecoder, WordConverter

logger = logging.getLogger(__name__)

try:
    from .pdf_adapter import PyMuPDFTextSource
except ImportError:
    PyMuPDFTextSource = None
    logger.warning("PDF support unavailable: install 'pymupdf'")

try:
    from .docx_adapter import DocxHtmlConverter
except ImportError:
    DocxHtmlConverter = None
    logger.warning("DOCX support unavailable: install 'python-docx'")

try:
    from .text_decoder import CharsetTextDecoder
except ImportError:
    CharsetTextDecoder = None
    logger.warning("HTML support unavailable: install 'charset-normalizer'")


@dataclass(frozen=True, slots=True)
class Collaborators:
    """Extraction collaborators handed to the normalizer; ``None`` means unavailable."""

    pdf_source: PdfTextSource | None = None
    word_converter: WordConverter | None = None
    text_decoder: TextDecoder | None = None


def build_default_collaborators() -> Collaborators:
    """Return the collaborators whose libraries are importable."""
    return Collaborators(
        pdf_source=PyMuPDFTextSource() if PyMuPDFTextSource is not None else None,
        word_converter=DocxHtmlConverter() if DocxHtmlConverter is not None else None,
        text_decoder=CharsetTextDecoder() if CharsetTextDecoder is not None else None,
    )


__all__ = [
    "CharsetTextDecoder",
    "Collaborators",
    "DocxHtmlConverter",
    "PdfTextSource",
    "PyMuPDFTextSource",
    "TextDecoder",
    "WordConverter",
    "build_default_collaborators",
]
