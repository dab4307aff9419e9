"""Collaborator contracts consumed by the format normalizer."""

from __future__ import annotations

from typing import Iterable, Protocol, runtime_checkable

from ebookconv.extraction.models import PositionedTextFragment, WordConversionResult


@runtime_checkable
class PdfTextSource(Protocol):
    """Protocol for PDF parsers that report positioned text per page."""

    def iter_pages(self, data: bytes) -> Iterable[list[PositionedTextFragment]]:
        """Yield each page's fragments in document order."""


@runtime_checkable
class WordConverter(Protocol):
    """Protocol for word-processing document to HTML converters."""

    def convert(self, data: bytes) -> WordConversionResult:
        """Convert a document payload into an HTML fragment."""


@runtime_checkable
class TextDecoder(Protocol):
    """Protocol for byte-to-text decoding of markup sources."""

    def decode(self, data: bytes) -> str:
        """Return decoded text or raise ``ValueError``."""
