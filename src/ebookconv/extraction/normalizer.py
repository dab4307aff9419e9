"""Routing entrypoint that turns classified sources into one HTML fragment."""

from __future__ import annotations

import logging
from pathlib import PurePath

from ebookconv.errors import DecodeFailure, ExtractorUnavailable, UnsupportedFormat
from ebookconv.extraction.adapters import Collaborators
from ebookconv.extraction.models import DocumentKind, SourceDocument
from ebookconv.extraction.reconstruction import DEFAULT_POLICY, ReconstructionPolicy, reconstruct_page

logger = logging.getLogger(__name__)

HTML_MEDIA_TYPE = "text/html"
DOCX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
PDF_MEDIA_TYPE = "application/pdf"

# First matching rule wins; HTML is checked before DOCX before PDF.
_CLASSIFICATION_RULES: tuple[tuple[DocumentKind, str, frozenset[str]], ...] = (
    (DocumentKind.HTML, HTML_MEDIA_TYPE, frozenset({".html", ".htm"})),
    (DocumentKind.DOCX, DOCX_MEDIA_TYPE, frozenset({".docx"})),
    (DocumentKind.PDF, PDF_MEDIA_TYPE, frozenset({".pdf"})),
)


def classify_document(filename: str, media_type: str | None = None) -> DocumentKind:
    """Classify a source by declared media type or filename extension."""

    declared = (media_type or "").split(";", 1)[0].strip().lower()
    suffix = PurePath(filename).suffix.lower()

    for kind, rule_media_type, suffixes in _CLASSIFICATION_RULES:
        if declared == rule_media_type or suffix in suffixes:
            return kind

    rejected = declared or suffix or "unknown"
    raise UnsupportedFormat(f"Unsupported file type for conversion: {rejected}", source=filename)


class DocumentNormalizer:
    """Dispatch sources to the right extraction path and return HTML."""

    def __init__(
        self,
        collaborators: Collaborators | None = None,
        *,
        policy: ReconstructionPolicy = DEFAULT_POLICY,
    ) -> None:
        self._collaborators = collaborators or Collaborators()
        self._policy = policy

    def normalize(self, source: SourceDocument) -> str:
        """Return the normalized HTML fragment for *source*."""

        kind = classify_document(source.filename, source.media_type)
        if kind is DocumentKind.HTML:
            return self._normalize_html(source)
        if kind is DocumentKind.DOCX:
            return self._normalize_docx(source)
        return self._normalize_pdf(source)

    def _normalize_html(self, source: SourceDocument) -> str:
        if isinstance(source.content, str):
            return source.content

        decoder = self._collaborators.text_decoder
        if decoder is None:
            raise ExtractorUnavailable("HTML decoder is not available", source=source.filename)
        try:
            return decoder.decode(source.content)
        except ValueError as exc:
            raise DecodeFailure(f"Failed to decode HTML text: {exc}", source=source.filename) from exc

    def _normalize_docx(self, source: SourceDocument) -> str:
        converter = self._collaborators.word_converter
        if converter is None:
            raise ExtractorUnavailable("DOCX converter is not available", source=source.filename)

        payload = _as_bytes(source)
        try:
            result = converter.convert(payload)
        except Exception as exc:
            raise DecodeFailure(f"DOCX conversion failed: {exc}", source=source.filename) from exc

        for message in result.messages:
            logger.warning("DOCX conversion note for %s: %s", source.filename, message)
        return result.html

    def _normalize_pdf(self, source: SourceDocument) -> str:
        pdf_source = self._collaborators.pdf_source
        if pdf_source is None:
            raise ExtractorUnavailable("PDF parser is not available", source=source.filename)

        payload = _as_bytes(source)
        parts: list[str] = []
        try:
            for page_index, fragments in enumerate(pdf_source.iter_pages(payload), start=1):
                page_html = reconstruct_page(fragments, self._policy)
                if not page_html:
                    logger.debug("Page %d of %s has no extractable text", page_index, source.filename)
                parts.append(page_html)
        except Exception as exc:
            raise DecodeFailure(f"PDF text extraction failed: {exc}", source=source.filename) from exc

        return "".join(parts)


def _as_bytes(source: SourceDocument) -> bytes:
    if isinstance(source.content, bytes):
        return source.content
    raise DecodeFailure("Binary formats require raw bytes, not decoded text", source=source.filename)
