"""PDF text source reporting positioned spans through pymupdf."""

from __future__ import annotations

import logging
from typing import Iterator

import pymupdf

from ebookconv.extraction.models import PositionedTextFragment

logger = logging.getLogger(__name__)

_TEXT_BLOCK = 0


def _span_fragment(span: dict, page_height: float) -> PositionedTextFragment:
    origin_x, origin_y = span["origin"]
    # pymupdf measures from the top-left corner; fragments use PDF's bottom-left origin.
    return PositionedTextFragment(
        text=span.get("text", ""),
        x=float(origin_x),
        y=float(page_height - origin_y),
        height=float(span.get("size") or 0.0),
    )


class PyMuPDFTextSource:
    """Yield each page's text spans as ``PositionedTextFragment`` lists."""

    def iter_pages(self, data: bytes) -> Iterator[list[PositionedTextFragment]]:
        if not data:
            return

        with pymupdf.open(stream=data, filetype="pdf") as doc:
            for page_index, page in enumerate(doc, start=1):
                fragments = self._page_fragments(page)
                logger.debug("Page %d yielded %d text spans", page_index, len(fragments))
                yield fragments

    def _page_fragments(self, page: pymupdf.Page) -> list[PositionedTextFragment]:
        page_height = page.rect.height
        content = page.get_text("dict")
        fragments: list[PositionedTextFragment] = []

        for block in content.get("blocks", []):
            if block.get("type") != _TEXT_BLOCK:
                continue
            for line in block.get("lines", []):
                for span in line.get("spans", []):
                    fragments.append(_span_fragment(span, page_height))

        return fragments
