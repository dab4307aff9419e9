"""Data structures shared by extraction collaborators and the normalizer."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import math

DEFAULT_LINE_HEIGHT = 10.0


class DocumentKind(Enum):
    HTML = "html"
    DOCX = "docx"
    PDF = "pdf"


@dataclass(frozen=True, slots=True)
class PositionedTextFragment:
    """One run of text reported by a PDF page parser.

    Coordinates use the PDF convention: origin at the bottom-left corner,
    so a larger ``y`` is closer to the top of the page.
    """

    text: str
    x: float
    y: float
    height: float = DEFAULT_LINE_HEIGHT

    @property
    def has_finite_position(self) -> bool:
        return math.isfinite(self.x) and math.isfinite(self.y)

    def effective_height(self, default: float = DEFAULT_LINE_HEIGHT) -> float:
        """Return the height, falling back to *default* when it is unusable."""
        if not math.isfinite(self.height) or self.height <= 0:
            return default
        return self.height


@dataclass(slots=True)
class SourceDocument:
    """Raw input handed to the conversion service."""

    filename: str
    content: bytes | str
    media_type: str | None = None


@dataclass(slots=True)
class WordConversionResult:
    """HTML produced by a word-processing converter plus its advisory notes."""

    html: str
    messages: list[str] = field(default_factory=list)
