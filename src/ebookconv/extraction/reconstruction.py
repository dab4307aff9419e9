"""Paragraph reconstruction from positioned PDF text fragments.

A PDF page reports text as loose runs with coordinates. Runs are put in
reading order (top to bottom, then left to right) and grouped into
paragraphs whenever the vertical gap to the previous run exceeds a multiple
of the run's line height. The heuristic knows nothing about columns, tables
or fonts; it is a replaceable policy, see ``ReconstructionPolicy``.
"""

from __future__ import annotations

from dataclasses import dataclass
import html
import math
from typing import Iterable

from ebookconv.extraction.models import DEFAULT_LINE_HEIGHT, PositionedTextFragment

DEFAULT_GAP_RATIO = 1.5
PAGE_CONTAINER_OPEN = '<div class="page-content">'
PAGE_CONTAINER_CLOSE = "</div>"
PAGE_BREAK_MARKER = '<hr class="page-break"/>'


@dataclass(frozen=True, slots=True)
class ReconstructionPolicy:
    """Vertical-gap threshold used to split paragraphs."""

    gap_ratio: float = DEFAULT_GAP_RATIO
    default_height: float = DEFAULT_LINE_HEIGHT

    def __post_init__(self) -> None:
        if not math.isfinite(self.gap_ratio) or self.gap_ratio <= 0:
            raise ValueError("gap_ratio must be a positive number")
        if not math.isfinite(self.default_height) or self.default_height <= 0:
            raise ValueError("default_height must be a positive number")

    def threshold_for(self, fragment: PositionedTextFragment) -> float:
        return fragment.effective_height(self.default_height) * self.gap_ratio


DEFAULT_POLICY = ReconstructionPolicy()


def _reading_order_key(fragment: PositionedTextFragment) -> tuple[int, float, float]:
    # Fragments without a usable position go last, keeping their input order.
    if not fragment.has_finite_position:
        return (1, 0.0, 0.0)
    return (0, -fragment.y, fragment.x)


def _append_text(buffer: str, text: str) -> str:
    if buffer.endswith(" ") or text.startswith(" "):
        return buffer + text
    return f"{buffer} {text}"


def _starts_new_paragraph(
    previous: PositionedTextFragment,
    current: PositionedTextFragment,
    policy: ReconstructionPolicy,
) -> bool:
    if not (previous.has_finite_position and current.has_finite_position):
        return True
    diff_y = abs(current.y - previous.y)
    if not math.isfinite(diff_y):
        return True
    return diff_y > policy.threshold_for(current)


def reconstruct_paragraphs(
    fragments: Iterable[PositionedTextFragment],
    policy: ReconstructionPolicy = DEFAULT_POLICY,
) -> list[str]:
    """Group one page's fragments into trimmed paragraph strings."""

    ordered = sorted(fragments, key=_reading_order_key)
    if not ordered:
        return []

    paragraphs: list[str] = []
    buffer = ordered[0].text
    previous = ordered[0]

    for fragment in ordered[1:]:
        if _starts_new_paragraph(previous, fragment, policy):
            _flush(paragraphs, buffer)
            buffer = fragment.text
        else:
            buffer = _append_text(buffer, fragment.text)
        previous = fragment

    _flush(paragraphs, buffer)
    return paragraphs


def _flush(paragraphs: list[str], buffer: str) -> None:
    text = buffer.strip()
    if text:
        paragraphs.append(text)


def render_paragraphs(paragraphs: Iterable[str]) -> str:
    """Wrap each paragraph in a ``<p>`` element, escaping markup characters."""

    return "".join(f"<p>{html.escape(text, quote=False)}</p>" for text in paragraphs)


def reconstruct_page(
    fragments: Iterable[PositionedTextFragment],
    policy: ReconstructionPolicy = DEFAULT_POLICY,
) -> str:
    """Return the HTML contribution of one page, or ``""`` for a page without text."""

    paragraphs = reconstruct_paragraphs(fragments, policy)
    if not paragraphs:
        return ""
    return f"{PAGE_CONTAINER_OPEN}{render_paragraphs(paragraphs)}{PAGE_CONTAINER_CLOSE}{PAGE_BREAK_MARKER}"
