"""DOCX to HTML conversion (python-docx) with heading, list and table mapping."""

from __future__ import annotations

from html import escape
from io import BytesIO

import docx  # python-docx
from docx.table import Table
from docx.text.hyperlink import Hyperlink
from docx.text.paragraph import Paragraph
from docx.text.run import Run

from ebookconv.extraction.models import WordConversionResult

_PLAIN_STYLES = {"normal", "body text", "body", "default", "no spacing", "plain text"}
_QUOTE_STYLES = {"quote", "intense quote"}
# Paragraph children that carry no visible text.
_SILENT_INLINE_TAGS = {"pPr", "bookmarkStart", "bookmarkEnd", "proofErr", "del", "commentRangeStart", "commentRangeEnd"}


def _heading_level(style_name: str) -> int | None:
    lowered = style_name.lower()
    if lowered == "title":
        return 1
    if not lowered.startswith("heading"):
        return None
    for part in lowered.split():
        if part.isdigit():
            return min(max(int(part), 1), 6)
    return 2


def _list_tag(style_name: str) -> str | None:
    lowered = style_name.lower()
    if not lowered.startswith("list"):
        return None
    return "ol" if "number" in lowered else "ul"


def _format_run(run: Run) -> str:
    text = escape(run.text, quote=False)
    if not text:
        return ""
    if run.italic:
        text = f"<em>{text}</em>"
    if run.bold:
        text = f"<strong>{text}</strong>"
    return text


def _hyperlink_html(hyperlink: Hyperlink) -> str:
    text = "".join(_format_run(run) for run in hyperlink.runs)
    if not text or not hyperlink.url:
        return text
    return f'<a href="{escape(hyperlink.url)}">{text}</a>'


def _inline_html(paragraph: Paragraph, messages: list[str]) -> str:
    parts: list[str] = []
    for child in paragraph._p.iterchildren():
        tag = child.tag.rsplit("}", 1)[-1]
        if tag == "r":
            parts.append(_format_run(Run(child, paragraph)))
        elif tag == "hyperlink":
            parts.append(_hyperlink_html(Hyperlink(child, paragraph)))
        elif tag not in _SILENT_INLINE_TAGS:
            message = f"Unsupported inline element was skipped: {tag}"
            if message not in messages:
                messages.append(message)
    return "".join(parts)


def _table_html(table: Table) -> str:
    rows: list[str] = []
    for row in table.rows:
        cells = "".join(f"<td>{escape(cell.text.strip(), quote=False)}</td>" for cell in row.cells)
        rows.append(f"<tr>{cells}</tr>")
    return f"<table>{''.join(rows)}</table>"


class DocxHtmlConverter:
    """Convert DOCX payloads into an HTML fragment plus advisory messages."""

    def convert(self, data: bytes) -> WordConversionResult:
        if not data:
            return WordConversionResult(html="")

        document = docx.Document(BytesIO(data))
        messages: list[str] = []
        html_parts: list[str] = []
        list_items: list[str] = []
        open_list = "ul"

        def close_list() -> None:
            if list_items:
                html_parts.append(f"<{open_list}>{''.join(list_items)}</{open_list}>")
                list_items.clear()

        for block in document.element.body.iterchildren():
            tag = block.tag.rsplit("}", 1)[-1]
            if tag == "p":
                paragraph = Paragraph(block, document)
                style_name = paragraph.style.name if paragraph.style is not None else ""
                content = _inline_html(paragraph, messages).strip()
                if not content:
                    continue
                list_tag = _list_tag(style_name)
                if list_tag is not None:
                    if list_tag != open_list:
                        close_list()
                        open_list = list_tag
                    list_items.append(f"<li>{content}</li>")
                    continue
                close_list()
                html_parts.append(self._paragraph_html(style_name, content, messages))
            elif tag == "tbl":
                close_list()
                html_parts.append(_table_html(Table(block, document)))
            elif tag != "sectPr":
                messages.append(f"Unsupported body element was skipped: {tag}")

        close_list()
        return WordConversionResult(html="".join(html_parts), messages=messages)

    def _paragraph_html(self, style_name: str, content: str, messages: list[str]) -> str:
        level = _heading_level(style_name)
        if level is not None:
            return f"<h{level}>{content}</h{level}>"
        lowered = style_name.lower()
        if lowered in _QUOTE_STYLES:
            return f"<blockquote><p>{content}</p></blockquote>"
        if style_name and lowered not in _PLAIN_STYLES:
            message = f"Unrecognised paragraph style: '{style_name}'"
            if message not in messages:
                messages.append(message)
        return f"<p>{content}</p>"
