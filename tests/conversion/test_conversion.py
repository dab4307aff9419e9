from __future__ import annotations

from pathlib import Path

import pytest

from ebookconv.config import ConverterSettings
from ebookconv.conversion import (
    DocumentConverter,
    artifact_filename,
    read_source,
    title_from_filename,
)
from ebookconv.errors import DecodeFailure, UnsupportedFormat
from ebookconv.extraction.adapters import Collaborators
from ebookconv.extraction.adapters.text_decoder import CharsetTextDecoder
from ebookconv.extraction.models import SourceDocument
from ebookconv.packaging.epub import read_epub_summary
from ebookconv.packaging.mobi import MINIMUM_SIZE, read_mobi_layout, wrap_document


def _converter(settings: ConverterSettings | None = None) -> DocumentConverter:
    return DocumentConverter.from_settings(
        settings or ConverterSettings(),
        Collaborators(text_decoder=CharsetTextDecoder()),
    )


def test_title_comes_from_file_name_without_extension() -> None:
    assert title_from_filename("My Novel.final.html") == "My Novel.final"
    assert title_from_filename("folder/Report.docx") == "Report"
    assert title_from_filename(".html") == "Converted E-Book"


def test_artifact_filename_replaces_path_separators() -> None:
    assert artifact_filename("Vol 1/2: Notes", ".epub") == "Vol 1_2_ Notes.epub"
    assert artifact_filename("", ".azw3") == "Converted E-Book.azw3"


def test_html_converts_to_named_epub_with_preview() -> None:
    source = SourceDocument("Field Notes.html", b"<p>Observed.</p>")

    book = _converter().convert(source, "epub")

    assert book.filename == "Field Notes.epub"
    assert book.media_type == "application/epub+zip"
    assert book.preview_html == "<p>Observed.</p>"
    summary = read_epub_summary(book.data)
    assert summary.title == "Field Notes"
    assert summary.opf_identifier == summary.ncx_identifier


def test_html_converts_to_azw3_with_explicit_title() -> None:
    source = SourceDocument("draft.html", "<p>Text</p>", media_type="text/html")

    book = _converter().convert(source, "AZW3", title="Final Cut")

    assert book.filename == "Final Cut.azw3"
    layout = read_mobi_layout(book.data)
    assert layout.name == "Final Cut"
    assert layout.text.decode("utf-8") == wrap_document("<p>Text</p>", "Final Cut")


def test_zero_byte_html_yields_valid_epub_and_minimal_mobi() -> None:
    source = SourceDocument("empty.html", b"")
    converter = _converter()

    epub_book = converter.convert(source, "epub")
    mobi_book = converter.convert(source, "azw3")

    assert epub_book.preview_html == ""
    assert read_epub_summary(epub_book.data).first_entry_stored is True
    assert len(mobi_book.data) == MINIMUM_SIZE + len(wrap_document("", "empty").encode("utf-8"))


def test_unknown_output_format_is_rejected() -> None:
    with pytest.raises(UnsupportedFormat, match="Unsupported output format: pdf"):
        _converter().convert(SourceDocument("a.html", b"<p>a</p>"), "pdf")


def test_default_title_setting_is_used_when_name_is_blank() -> None:
    converter = _converter(ConverterSettings(default_title="Untitled Upload"))

    book = converter.convert(SourceDocument(".html", b"<p>a</p>", media_type="text/html"), "epub")

    assert book.filename == "Untitled Upload.epub"


def test_convert_path_reads_source_file(tmp_path: Path) -> None:
    source = tmp_path / "chapter.htm"
    source.write_text("<p>Chapter text</p>", encoding="utf-8")

    book = _converter().convert_path(source, "epub")

    assert book.filename == "chapter.epub"
    assert book.preview_html == "<p>Chapter text</p>"


def test_read_source_wraps_missing_files(tmp_path: Path) -> None:
    with pytest.raises(DecodeFailure, match="Failed to read source file"):
        read_source(tmp_path / "missing.pdf")


def test_converter_lists_registered_formats() -> None:
    assert _converter().output_formats == ["azw3", "epub"]
