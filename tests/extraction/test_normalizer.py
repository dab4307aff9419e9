from __future__ import annotations

import logging
from typing import Iterable

import pytest

from ebookconv.errors import DecodeFailure, ExtractorUnavailable, UnsupportedFormat
from ebookconv.extraction.adapters import Collaborators
from ebookconv.extraction.models import (
    DocumentKind,
    PositionedTextFragment,
    SourceDocument,
    WordConversionResult,
)
from ebookconv.extraction.normalizer import DOCX_MEDIA_TYPE, DocumentNormalizer, classify_document


class _FakePdfSource:
    def __init__(self, pages: list[list[PositionedTextFragment]]) -> None:
        self.pages = pages
        self.received: list[bytes] = []

    def iter_pages(self, data: bytes) -> Iterable[list[PositionedTextFragment]]:
        self.received.append(data)
        return iter(self.pages)


class _FakeWordConverter:
    def __init__(self, result: WordConversionResult) -> None:
        self.result = result

    def convert(self, data: bytes) -> WordConversionResult:
        return self.result


class _FailingWordConverter:
    def convert(self, data: bytes) -> WordConversionResult:
        raise KeyError("word/document.xml")


class _FakeDecoder:
    def decode(self, data: bytes) -> str:
        return data.decode("utf-8")


class _RejectingDecoder:
    def decode(self, data: bytes) -> str:
        raise ValueError("Could not detect HTML encoding")


def test_classification_uses_media_type_or_extension() -> None:
    assert classify_document("book.HTML") is DocumentKind.HTML
    assert classify_document("page.htm") is DocumentKind.HTML
    assert classify_document("upload.bin", "text/html; charset=utf-8") is DocumentKind.HTML
    assert classify_document("report.docx") is DocumentKind.DOCX
    assert classify_document("blob", DOCX_MEDIA_TYPE) is DocumentKind.DOCX
    assert classify_document("scan", "application/pdf") is DocumentKind.PDF
    assert classify_document("paper.pdf") is DocumentKind.PDF


def test_classification_checks_html_rule_first() -> None:
    assert classify_document("mislabeled.pdf", "text/html") is DocumentKind.HTML


def test_unsupported_input_names_the_rejected_type() -> None:
    with pytest.raises(UnsupportedFormat, match=r"\.txt"):
        classify_document("notes.txt")

    with pytest.raises(UnsupportedFormat, match="image/png"):
        classify_document("cover", "image/png")


def test_html_is_returned_verbatim() -> None:
    markup = "<p>Already <b>formatted</b></p><script>kept()</script>"
    normalizer = DocumentNormalizer(Collaborators(text_decoder=_FakeDecoder()))

    assert normalizer.normalize(SourceDocument("page.html", markup)) == markup
    assert normalizer.normalize(SourceDocument("page.html", markup.encode("utf-8"))) == markup


def test_html_decode_errors_become_decode_failures() -> None:
    normalizer = DocumentNormalizer(Collaborators(text_decoder=_RejectingDecoder()))

    with pytest.raises(DecodeFailure, match="page.html") as excinfo:
        normalizer.normalize(SourceDocument("page.html", b"\xff\xfe"))

    assert isinstance(excinfo.value.__cause__, ValueError)


def test_docx_output_is_surfaced_and_messages_are_logged(caplog: pytest.LogCaptureFixture) -> None:
    converter = _FakeWordConverter(
        WordConversionResult(html="<h1>Title</h1><p>Body</p>", messages=["Unrecognised paragraph style: 'Fancy'"])
    )
    normalizer = DocumentNormalizer(Collaborators(word_converter=converter))

    with caplog.at_level(logging.WARNING, logger="ebookconv.extraction.normalizer"):
        html = normalizer.normalize(SourceDocument("report.docx", b"PK\x03\x04"))

    assert html == "<h1>Title</h1><p>Body</p>"
    assert "Unrecognised paragraph style: 'Fancy'" in caplog.text


def test_docx_converter_errors_are_wrapped() -> None:
    normalizer = DocumentNormalizer(Collaborators(word_converter=_FailingWordConverter()))

    with pytest.raises(DecodeFailure, match="DOCX conversion failed"):
        normalizer.normalize(SourceDocument("broken.docx", b"not a zip"))


def test_pdf_pages_are_reconstructed_and_concatenated_in_order() -> None:
    pages = [
        [PositionedTextFragment("Hello", 0, 700, 12), PositionedTextFragment("World", 40, 699, 12)],
        [],
        [PositionedTextFragment("Last page", 0, 700, 12)],
    ]
    pdf_source = _FakePdfSource(pages)
    normalizer = DocumentNormalizer(Collaborators(pdf_source=pdf_source))

    html = normalizer.normalize(SourceDocument("paper.pdf", b"%PDF-1.7"))

    assert pdf_source.received == [b"%PDF-1.7"]
    assert html == (
        '<div class="page-content"><p>Hello World</p></div><hr class="page-break"/>'
        '<div class="page-content"><p>Last page</p></div><hr class="page-break"/>'
    )


def test_pdf_without_text_yields_empty_document() -> None:
    normalizer = DocumentNormalizer(Collaborators(pdf_source=_FakePdfSource([[], []])))

    assert normalizer.normalize(SourceDocument("blank.pdf", b"%PDF-1.7")) == ""


@pytest.mark.parametrize(
    ("filename", "content"),
    [("paper.pdf", b"%PDF"), ("report.docx", b"PK"), ("page.html", b"<p>x</p>")],
)
def test_missing_collaborators_raise_extractor_unavailable(filename: str, content: bytes) -> None:
    normalizer = DocumentNormalizer()

    with pytest.raises(ExtractorUnavailable, match=filename):
        normalizer.normalize(SourceDocument(filename, content))


def test_binary_formats_reject_decoded_text() -> None:
    normalizer = DocumentNormalizer(Collaborators(pdf_source=_FakePdfSource([])))

    with pytest.raises(DecodeFailure, match="raw bytes"):
        normalizer.normalize(SourceDocument("paper.pdf", "%PDF as text"))
