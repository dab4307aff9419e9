from __future__ import annotations

import struct

import pytest

from ebookconv.errors import PackagingFailure
from ebookconv.packaging.mobi import (
    MINIMUM_SIZE,
    MOBI_MEDIA_TYPE,
    PALM_EPOCH_OFFSET,
    RECORD_0_LEN,
    RECORD_0_OFFSET,
    MobiEncoder,
    read_mobi_layout,
    wrap_document,
)

_FIXED_NOW = 1_700_000_000.5


def _encoder() -> MobiEncoder:
    return MobiEncoder(clock=lambda: _FIXED_NOW)


def test_record_table_locates_header_block_and_text_record() -> None:
    html = "<p>Hello World</p><p>New para</p>"
    data = _encoder().encode(html, "Sample Book")

    layout = read_mobi_layout(data)

    assert layout.record_count == 2
    assert layout.record_offsets == (RECORD_0_OFFSET, RECORD_0_OFFSET + RECORD_0_LEN)
    assert RECORD_0_OFFSET == 78 + 2 * 8
    assert RECORD_0_LEN == 16 + 232
    assert data[layout.record_offsets[0] + 16 : layout.record_offsets[0] + 20] == b"MOBI"
    assert layout.text.decode("utf-8") == wrap_document(html, "Sample Book")
    assert len(data) == layout.record_offsets[1] + layout.text_length


def test_pdb_header_fields_are_big_endian_and_fixed() -> None:
    data = _encoder().encode("<p>x</p>", "Sample Book")

    assert data[:11] == b"Sample Book"
    assert data[11:32] == b"\x00" * 21
    assert struct.unpack_from(">HH", data, 32) == (0, 0)
    expected_date = int(_FIXED_NOW) + PALM_EPOCH_OFFSET
    assert struct.unpack_from(">II", data, 36) == (expected_date, expected_date)
    assert struct.unpack_from(">IIII", data, 44) == (0, 0, 0, 0)
    assert data[60:64] == b"BOOK"
    assert data[64:68] == b"MOBI"
    assert struct.unpack_from(">IIH", data, 68) == (1, 0, 2)
    assert struct.unpack_from(">IIII", data, 78) == (RECORD_0_OFFSET, 0, RECORD_0_OFFSET + RECORD_0_LEN, 2)


def test_palmdoc_and_mobi_headers() -> None:
    html = "<p>Body</p>"
    data = _encoder().encode(html, "Headers")
    text_length = len(wrap_document(html, "Headers").encode("utf-8"))

    assert struct.unpack_from(">HHIHHI", data, RECORD_0_OFFSET) == (1, 0, text_length, 1, 4096, 0)

    mobi_start = RECORD_0_OFFSET + 16
    assert struct.unpack_from(">4sIIIII", data, mobi_start) == (b"MOBI", 232, 2, 65001, 123456789, 6)
    assert data[mobi_start + 24 : mobi_start + 232] == b"\x00" * 208

    layout = read_mobi_layout(data)
    assert layout.first_exth_index == 0
    assert layout.text_encoding == 65001
    assert layout.record_unique_ids == (0, 2)


def test_long_titles_are_truncated_and_keep_a_terminator() -> None:
    title = "An Exceptionally Long Title That Exceeds The Name Field"
    data = _encoder().encode("", title)

    assert data[:31] == title[:31].encode("ascii")
    assert data[31] == 0
    assert read_mobi_layout(data).name == title[:31]


def test_multibyte_titles_are_cut_on_character_boundaries() -> None:
    data = _encoder().encode("", "Ж" * 40)

    name = read_mobi_layout(data).name

    assert name == "Ж" * 15
    assert data[30:32] == b"\x00\x00"


def test_empty_document_has_minimum_size_plus_wrapped_text() -> None:
    data = _encoder().encode("", "Empty")

    assert len(data) == MINIMUM_SIZE + len(wrap_document("", "Empty").encode("utf-8"))
    assert read_mobi_layout(data).text == wrap_document("", "Empty").encode("utf-8")


def test_large_documents_are_stored_in_a_single_record() -> None:
    html = "<p>" + "word " * 50_000 + "</p>"
    layout = read_mobi_layout(_encoder().encode(html, "Large"))

    assert layout.record_count == 2
    assert layout.text_record_count == 1
    assert layout.text_length > 4096


def test_package_reports_azw3_artifact() -> None:
    artifact = _encoder().package("<p>x</p>", "Artifact")

    assert artifact.media_type == MOBI_MEDIA_TYPE
    assert artifact.extension == ".azw3"


def test_encoding_is_deterministic_for_a_fixed_clock() -> None:
    assert _encoder().encode("<p>same</p>", "Same") == _encoder().encode("<p>same</p>", "Same")


def test_reader_rejects_truncated_buffers() -> None:
    data = _encoder().encode("<p>Body</p>", "Truncated")

    with pytest.raises(PackagingFailure, match="too short"):
        read_mobi_layout(data[:40])

    with pytest.raises(PackagingFailure, match="truncated"):
        read_mobi_layout(data[:-5])
