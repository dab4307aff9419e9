"""Minimal PDB/MOBI writer and reader.

The output holds two records: Record 0 with the PalmDOC and MOBI headers,
and Record 1 with the whole UTF-8 document, uncompressed. There is no EXTH
block and no 4096-byte text splitting, so only basic readers are expected to
open these files.
"""

from __future__ import annotations

from html import escape
import logging
import struct
import time
from typing import Callable

from ebookconv.errors import PackagingFailure
from ebookconv.packaging.models import MobiLayout, PackagedArtifact

logger = logging.getLogger(__name__)

MOBI_MEDIA_TYPE = "application/x-mobipocket-ebook"
MOBI_EXTENSION = ".azw3"

# Seconds between the Palm epoch (1904-01-01) and the Unix epoch.
PALM_EPOCH_OFFSET = 2082844800

PDB_NAME_LEN = 32
PDB_NAME_MAX_CHARS = 31
PDB_TYPE = b"BOOK"
PDB_CREATOR = b"MOBI"
PDB_UNIQUE_ID_SEED = 1
RECORD_COUNT = 2

NO_COMPRESSION = 1
TEXT_RECORD_COUNT = 1
TEXT_RECORD_SIZE = 4096

MOBI_IDENTIFIER = b"MOBI"
MOBI_HEADER_LEN = 232
MOBI_TYPE_BOOK = 2
UTF8_ENCODING = 65001
MOBI_UNIQUE_ID = 123456789
MOBI_FILE_VERSION = 6
NO_EXTH = 0

# name, attributes, version, creation, modification, backup, modnum,
# appinfo, sortinfo, type, creator, unique id seed, next record list, record count
PDB_HEADER = struct.Struct(f">{PDB_NAME_LEN}sHHIIIIII4s4sIIH")
# data offset, then attributes (high byte) and 24-bit unique id
RECORD_INFO = struct.Struct(">II")
# compression, unused, text length, record count, record size, current position
PALMDOC_HEADER = struct.Struct(">HHIHHI")
# identifier, header length, type, text encoding, unique id, file version
MOBI_HEADER_PREFIX = struct.Struct(">4sIIIII")
MOBI_FIRST_NON_BOOK_OFFSET = 80
MOBI_FULL_NAME_OFFSET = 84
MOBI_FULL_NAME_LENGTH_OFFSET = 88
MOBI_FIRST_EXTH_OFFSET = 128
MOBI_UINT32 = struct.Struct(">I")
MOBI_UINT16 = struct.Struct(">H")

PDB_HEADER_LEN = PDB_HEADER.size
RECORD_INFO_LEN = RECORD_INFO.size
PALMDOC_HEADER_LEN = PALMDOC_HEADER.size
RECORD_0_LEN = PALMDOC_HEADER_LEN + MOBI_HEADER_LEN
RECORD_0_OFFSET = PDB_HEADER_LEN + RECORD_COUNT * RECORD_INFO_LEN
MINIMUM_SIZE = RECORD_0_OFFSET + RECORD_0_LEN


def _record_unique_id(index: int) -> int:
    return index * 2


def _pdb_name(title: str) -> bytes:
    # Keep a terminating NUL inside the 32-byte field even for multi-byte titles.
    encoded = title[:PDB_NAME_MAX_CHARS].encode("utf-8")[:PDB_NAME_MAX_CHARS]
    return encoded.decode("utf-8", "ignore").encode("utf-8")


def wrap_document(html: str, title: str) -> str:
    """Return the standalone HTML document stored in the text record."""
    safe_title = escape(title, quote=False)
    return f"<html><head><title>{safe_title}</title></head><body><h1>{safe_title}</h1>{html}</body></html>"


def _mobi_header() -> bytes:
    header = bytearray(MOBI_HEADER_LEN)
    MOBI_HEADER_PREFIX.pack_into(
        header,
        0,
        MOBI_IDENTIFIER,
        MOBI_HEADER_LEN,
        MOBI_TYPE_BOOK,
        UTF8_ENCODING,
        MOBI_UNIQUE_ID,
        MOBI_FILE_VERSION,
    )
    MOBI_UINT32.pack_into(header, MOBI_FIRST_NON_BOOK_OFFSET, 0)
    MOBI_UINT32.pack_into(header, MOBI_FULL_NAME_OFFSET, 0)
    MOBI_UINT32.pack_into(header, MOBI_FULL_NAME_LENGTH_OFFSET, 0)
    MOBI_UINT16.pack_into(header, MOBI_FIRST_EXTH_OFFSET, NO_EXTH)
    return bytes(header)


class MobiEncoder:
    """Serialize a normalized HTML document into a two-record MOBI buffer."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock

    def package(self, html: str, title: str) -> PackagedArtifact:
        data = self.encode(html, title)
        logger.info("Built MOBI '%s' (%d bytes)", title, len(data))
        return PackagedArtifact(data=data, media_type=MOBI_MEDIA_TYPE, extension=MOBI_EXTENSION)

    def encode(self, html: str, title: str) -> bytes:
        try:
            content = wrap_document(html, title).encode("utf-8")
            name = _pdb_name(title)
        except UnicodeEncodeError as exc:
            raise PackagingFailure(f"MOBI text could not be encoded as UTF-8: {exc}", source=title) from exc

        palm_time = (int(self._clock()) + PALM_EPOCH_OFFSET) & 0xFFFFFFFF

        cursor = RECORD_0_OFFSET
        record_offsets: list[int] = []
        for record_len in (RECORD_0_LEN, len(content)):
            record_offsets.append(cursor)
            cursor += record_len

        parts = [
            PDB_HEADER.pack(
                name,
                0,
                0,
                palm_time,
                palm_time,
                0,
                0,
                0,
                0,
                PDB_TYPE,
                PDB_CREATOR,
                PDB_UNIQUE_ID_SEED,
                0,
                RECORD_COUNT,
            )
        ]
        for index, offset in enumerate(record_offsets):
            parts.append(RECORD_INFO.pack(offset, _record_unique_id(index)))

        parts.append(
            PALMDOC_HEADER.pack(NO_COMPRESSION, 0, len(content), TEXT_RECORD_COUNT, TEXT_RECORD_SIZE, 0)
        )
        parts.append(_mobi_header())
        parts.append(content)

        data = b"".join(parts)
        if len(data) != cursor:
            raise PackagingFailure(
                f"MOBI layout mismatch: expected {cursor} bytes, wrote {len(data)}",
                source=title,
            )
        return data


def _decode_code(raw: bytes) -> str:
    return raw.decode("ascii", "replace")


def read_mobi_layout(data: bytes) -> MobiLayout:
    """Decode headers and the text record of a buffer written by ``MobiEncoder``."""

    if len(data) < PDB_HEADER_LEN:
        raise PackagingFailure(f"Buffer too short for a PDB header: {len(data)} bytes")

    fields = PDB_HEADER.unpack_from(data, 0)
    name = fields[0].split(b"\x00", 1)[0].decode("utf-8", "replace")
    record_count = fields[13]

    table_end = PDB_HEADER_LEN + record_count * RECORD_INFO_LEN
    if record_count < 2 or len(data) < table_end:
        raise PackagingFailure(f"Unexpected PDB record table: {record_count} records")

    offsets: list[int] = []
    unique_ids: list[int] = []
    for index in range(record_count):
        offset, attributes_and_id = RECORD_INFO.unpack_from(data, PDB_HEADER_LEN + index * RECORD_INFO_LEN)
        offsets.append(offset)
        unique_ids.append(attributes_and_id & 0x00FFFFFF)

    record0 = offsets[0]
    if record0 != table_end or len(data) < record0 + RECORD_0_LEN:
        raise PackagingFailure(f"Record 0 offset {record0} does not follow the record table")

    compression, _unused, text_length, text_records, _size, _position = PALMDOC_HEADER.unpack_from(data, record0)
    mobi_start = record0 + PALMDOC_HEADER_LEN
    identifier, header_len, mobi_type, encoding, _uid, version = MOBI_HEADER_PREFIX.unpack_from(data, mobi_start)
    (first_exth,) = MOBI_UINT16.unpack_from(data, mobi_start + MOBI_FIRST_EXTH_OFFSET)

    text_start = offsets[1]
    if text_start != record0 + PALMDOC_HEADER_LEN + header_len:
        raise PackagingFailure(f"Text record offset {text_start} does not follow Record 0")
    text = data[text_start : text_start + text_length]
    if len(text) != text_length:
        raise PackagingFailure(f"Text record truncated: expected {text_length} bytes, found {len(text)}")

    return MobiLayout(
        name=name,
        type_code=_decode_code(fields[9]),
        creator_code=_decode_code(fields[10]),
        record_count=record_count,
        record_offsets=tuple(offsets),
        record_unique_ids=tuple(unique_ids),
        compression=compression,
        text_length=text_length,
        text_record_count=text_records,
        mobi_identifier=_decode_code(identifier),
        mobi_header_length=header_len,
        mobi_type=mobi_type,
        text_encoding=encoding,
        file_version=version,
        first_exth_index=first_exth,
        text=text,
    )
