"""Output structures produced by the packagers."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class PackagedArtifact:
    """A complete e-book payload with its MIME declaration."""

    data: bytes
    media_type: str
    extension: str


@dataclass(frozen=True, slots=True)
class MobiLayout:
    """Decoded view of a PDB/MOBI buffer's headers and text record."""

    name: str
    type_code: str
    creator_code: str
    record_count: int
    record_offsets: tuple[int, ...]
    record_unique_ids: tuple[int, ...]
    compression: int
    text_length: int
    text_record_count: int
    mobi_identifier: str
    mobi_header_length: int
    mobi_type: int
    text_encoding: int
    file_version: int
    first_exth_index: int
    text: bytes


@dataclass(frozen=True, slots=True)
class EpubSummary:
    """Entry order and identifiers read back from an EPUB archive."""

    entries: tuple[str, ...]
    first_entry: str
    first_entry_stored: bool
    opf_identifier: str
    ncx_identifier: str
    title: str
