"""Archive builder collaborator used by the EPUB packager."""

from __future__ import annotations

from dataclasses import dataclass
from io import BytesIO
from typing import Iterable, Protocol, runtime_checkable
from zipfile import ZIP_DEFLATED, ZIP_STORED, ZipFile, ZipInfo


@dataclass(frozen=True, slots=True)
class ArchiveEntry:
    """One file destined for an archive, in write order."""

    path: str
    data: bytes
    compress: bool = True


@runtime_checkable
class ArchiveBuilder(Protocol):
    """Protocol for builders that serialize ordered entries into one payload."""

    def build(self, entries: Iterable[ArchiveEntry]) -> bytes:
        """Write entries in order and return the archive bytes."""


class ZipArchiveBuilder:
    """Build zip archives in memory, honouring each entry's compression mode."""

    def build(self, entries: Iterable[ArchiveEntry]) -> bytes:
        buffer = BytesIO()
        with ZipFile(buffer, "w", ZIP_DEFLATED) as archive:
            for entry in entries:
                info = ZipInfo(entry.path)
                info.compress_type = ZIP_DEFLATED if entry.compress else ZIP_STORED
                info.external_attr = 0o644 << 16
                archive.writestr(info, entry.data)
        return buffer.getvalue()
