"""Conversion service: read a source, normalize it and package the result."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from pathlib import Path, PurePath
import re
from typing import Protocol

from ebookconv.config import DEFAULT_TITLE, ConverterSettings
from ebookconv.errors import DecodeFailure, UnsupportedFormat
from ebookconv.extraction.adapters import Collaborators, build_default_collaborators
from ebookconv.extraction.models import SourceDocument
from ebookconv.extraction.normalizer import DocumentNormalizer
from ebookconv.extraction.reconstruction import ReconstructionPolicy
from ebookconv.packaging.epub import EpubPackager
from ebookconv.packaging.mobi import MobiEncoder
from ebookconv.packaging.models import PackagedArtifact

logger = logging.getLogger(__name__)

_UNSAFE_FILENAME_RE = re.compile(r'[\\/:*?"<>|\x00-\x1f]+')


class Packager(Protocol):
    def package(self, html: str, title: str) -> PackagedArtifact:
        """Serialize normalized HTML under *title*."""


@dataclass(frozen=True, slots=True)
class ConvertedBook:
    """Named artifact plus the intermediate HTML used for previews."""

    filename: str
    media_type: str
    data: bytes
    preview_html: str


def title_from_filename(filename: str, fallback: str = DEFAULT_TITLE) -> str:
    """Use the file name without its final extension as the book title."""
    stem = PurePath(filename).name
    if "." in stem:
        stem = stem.rsplit(".", 1)[0]
    return stem.strip() or fallback


def artifact_filename(title: str, extension: str) -> str:
    safe = _UNSAFE_FILENAME_RE.sub("_", title).strip(" .") or DEFAULT_TITLE
    return f"{safe}{extension}"


def read_source(path: str | Path, media_type: str | None = None) -> SourceDocument:
    """Read a file's complete payload into a ``SourceDocument``."""

    source = Path(path)
    try:
        content = source.read_bytes()
    except OSError as exc:
        raise DecodeFailure(f"Failed to read source file: {exc}", source=str(source)) from exc
    return SourceDocument(filename=source.name, content=content, media_type=media_type)


class DocumentConverter:
    """Turn classified sources into EPUB or AZW3 artifacts."""

    def __init__(
        self,
        normalizer: DocumentNormalizer,
        *,
        packagers: dict[str, Packager] | None = None,
        default_title: str = DEFAULT_TITLE,
    ) -> None:
        self._normalizer = normalizer
        self._packagers: dict[str, Packager] = dict(packagers or {})
        self._default_title = default_title

    @classmethod
    def from_settings(
        cls,
        settings: ConverterSettings,
        collaborators: Collaborators | None = None,
    ) -> "DocumentConverter":
        policy = ReconstructionPolicy(
            gap_ratio=settings.gap_ratio,
            default_height=settings.default_line_height,
        )
        normalizer = DocumentNormalizer(collaborators or build_default_collaborators(), policy=policy)
        return cls(
            normalizer,
            packagers={"epub": EpubPackager.with_zip(), "azw3": MobiEncoder()},
            default_title=settings.default_title,
        )

    @property
    def output_formats(self) -> list[str]:
        return sorted(self._packagers)

    def convert(self, source: SourceDocument, output_format: str, title: str | None = None) -> ConvertedBook:
        """Normalize *source* and package it in *output_format*."""

        packager = self._packagers.get(output_format.lower())
        if packager is None:
            raise UnsupportedFormat(f"Unsupported output format: {output_format}", source=source.filename)

        book_title = (title or "").strip() or title_from_filename(source.filename, self._default_title)
        html = self._normalizer.normalize(source)
        logger.info("Normalized %s into %d characters of HTML", source.filename, len(html))

        artifact = packager.package(html, book_title)
        return ConvertedBook(
            filename=artifact_filename(book_title, artifact.extension),
            media_type=artifact.media_type,
            data=artifact.data,
            preview_html=html,
        )

    def convert_path(self, path: str | Path, output_format: str, title: str | None = None) -> ConvertedBook:
        return self.convert(read_source(path), output_format, title)
