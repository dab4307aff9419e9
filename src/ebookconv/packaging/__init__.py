"""E-book container serializers."""

from .archive import ArchiveBuilder, ArchiveEntry, ZipArchiveBuilder
from .epub import EPUB_MEDIA_TYPE, EpubPackager, read_epub_summary
from .mobi import MOBI_MEDIA_TYPE, MobiEncoder, read_mobi_layout
from .models import EpubSummary, MobiLayout, PackagedArtifact

__all__ = [
    "ArchiveBuilder",
    "ArchiveEntry",
    "EPUB_MEDIA_TYPE",
    "EpubPackager",
    "EpubSummary",
    "MOBI_MEDIA_TYPE",
    "MobiEncoder",
    "MobiLayout",
    "PackagedArtifact",
    "ZipArchiveBuilder",
    "read_epub_summary",
    "read_mobi_layout",
]
