"""EPUB 2 packager producing a single-document OCF container."""

from __future__ import annotations

from html import escape
from io import BytesIO
import logging
from typing import Callable
import uuid
from zipfile import ZIP_STORED, BadZipFile, ZipFile

from lxml import etree

from ebookconv.errors import PackagingFailure, PackagingUnavailable
from ebookconv.packaging.archive import ArchiveBuilder, ArchiveEntry, ZipArchiveBuilder
from ebookconv.packaging.models import EpubSummary, PackagedArtifact

logger = logging.getLogger(__name__)

EPUB_MEDIA_TYPE = "application/epub+zip"
EPUB_EXTENSION = ".epub"
DEFAULT_LANGUAGE = "en"
DEFAULT_CREATOR = "Offline Converter"

MIMETYPE_PATH = "mimetype"
CONTAINER_PATH = "META-INF/container.xml"
OPF_PATH = "OEBPS/content.opf"
CSS_PATH = "OEBPS/style.css"
XHTML_PATH = "OEBPS/content.xhtml"
NCX_PATH = "OEBPS/toc.ncx"

_CONTAINER_NS = "urn:oasis:names:tc:opendocument:xmlns:container"
_OPF_NS = "http://www.idpf.org/2007/opf"
_DC_NS = "http://purl.org/dc/elements/1.1/"
_NCX_NS = "http://www.daisy.org/z3986/2005/ncx/"

STYLESHEET = """body { font-family: serif; line-height: 1.5; margin: 5%; }
p { margin-bottom: 1em; text-indent: 0; }
h1, h2, h3 { font-family: sans-serif; margin-top: 1.5em; page-break-after: avoid; }
img { max-width: 100%; height: auto; }
"""

_XHTML_TEMPLATE = """<?xml version="1.0" encoding="utf-8"?>
<!DOCTYPE html PUBLIC "-//W3C//DTD XHTML 1.1//EN" "http://www.w3.org/TR/xhtml11/DTD/xhtml11.dtd">
<html xmlns="http://www.w3.org/1999/xhtml">
<head>
  <title>{title}</title>
  <link rel="stylesheet" type="text/css" href="style.css"/>
</head>
<body>
  <h1>{title}</h1>
  {body}
</body>
</html>
"""


def _new_identifier() -> str:
    return f"urn:uuid:{uuid.uuid4()}"


def _serialize(root: etree._Element) -> bytes:
    return etree.tostring(root, xml_declaration=True, encoding="UTF-8", pretty_print=True)


def build_container_xml() -> bytes:
    container = etree.Element(f"{{{_CONTAINER_NS}}}container", nsmap={None: _CONTAINER_NS}, version="1.0")
    rootfiles = etree.SubElement(container, f"{{{_CONTAINER_NS}}}rootfiles")
    etree.SubElement(
        rootfiles,
        f"{{{_CONTAINER_NS}}}rootfile",
        {"full-path": OPF_PATH, "media-type": "application/oebps-package+xml"},
    )
    return _serialize(container)


def build_content_opf(title: str, identifier: str) -> bytes:
    package = etree.Element(
        f"{{{_OPF_NS}}}package",
        {"unique-identifier": "BookID", "version": "2.0"},
        nsmap={None: _OPF_NS},
    )

    metadata = etree.SubElement(package, f"{{{_OPF_NS}}}metadata", nsmap={"dc": _DC_NS, "opf": _OPF_NS})
    etree.SubElement(metadata, f"{{{_DC_NS}}}title").text = title
    etree.SubElement(metadata, f"{{{_DC_NS}}}language").text = DEFAULT_LANGUAGE
    etree.SubElement(
        metadata,
        f"{{{_DC_NS}}}identifier",
        {"id": "BookID", f"{{{_OPF_NS}}}scheme": "UUID"},
    ).text = identifier
    etree.SubElement(metadata, f"{{{_DC_NS}}}creator").text = DEFAULT_CREATOR

    manifest = etree.SubElement(package, f"{{{_OPF_NS}}}manifest")
    for item_id, href, media_type in (
        ("ncx", "toc.ncx", "application/x-dtbncx+xml"),
        ("style", "style.css", "text/css"),
        ("content", "content.xhtml", "application/xhtml+xml"),
    ):
        etree.SubElement(manifest, f"{{{_OPF_NS}}}item", {"id": item_id, "href": href, "media-type": media_type})

    spine = etree.SubElement(package, f"{{{_OPF_NS}}}spine", toc="ncx")
    etree.SubElement(spine, f"{{{_OPF_NS}}}itemref", idref="content")
    return _serialize(package)


def build_toc_ncx(title: str, identifier: str) -> bytes:
    ncx = etree.Element(f"{{{_NCX_NS}}}ncx", nsmap={None: _NCX_NS}, version="2005-1")

    head = etree.SubElement(ncx, f"{{{_NCX_NS}}}head")
    for name, content in (
        ("dtb:uid", identifier),
        ("dtb:depth", "1"),
        ("dtb:totalPageCount", "0"),
        ("dtb:maxPageNumber", "0"),
    ):
        etree.SubElement(head, f"{{{_NCX_NS}}}meta", name=name, content=content)

    doc_title = etree.SubElement(ncx, f"{{{_NCX_NS}}}docTitle")
    etree.SubElement(doc_title, f"{{{_NCX_NS}}}text").text = title

    nav_map = etree.SubElement(ncx, f"{{{_NCX_NS}}}navMap")
    nav_point = etree.SubElement(nav_map, f"{{{_NCX_NS}}}navPoint", id="navPoint-1", playOrder="1")
    nav_label = etree.SubElement(nav_point, f"{{{_NCX_NS}}}navLabel")
    etree.SubElement(nav_label, f"{{{_NCX_NS}}}text").text = "Start"
    etree.SubElement(nav_point, f"{{{_NCX_NS}}}content", src="content.xhtml")
    return _serialize(ncx)


def build_content_xhtml(html: str, title: str) -> bytes:
    """Wrap the normalized HTML fragment, embedded as-is, in an XHTML document."""
    return _XHTML_TEMPLATE.format(title=escape(title, quote=False), body=html).encode("utf-8")


class EpubPackager:
    """Assemble normalized HTML into an EPUB container."""

    def __init__(
        self,
        archive_builder: ArchiveBuilder | None = None,
        *,
        identifier_factory: Callable[[], str] = _new_identifier,
    ) -> None:
        self._archive_builder = archive_builder
        self._identifier_factory = identifier_factory

    @classmethod
    def with_zip(cls) -> "EpubPackager":
        return cls(ZipArchiveBuilder())

    def package(self, html: str, title: str) -> PackagedArtifact:
        if self._archive_builder is None:
            raise PackagingUnavailable("Archive builder is not available; cannot build EPUB", source=title)

        try:
            entries = self._entries(html, title)
            data = self._archive_builder.build(entries)
        except Exception as exc:
            raise PackagingFailure(f"EPUB packaging failed: {exc}", source=title) from exc

        logger.info("Built EPUB '%s' (%d bytes)", title, len(data))
        return PackagedArtifact(
            data=data,
            media_type=EPUB_MEDIA_TYPE,
            extension=EPUB_EXTENSION,
        )

    def _entries(self, html: str, title: str) -> list[ArchiveEntry]:
        # OCF requires an uncompressed mimetype entry at the start of the archive.
        identifier = self._identifier_factory()
        return [
            ArchiveEntry(MIMETYPE_PATH, EPUB_MEDIA_TYPE.encode("ascii"), compress=False),
            ArchiveEntry(CONTAINER_PATH, build_container_xml()),
            ArchiveEntry(CSS_PATH, STYLESHEET.encode("utf-8")),
            ArchiveEntry(XHTML_PATH, build_content_xhtml(html, title)),
            ArchiveEntry(OPF_PATH, build_content_opf(title, identifier)),
            ArchiveEntry(NCX_PATH, build_toc_ncx(title, identifier)),
        ]


def read_epub_summary(data: bytes) -> EpubSummary:
    """Inspect a packaged EPUB's entry order and identifiers."""

    try:
        with ZipFile(BytesIO(data), "r") as archive:
            infos = archive.infolist()
            opf_root = etree.fromstring(archive.read(OPF_PATH))
            ncx_root = etree.fromstring(archive.read(NCX_PATH))
    except (BadZipFile, KeyError, etree.XMLSyntaxError) as exc:
        raise PackagingFailure(f"Not a readable EPUB package: {exc}") from exc

    if not infos:
        raise PackagingFailure("EPUB archive has no entries")

    opf_identifier = opf_root.findtext(f".//{{{_DC_NS}}}identifier") or ""
    ncx_identifier = ""
    for meta in ncx_root.iterfind(f".//{{{_NCX_NS}}}meta"):
        if meta.get("name") == "dtb:uid":
            ncx_identifier = meta.get("content", "")
            break

    return EpubSummary(
        entries=tuple(info.filename for info in infos),
        first_entry=infos[0].filename,
        first_entry_stored=infos[0].compress_type == ZIP_STORED,
        opf_identifier=opf_identifier,
        ncx_identifier=ncx_identifier,
        title=opf_root.findtext(f".//{{{_DC_NS}}}title") or "",
    )
