"""CLI command describing the structure of generated EPUB or AZW3 files."""

from __future__ import annotations

import argparse
import json
from pathlib import Path

from ebookconv.errors import ConversionError
from ebookconv.packaging.epub import read_epub_summary
from ebookconv.packaging.mobi import read_mobi_layout

_MOBI_SUFFIXES = {".azw3", ".mobi", ".azw"}


def _describe_epub(data: bytes) -> dict[str, object]:
    summary = read_epub_summary(data)
    return {
        "format": "epub",
        "title": summary.title,
        "entries": list(summary.entries),
        "first_entry": summary.first_entry,
        "first_entry_stored": summary.first_entry_stored,
        "opf_identifier": summary.opf_identifier,
        "ncx_identifier": summary.ncx_identifier,
        "identifiers_match": summary.opf_identifier == summary.ncx_identifier,
    }


def _describe_mobi(data: bytes) -> dict[str, object]:
    layout = read_mobi_layout(data)
    return {
        "format": "azw3",
        "name": layout.name,
        "type": layout.type_code,
        "creator": layout.creator_code,
        "record_count": layout.record_count,
        "record_offsets": list(layout.record_offsets),
        "compression": layout.compression,
        "text_length": layout.text_length,
        "mobi_header_length": layout.mobi_header_length,
        "text_encoding": layout.text_encoding,
        "file_version": layout.file_version,
    }


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Describe the container layout of an EPUB or AZW3 file")
    parser.add_argument("--path", required=True, help="Generated .epub or .azw3 file")
    args = parser.parse_args(argv)

    book_path = Path(args.path)
    try:
        data = book_path.read_bytes()
    except OSError as exc:
        print(json.dumps({"path": str(book_path), "error": f"Failed to read book: {exc}"}, ensure_ascii=True))
        return 2

    try:
        if book_path.suffix.lower() in _MOBI_SUFFIXES:
            description = _describe_mobi(data)
        else:
            description = _describe_epub(data)
    except ConversionError as exc:
        print(json.dumps({"path": str(book_path), "error": str(exc)}, ensure_ascii=True))
        return 1

    print(json.dumps({"path": str(book_path), **description}, ensure_ascii=True, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
