"""CLI command converting documents into EPUB or AZW3 files."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path

from dotenv import load_dotenv

from ebookconv.config import OUTPUT_FORMATS, ConverterSettings
from ebookconv.conversion import DocumentConverter
from ebookconv.errors import ConversionError

load_dotenv()

LOGGER = logging.getLogger(__name__)

_SUPPORTED_SUFFIXES = {".pdf", ".docx", ".html", ".htm"}


def _collect_inputs(target: Path) -> list[Path]:
    if target.is_file():
        return [target]
    if target.is_dir():
        return sorted(
            path for path in target.rglob("*") if path.is_file() and path.suffix.lower() in _SUPPORTED_SUFFIXES
        )
    return []


def _unique_target(output_dir: Path, filename: str, taken: set[str]) -> Path:
    # Names already written in this run get a " (N)" suffix before the extension.
    stem, dot, extension = filename.rpartition(".")
    if not dot:
        stem, extension = filename, ""
    candidate = filename
    counter = 2
    while candidate.lower() in taken:
        candidate = f"{stem} ({counter}){dot}{extension}"
        counter += 1
    taken.add(candidate.lower())
    return output_dir / candidate


def _parse_args(argv: list[str] | None, settings: ConverterSettings) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Convert PDF, DOCX or HTML documents into EPUB or AZW3")
    parser.add_argument("--path", required=True, help="Source file or directory")
    parser.add_argument(
        "--format",
        choices=OUTPUT_FORMATS,
        default=settings.output_format,
        help="Output container format",
    )
    parser.add_argument("--title", default=None, help="Book title (defaults to the source file name)")
    parser.add_argument("--output-dir", default=str(settings.output_dir), help="Directory for generated books")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    try:
        settings = ConverterSettings.from_env()
    except ValueError as exc:
        print(json.dumps({"error": str(exc)}, ensure_ascii=True))
        return 2

    args = _parse_args(argv, settings)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
    )

    source_path = Path(args.path)
    if not source_path.exists():
        LOGGER.error("path must exist: %s", source_path)
        return 2

    output_dir = Path(args.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    converter = DocumentConverter.from_settings(settings)

    results: list[dict[str, object]] = []
    errors: list[dict[str, str]] = []
    written: set[str] = set()

    for file_path in _collect_inputs(source_path):
        try:
            book = converter.convert_path(file_path, args.format, args.title)
        except ConversionError as exc:
            LOGGER.error("Conversion failed for %s: %s", file_path, exc)
            errors.append({"source_path": str(file_path), "error": str(exc), "kind": type(exc).__name__})
            continue

        target = _unique_target(output_dir, book.filename, written)
        if target.name != book.filename:
            LOGGER.warning("%s would overwrite %s from this run; writing %s", file_path, book.filename, target.name)
        target.write_bytes(book.data)
        LOGGER.info("Wrote %s (%d bytes)", target, len(book.data))
        results.append(
            {
                "source_path": str(file_path),
                "output_path": str(target),
                "media_type": book.media_type,
                "size_bytes": len(book.data),
                "preview_chars": len(book.preview_html),
            }
        )

    payload = {
        "path": str(source_path),
        "processed": len(results),
        "results": results,
        "errors": errors,
    }
    print(json.dumps(payload, ensure_ascii=True, indent=2))
    return 0 if not errors else 1


if __name__ == "__main__":
    raise SystemExit(main())
