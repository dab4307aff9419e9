"""Runtime configuration for conversion entrypoints."""

from __future__ import annotations

from dataclasses import dataclass
import math
import os
from pathlib import Path
from typing import Mapping

from ebookconv.extraction.models import DEFAULT_LINE_HEIGHT
from ebookconv.extraction.reconstruction import DEFAULT_GAP_RATIO


DEFAULT_TITLE = "Converted E-Book"
DEFAULT_OUTPUT_FORMAT = "epub"
DEFAULT_OUTPUT_DIR = "."
OUTPUT_FORMATS = ("epub", "azw3")


def _parse_positive_float(*, name: str, raw_value: str) -> float:
    try:
        value = float(raw_value)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number") from exc
    if not math.isfinite(value) or value <= 0:
        raise ValueError(f"{name} must be > 0")
    return value


@dataclass(frozen=True, slots=True)
class ConverterSettings:
    """Validated conversion defaults."""

    default_title: str = DEFAULT_TITLE
    output_format: str = DEFAULT_OUTPUT_FORMAT
    output_dir: Path = Path(DEFAULT_OUTPUT_DIR)
    gap_ratio: float = DEFAULT_GAP_RATIO
    default_line_height: float = DEFAULT_LINE_HEIGHT

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "ConverterSettings":
        source: Mapping[str, str] = os.environ if environ is None else environ

        default_title = source.get("EBOOKCONV_DEFAULT_TITLE", DEFAULT_TITLE).strip()
        if not default_title:
            raise ValueError("EBOOKCONV_DEFAULT_TITLE cannot be empty")

        output_format = source.get("EBOOKCONV_OUTPUT_FORMAT", DEFAULT_OUTPUT_FORMAT).strip().lower()
        if output_format not in OUTPUT_FORMATS:
            allowed = ", ".join(OUTPUT_FORMATS)
            raise ValueError(f"EBOOKCONV_OUTPUT_FORMAT must be one of: {allowed}")

        output_dir_raw = source.get("EBOOKCONV_OUTPUT_DIR", DEFAULT_OUTPUT_DIR).strip()
        if not output_dir_raw:
            raise ValueError("EBOOKCONV_OUTPUT_DIR cannot be empty")

        gap_ratio = _parse_positive_float(
            name="EBOOKCONV_GAP_RATIO",
            raw_value=source.get("EBOOKCONV_GAP_RATIO", str(DEFAULT_GAP_RATIO)),
        )
        default_line_height = _parse_positive_float(
            name="EBOOKCONV_DEFAULT_LINE_HEIGHT",
            raw_value=source.get("EBOOKCONV_DEFAULT_LINE_HEIGHT", str(DEFAULT_LINE_HEIGHT)),
        )

        return cls(
            default_title=default_title,
            output_format=output_format,
            output_dir=Path(output_dir_raw),
            gap_ratio=gap_ratio,
            default_line_height=default_line_height,
        )
