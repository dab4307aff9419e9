"""Domain errors raised while extracting and packaging documents."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class ConversionError(Exception):
    """Terminal failure of one conversion attempt."""

    message: str
    source: str | None = None

    def __str__(self) -> str:
        if self.source is None:
            return self.message
        return f"{self.message} (source={self.source})"


class UnsupportedFormat(ConversionError):
    """Input matches no known extractor."""


class ExtractorUnavailable(ConversionError):
    """A required extraction collaborator is not installed or not configured."""


class DecodeFailure(ConversionError):
    """Reading or decoding the source payload failed."""


class PackagingFailure(ConversionError):
    """Archive or binary serialization could not complete."""


class PackagingUnavailable(PackagingFailure):
    """The archive builder collaborator is missing."""


__all__ = [
    "ConversionError",
    "DecodeFailure",
    "ExtractorUnavailable",
    "PackagingFailure",
    "PackagingUnavailable",
    "UnsupportedFormat",
]
