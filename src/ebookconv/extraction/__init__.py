"""Extraction package interfaces."""

from .models import DocumentKind, PositionedTextFragment, SourceDocument, WordConversionResult
from .normalizer import DocumentNormalizer, classify_document
from .reconstruction import ReconstructionPolicy, reconstruct_page, reconstruct_paragraphs

__all__ = [
    "DocumentKind",
    "DocumentNormalizer",
    "PositionedTextFragment",
    "ReconstructionPolicy",
    "SourceDocument",
    "WordConversionResult",
    "classify_document",
    "reconstruct_page",
    "reconstruct_paragraphs",
]
