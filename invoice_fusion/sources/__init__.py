"""
Extraction Sources Module for the Invoice Fusion System.

This module provides the two fusion inputs:
    - DeterministicSource: OCR/forms extraction result
    - GenerativeSource: generative-model extraction result
    - TextractParser: raw Textract response → DeterministicSource

Author: ML Engineering Team
"""

from .models import (
    SourceKind,
    RawKeyValue,
    Table,
    LineItem,
    GenerativeFieldGuess,
    ExtractionSource,
    DeterministicSource,
    GenerativeSource,
)
from .textract_parser import TextractParser, parse_textract_response

__all__ = [
    'SourceKind',
    'RawKeyValue',
    'Table',
    'LineItem',
    'GenerativeFieldGuess',
    'ExtractionSource',
    'DeterministicSource',
    'GenerativeSource',
    'TextractParser',
    'parse_textract_response'
]
