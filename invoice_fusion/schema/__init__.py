"""
Canonical Schema Module for the Invoice Fusion System.

This module provides:
    - The canonical field table (SchemaDictionary) and its default revision
    - Date and amount normalizers used as field transforms

Author: ML Engineering Team
"""

from .dictionary import (
    CanonicalField,
    SchemaDictionary,
    ValueType,
    default_schema,
    load_schema,
    normalize_label,
)
from .transforms import DateNormalizer, AmountNormalizer, parse_date, parse_amount

__all__ = [
    'CanonicalField',
    'SchemaDictionary',
    'ValueType',
    'default_schema',
    'load_schema',
    'normalize_label',
    'DateNormalizer',
    'AmountNormalizer',
    'parse_date',
    'parse_amount'
]
