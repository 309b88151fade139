"""
Hybrid Invoice Fusion System - Core Package.

This package reconciles two extractions of the same invoice, a
deterministic OCR/forms extraction and a generative-model extraction,
into one normalized, confidence-scored record with an audit trail.

Modules:
    - schema: Canonical field table and value transforms
    - sources: Extraction source variants and the Textract adapter
    - fusion: Field mapping, cross-validation, scoring and orchestration
    - utils: Logging, exceptions and helpers

Architecture:
    OCR source ──→ FieldMapper ──┐
                                 ├─→ CrossValidator → FusionEngine → HybridResult
    Generative source ───────────┘
"""

__version__ = "1.0.0"
__author__ = "ML Engineering Team"

__all__ = [
    'schema',
    'sources',
    'fusion',
    'utils'
]
