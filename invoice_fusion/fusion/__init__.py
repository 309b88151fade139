"""
Fusion Module for the Invoice Fusion System.

This module provides:
    - FieldMapper: raw OCR labels → canonical fields
    - UserMappingApplier: per-user mapping overrides
    - CrossValidator: agreement/conflict between the two sources
    - ConfidenceScorer: aggregate confidence
    - LineItemEnricher: line items decorated with generative hints
    - FusionEngine: orchestration and audit trail

Author: ML Engineering Team
"""

from .settings import FusionSettings
from .result import (
    Origin,
    MappingMethod,
    MappingDetail,
    MappingResult,
    ValidatedField,
    CrossValidationResult,
    MergedField,
    MappingTrailEntry,
    FusionDiagnostics,
    HybridResult,
)
from .field_mapper import FieldMapper
from .user_mappings import UserFieldMapping, UserMappingApplier, load_user_mappings
from .cross_validator import CompareKind, CrossCheckField, CrossValidator, CROSS_CHECK_FIELDS
from .scorer import ConfidenceScorer
from .line_items import LineItemEnricher
from .engine import FusionEngine

__all__ = [
    'FusionSettings',
    'Origin',
    'MappingMethod',
    'MappingDetail',
    'MappingResult',
    'ValidatedField',
    'CrossValidationResult',
    'MergedField',
    'MappingTrailEntry',
    'FusionDiagnostics',
    'HybridResult',
    'FieldMapper',
    'UserFieldMapping',
    'UserMappingApplier',
    'load_user_mappings',
    'CompareKind',
    'CrossCheckField',
    'CrossValidator',
    'CROSS_CHECK_FIELDS',
    'ConfidenceScorer',
    'LineItemEnricher',
    'FusionEngine'
]
