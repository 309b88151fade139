"""
Fusion Result Data Classes.

This module defines the artifacts produced by a fusion: mapping
provenance, cross-validation outcomes, merged fields and the terminal
HybridResult with its JSON-shaped representation.

Author: ML Engineering Team
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from invoice_fusion.sources.models import RawKeyValue


class Origin(str, Enum):
    """Where a field value came from."""
    SOURCE_A = "sourceA"
    SOURCE_B = "sourceB"
    CONSENSUS = "consensus"
    DIRECT_MAPPING = "direct-mapping"
    USER_MAPPING = "user-mapping"
    NONE = "none"


class MappingMethod(str, Enum):
    """How a raw key was mapped onto a field."""
    DIRECT = "direct"
    USER_MAPPING = "user-mapping"


@dataclass(frozen=True)
class MappingDetail:
    """Provenance of one mapped field."""
    source_key: str
    target_field: str
    value: Any
    confidence: float
    method: MappingMethod = MappingMethod.DIRECT

    def to_dict(self) -> Dict[str, Any]:
        return {
            'sourceKey': self.source_key,
            'targetField': self.target_field,
            'value': self.value,
            'confidence': self.confidence,
            'method': self.method.value
        }


@dataclass
class MappingResult:
    """
    Output of the FieldMapper.

    Attributes:
        mapped: Every canonical field name → transformed value or None
        details: One MappingDetail per filled field, in fill order
        unmapped: Raw pairs that matched no canonical field, verbatim
    """
    mapped: Dict[str, Any] = field(default_factory=dict)
    details: List[MappingDetail] = field(default_factory=list)
    unmapped: List[RawKeyValue] = field(default_factory=list)

    @property
    def mapped_count(self) -> int:
        return sum(1 for value in self.mapped.values() if value is not None)

    @property
    def filled(self) -> Dict[str, Any]:
        """Only the fields that received a value."""
        return {k: v for k, v in self.mapped.items() if v is not None}

    def unmapped_dict(self) -> Dict[str, str]:
        """Unmapped pairs as an object; a repeated key keeps its first value."""
        bucket: Dict[str, str] = {}
        for pair in self.unmapped:
            bucket.setdefault(pair.key, pair.value)
        return bucket


@dataclass(frozen=True)
class ValidatedField:
    """Outcome of cross-checking one field across both sources."""
    source_a_value: Any
    source_b_value: Any
    final_value: Any
    confidence: float
    origin: Origin

    def to_dict(self) -> Dict[str, Any]:
        return {
            'sourceAValue': self.source_a_value,
            'sourceBValue': self.source_b_value,
            'finalValue': self.final_value,
            'confidence': self.confidence,
            'origin': self.origin.value
        }


@dataclass
class CrossValidationResult:
    """
    Output of the CrossValidator.

    Attributes:
        agreement_score: agreements / comparisons (neutral when none)
        conflicting_fields: Fields where both sources disagreed
        validated_fields: Per-field outcomes, in cross-check order
        comparisons: Number of fields both sources had a value for
        agreements: Number of those that matched
    """
    agreement_score: float
    conflicting_fields: List[str] = field(default_factory=list)
    validated_fields: Dict[str, ValidatedField] = field(default_factory=dict)
    comparisons: int = 0
    agreements: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'agreementScore': self.agreement_score,
            'conflictingFields': list(self.conflicting_fields),
            'validatedFields': {k: v.to_dict() for k, v in self.validated_fields.items()},
            'comparisons': self.comparisons,
            'agreements': self.agreements
        }


@dataclass(frozen=True)
class MergedField:
    """Final value of one output field."""
    value: Any
    confidence: float
    origin: Origin

    def to_dict(self) -> Dict[str, Any]:
        return {'value': self.value, 'confidence': self.confidence, 'origin': self.origin.value}


@dataclass(frozen=True)
class MappingTrailEntry:
    """Audit record pairing a mapped value with the raw value it came from."""
    source_key: str
    source_value: Optional[str]
    target_field: str
    mapped_value: Any
    confidence: float
    method: MappingMethod

    def to_dict(self) -> Dict[str, Any]:
        return {
            'sourceKey': self.source_key,
            'sourceValue': self.source_value,
            'targetField': self.target_field,
            'mappedValue': self.mapped_value,
            'confidence': self.confidence,
            'method': self.method.value
        }


@dataclass(frozen=True)
class FusionDiagnostics:
    """Counts describing one fusion, returned instead of printed."""
    mapped_count: int
    unmapped_count: int
    comparisons: int
    agreements: int
    agreement_score: float
    conflicting_fields: List[str]
    sources_present: List[str]
    schema_version: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'mappedCount': self.mapped_count,
            'unmappedCount': self.unmapped_count,
            'comparisons': self.comparisons,
            'agreements': self.agreements,
            'agreementScore': self.agreement_score,
            'conflictingFields': list(self.conflicting_fields),
            'sourcesPresent': list(self.sources_present),
            'schemaVersion': self.schema_version
        }


@dataclass
class HybridResult:
    """
    Terminal artifact of a fusion.

    Attributes:
        confidence: Aggregate confidence (0-1)
        agreement_score: Cross-validation agreement (0-1)
        fields: Merged output fields
        mapping: FieldMapper output (with user overrides applied)
        cross_validation: CrossValidator output
        mapping_trail: Audit trail of every mapping detail
        diagnostics: Observability counts
        text: Combined document text
        source_confidence: Whole-document confidence per source
        line_items: Enriched line items
        tables: OCR tables
        business_context: Free-form generative sections
        costs: Processing cost summary

    Example:
        >>> result = engine.combine(ocr_source, generative_source)
        >>> result.fields["invoice_gross_amount"].value
        1234.56
        >>> print(result.to_json())
    """
    confidence: float
    agreement_score: float
    fields: Dict[str, MergedField]
    mapping: MappingResult
    cross_validation: CrossValidationResult
    mapping_trail: List[MappingTrailEntry]
    diagnostics: FusionDiagnostics
    text: str = ""
    source_confidence: Dict[str, float] = field(default_factory=dict)
    line_items: List[Dict[str, Any]] = field(default_factory=list)
    tables: List[Dict[str, Any]] = field(default_factory=list)
    business_context: Dict[str, Any] = field(default_factory=dict)
    costs: Dict[str, float] = field(default_factory=dict)

    @property
    def conflicting_fields(self) -> List[str]:
        return self.cross_validation.conflicting_fields

    @property
    def values(self) -> Dict[str, Any]:
        """Field name → value, without confidence or origin."""
        return {name: merged.value for name, merged in self.fields.items()}

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert to the JSON-shaped output.

        Returns:
            Dictionary representation of the hybrid result.
        """
        return {
            'confidence': self.confidence,
            'agreementScore': self.agreement_score,
            'fields': {name: merged.to_dict() for name, merged in self.fields.items()},
            'mappingDetails': [d.to_dict() for d in self.mapping.details],
            'unmapped': self.mapping.unmapped_dict(),
            'conflictingFields': list(self.conflicting_fields),
            'validatedFields': {
                name: v.to_dict() for name, v in self.cross_validation.validated_fields.items()
            },
            'mappingTrail': [entry.to_dict() for entry in self.mapping_trail],
            'diagnostics': self.diagnostics.to_dict(),
            'text': self.text,
            'sourceConfidence': dict(self.source_confidence),
            'lineItems': list(self.line_items),
            'tables': list(self.tables),
            'businessContext': dict(self.business_context),
            'costs': dict(self.costs)
        }

    def to_json(self, indent: int = 2) -> str:
        """
        Convert to JSON string.

        Args:
            indent: JSON indentation level.
        """
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False, default=str)

    def __repr__(self) -> str:
        filled = sum(1 for merged in self.fields.values() if merged.value is not None)
        return (
            f"HybridResult("
            f"confidence={self.confidence:.2f}, "
            f"agreement={self.agreement_score:.2f}, "
            f"fields={filled}/{len(self.fields)}, "
            f"conflicts={len(self.conflicting_fields)})"
        )
