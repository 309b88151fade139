"""
Fusion Engine Module.

This module provides the FusionEngine class that orchestrates a fusion
of the deterministic (OCR) and generative extractions of one invoice.

Pipeline:
    FieldMapper → UserMappings → CrossValidator → Merge → ConfidenceScorer
                                                      ↓
                                         Audit trail, line items, costs

Configuration is read once, when the engine is built; ``combine`` is a
pure function of its inputs apart from logging.

Author: ML Engineering Team
"""

from typing import Any, Dict, List, Optional, Sequence

from invoice_fusion.schema.dictionary import SchemaDictionary, load_schema
from invoice_fusion.sources.models import DeterministicSource, GenerativeSource
from invoice_fusion.utils.exceptions import NothingToFuseError
from invoice_fusion.utils.logger import get_logger
from .cross_validator import CrossValidator
from .field_mapper import FieldMapper
from .line_items import LineItemEnricher
from .result import (
    FusionDiagnostics,
    HybridResult,
    MappingMethod,
    MappingResult,
    MappingTrailEntry,
    MergedField,
    Origin,
)
from .scorer import ConfidenceScorer
from .settings import FusionSettings
from .user_mappings import UserFieldMapping, UserMappingApplier

# Initialize module logger
logger = get_logger(__name__)

BUSINESS_SECTIONS = {
    'businessRules': 'business_rules',
    'interpretations': 'interpretations',
    'normalizations': 'normalizations',
}


class FusionEngine:
    """
    Combines two extractions of the same invoice into one HybridResult.

    Attributes:
        schema: Canonical schema fields are mapped onto
        settings: Fusion constants snapshot
        mapper: FieldMapper over the schema
        user_mapper: UserMappingApplier over the schema
        validator: CrossValidator
        scorer: ConfidenceScorer
        enricher: LineItemEnricher

    Example:
        >>> engine = FusionEngine()
        >>> result = engine.combine(ocr_source, generative_source)
        >>> result.fields["supplier_invoice_id"].value
        'INV-100'
        >>> result.agreement_score
        1.0
    """

    def __init__(
        self,
        schema: Optional[SchemaDictionary] = None,
        settings: Optional[FusionSettings] = None
    ) -> None:
        """
        Initialize the engine.

        Args:
            schema: Canonical schema; defaults to the configured one.
            settings: Fusion constants; defaults to the configured ones.
        """
        self.schema = schema if schema is not None else load_schema()
        self.settings = settings or FusionSettings.from_config()

        self.mapper = FieldMapper(self.schema, self.settings.direct_mapping_confidence)
        self.user_mapper = UserMappingApplier(self.schema)
        self.validator = CrossValidator(self.settings)
        self.scorer = ConfidenceScorer(self.settings)
        self.enricher = LineItemEnricher()

        logger.debug(f"FusionEngine initialized with {self.schema!r}")

    def combine(
        self,
        source_a: Optional[DeterministicSource],
        source_b: Optional[GenerativeSource],
        user_mappings: Optional[Sequence[UserFieldMapping]] = None
    ) -> HybridResult:
        """
        Fuse the two extractions.

        A missing source is replaced by an empty one of the same kind.

        Args:
            source_a: Deterministic (OCR) extraction, or None.
            source_b: Generative extraction, or None.
            user_mappings: Optional user field mappings; they override
                           automatic mappings for the same target.

        Returns:
            HybridResult with merged fields, audit trail and diagnostics.

        Raises:
            NothingToFuseError: If both sources are None.
        """
        if source_a is None and source_b is None:
            raise NothingToFuseError()

        sources_present = []
        if source_a is not None:
            sources_present.append(DeterministicSource.kind.value)
        if source_b is not None:
            sources_present.append(GenerativeSource.kind.value)

        has_source_a = source_a is not None
        source_a = source_a if source_a is not None else DeterministicSource()
        source_b = source_b if source_b is not None else GenerativeSource()

        # Step 1: Map OCR labels onto canonical fields
        mapping = self.mapper.map(source_a.key_value_pairs)

        # Step 2: Overlay user mappings
        if user_mappings:
            user_mapped, user_details = self.user_mapper.apply(source_a.key_value_pairs, user_mappings)
            mapping = self.user_mapper.merge(mapping, user_mapped, user_details)

        # Step 3: Cross-validate both sources
        cross_validation = self.validator.validate(source_a, source_b, mapping.mapped)

        # Step 4: Merge per field
        fields = self._merge_fields(mapping, source_b)

        # Step 5: Aggregate confidence
        confidence = self.scorer.score(
            source_a.confidence, source_b.confidence, cross_validation.agreement_score
        )

        diagnostics = FusionDiagnostics(
            mapped_count=mapping.mapped_count,
            unmapped_count=len(mapping.unmapped),
            comparisons=cross_validation.comparisons,
            agreements=cross_validation.agreements,
            agreement_score=cross_validation.agreement_score,
            conflicting_fields=list(cross_validation.conflicting_fields),
            sources_present=sources_present,
            schema_version=self.schema.version
        )

        result = HybridResult(
            confidence=confidence,
            agreement_score=cross_validation.agreement_score,
            fields=fields,
            mapping=mapping,
            cross_validation=cross_validation,
            mapping_trail=self._build_trail(mapping, source_a),
            diagnostics=diagnostics,
            text=source_a.text or source_b.text,
            source_confidence={
                DeterministicSource.kind.value: source_a.confidence,
                GenerativeSource.kind.value: source_b.confidence,
            },
            line_items=self.enricher.enrich(source_a.line_items, source_b),
            tables=[table.to_dict() for table in source_a.tables],
            business_context=self._business_context(source_b),
            costs=self._costs(source_a, source_b, has_source_a)
        )

        logger.info(
            f"Fusion complete: confidence={confidence:.3f}, "
            f"agreement={cross_validation.agreement_score:.2f} "
            f"({cross_validation.agreements}/{cross_validation.comparisons}), "
            f"mapped={diagnostics.mapped_count}, unmapped={diagnostics.unmapped_count}, "
            f"conflicts={diagnostics.conflicting_fields}"
        )
        return result

    def _merge_fields(self, mapping: MappingResult, source_b: GenerativeSource) -> Dict[str, MergedField]:
        """
        Pick the final value of every canonical (and user-mapped) field.

        Mapped OCR value first, then the generative guess, then null.
        """
        details = {detail.target_field: detail for detail in mapping.details}
        merged: Dict[str, MergedField] = {}

        for name, value in mapping.mapped.items():
            if value is not None:
                detail = details.get(name)
                if detail is not None and detail.method is MappingMethod.USER_MAPPING:
                    merged[name] = MergedField(value, detail.confidence, Origin.USER_MAPPING)
                else:
                    merged[name] = MergedField(
                        value, self.settings.direct_mapping_confidence, Origin.DIRECT_MAPPING
                    )
                continue

            guess = source_b.lookup(name)
            if guess is not None:
                stated = guess.confidence
                merged[name] = MergedField(
                    guess.value,
                    stated if stated is not None else self.settings.default_generative_confidence,
                    Origin.SOURCE_B
                )
            else:
                merged[name] = MergedField(None, 0.0, Origin.NONE)

        return merged

    def _build_trail(self, mapping: MappingResult, source_a: DeterministicSource) -> List[MappingTrailEntry]:
        return [
            MappingTrailEntry(
                source_key=detail.source_key,
                source_value=source_a.raw_value(detail.source_key),
                target_field=detail.target_field,
                mapped_value=detail.value,
                confidence=detail.confidence,
                method=detail.method
            )
            for detail in mapping.details
        ]

    def _business_context(self, source_b: GenerativeSource) -> Dict[str, Any]:
        context = {}
        for output_key, section_name in BUSINESS_SECTIONS.items():
            section = source_b.section(section_name)
            context[output_key] = section if section is not None else {}
        return context

    def _costs(self, source_a: DeterministicSource, source_b: GenerativeSource,
               has_source_a: bool) -> Dict[str, float]:
        """Estimated OCR cost by page plus the generative cost as reported."""
        deterministic = source_a.pages * self.settings.deterministic_cost_per_page if has_source_a else 0.0
        generative = max(source_b.total_cost, 0.0)
        return {
            'deterministic': round(deterministic, 6),
            'generative': round(generative, 6),
            'total': round(deterministic + generative, 6)
        }
