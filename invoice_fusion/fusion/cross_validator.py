"""
Cross Validator Module.

This module reconciles the deterministic and generative sources on a
fixed set of cross-checkable invoice fields.

For each field a candidate is taken from each source. Fields neither
source knows are skipped; fields only one source knows are recorded but
not compared; fields both know are compared with type-specific rules:
    - Dates: equal calendar day
    - Amounts: relative difference below tolerance (1% by default)
    - Text: case-insensitive equality or containment

Author: ML Engineering Team
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from invoice_fusion.schema.transforms import to_amount, to_calendar_day
from invoice_fusion.sources.models import DeterministicSource, ExtractionSource, GenerativeSource
from invoice_fusion.utils.logger import get_logger
from .result import CrossValidationResult, Origin, ValidatedField
from .settings import FusionSettings

# Initialize module logger
logger = get_logger(__name__)


class CompareKind(str, Enum):
    """Comparison rule of a cross-checked field."""
    DATE = "date"
    AMOUNT = "amount"
    TEXT = "text"


@dataclass(frozen=True)
class CrossCheckField:
    """
    A field both sources are expected to report.

    Attributes:
        name: Cross-check field name (also the generative lookup key)
        kind: Comparison rule
        ocr_aliases: Raw OCR labels searched by substring, in order
        canonical_field: Linked canonical schema field, if any
    """
    name: str
    kind: CompareKind
    ocr_aliases: Tuple[str, ...]
    canonical_field: Optional[str] = None


CROSS_CHECK_FIELDS: Tuple[CrossCheckField, ...] = (
    CrossCheckField('invoice_number', CompareKind.TEXT,
                    ('Invoice Number', 'Invoice #', 'Number', 'Doc Number'),
                    'supplier_invoice_id'),
    CrossCheckField('invoice_date', CompareKind.DATE,
                    ('Invoice Date', 'Date', 'Issue Date'),
                    'document_date'),
    CrossCheckField('due_date', CompareKind.DATE,
                    ('Due Date', 'Payment Due')),
    CrossCheckField('vendor_name', CompareKind.TEXT,
                    ('Vendor', 'Company', 'From', 'Supplier'),
                    'invoicing_party'),
    CrossCheckField('total_amount', CompareKind.AMOUNT,
                    ('Total', 'Amount Due', 'Grand Total'),
                    'invoice_gross_amount'),
    CrossCheckField('subtotal', CompareKind.AMOUNT,
                    ('Subtotal', 'Sub Total'),
                    'supplier_invoice_item_amount'),
    CrossCheckField('tax_amount', CompareKind.AMOUNT,
                    ('Tax', 'Sales Tax', 'VAT')),
    CrossCheckField('currency', CompareKind.TEXT,
                    ('Currency', 'CCY'),
                    'document_currency'),
)


def dates_match(first: Any, second: Any) -> bool:
    """Check two dates fall on the same calendar day."""
    day_a, day_b = to_calendar_day(first), to_calendar_day(second)
    if day_a is None or day_b is None:
        return False
    return day_a == day_b


def amounts_match(first: Any, second: Any, tolerance: float = 0.01) -> bool:
    """
    Check two amounts agree within a relative tolerance.

    The difference is taken relative to the mean of the two amounts,
    so 100.00 vs 100.50 (0.5%) matches and 100.00 vs 105.00 (4.9%)
    doesn't. Unparseable amounts never match. Equal amounts always match,
    so two zero amounts agree even though no ratio can be taken.
    """
    num_a, num_b = to_amount(first), to_amount(second)
    if num_a is None or num_b is None:
        return False
    if num_a == num_b:
        return True

    mean = (abs(num_a) + abs(num_b)) / 2
    return abs(num_a - num_b) / mean < tolerance


def strings_match(first: Any, second: Any) -> bool:
    """Case-insensitive equality, or either value containing the other."""
    clean_a = str(first).strip().lower()
    clean_b = str(second).strip().lower()
    if not clean_a or not clean_b:
        return False
    return clean_a == clean_b or clean_a in clean_b or clean_b in clean_a


class CrossValidator:
    """
    Cross-checks the two sources field by field.

    Attributes:
        settings: Fusion constants (confidences, penalty, tolerance)
        fields: Cross-checked fields, in order

    Example:
        >>> validator = CrossValidator()
        >>> outcome = validator.validate(ocr_source, generative_source, mapping.mapped)
        >>> outcome.agreement_score
        0.75
    """

    def __init__(
        self,
        settings: Optional[FusionSettings] = None,
        fields: Tuple[CrossCheckField, ...] = CROSS_CHECK_FIELDS
    ) -> None:
        self.settings = settings or FusionSettings()
        self.fields = fields

    def validate(
        self,
        source_a: DeterministicSource,
        source_b: GenerativeSource,
        mapped_a: Optional[Dict[str, Any]] = None
    ) -> CrossValidationResult:
        """
        Cross-validate both sources.

        Args:
            source_a: Deterministic source.
            source_b: Generative source.
            mapped_a: FieldMapper output for source_a; used when no OCR
                      alias finds a value for a field.

        Returns:
            CrossValidationResult.
        """
        mapped_a = mapped_a or {}
        result = CrossValidationResult(agreement_score=self.settings.neutral_agreement_score)

        for check in self.fields:
            value_a = self._candidate_a(check, source_a, mapped_a)
            value_b = source_b.candidate(check.name, canonical_name=check.canonical_field)

            if value_a is None and value_b is None:
                continue

            if value_a is None or value_b is None:
                result.validated_fields[check.name] = self._single_source(
                    check, value_a, value_b, source_a, source_b
                )
                continue

            result.comparisons += 1

            if self.values_match(check.kind, value_a, value_b):
                result.agreements += 1
                result.validated_fields[check.name] = ValidatedField(
                    source_a_value=value_a,
                    source_b_value=value_b,
                    final_value=value_a,
                    confidence=self.settings.consensus_confidence,
                    origin=Origin.CONSENSUS
                )
            else:
                result.conflicting_fields.append(check.name)
                result.validated_fields[check.name] = self._resolve_conflict(
                    check, value_a, value_b, source_a, source_b
                )
                logger.debug(f"Conflict on {check.name}: {value_a!r} vs {value_b!r}")

        if result.comparisons:
            result.agreement_score = result.agreements / result.comparisons

        return result

    def values_match(self, kind: CompareKind, value_a: Any, value_b: Any) -> bool:
        """Compare two candidates with the rule for their field kind."""
        if kind is CompareKind.DATE:
            return dates_match(value_a, value_b)
        if kind is CompareKind.AMOUNT:
            return amounts_match(value_a, value_b, self.settings.amount_tolerance)
        return strings_match(value_a, value_b)

    def _candidate_a(
        self,
        check: CrossCheckField,
        source_a: DeterministicSource,
        mapped_a: Dict[str, Any]
    ) -> Any:
        value = source_a.candidate(check.name, check.ocr_aliases, check.canonical_field)
        if value is None and check.canonical_field:
            value = mapped_a.get(check.canonical_field)
        return value

    def _confidences(
        self,
        check: CrossCheckField,
        source_a: ExtractionSource,
        source_b: ExtractionSource
    ) -> Tuple[float, float]:
        default = self.settings.default_generative_confidence
        return (
            source_a.field_confidence(check.name, check.canonical_field, default),
            source_b.field_confidence(check.name, check.canonical_field, default),
        )

    def _resolve_conflict(
        self,
        check: CrossCheckField,
        value_a: Any,
        value_b: Any,
        source_a: ExtractionSource,
        source_b: ExtractionSource
    ) -> ValidatedField:
        """The more confident source wins, at a penalty; ties go to source B."""
        conf_a, conf_b = self._confidences(check, source_a, source_b)
        penalty = self.settings.conflict_penalty

        if conf_a > conf_b:
            return ValidatedField(value_a, value_b, value_a, conf_a * penalty, Origin.SOURCE_A)
        return ValidatedField(value_a, value_b, value_b, conf_b * penalty, Origin.SOURCE_B)

    def _single_source(
        self,
        check: CrossCheckField,
        value_a: Any,
        value_b: Any,
        source_a: ExtractionSource,
        source_b: ExtractionSource
    ) -> ValidatedField:
        conf_a, conf_b = self._confidences(check, source_a, source_b)
        if value_a is not None:
            return ValidatedField(value_a, None, value_a, conf_a, Origin.SOURCE_A)
        return ValidatedField(None, value_b, value_b, conf_b, Origin.SOURCE_B)
