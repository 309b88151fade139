"""
Field Mapper Module.

This module maps raw OCR key-value pairs onto canonical schema fields.

Rules:
    - Keys are lower-cased and trimmed before matching
    - A field matches when key and synonym contain one another
    - Fields are tried in schema declaration order; first match wins
    - A field is filled once; later pairs for it are dropped
    - Pairs matching no field are kept verbatim as unmapped

Note:
    Bidirectional containment is permissive: a short label such as
    "date" lands on the first field with a synonym containing it. The
    behavior is kept as-is for compatibility with existing mappings.

Author: ML Engineering Team
"""

from typing import Iterable, Optional

from invoice_fusion.schema.dictionary import SchemaDictionary, default_schema
from invoice_fusion.sources.models import RawKeyValue
from invoice_fusion.utils.logger import get_logger
from .result import MappingDetail, MappingMethod, MappingResult

# Initialize module logger
logger = get_logger(__name__)


class FieldMapper:
    """
    Heuristic mapper from raw OCR labels to canonical fields.

    Attributes:
        schema: SchemaDictionary matched against
        confidence: Confidence recorded for each direct match

    Example:
        >>> mapper = FieldMapper()
        >>> result = mapper.map([RawKeyValue("Total", "$1,234.56")])
        >>> result.mapped["invoice_gross_amount"]
        1234.56
    """

    def __init__(
        self,
        schema: Optional[SchemaDictionary] = None,
        confidence: float = 0.95
    ) -> None:
        self.schema = schema if schema is not None else default_schema()
        self.confidence = confidence

    def map(self, raw: Iterable[RawKeyValue]) -> MappingResult:
        """
        Map raw key-value pairs.

        Args:
            raw: Pairs in document order; keys may repeat.

        Returns:
            MappingResult with every canonical field present (None when
            unfilled), one detail per filled field and the unmapped residue.
        """
        result = MappingResult(mapped={name: None for name in self.schema.field_names})
        dropped = 0

        for pair in raw:
            canonical = self.schema.find(pair.key)

            if canonical is None:
                result.unmapped.append(pair)
                logger.debug(f"Unmapped: '{pair.key}'")
                continue

            if result.mapped[canonical.name] is not None:
                dropped += 1
                logger.debug(
                    f"Skipped: '{pair.key}' -> {canonical.name} (already mapped)"
                )
                continue

            value = canonical.apply(pair.value)
            result.mapped[canonical.name] = value
            result.details.append(MappingDetail(
                source_key=pair.key,
                target_field=canonical.name,
                value=value,
                confidence=self.confidence,
                method=MappingMethod.DIRECT
            ))
            logger.debug(f"Mapped: '{pair.key}' -> {canonical.name} = {value!r}")

        logger.debug(
            f"Field mapping: {result.mapped_count} mapped, "
            f"{len(result.unmapped)} unmapped, {dropped} duplicates dropped"
        )
        return result
