"""
User Field Mappings Module.

Per-user overrides of the automatic mapping: a user can pin an exact
raw label to a target field. User mappings take precedence over the
synonym-based FieldMapper.

Author: ML Engineering Team
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple

from invoice_fusion.schema.dictionary import SchemaDictionary, default_schema
from invoice_fusion.sources.models import RawKeyValue
from invoice_fusion.utils.helpers import clamp, is_blank, safe_float
from invoice_fusion.utils.logger import get_logger
from .result import MappingDetail, MappingMethod, MappingResult

# Initialize module logger
logger = get_logger(__name__)


@dataclass(frozen=True)
class UserFieldMapping:
    """A user's pinned mapping of a raw label to a target field."""
    source_key: str
    target_field: str
    confidence: float = 1.0

    @classmethod
    def from_dict(cls, data: Any) -> Optional['UserFieldMapping']:
        """Build from a stored row; returns None when key or target is missing."""
        if not isinstance(data, dict):
            return None
        source_key = data.get('source_key', data.get('sourceKey'))
        target_field = data.get('target_field', data.get('targetField'))
        if is_blank(source_key) or is_blank(target_field):
            return None
        return cls(
            source_key=str(source_key),
            target_field=str(target_field),
            confidence=clamp(safe_float(data.get('confidence'), 1.0))
        )


def load_user_mappings(rows: Iterable[Any]) -> List[UserFieldMapping]:
    """Parse stored mapping rows, skipping incomplete ones."""
    mappings = [UserFieldMapping.from_dict(row) for row in rows or []]
    return [m for m in mappings if m is not None]


class UserMappingApplier:
    """
    Applies user field mappings to raw pairs.

    Values mapped onto a canonical field go through that field's
    transform; other targets keep the raw value.

    Example:
        >>> applier = UserMappingApplier()
        >>> mapped, details = applier.apply(pairs, [UserFieldMapping("Supplier Ref", "assignment_reference")])
    """

    def __init__(self, schema: Optional[SchemaDictionary] = None) -> None:
        self.schema = schema if schema is not None else default_schema()

    def apply(
        self,
        raw: Iterable[RawKeyValue],
        mappings: Iterable[UserFieldMapping]
    ) -> Tuple[Dict[str, Any], List[MappingDetail]]:
        """
        Map raw pairs through user mappings.

        Args:
            raw: Raw pairs; the first pair with an exact key is used.
            mappings: User mappings; a later mapping to the same target wins.

        Returns:
            Tuple of (target field → value, mapping details).
        """
        first_values: Dict[str, str] = {}
        for pair in raw:
            first_values.setdefault(pair.key, pair.value)

        mapped: Dict[str, Any] = {}
        details: Dict[str, MappingDetail] = {}

        for mapping in mappings:
            if mapping.source_key not in first_values:
                continue

            raw_value = first_values[mapping.source_key]
            canonical = self.schema.get(mapping.target_field)
            value = canonical.apply(raw_value) if canonical else raw_value

            mapped[mapping.target_field] = value
            details[mapping.target_field] = MappingDetail(
                source_key=mapping.source_key,
                target_field=mapping.target_field,
                value=value,
                confidence=mapping.confidence,
                method=MappingMethod.USER_MAPPING
            )

        if mapped:
            logger.debug(f"User mappings applied: {sorted(mapped)}")
        return mapped, list(details.values())

    def merge(self, automatic: MappingResult, user_mapped: Dict[str, Any],
              user_details: List[MappingDetail]) -> MappingResult:
        """
        Overlay user mappings on the automatic mapping.

        Non-null user values replace automatic ones; the replaced
        automatic details are removed so each field keeps one detail.
        """
        overridden = {k for k, v in user_mapped.items() if v is not None}
        if not overridden:
            return automatic

        mapped = dict(automatic.mapped)
        for target in overridden:
            mapped[target] = user_mapped[target]

        details = [d for d in automatic.details if d.target_field not in overridden]
        details.extend(d for d in user_details if d.target_field in overridden)

        return MappingResult(mapped=mapped, details=details, unmapped=list(automatic.unmapped))
