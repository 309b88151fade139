"""
Extraction Source Data Classes.

This module defines the two inputs of a fusion as an explicit tagged
union. Each variant carries its own strategy for producing a candidate
value and a confidence for a cross-checked field:

    DeterministicSource: OCR/forms extraction (key-value pairs, tables)
    GenerativeSource: generative-model extraction targeting schema names

Loaders are tolerant: malformed or missing parts become empty values
instead of raising.

Author: ML Engineering Team
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional, Sequence

from invoice_fusion.utils.helpers import clamp, is_blank, safe_float


class SourceKind(str, Enum):
    """Discriminator of the two extraction sources."""
    DETERMINISTIC = "deterministic"
    GENERATIVE = "generative"


@dataclass(frozen=True)
class RawKeyValue:
    """A form field detected by the OCR extractor."""
    key: str
    value: str


@dataclass
class Table:
    """A table detected by the OCR extractor, row-major."""
    rows: List[List[str]] = field(default_factory=list)
    confidence: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {'rows': [list(row) for row in self.rows], 'confidence': self.confidence}

    @classmethod
    def from_dict(cls, data: Any) -> 'Table':
        if not isinstance(data, dict):
            return cls()
        rows = [
            ['' if cell is None else str(cell) for cell in row]
            for row in (data.get('rows') or [])
            if isinstance(row, (list, tuple))
        ]
        return cls(rows=rows, confidence=_confidence(data.get('confidence')))


@dataclass
class LineItem:
    """
    An invoice line read from an OCR table.

    Attributes:
        description: Item description (always present)
        quantity: Quantity as printed
        unit_price: Unit price as printed
        amount: Line total as printed
        confidence: Confidence of the table the line came from
    """
    description: str
    quantity: Optional[str] = None
    unit_price: Optional[str] = None
    amount: Optional[str] = None
    confidence: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'description': self.description,
            'quantity': self.quantity,
            'unitPrice': self.unit_price,
            'amount': self.amount,
            'confidence': self.confidence
        }

    @classmethod
    def from_dict(cls, data: Any) -> Optional['LineItem']:
        """Build a line item; returns None when there is no description."""
        if not isinstance(data, dict) or is_blank(data.get('description')):
            return None
        return cls(
            description=str(data['description']).strip(),
            quantity=_optional_str(data.get('quantity')),
            unit_price=_optional_str(data.get('unitPrice', data.get('unit_price'))),
            amount=_optional_str(data.get('amount')),
            confidence=_confidence(data.get('confidence'))
        )


@dataclass(frozen=True)
class GenerativeFieldGuess:
    """A generative extractor's value for one field and its stated confidence."""
    value: Any
    confidence: Optional[float] = None


class ExtractionSource:
    """
    Common interface of the two source variants.

    Subclasses set ``kind`` and implement ``candidate`` and
    ``field_confidence``.
    """

    kind: ClassVar[SourceKind]
    confidence: float

    def candidate(
        self,
        field_name: str,
        aliases: Sequence[str] = (),
        canonical_name: Optional[str] = None
    ) -> Any:
        """Get this source's value for a cross-checked field, or None."""
        raise NotImplementedError

    def field_confidence(
        self,
        field_name: str,
        canonical_name: Optional[str] = None,
        default: float = 0.8
    ) -> float:
        """Get this source's intrinsic confidence for a field."""
        raise NotImplementedError

    @property
    def is_empty(self) -> bool:
        raise NotImplementedError


@dataclass
class DeterministicSource(ExtractionSource):
    """
    Result of the deterministic OCR/forms extraction.

    Attributes:
        confidence: Whole-document confidence (0-1)
        key_value_pairs: Detected form fields in document order
        tables: Detected tables
        line_items: Line items read from the tables
        text: Full document text
        pages: Number of processed pages

    Example:
        >>> source = DeterministicSource.from_dict({
        ...     "confidence": 0.93,
        ...     "keyValuePairs": {"Invoice Number": "INV-100"}
        ... })
        >>> source.candidate("invoice_number", ["Invoice Number"])
        'INV-100'
    """
    kind: ClassVar[SourceKind] = SourceKind.DETERMINISTIC

    confidence: float = 0.0
    key_value_pairs: List[RawKeyValue] = field(default_factory=list)
    tables: List[Table] = field(default_factory=list)
    line_items: List[LineItem] = field(default_factory=list)
    text: str = ""
    pages: int = 1

    def candidate(
        self,
        field_name: str,
        aliases: Sequence[str] = (),
        canonical_name: Optional[str] = None
    ) -> Any:
        """
        Find a value by alias: for each alias in order, the first raw key
        containing it (case-insensitive) supplies the value.
        """
        for alias in aliases or (field_name,):
            alias_lower = alias.lower()
            for pair in self.key_value_pairs:
                if alias_lower in pair.key.lower() and not is_blank(pair.value):
                    return pair.value
        return None

    def field_confidence(
        self,
        field_name: str,
        canonical_name: Optional[str] = None,
        default: float = 0.8
    ) -> float:
        # Form fields carry no per-field score; the document score applies
        return self.confidence

    def raw_value(self, key: str) -> Optional[str]:
        """Get the first raw value recorded under a key."""
        for pair in self.key_value_pairs:
            if pair.key == key:
                return pair.value
        return None

    @property
    def is_empty(self) -> bool:
        return not (self.key_value_pairs or self.tables or self.line_items or self.text)

    @classmethod
    def from_dict(cls, data: Any) -> 'DeterministicSource':
        """
        Build from the JSON-shaped OCR result.

        Accepts camelCase and snake_case keys; ``keyValuePairs`` may be an
        object or a list of ``{key, value}`` pairs.
        """
        if not isinstance(data, dict):
            return cls()

        raw_pairs = data.get('keyValuePairs', data.get('key_value_pairs'))
        line_items = [
            item for item in (
                LineItem.from_dict(entry)
                for entry in _as_list(data.get('lineItems', data.get('line_items')))
            )
            if item is not None
        ]

        return cls(
            confidence=_confidence(data.get('confidence')),
            key_value_pairs=_parse_pairs(raw_pairs),
            tables=[Table.from_dict(t) for t in _as_list(data.get('tables'))],
            line_items=line_items,
            text=_optional_str(data.get('text')) or "",
            pages=max(1, int(safe_float(data.get('pages'), 1))),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'confidence': self.confidence,
            'keyValuePairs': [{'key': p.key, 'value': p.value} for p in self.key_value_pairs],
            'tables': [t.to_dict() for t in self.tables],
            'lineItems': [i.to_dict() for i in self.line_items],
            'text': self.text,
            'pages': self.pages
        }


@dataclass
class GenerativeSource(ExtractionSource):
    """
    Result of the generative-model extraction.

    ``extracted_data`` maps field names to ``{value, confidence}`` guesses
    (bare values are accepted) and may also hold free-form sections such
    as ``business_rules``, ``line_items`` or ``gl_suggestions``.

    Example:
        >>> source = GenerativeSource.from_dict({
        ...     "confidence": 0.88,
        ...     "extracted_data": {"invoicing_party": {"value": "ABC", "confidence": 0.9}}
        ... })
        >>> source.guess("invoicing_party")
        GenerativeFieldGuess(value='ABC', confidence=0.9)
    """
    kind: ClassVar[SourceKind] = SourceKind.GENERATIVE

    confidence: float = 0.0
    extracted_data: Dict[str, Any] = field(default_factory=dict)
    text: str = ""
    total_cost: float = 0.0

    def guess(self, key: str) -> Optional[GenerativeFieldGuess]:
        """Get the guess stored under an exact key, or None if blank."""
        if key not in self.extracted_data:
            return None

        raw = self.extracted_data[key]
        if isinstance(raw, dict) and 'value' in raw:
            value = raw['value']
            stated = safe_float(raw.get('confidence'), None)
            confidence = clamp(stated) if stated is not None else None
        else:
            value, confidence = raw, None

        if is_blank(value):
            return None
        return GenerativeFieldGuess(value=value, confidence=confidence)

    def lookup(self, field_name: str, canonical_name: Optional[str] = None) -> Optional[GenerativeFieldGuess]:
        """
        Find a guess by direct key, then by spelling variants
        (spaces, no underscores, lower, upper), then by canonical name.
        """
        keys = [
            field_name,
            field_name.replace('_', ' '),
            field_name.replace('_', ''),
            field_name.lower(),
            field_name.upper(),
        ]
        if canonical_name:
            keys.append(canonical_name)

        for key in dict.fromkeys(keys):
            found = self.guess(key)
            if found is not None:
                return found
        return None

    def candidate(
        self,
        field_name: str,
        aliases: Sequence[str] = (),
        canonical_name: Optional[str] = None
    ) -> Any:
        found = self.lookup(field_name, canonical_name)
        return found.value if found else None

    def field_confidence(
        self,
        field_name: str,
        canonical_name: Optional[str] = None,
        default: float = 0.8
    ) -> float:
        # Per-field guess confidences only apply when merging; conflicts use
        # the whole-document score
        return self.confidence or default

    def section(self, name: str) -> Any:
        """Get a free-form section of extracted_data (None if absent)."""
        return self.extracted_data.get(name)

    @property
    def is_empty(self) -> bool:
        return not self.extracted_data

    @classmethod
    def from_dict(cls, data: Any) -> 'GenerativeSource':
        """Build from the JSON-shaped generative result."""
        if not isinstance(data, dict):
            return cls()

        extracted = data.get('extracted_data', data.get('extractedData'))
        return cls(
            confidence=_confidence(data.get('confidence')),
            extracted_data=dict(extracted) if isinstance(extracted, dict) else {},
            text=_optional_str(data.get('text')) or "",
            total_cost=safe_float(data.get('total_cost', data.get('totalCost')), 0.0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'confidence': self.confidence,
            'extracted_data': self.extracted_data,
            'text': self.text,
            'total_cost': self.total_cost
        }


def _confidence(value: Any) -> float:
    return clamp(safe_float(value, 0.0))


def _optional_str(value: Any) -> Optional[str]:
    if is_blank(value):
        return None
    return str(value).strip()


def _as_list(value: Any) -> list:
    return list(value) if isinstance(value, (list, tuple)) else []


def _parse_pairs(raw: Any) -> List[RawKeyValue]:
    """Read key-value pairs from an object or a list of pairs, keeping order."""
    if isinstance(raw, dict):
        items = list(raw.items())
    else:
        items = []
        for entry in _as_list(raw):
            if isinstance(entry, dict) and 'key' in entry:
                items.append((entry['key'], entry.get('value')))
            elif isinstance(entry, (list, tuple)) and len(entry) == 2:
                items.append((entry[0], entry[1]))

    return [
        RawKeyValue(key=str(key), value='' if value is None else str(value))
        for key, value in items
        if key is not None
    ]
