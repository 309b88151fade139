"""
Canonical Schema Dictionary Module.

This module defines the canonical accounting fields that raw OCR labels
are mapped onto. A SchemaDictionary is an immutable, versioned table of
CanonicalField entries; the default table ships with the package and
alternate tables (tests, tenants) can be loaded from dicts or YAML.

Author: ML Engineering Team
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple, Union

import yaml

from invoice_fusion.utils.exceptions import DuplicateFieldError, SchemaError, UnknownTransformError
from invoice_fusion.utils.logger import get_logger
from .transforms import TRANSFORMS, parse_amount, parse_date

# Initialize module logger
logger = get_logger(__name__)


class ValueType(str, Enum):
    """Value type of a canonical field."""
    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    CURRENCY = "currency"


# Transform applied when a schema entry doesn't name one
DEFAULT_TRANSFORMS = {
    ValueType.DATE: parse_date,
    ValueType.NUMBER: parse_amount,
}


def normalize_label(label: Any) -> str:
    """Lower-case and trim a raw label."""
    return str(label).strip().lower()


@dataclass(frozen=True)
class CanonicalField:
    """
    A named slot in the target accounting schema.

    Attributes:
        name: Canonical field name (unique within a dictionary)
        synonyms: Recognized raw-label variants, lower-cased and trimmed
        value_type: Type of the field value
        transform: Optional callable normalizing the raw string

    Example:
        >>> CanonicalField("document_date", ("invoice date", "date"),
        ...                ValueType.DATE, parse_date)
    """
    name: str
    synonyms: Tuple[str, ...]
    value_type: ValueType = ValueType.TEXT
    transform: Optional[Callable[[Any], Any]] = field(default=None, compare=False)

    def __post_init__(self):
        cleaned = tuple(
            s for s in dict.fromkeys(normalize_label(s) for s in self.synonyms) if s
        )
        object.__setattr__(self, 'synonyms', cleaned)
        object.__setattr__(self, 'value_type', ValueType(self.value_type))

    def matches(self, normalized_key: str) -> bool:
        """
        Check whether a normalized raw key refers to this field.

        Containment is tested both ways: the key may contain a synonym
        ("invoice date:" contains "invoice date") or a synonym may contain
        the key ("total" is inside "grand total"). An empty key matches
        nothing.
        """
        if not normalized_key:
            return False
        return any(
            synonym in normalized_key or normalized_key in synonym
            for synonym in self.synonyms
        )

    def apply(self, raw_value: Any) -> Any:
        """
        Apply the field transform.

        Falls back to the untransformed value if the transform raises.
        """
        if self.transform is None:
            return raw_value
        try:
            return self.transform(raw_value)
        except Exception as e:
            logger.debug(f"Transform failed for {self.name} ({raw_value!r}): {e}")
            return raw_value


class SchemaDictionary:
    """
    Ordered, versioned table of canonical fields.

    Declaration order matters: when synonyms overlap, the first field
    whose synonym matches a raw key wins.

    Attributes:
        version: Identifier of the table revision
        fields: Canonical fields in declaration order

    Example:
        >>> schema = default_schema()
        >>> schema.find("Invoice No.").name
        'supplier_invoice_id'
        >>> schema.field_names[:2]
        ['invoicing_party', 'supplier_invoice_id']
    """

    def __init__(self, fields: List[CanonicalField], version: str = "custom") -> None:
        seen = set()
        for canonical in fields:
            if canonical.name in seen:
                raise DuplicateFieldError(canonical.name, version)
            seen.add(canonical.name)

        self.version = version
        self._fields: Tuple[CanonicalField, ...] = tuple(fields)
        self._by_name: Dict[str, CanonicalField] = {f.name: f for f in self._fields}

    @property
    def fields(self) -> Tuple[CanonicalField, ...]:
        return self._fields

    @property
    def field_names(self) -> List[str]:
        return [f.name for f in self._fields]

    def __iter__(self) -> Iterator[CanonicalField]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def get(self, name: str) -> Optional[CanonicalField]:
        """Get a canonical field by name."""
        return self._by_name.get(name)

    def find(self, raw_key: Any) -> Optional[CanonicalField]:
        """
        Find the canonical field a raw label maps to.

        Args:
            raw_key: Raw OCR label.

        Returns:
            First matching CanonicalField in declaration order, or None.
        """
        normalized_key = normalize_label(raw_key)
        for canonical in self._fields:
            if canonical.matches(normalized_key):
                return canonical
        return None

    def synonyms_for(self, name: str) -> List[str]:
        """Get the synonyms of a canonical field (empty if unknown)."""
        canonical = self._by_name.get(name)
        return list(canonical.synonyms) if canonical else []

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SchemaDictionary':
        """
        Build a dictionary from plain data.

        Expected shape::

            version: sap-invoice-v1
            fields:
              - name: document_date
                type: date
                synonyms: [invoice date, date]
                transform: date        # optional, defaults by type

        Raises:
            SchemaError: If the data is not a valid schema table.
            UnknownTransformError: If an entry names an unknown transform.
        """
        if not isinstance(data, dict) or not isinstance(data.get('fields'), list):
            raise SchemaError("Schema must be a mapping with a 'fields' list")

        fields = []
        for entry in data['fields']:
            if not isinstance(entry, dict) or not entry.get('name'):
                raise SchemaError("Schema field entries need a 'name'", {"entry": entry})

            try:
                value_type = ValueType(entry.get('type', ValueType.TEXT.value))
            except ValueError as e:
                raise SchemaError(
                    f"Unknown value type for field '{entry['name']}'",
                    {"type": entry.get('type')}
                ) from e

            if 'transform' in entry:
                transform_name = entry['transform']
                if transform_name is None:
                    transform = None
                elif transform_name in TRANSFORMS:
                    transform = TRANSFORMS[transform_name]
                else:
                    raise UnknownTransformError(transform_name, sorted(TRANSFORMS))
            else:
                transform = DEFAULT_TRANSFORMS.get(value_type)

            fields.append(CanonicalField(
                name=entry['name'],
                synonyms=tuple(entry.get('synonyms') or ()),
                value_type=value_type,
                transform=transform
            ))

        return cls(fields, version=str(data.get('version', 'custom')))

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> 'SchemaDictionary':
        """
        Load a dictionary from a YAML file.

        Raises:
            SchemaError: If the file can't be read or isn't a schema table.
        """
        schema_path = Path(path)
        try:
            with open(schema_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise SchemaError(f"Could not load schema: {schema_path}", {"reason": str(e)}) from e

        schema = cls.from_dict(data)
        logger.info(f"Loaded schema '{schema.version}' ({len(schema)} fields) from {schema_path}")
        return schema

    def __repr__(self) -> str:
        return f"SchemaDictionary(version={self.version!r}, fields={len(self._fields)})"


DEFAULT_SCHEMA_VERSION = "sap-invoice-v1"

_DEFAULT_FIELDS = [
    CanonicalField(
        'invoicing_party',
        ('vendor', 'vendor name', 'supplier', 'supplier name', 'company',
         'from', 'bill from', 'seller', 'merchant', 'billed by', 'invoice from',
         'vendor company', 'supplier company'),
        ValueType.TEXT
    ),
    CanonicalField(
        'supplier_invoice_id',
        ('invoice number', 'invoice #', 'invoice no', 'invoice id',
         'document number', 'document #', 'doc number', 'bill number',
         'reference number', 'reference #', 'inv #', 'inv number',
         'invoice ref', 'bill #'),
        ValueType.TEXT
    ),
    CanonicalField(
        'document_date',
        ('invoice date', 'date', 'issue date', 'document date',
         'bill date', 'created date', 'dated', 'invoice issued',
         'date of invoice', 'billing date'),
        ValueType.DATE,
        parse_date
    ),
    CanonicalField(
        'posting_date',
        ('posting date', 'post date', 'received date', 'entry date',
         'accounting date', 'book date'),
        ValueType.DATE,
        parse_date
    ),
    CanonicalField(
        'invoice_gross_amount',
        ('total', 'total amount', 'grand total', 'amount due',
         'total due', 'balance due', 'invoice total', 'gross amount',
         'total payable', 'amount payable', 'final amount', 'net payable',
         'payment due', 'total invoice amount'),
        ValueType.NUMBER,
        parse_amount
    ),
    CanonicalField(
        'supplier_invoice_item_amount',
        ('subtotal', 'sub total', 'net amount', 'net total',
         'pre-tax amount', 'amount before tax', 'goods total',
         'services total', 'line items total', 'items total'),
        ValueType.NUMBER,
        parse_amount
    ),
    CanonicalField(
        'supplier_invoice_item_text',
        ('description', 'line items', 'items', 'goods/services',
         'product description', 'service description', 'details',
         'item description', 'billing items'),
        ValueType.TEXT
    ),
    CanonicalField(
        'document_currency',
        ('currency', 'ccy', 'curr', 'currency code', 'invoice currency',
         'payment currency', 'denomination'),
        ValueType.CURRENCY
    ),
    CanonicalField(
        'tax_code',
        ('tax', 'tax rate', 'tax %', 'vat', 'vat rate', 'sales tax',
         'tax percentage', 'gst', 'tax code'),
        ValueType.TEXT
    ),
    CanonicalField(
        'assignment_reference',
        ('reference', 'ref', 'po number', 'purchase order', 'po #',
         'order number', 'order #', 'contract #', 'contract number',
         'project number', 'project #', 'customer reference'),
        ValueType.TEXT
    ),
    CanonicalField(
        'accounting_document_header_text',
        ('memo', 'notes', 'comments', 'header text', 'description',
         'invoice description', 'remarks'),
        ValueType.TEXT
    ),
]

_DEFAULT_SCHEMA = SchemaDictionary(_DEFAULT_FIELDS, version=DEFAULT_SCHEMA_VERSION)


def default_schema() -> SchemaDictionary:
    """Get the built-in canonical schema."""
    return _DEFAULT_SCHEMA


def load_schema(path: Optional[Union[str, Path]] = None) -> SchemaDictionary:
    """
    Get the schema configured for this deployment.

    Args:
        path: Optional YAML path; defaults to the 'schema.path' setting.

    Returns:
        Loaded SchemaDictionary, or the built-in one when no path is set.
    """
    if path is None:
        from config import get_config
        path = get_config("schema.path")

    if not path:
        return default_schema()
    return SchemaDictionary.from_yaml(path)
