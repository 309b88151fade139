"""
Tests for user-defined field mappings.
"""

from invoice_fusion.fusion import FieldMapper, MappingMethod, UserFieldMapping, UserMappingApplier, load_user_mappings
from invoice_fusion.sources import RawKeyValue


def test_load_user_mappings_accepts_both_spellings():
    mappings = load_user_mappings([
        {"source_key": "Supplier Ref", "target_field": "assignment_reference"},
        {"sourceKey": "Kst", "targetField": "cost_center", "confidence": 0.7},
        {"source_key": "incomplete"},
        "garbage",
    ])

    assert mappings == [
        UserFieldMapping("Supplier Ref", "assignment_reference", 1.0),
        UserFieldMapping("Kst", "cost_center", 0.7),
    ]


def test_apply_uses_exact_keys_and_field_transform(schema):
    raw = [RawKeyValue("Betrag", "€ 1.234,56"), RawKeyValue("Betrag", "0"), RawKeyValue("Other", "x")]
    mappings = [
        UserFieldMapping("Betrag", "invoice_gross_amount", 0.9),
        UserFieldMapping("betrag", "posting_date"),
        UserFieldMapping("Other", "free_text"),
    ]

    mapped, details = UserMappingApplier(schema).apply(raw, mappings)

    assert mapped == {"invoice_gross_amount": 1234.56, "free_text": "x"}
    assert [(d.source_key, d.method) for d in details] == [
        ("Betrag", MappingMethod.USER_MAPPING),
        ("Other", MappingMethod.USER_MAPPING),
    ]
    assert details[0].confidence == 0.9


def test_merge_overrides_automatic_values(schema):
    raw = [RawKeyValue("Total", "100.00"), RawKeyValue("Brutto", "119.00")]
    automatic = FieldMapper(schema).map(raw)
    applier = UserMappingApplier(schema)

    mapped, details = applier.apply(raw, [UserFieldMapping("Brutto", "invoice_gross_amount")])
    merged = applier.merge(automatic, mapped, details)

    assert merged.mapped["invoice_gross_amount"] == 119.0
    assert len(merged.details) == 1
    assert merged.details[0].method is MappingMethod.USER_MAPPING
    assert automatic.mapped["invoice_gross_amount"] == 100.0


def test_merge_without_user_values_keeps_automatic(schema):
    automatic = FieldMapper(schema).map([RawKeyValue("Total", "100.00")])
    assert UserMappingApplier(schema).merge(automatic, {}, []) is automatic
