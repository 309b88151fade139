"""
Tests for the fusion engine end to end.
"""

import json

import pytest

from invoice_fusion.fusion import FusionEngine, FusionSettings, MappingMethod, Origin, UserFieldMapping
from invoice_fusion.sources import DeterministicSource, GenerativeSource, RawKeyValue
from invoice_fusion.utils.exceptions import NothingToFuseError


def test_deterministic_value_wins_merge(engine):
    """An OCR-mapped value is kept even when the generative guess differs"""
    source_a = DeterministicSource(confidence=0.9, key_value_pairs=[RawKeyValue("Vendor", "ABC Co")])
    source_b = GenerativeSource(
        confidence=0.8,
        extracted_data={"invoicing_party": {"value": "ABC Company", "confidence": 0.8}},
    )

    result = engine.combine(source_a, source_b)
    field = result.fields["invoicing_party"]

    assert field.value == "ABC Co"
    assert field.confidence == 0.95
    assert field.origin is Origin.DIRECT_MAPPING
    assert result.cross_validation.validated_fields["vendor_name"].origin is Origin.CONSENSUS


def test_no_key_value_pairs_falls_back_to_generative(engine):
    source_a = DeterministicSource(confidence=0.9)
    source_b = GenerativeSource(
        confidence=0.0,
        extracted_data={
            "invoicing_party": {"value": "ABC", "confidence": 0.7},
            "supplier_invoice_id": "INV-9",
        },
    )

    result = engine.combine(source_a, source_b)

    assert result.agreement_score == 0.5
    assert result.diagnostics.comparisons == 0
    assert result.fields["invoicing_party"].origin is Origin.SOURCE_B
    assert result.fields["invoicing_party"].confidence == 0.7
    assert result.fields["supplier_invoice_id"].value == "INV-9"
    assert result.fields["supplier_invoice_id"].confidence == 0.8
    assert result.fields["document_date"].value is None
    assert result.fields["document_date"].origin is Origin.NONE
    assert result.fields["document_date"].confidence == 0.0


def test_full_fusion(engine, ocr_source, generative_source):
    result = engine.combine(ocr_source, generative_source)

    assert result.values["supplier_invoice_id"] == "INV-100"
    assert result.values["invoice_gross_amount"] == 1234.56
    assert result.values["document_date"] == "2024-01-15"
    assert result.fields["document_currency"].origin is Origin.SOURCE_B

    # invoice_number, invoice_date, vendor_name and total_amount all agree
    assert result.diagnostics.comparisons == 4
    assert result.agreement_score == 1.0
    assert result.confidence == pytest.approx(0.96)
    assert result.conflicting_fields == []


def test_both_sources_missing_raises(engine):
    with pytest.raises(NothingToFuseError):
        engine.combine(None, None)


def test_single_missing_source_is_replaced(engine, generative_source):
    result = engine.combine(None, generative_source)

    assert result.diagnostics.sources_present == ["generative"]
    assert result.mapping.mapped_count == 0
    assert result.costs["deterministic"] == 0.0
    assert result.text == "generative text"


def test_fusion_is_pure(engine, ocr_source, generative_source):
    first = engine.combine(ocr_source, generative_source).to_dict()
    second = engine.combine(ocr_source, generative_source).to_dict()
    assert first == second


def test_mapping_trail_pairs_raw_and_mapped_values(engine, ocr_source, generative_source):
    result = engine.combine(ocr_source, generative_source)
    trail = {entry.target_field: entry for entry in result.mapping_trail}

    total = trail["invoice_gross_amount"]
    assert total.source_key == "Total"
    assert total.source_value == "$1,234.56"
    assert total.mapped_value == 1234.56
    assert total.method is MappingMethod.DIRECT
    assert len(result.mapping_trail) == len(result.mapping.details)


def test_user_mapping_overrides_automatic_mapping(engine):
    source_a = DeterministicSource(
        confidence=0.9,
        key_value_pairs=[RawKeyValue("PO Number", "PO-5"), RawKeyValue("Kostenstelle", "CC-100")],
    )
    mappings = [
        UserFieldMapping("Kostenstelle", "assignment_reference", 1.0),
        UserFieldMapping("Kostenstelle", "cost_center", 0.9),
    ]

    result = engine.combine(source_a, GenerativeSource(), mappings)

    reference = result.fields["assignment_reference"]
    assert reference.value == "CC-100"
    assert reference.origin is Origin.USER_MAPPING
    assert reference.confidence == 1.0

    assert result.fields["cost_center"].value == "CC-100"
    assert result.fields["cost_center"].confidence == 0.9

    targets = [(d.target_field, d.method) for d in result.mapping.details]
    assert ("assignment_reference", MappingMethod.DIRECT) not in targets
    assert ("assignment_reference", MappingMethod.USER_MAPPING) in targets

    # unmapped residue is preserved
    assert result.mapping.unmapped_dict() == {"Kostenstelle": "CC-100"}


def test_line_items_enriched(engine, ocr_source, generative_source):
    item = engine.combine(ocr_source, generative_source).line_items[0]

    assert item["description"] == "Consulting"
    assert item["normalizedAmount"] == 500.0
    assert item["businessCategory"] == "Services"
    assert item["glAccountSuggestion"] == "6100"


def test_costs_and_business_context(engine, generative_source):
    source_a = DeterministicSource(confidence=0.9, pages=2)
    result = engine.combine(source_a, generative_source)

    assert result.costs["deterministic"] == pytest.approx(0.13)
    assert result.costs["generative"] == pytest.approx(0.02)
    assert result.costs["total"] == pytest.approx(0.15)
    assert result.business_context == {
        "businessRules": {"approval_required": True},
        "interpretations": {},
        "normalizations": {},
    }


def test_text_prefers_ocr(engine, ocr_source, generative_source):
    result = engine.combine(ocr_source, generative_source)
    assert result.text.startswith("INVOICE")


def test_output_shape(engine, ocr_source, generative_source):
    output = engine.combine(ocr_source, generative_source).to_dict()

    assert set(output) == {
        "confidence", "agreementScore", "fields", "mappingDetails", "unmapped",
        "conflictingFields", "validatedFields", "mappingTrail", "diagnostics",
        "text", "sourceConfidence", "lineItems", "tables", "businessContext", "costs",
    }
    assert output["fields"]["invoicing_party"]["origin"] == "direct-mapping"
    assert output["diagnostics"]["schemaVersion"] == "sap-invoice-v1"
    json.loads(json.dumps(output))


def test_settings_snapshot_taken_at_construction(schema):
    engine = FusionEngine(schema=schema, settings=FusionSettings(direct_mapping_confidence=0.5))
    source_a = DeterministicSource(confidence=0.9, key_value_pairs=[RawKeyValue("Total", "10")])

    result = engine.combine(source_a, None)

    assert result.fields["invoice_gross_amount"].confidence == 0.5
    assert result.mapping.details[0].confidence == 0.5
