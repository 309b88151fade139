"""
Tests for the extraction source variants and their loaders.
"""

from invoice_fusion.sources import (
    DeterministicSource,
    GenerativeFieldGuess,
    GenerativeSource,
    LineItem,
    RawKeyValue,
    SourceKind,
)


def test_source_kinds():
    assert DeterministicSource.kind is SourceKind.DETERMINISTIC
    assert GenerativeSource.kind is SourceKind.GENERATIVE


def test_deterministic_from_object_pairs():
    source = DeterministicSource.from_dict({
        "confidence": 0.93,
        "keyValuePairs": {"Invoice Number": "INV-100", "Total": 12.5},
        "tables": [{"rows": [["Description", "Total"], ["Widget", None]], "confidence": 0.8}],
        "lineItems": [{"description": "Widget", "unitPrice": "5.00"}, {"amount": "1.00"}],
        "text": "INVOICE",
    })

    assert source.confidence == 0.93
    assert source.key_value_pairs == [RawKeyValue("Invoice Number", "INV-100"), RawKeyValue("Total", "12.5")]
    assert source.tables[0].rows == [["Description", "Total"], ["Widget", ""]]
    assert source.line_items == [LineItem("Widget", unit_price="5.00")]
    assert source.pages == 1


def test_deterministic_from_pair_list_keeps_duplicates():
    source = DeterministicSource.from_dict({
        "key_value_pairs": [{"key": "Date", "value": "01/02/2024"}, ["Date", "03/04/2024"]],
        "pages": 3,
    })

    assert [p.value for p in source.key_value_pairs] == ["01/02/2024", "03/04/2024"]
    assert source.raw_value("Date") == "01/02/2024"
    assert source.pages == 3


def test_malformed_input_gives_empty_source():
    source = DeterministicSource.from_dict("not a dict")
    assert source.is_empty
    assert source.confidence == 0.0

    source = DeterministicSource.from_dict({"confidence": "high", "keyValuePairs": 42})
    assert source.confidence == 0.0
    assert source.key_value_pairs == []


def test_confidence_clamped():
    assert DeterministicSource.from_dict({"confidence": 7}).confidence == 1.0
    assert GenerativeSource.from_dict({"confidence": -1}).confidence == 0.0


def test_deterministic_candidate_follows_alias_order():
    source = DeterministicSource(key_value_pairs=[
        RawKeyValue("PO Number", "PO-1"),
        RawKeyValue("Invoice Number", "INV-1"),
    ])

    assert source.candidate("invoice_number", ["Invoice Number", "Number"]) == "INV-1"
    assert source.candidate("invoice_number", ["Number", "Invoice Number"]) == "PO-1"
    assert source.candidate("tax_amount", ["Tax"]) is None


def test_deterministic_candidate_skips_blank_values():
    source = DeterministicSource(key_value_pairs=[RawKeyValue("Total", " "), RawKeyValue("Grand Total", "9.00")])
    assert source.candidate("total_amount", ["Total"]) == "9.00"


def test_deterministic_confidence_is_document_confidence():
    assert DeterministicSource(confidence=0.77).field_confidence("anything") == 0.77


def test_generative_guess_unwraps_value():
    source = GenerativeSource(extracted_data={
        "invoicing_party": {"value": "ABC", "confidence": 0.9},
        "currency": "EUR",
        "empty": {"value": "  ", "confidence": 0.9},
    })

    assert source.guess("invoicing_party") == GenerativeFieldGuess("ABC", 0.9)
    assert source.guess("currency") == GenerativeFieldGuess("EUR", None)
    assert source.guess("empty") is None
    assert source.guess("missing") is None


def test_generative_lookup_variants():
    source = GenerativeSource(extracted_data={
        "invoice number": "INV-1",
        "duedate": "2024-02-01",
        "TAX_AMOUNT": "19.00",
    })

    assert source.candidate("invoice_number") == "INV-1"
    assert source.candidate("due_date") == "2024-02-01"
    assert source.candidate("tax_amount") == "19.00"
    assert source.candidate("vendor_name", canonical_name="invoicing_party") is None


def test_generative_field_confidence_fallbacks():
    source = GenerativeSource(confidence=0.6, extracted_data={
        "stated": {"value": "x", "confidence": 0.95},
        "bare": "y",
    })

    assert source.field_confidence("stated") == 0.6
    assert source.field_confidence("bare") == 0.6
    assert GenerativeSource(extracted_data={"bare": "y"}).field_confidence("bare") == 0.8


def test_generative_from_dict():
    source = GenerativeSource.from_dict({
        "confidence": 0.88,
        "extractedData": {"currency": "USD"},
        "totalCost": "0.015",
        "text": "hello",
    })

    assert source.extracted_data == {"currency": "USD"}
    assert source.total_cost == 0.015
    assert source.text == "hello"
    assert not source.is_empty
    assert GenerativeSource.from_dict({"extracted_data": ["bad"]}).is_empty


def test_non_finite_numbers_are_treated_as_missing():
    """NaN and infinity neither crash the loader nor count as full confidence"""
    for bad in ("inf", "nan", "-inf", 1e400):
        source = DeterministicSource.from_dict({"confidence": bad, "pages": bad})
        assert source.confidence == 0.0
        assert source.pages == 1

    generative = GenerativeSource.from_dict({
        "confidence": "nan",
        "total_cost": "inf",
        "extracted_data": {"currency": {"value": "USD", "confidence": "nan"}},
    })
    assert generative.confidence == 0.0
    assert generative.total_cost == 0.0
    assert generative.guess("currency") == GenerativeFieldGuess("USD", None)
