"""
Shared pytest fixtures for the invoice fusion tests.

Fixtures build sources and engines from explicit settings so tests
don't depend on the configuration file.
"""

import pytest

from config import ConfigurationManager
from invoice_fusion.fusion import FusionEngine, FusionSettings
from invoice_fusion.schema import default_schema
from invoice_fusion.sources import DeterministicSource, GenerativeSource, LineItem, RawKeyValue


@pytest.fixture(autouse=True)
def fresh_config():
    """Drop the configuration singleton around every test"""
    ConfigurationManager.reset()
    yield
    ConfigurationManager.reset()


@pytest.fixture
def schema():
    return default_schema()


@pytest.fixture
def settings():
    return FusionSettings()


@pytest.fixture
def engine(schema, settings):
    return FusionEngine(schema=schema, settings=settings)


@pytest.fixture
def example_pairs():
    """Raw OCR pairs of a simple invoice header"""
    return [
        RawKeyValue("Invoice Number", "INV-100"),
        RawKeyValue("Total", "$1,234.56"),
        RawKeyValue("Invoice Date", "01/15/2024"),
    ]


@pytest.fixture
def ocr_source(example_pairs):
    return DeterministicSource(
        confidence=0.9,
        key_value_pairs=list(example_pairs) + [RawKeyValue("Vendor", "ABC Co")],
        line_items=[LineItem("Consulting", quantity="2", unit_price="250.00", amount="$500.00", confidence=0.88)],
        text="INVOICE\nABC Co\nInvoice Number: INV-100",
        pages=1,
    )


@pytest.fixture
def generative_source():
    return GenerativeSource(
        confidence=0.8,
        extracted_data={
            "invoice_number": {"value": "INV-100", "confidence": 0.9},
            "invoice_date": {"value": "2024-01-15", "confidence": 0.85},
            "total_amount": {"value": "1234.56", "confidence": 0.9},
            "invoicing_party": {"value": "ABC Company", "confidence": 0.8},
            "document_currency": {"value": "USD", "confidence": 0.7},
            "line_items": [{"description": "IT Consulting services", "category": "Services"}],
            "gl_suggestions": {"Consulting": "6100"},
            "business_rules": {"approval_required": True},
        },
        text="generative text",
        total_cost=0.02,
    )
