"""
Tests for the command-line entry point.
"""

import json
import logging

import pytest

from invoice_fusion.utils.logger import LOGGER_NAMESPACE
from main import main, run_fusion


@pytest.fixture(autouse=True)
def restore_logging():
    """The CLI installs console handlers; drop them after each test"""
    yield
    package_logger = logging.getLogger(LOGGER_NAMESPACE)
    package_logger.handlers.clear()
    package_logger.propagate = True
    package_logger.setLevel(logging.NOTSET)


@pytest.fixture
def input_files(tmp_path):
    ocr_path = tmp_path / "ocr.json"
    ocr_path.write_text(json.dumps({
        "confidence": 0.9,
        "keyValuePairs": {"Invoice Number": "INV-100", "Total": "$1,234.56", "Kst": "4711"},
        "pages": 1,
    }), encoding="utf-8")

    generative_path = tmp_path / "generative.json"
    generative_path.write_text(json.dumps({
        "confidence": 0.8,
        "extracted_data": {
            "invoice_number": {"value": "INV-100", "confidence": 0.9},
            "total_amount": {"value": "1234.56", "confidence": 0.9},
        },
        "total_cost": 0.01,
    }), encoding="utf-8")

    return {"ocr": str(ocr_path), "generative": str(generative_path), "dir": tmp_path}


def test_fuses_files_to_output(input_files):
    output_path = input_files["dir"] / "out" / "fused.json"

    exit_code = main([
        "--ocr", input_files["ocr"],
        "--generative", input_files["generative"],
        "--output", str(output_path),
    ])

    assert exit_code == 0
    result = json.loads(output_path.read_text(encoding="utf-8"))
    assert result["fields"]["supplier_invoice_id"]["value"] == "INV-100"
    assert result["agreementScore"] == 1.0
    assert result["costs"]["total"] == pytest.approx(0.075)


def test_user_mappings_file(input_files):
    mappings_path = input_files["dir"] / "mappings.json"
    mappings_path.write_text(json.dumps([{"source_key": "Kst", "target_field": "cost_center"}]), encoding="utf-8")

    result = run_fusion(input_files["ocr"], input_files["generative"], user_mappings_path=str(mappings_path))

    assert result["fields"]["cost_center"] == {"value": "4711", "confidence": 1.0, "origin": "user-mapping"}


def test_textract_input(tmp_path):
    textract_path = tmp_path / "textract.json"
    textract_path.write_text(json.dumps({"Blocks": [
        {"Id": "p", "BlockType": "PAGE"},
        {"Id": "l", "BlockType": "LINE", "Text": "Vendor: ACME", "Confidence": 90.0},
        {"Id": "k", "BlockType": "KEY_VALUE_SET", "EntityTypes": ["KEY"], "Text": "Vendor",
         "Relationships": [{"Type": "VALUE", "Ids": ["v"]}]},
        {"Id": "v", "BlockType": "KEY_VALUE_SET", "EntityTypes": ["VALUE"], "Text": "ACME"},
    ]}), encoding="utf-8")

    result = run_fusion(str(textract_path), None, textract=True)

    assert result["fields"]["invoicing_party"]["value"] == "ACME"
    assert result["text"] == "Vendor: ACME"
    assert result["diagnostics"]["sourcesPresent"] == ["deterministic"]


def test_nothing_to_fuse():
    assert main([]) == 2


def test_missing_input_file(tmp_path):
    assert main(["--ocr", str(tmp_path / "absent.json")]) == 1
