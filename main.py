#!/usr/bin/env python3
"""
Hybrid Invoice Fusion System - Main Entry Point.

This is the main entry point for the invoice fusion system. It fuses a
deterministic (OCR) extraction and a generative extraction of the same
invoice, both stored as JSON files, into one HybridResult.

Usage:
    Command Line:
        python main.py --ocr ocr.json --generative generative.json
        python main.py --ocr textract.json --textract --generative gen.json --output fused.json

    Python:
        from main import run_fusion
        result = run_fusion("ocr.json", "generative.json")

Author: ML Engineering Team
Version: 1.0.0
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

# Add project root to path for imports
PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))

# Import project modules
from config import ConfigurationManager
from invoice_fusion.fusion import FusionEngine, UserFieldMapping, load_user_mappings
from invoice_fusion.schema import load_schema
from invoice_fusion.sources import DeterministicSource, GenerativeSource, parse_textract_response
from invoice_fusion.utils.exceptions import InvoiceFusionError
from invoice_fusion.utils.helpers import load_json, write_json
from invoice_fusion.utils.logger import LOGGER_NAMESPACE, get_logger, setup_logger_from_config


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Args:
        argv: Argument list; defaults to sys.argv.

    Returns:
        Parsed argument namespace.
    """
    parser = argparse.ArgumentParser(
        description="Hybrid Invoice Fusion System",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    Fuse two extraction results:
        python main.py --ocr ocr.json --generative generative.json

    Fuse a raw Textract response:
        python main.py --ocr textract.json --textract --generative generative.json

    With user mappings and a custom schema:
        python main.py --ocr ocr.json --generative gen.json \\
            --user-mappings mappings.json --schema schema.yaml --output fused.json
        """
    )

    # Input/Output arguments
    parser.add_argument(
        "--ocr", "-a",
        type=str,
        default=None,
        help="Deterministic (OCR) extraction JSON file"
    )

    parser.add_argument(
        "--generative", "-b",
        type=str,
        default=None,
        help="Generative extraction JSON file"
    )

    parser.add_argument(
        "--output", "-o",
        type=str,
        default=None,
        help="Output JSON file (default: print to stdout)"
    )

    # Processing options
    parser.add_argument(
        "--textract",
        action="store_true",
        help="Treat the OCR file as a raw Textract AnalyzeDocument response"
    )

    parser.add_argument(
        "--user-mappings", "-m",
        type=str,
        default=None,
        help="JSON file with a list of {source_key, target_field, confidence} mappings"
    )

    parser.add_argument(
        "--schema", "-s",
        type=str,
        default=None,
        help="YAML file replacing the built-in canonical schema"
    )

    parser.add_argument(
        "--config", "-c",
        type=str,
        default=None,
        help="Path to custom configuration file"
    )

    # Logging options
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging"
    )

    return parser.parse_args(argv)


def initialize_system(args: argparse.Namespace) -> ConfigurationManager:
    """
    Initialize the fusion system with configuration and logging.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Initialized configuration manager.
    """
    config = ConfigurationManager(args.config)

    logger = setup_logger_from_config()

    if args.debug:
        logging.getLogger(LOGGER_NAMESPACE).setLevel(logging.DEBUG)
        for handler in logging.getLogger(LOGGER_NAMESPACE).handlers:
            handler.setLevel(logging.DEBUG)

    logger.info("=" * 60)
    logger.info("HYBRID INVOICE FUSION SYSTEM")
    logger.info("=" * 60)
    logger.info(f"Version: {config.get('project.version', '1.0.0')}")
    logger.info(f"OCR source: {args.ocr or '-'}")
    logger.info(f"Generative source: {args.generative or '-'}")

    return config


def load_sources(
    ocr_path: Optional[str],
    generative_path: Optional[str],
    textract: bool = False
) -> Dict[str, Any]:
    """
    Load the two extraction sources from JSON files.

    Args:
        ocr_path: Deterministic extraction file, or None.
        generative_path: Generative extraction file, or None.
        textract: Whether the OCR file is a raw Textract response.

    Returns:
        Dictionary with 'source_a' and 'source_b' (None when not given).

    Raises:
        SourceFormatError: If a given file is missing or not valid JSON.
    """
    source_a = None
    if ocr_path:
        data = load_json(ocr_path)
        source_a = parse_textract_response(data) if textract else DeterministicSource.from_dict(data)

    source_b = None
    if generative_path:
        source_b = GenerativeSource.from_dict(load_json(generative_path))

    return {'source_a': source_a, 'source_b': source_b}


def run_fusion(
    ocr_path: Optional[str],
    generative_path: Optional[str],
    textract: bool = False,
    user_mappings_path: Optional[str] = None,
    schema_path: Optional[str] = None,
    output_path: Optional[str] = None
) -> Dict[str, Any]:
    """
    Run a fusion from files.

    This is the main programmatic entry point for the fusion system.

    Args:
        ocr_path: Deterministic extraction JSON file.
        generative_path: Generative extraction JSON file.
        textract: Whether the OCR file is a raw Textract response.
        user_mappings_path: Optional JSON list of user field mappings.
        schema_path: Optional YAML schema replacing the configured one.
        output_path: Optional file the result is written to.

    Returns:
        HybridResult as a dictionary.

    Raises:
        InvoiceFusionError: If inputs cannot be loaded or both are missing.

    Example:
        >>> result = run_fusion("ocr.json", "generative.json")
        >>> result["fields"]["supplier_invoice_id"]["value"]
        'INV-100'
    """
    logger = get_logger(__name__)

    sources = load_sources(ocr_path, generative_path, textract)

    user_mappings: List[UserFieldMapping] = []
    if user_mappings_path:
        user_mappings = load_user_mappings(load_json(user_mappings_path))
        logger.info(f"Loaded {len(user_mappings)} user mappings")

    engine = FusionEngine(schema=load_schema(schema_path))
    result = engine.combine(sources['source_a'], sources['source_b'], user_mappings)

    output = result.to_dict()
    if output_path:
        written = write_json(output, output_path)
        logger.info(f"Result written to: {written}")

    return output


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main function - entry point for command-line execution.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    args = parse_arguments(argv)

    try:
        initialize_system(args)
        logger = get_logger(__name__)

        if not args.ocr and not args.generative:
            logger.error("Nothing to fuse: pass --ocr and/or --generative")
            return 2

        result = run_fusion(
            ocr_path=args.ocr,
            generative_path=args.generative,
            textract=args.textract,
            user_mappings_path=args.user_mappings,
            schema_path=args.schema,
            output_path=args.output
        )

        if not args.output:
            print(json.dumps(result, indent=2, ensure_ascii=False, default=str))

        logger.info("=" * 60)
        logger.info(
            f"Fusion complete. Confidence: {result['confidence']:.2f}, "
            f"agreement: {result['agreementScore']:.2f}"
        )
        logger.info("=" * 60)

        return 0

    except InvoiceFusionError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    except KeyboardInterrupt:
        print("\nOperation cancelled by user")
        return 130


if __name__ == "__main__":
    sys.exit(main())
