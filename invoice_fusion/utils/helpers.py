"""
Helper Utilities Module.

This module provides common utility functions used throughout the
invoice fusion system. Functions here should be generic and reusable
across different modules.

Functions:
    - ensure_directory: Create directory if it doesn't exist
    - is_blank: Check whether an extracted value carries information
    - safe_float: Coerce loosely typed numbers without raising
    - clamp: Bound a value to a closed interval
    - load_json / write_json: Read and write JSON documents
"""

import json
import math
from pathlib import Path
from typing import Any, Optional, Union

from .exceptions import SourceFormatError


def ensure_directory(path: Union[str, Path]) -> Path:
    """
    Ensure a directory exists, creating it if necessary.

    Args:
        path: Directory path to ensure exists.

    Returns:
        Path object pointing to the directory.

    Example:
        >>> ensure_directory("outputs/fused")
        PosixPath('outputs/fused')
    """
    dir_path = Path(path)
    dir_path.mkdir(parents=True, exist_ok=True)
    return dir_path


def is_blank(value: Any) -> bool:
    """
    Check if an extracted value is missing.

    None and whitespace-only strings are blank; numeric zero is a value.

    Example:
        >>> is_blank("  ")
        True
        >>> is_blank(0)
        False
    """
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    return False


def safe_float(value: Any, default: Optional[float] = 0.0) -> Optional[float]:
    """
    Convert a loosely typed number to float.

    Args:
        value: Number, numeric string or anything else.
        default: Returned when the value cannot be converted.

    Returns:
        Finite float value or default (NaN and infinity count as invalid).
    """
    if isinstance(value, bool):
        return default
    try:
        result = float(value)
    except (TypeError, ValueError, OverflowError):
        return default
    if not math.isfinite(result):
        return default
    return result


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    """Bound value to [low, high]."""
    return max(low, min(high, value))


def load_json(filepath: Union[str, Path]) -> Any:
    """
    Load a JSON document from disk.

    Args:
        filepath: Path to the JSON file.

    Returns:
        Parsed JSON content.

    Raises:
        SourceFormatError: If the file is missing or not valid JSON.
    """
    path = Path(filepath)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise SourceFormatError(str(path), str(e)) from e


def write_json(data: Any, filepath: Union[str, Path], indent: int = 2) -> Path:
    """
    Write data as JSON, creating parent directories as needed.

    Args:
        data: JSON-serializable data.
        filepath: Destination path.
        indent: JSON indentation level.

    Returns:
        Path of the written file.
    """
    path = Path(filepath)
    ensure_directory(path.parent)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=indent, ensure_ascii=False, default=str)
    return path
