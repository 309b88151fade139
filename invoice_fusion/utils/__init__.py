"""
Utility Module for the Invoice Fusion System.

This module provides common utilities used across all other modules:
    - Logging configuration
    - Exception hierarchy
    - Common helpers
"""

from .logger import setup_logger, setup_logger_from_config, get_logger
from .helpers import ensure_directory, is_blank, safe_float, clamp, load_json, write_json

__all__ = [
    'setup_logger',
    'setup_logger_from_config',
    'get_logger',
    'ensure_directory',
    'is_blank',
    'safe_float',
    'clamp',
    'load_json',
    'write_json'
]
