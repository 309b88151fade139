"""
Custom Exceptions Module.

This module defines the custom exceptions of the invoice fusion system.
Fusion itself absorbs missing or malformed source data; exceptions are
reserved for invalid configuration, invalid schema tables, unreadable
input files and a call with nothing to fuse.

Exception Hierarchy:
    InvoiceFusionError (base)
    ├── ConfigurationError
    ├── SchemaError
    │   ├── DuplicateFieldError
    │   └── UnknownTransformError
    └── SourceError
        ├── SourceFormatError
        └── NothingToFuseError
"""


class InvoiceFusionError(Exception):
    """
    Base exception for all invoice fusion errors.

    Attributes:
        message: Human-readable error message.
        details: Optional dictionary with additional error details.
    """

    def __init__(self, message: str, details: dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(InvoiceFusionError):
    """Raised when a configuration value is missing or out of range."""

    def __init__(self, key: str, reason: str = None):
        message = f"Invalid configuration value: {key}"
        details = {"key": key, "reason": reason}
        super().__init__(message, details)


# =============================================================================
# SCHEMA ERRORS
# =============================================================================

class SchemaError(InvoiceFusionError):
    """Base exception for canonical schema errors."""
    pass


class DuplicateFieldError(SchemaError):
    """
    Raised when a schema declares the same canonical field twice.

    Example:
        >>> raise DuplicateFieldError("document_date", "sap-invoice-v1")
    """

    def __init__(self, field_name: str, version: str = None):
        message = f"Canonical field declared more than once: '{field_name}'"
        details = {"field": field_name, "schema_version": version}
        super().__init__(message, details)


class UnknownTransformError(SchemaError):
    """Raised when a schema entry names a transform that doesn't exist."""

    def __init__(self, transform_name: str, available: list):
        message = f"Unknown field transform: '{transform_name}'"
        details = {"transform": transform_name, "available": available}
        super().__init__(message, details)


# =============================================================================
# SOURCE ERRORS
# =============================================================================

class SourceError(InvoiceFusionError):
    """Base exception for extraction source errors."""
    pass


class SourceFormatError(SourceError):
    """Raised when a source file cannot be read as JSON."""

    def __init__(self, filepath: str, reason: str = None):
        message = f"Unreadable extraction source: {filepath}"
        details = {"filepath": filepath, "reason": reason}
        super().__init__(message, details)


class NothingToFuseError(SourceError):
    """Raised when fusion is invoked without any source."""

    def __init__(self):
        super().__init__("Both extraction sources are missing; nothing to fuse")


__all__ = [
    'InvoiceFusionError',
    'ConfigurationError',
    'SchemaError',
    'DuplicateFieldError',
    'UnknownTransformError',
    'SourceError',
    'SourceFormatError',
    'NothingToFuseError',
]
