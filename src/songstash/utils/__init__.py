"""Utility modules for songstash.

This package provides utility functions, models, and exception classes
used throughout the songstash application.
"""

from .exceptions import (
    AcquisitionError,
    CatalogImportError,
    ConfigurationError,
    FetchFailed,
    InvalidHashTypeError,
    InvalidPluginError,
    NoMatchFound,
    ResolveFailed,
    SearchFailed,
    SongStashError,
    StoreFailed,
    UnknownFileType,
    ValidationError,
    raise_with_context,
)

__all__ = [
    # Exceptions
    "SongStashError",
    "AcquisitionError",
    "SearchFailed",
    "NoMatchFound",
    "ResolveFailed",
    "FetchFailed",
    "UnknownFileType",
    "StoreFailed",
    "ConfigurationError",
    "InvalidPluginError",
    "ValidationError",
    "InvalidHashTypeError",
    "CatalogImportError",
    "raise_with_context",
]
