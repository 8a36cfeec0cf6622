"""
Utility helpers used by the import tool.

This subpackage exposes the error taxonomy, the observer interface with its
reporting implementation, and the pre-flight checks run before an import.
"""

from .errors import (
    ConfigurationError,
    ContentImportError,
    ContentManagementError,
    ImportAbortedError,
    NotFoundError,
    describe_error,
)
from .reporting import EVENTS, ImportObserver, ReportingObserver

__all__ = [
    "ConfigurationError",
    "ContentImportError",
    "ContentManagementError",
    "EVENTS",
    "ImportAbortedError",
    "ImportObserver",
    "NotFoundError",
    "ReportingObserver",
    "describe_error",
]
