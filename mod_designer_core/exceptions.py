"""
Designer-specific exceptions for the Mod Designer Core.
"""

from typing import Optional, Any, Dict


class DesignerError(Exception):
    """Base exception for all designer-related errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.details = details or {}


class GraphImportError(DesignerError):
    """Raised when an imported graph payload is malformed."""
    pass


class CatalogError(DesignerError):
    """Raised when a node or variable catalog cannot be loaded."""

    def __init__(self, message: str, source: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.source = source
