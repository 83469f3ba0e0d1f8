"""
Custom exceptions for xlmapper.

Provides a hierarchy of exceptions with error codes for consistent error handling.
"""
from typing import Any, Dict, Optional


class XlMapperError(Exception):
    """
    Base exception for all xlmapper errors.

    Attributes:
        error_code: Unique error code (e.g., XLM-001)
        message: Human-readable error message
        details: Additional error context
    """
    error_code: str = "XLM-000"

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None,
    ):
        self.message = message
        self.details = details or {}
        if error_code:
            self.error_code = error_code
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to a plain dictionary."""
        return {
            "error": True,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
        }


# Structure Errors (XLM-1XX)
class StructureError(XlMapperError):
    """Declared metadata is inconsistent."""
    error_code = "XLM-100"

    def __init__(
        self,
        message: str = "Invalid excel structure declaration",
        owner: Optional[str] = None,
        field_name: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if owner:
            details["owner"] = owner
        if field_name:
            details["field"] = field_name
        super().__init__(message, details=details, **kwargs)


# Generation Errors (XLM-2XX)
class GenerationError(XlMapperError):
    """Workbook generation failed."""
    error_code = "XLM-200"

    def __init__(self, message: str = "Failed to generate workbook", **kwargs):
        super().__init__(message, **kwargs)


class ValueAccessError(GenerationError):
    """A declared field could not be read from its owning object."""
    error_code = "XLM-201"

    def __init__(
        self,
        field_name: str,
        owner: Optional[str] = None,
        message: Optional[str] = None,
        **kwargs,
    ):
        msg = message or f"can not find field from data item, {field_name}"
        details = {"field": field_name}
        if owner:
            details["owner"] = owner
        super().__init__(msg, details=details, **kwargs)


class NoWorkbookError(GenerationError):
    """No workbook has been generated yet."""
    error_code = "XLM-202"

    def __init__(self, **kwargs):
        message = "No workbook to save. Call generate() first."
        super().__init__(message, **kwargs)
