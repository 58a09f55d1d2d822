"""Structured exception hierarchy for genodata.

Provides specific exception types for the failure modes of the data access
layer, with rich context for debugging and troubleshooting.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

__all__ = [
    "GenoDataError",
    "DataFormatConfigurationError",
    "DataIOError",
    "UnknownProtocolError",
    "UnsupportedOperationError",
    "ConversionError",
    "ReadsParsingError",
    "DataViewError",
    "FileNamingError",
]


class GenoDataError(Exception):
    """Base exception for all genodata errors.

    Provides structured error information for debugging.
    """

    def __init__(
        self,
        message: str,
        *,
        details: Optional[Dict[str, Any]] = None,
        suggestion: Optional[str] = None,
    ) -> None:
        self.message = message
        self.details = details or {}
        self.suggestion = suggestion

        parts = [message]

        if details:
            detail_lines = [f"  {k}: {v}" for k, v in details.items()]
            parts.append("\nDetails:")
            parts.extend(detail_lines)

        if suggestion:
            parts.append(f"\nSuggestion: {suggestion}")

        super().__init__("\n".join(parts) if len(parts) > 1 else message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for structured logging."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
            "suggestion": self.suggestion,
        }


class DataFormatConfigurationError(GenoDataError):
    """Malformed or conflicting data format description.

    Raised while parsing or registering a format. The registry catches it
    per description so that one bad format does not abort the whole load.
    """

    def __init__(
        self,
        message: str,
        *,
        format_name: Optional[str] = None,
        source: Optional[str] = None,
        field: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        self.format_name = format_name
        self.source = source
        self.field = field

        details = kwargs.pop("details", {})
        if format_name:
            details["format"] = format_name
        if source:
            details["source"] = source
        if field:
            details["field"] = field

        super().__init__(message, details=details, **kwargs)


class DataIOError(GenoDataError, OSError):
    """I/O failure raised by the data access layer.

    Subclasses ``OSError`` so callers that already handle ``IOError`` keep
    working.
    """


class UnknownProtocolError(DataIOError):
    """The scheme of a location does not match any registered protocol."""

    def __init__(self, scheme: str, **kwargs: Any) -> None:
        self.scheme = scheme
        super().__init__(f"Unknown protocol: {scheme}", **kwargs)


class UnsupportedOperationError(DataIOError):
    """The protocol of a location lacks the requested capability."""

    def __init__(self, protocol: str, capability: str, **kwargs: Any) -> None:
        self.protocol = protocol
        self.capability = capability
        super().__init__(
            f"The underlying protocol does not allow {capability}",
            details={"protocol": protocol, "capability": capability},
            **kwargs,
        )


class ConversionError(DataIOError):
    """Copy/convert was asked for a format pair it cannot transcode."""

    def __init__(
        self,
        message: str,
        *,
        input_format: Optional[str] = None,
        output_format: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        self.input_format = input_format
        self.output_format = output_format

        details = kwargs.pop("details", {})
        if input_format:
            details["input_format"] = input_format
        if output_format:
            details["output_format"] = output_format

        super().__init__(message, details=details, **kwargs)


class ReadsParsingError(DataIOError):
    """Malformed read sequence record."""

    def __init__(self, message: str, *, line: Optional[int] = None, **kwargs: Any) -> None:
        self.line = line
        details = kwargs.pop("details", {})
        if line is not None:
            details["line"] = line
        super().__init__(message, details=details, **kwargs)


class DataViewError(GenoDataError):
    """Invalid access to a dataset view."""


class FileNamingError(GenoDataError):
    """Invalid or unparsable workflow filename."""
