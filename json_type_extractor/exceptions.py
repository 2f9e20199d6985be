"""Extraction errors"""
from __future__ import annotations

from typing import Tuple

from .paths import Segment, format_path


class ExtractionError(Exception):
    """Base error for a value that could not be extracted.

    ``path`` is the trail of object keys and array indices leading to the
    node that failed, outermost first.
    """

    def __init__(self, reason: str, path: Tuple[Segment, ...] = ()):
        self.reason = reason
        self.path = tuple(path)
        super().__init__(self._render())

    def _render(self) -> str:
        if not self.path:
            return self.reason
        return f"{self.reason} (at {format_path(self.path)})"

    def with_prefix(self, *segments: Segment) -> ExtractionError:
        """Prepend segments to the path, keeping the error type."""
        self.path = tuple(segments) + self.path
        self.args = (self._render(),)
        return self


class TypeMismatchError(ExtractionError):
    """Raised when a node's shape cannot represent the requested type"""


class MissingRequiredFieldError(ExtractionError):
    """Raised when a record's required field is absent"""


class NoApplicableConverterError(ExtractionError):
    """Raised when no structural rule or custom converter fits the requested type"""


class ConversionFailedError(ExtractionError):
    """Raised when a leaf conversion (date, number, enum, constructor) fails"""


class DepthExceededError(ExtractionError):
    """Raised when nesting goes beyond the configured recursion ceiling"""
