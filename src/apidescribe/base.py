"""Shared exceptions for apidescribe.

The synthesizer is total and never raises. Errors only come from the
introspection adapters, which wrap parser and driver failures so callers
can handle a single exception family.
"""

from __future__ import annotations


class DescribeError(Exception):
    """Base exception for apidescribe operations."""


class IntrospectionError(DescribeError):
    """Raised when declaration data cannot be read from its source.

    Args:
        message: Human-readable diagnostic
        source: Path or name of the source being introspected, if known
        line: 1-based line number of the failure, if known
    """

    def __init__(
        self, message: str, source: str | None = None, line: int | None = None
    ):
        super().__init__(message)
        self.source = source
        self.line = line

    def __str__(self) -> str:
        message = super().__str__()
        if self.source is None:
            return message
        if self.line:
            return f"{self.source}:{self.line}: {message}"
        return f"{self.source}: {message}"
