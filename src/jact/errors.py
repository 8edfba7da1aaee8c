"""Exceptions raised by jact."""

from __future__ import annotations


class JactError(Exception):
    """Base class for errors that abort report generation."""


class StructuralError(JactError):
    """The dependency graph is malformed (cycle, unknown node, missing report path)."""


class ReportIOError(JactError):
    """A report file or resource could not be read or written."""

    def __init__(self, message: str, path: object | None = None) -> None:
        """Initialize with an error message and the offending path.

        Args:
            message: Error description.
            path: The file or directory the failed operation targeted.
        """
        super().__init__(message)
        self.path = path


class DependencyTreeError(JactError):
    """The Maven dependency tree could not be produced or read."""
