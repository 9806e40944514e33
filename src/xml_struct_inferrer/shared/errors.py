"""Exception hierarchy for schema inference and code generation.

Every error raised on purpose by this package derives from XMLStructError so
callers can separate failures of a run from programming errors.
"""

from typing import Optional


class XMLStructError(Exception):
    """Base exception for all schema inference failures."""


class SourceError(XMLStructError):
    """Raised when an input source cannot be opened or read."""

    def __init__(self, message: str, source_name: Optional[str] = None) -> None:
        super().__init__(message)
        self.source_name = source_name


class DecodingError(XMLStructError):
    """Raised when an input document is not well-formed XML."""

    def __init__(
        self,
        message: str,
        source_name: Optional[str] = None,
        line: Optional[int] = None,
        column: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.source_name = source_name
        self.line = line
        self.column = column

    def __str__(self) -> str:
        base = super().__str__()
        if self.source_name is None:
            return base
        if self.line is None:
            return f"{self.source_name}: {base}"
        return f"{self.source_name}:{self.line}:{self.column or 0}: {base}"


class RenderError(XMLStructError):
    """Raised when a template cannot be rendered."""

    def __init__(self, message: str, template_name: Optional[str] = None) -> None:
        super().__init__(message)
        self.template_name = template_name


class TreeFinalizedError(XMLStructError):
    """Raised when a finalized schema tree is mutated."""
