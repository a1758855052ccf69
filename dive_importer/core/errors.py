"""
Exceptions raised while decoding dive computer exports.
"""
from __future__ import annotations

from typing import Optional, Sequence


class DiveImportError(Exception):
    """Base class for all import failures. Carries the offending filename."""

    def __init__(self, message: str, filename: Optional[str] = None):
        super().__init__(message)
        self.filename = filename

    def __str__(self) -> str:
        message = super().__str__()
        if self.filename:
            return f"{message} ({self.filename})"
        return message


class MalformedInputError(DiveImportError):
    """A required marker, segment, separator or delimiter is missing."""


class UnrecognizedFormatError(MalformedInputError):
    """The buffer does not have the structure of the requested format."""


class ValueParseError(DiveImportError):
    """A required numeric or date field could not be converted."""


class FieldCapacityError(DiveImportError):
    """A line carries more fields than the record layout has slots for."""


class FileReadError(DiveImportError):
    """The input file could not be read."""


class UnknownFormatError(DiveImportError):
    """A format name did not match any supported decoder."""

    def __init__(self, name: str, suggestions: Sequence[str] = ()):
        message = f"Unknown dive format '{name}'"
        if suggestions:
            message += f"; did you mean {', '.join(repr(s) for s in suggestions)}?"
        super().__init__(message)
        self.name = name
        self.suggestions = list(suggestions)
