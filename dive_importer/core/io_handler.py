"""
File reading, line cursor and delimited-field tokenizer shared by all decoders.
"""
from __future__ import annotations

import logging
import re
from enum import IntEnum
from pathlib import Path
from typing import Optional, TypeVar

from .errors import FieldCapacityError, FileReadError, MalformedInputError

logger = logging.getLogger(__name__)

CRLF = b"\r\n"
LF = b"\n"
INT_PREFIX = re.compile(r"\s*([+-]?\d+)")

FieldIndex = TypeVar("FieldIndex", bound=IntEnum)


def read_whole_file(path: Path | str) -> bytes:
    """Read a file into memory, raising FileReadError naming the path."""
    try:
        with open(path, "rb") as f:
            return f.read()
    except OSError as e:
        raise FileReadError(f"Failed to read '{path}': {e.strerror or e}", str(path)) from e


def detect_newline(data: bytes) -> Optional[bytes]:
    """Return CRLF if it appears anywhere in *data*, else LF if present, else None."""
    if CRLF in data:
        return CRLF
    if LF in data:
        return LF
    return None


def decode_field(raw: bytes) -> str:
    return raw.decode("utf-8", errors="replace")


def atoi(text: str) -> int:
    """Leading integer of *text*, 0 when there is none or it cannot be converted."""
    match = INT_PREFIX.match(text)
    if not match:
        return 0
    try:
        return int(match.group(1))
    except ValueError:
        logger.debug("Integer with %d digits not converted", len(match.group(1)))
        return 0


class LineCursor:
    """
    Read position into a byte buffer with a fixed newline marker.

    The marker is chosen once per decode pass and never changes.
    """

    def __init__(self, data: bytes, newline: bytes, pos: int = 0):
        self.data = data
        self.newline = newline
        self.pos = pos

    @classmethod
    def for_buffer(cls, data: bytes, filename: Optional[str] = None) -> LineCursor:
        """Create a cursor at the start of *data*, detecting its newline marker."""
        newline = detect_newline(data)
        if newline is None:
            raise MalformedInputError("No newline found in input", filename)
        return cls(data, newline)

    @property
    def at_end(self) -> bool:
        return self.pos >= len(self.data)

    def startswith(self, marker: bytes) -> bool:
        return self.data.startswith(marker, self.pos)

    def skip(self, count: int) -> None:
        self.pos = min(self.pos + count, len(self.data))

    def find(self, needle: bytes) -> int:
        """Absolute index of *needle* at or after the cursor, -1 when absent."""
        return self.data.find(needle, self.pos)

    def next_line(self) -> bool:
        """
        Move past the next newline marker.

        Returns:
            False (cursor unchanged) when no further newline exists
        """
        end = self.data.find(self.newline, self.pos)
        if end < 0:
            logger.debug("No new line found after offset %d", self.pos)
            return False
        self.pos = end + len(self.newline)
        return True

    def seek(self, pos: int) -> None:
        self.pos = pos


def split_line(cursor: LineCursor, delim: bytes, filename: Optional[str] = None) -> list[str]:
    """
    Split the line at the cursor into fields.

    The line must begin with *delim*; that leading empty field is skipped.
    A last field without a trailing delimiter is still emitted. The cursor
    ends up just past the line's newline, or at end of buffer.

    Args:
        cursor: Cursor positioned at the start of the line
        delim: Single-byte field delimiter
        filename: Used in error messages

    Returns:
        List of decoded field strings
    """
    data = cursor.data
    start = cursor.pos
    end = data.find(cursor.newline, start)
    with_newline = end >= 0
    if not with_newline:
        end = len(data)

    if not data.startswith(delim, start):
        raise MalformedInputError("No leading delimiter found", filename)

    fields: list[str] = []
    field_start = start + 1
    while field_start < end:
        field_end = data.find(delim, field_start, end)
        if field_end < 0:
            fields.append(decode_field(data[field_start:end]))
            break
        fields.append(decode_field(data[field_start:field_end]))
        field_start = field_end + 1

    cursor.pos = end + len(cursor.newline) if with_newline else end
    return fields


def project_fields(
    fields: list[str],
    layout: type[FieldIndex],
    filename: Optional[str] = None
) -> dict[FieldIndex, Optional[str]]:
    """
    Map raw fields onto the named slots of *layout*.

    Slots past the last raw field are None. More raw fields than slots is
    an error rather than a silent truncation.
    """
    slots = list(layout)
    if len(fields) > len(slots):
        raise FieldCapacityError(
            f"{layout.__name__} expects at most {len(slots)} fields, got {len(fields)}",
            filename
        )
    result: dict[FieldIndex, Optional[str]] = dict.fromkeys(slots)
    for slot, value in zip(slots, fields):
        result[slot] = value
    return result
