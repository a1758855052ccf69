"""
DAN DL7 interchange files.

A DL7 file is a list of dives, each made of pipe delimited segments:

    ZDH|...     dive header (start time, air temperature, ...)
    ZDP{        optional profile, the lines in between are CSV samples
    ...
    ZDP}
    ZDT|...     dive trailer (max depth, minimum water temperature, ...)

Each dive is handed to the transform engine with its own parameters.
"""
from __future__ import annotations

import logging
from enum import IntEnum

from .errors import MalformedInputError
from .io_handler import LineCursor, project_fields, read_whole_file, split_line
from .markup import wrap_in_markup
from .models import DiveLog
from .params import ParameterSet
from .transform import TransformEngine, log_transform_command

logger = logging.getLogger(__name__)

FIELD_DELIMITER = b"|"
HEADER_MARKER = b"ZDH"
PROFILE_MARKER = b"ZDP"
PROFILE_START = b"ZDP{"
PROFILE_END = b"ZDP}"
TRAILER_MARKER = b"ZDT"
PROFILE_TAG = "csv"


class ZdhField(IntEnum):
    """Fields of the ZDH dive header, in file order."""
    EXPORT_SEQUENCE = 0
    INTERNAL_DIVE_SEQUENCE = 1
    RECORD_TYPE = 2
    RECORDING_INTERVAL = 3
    LEAVE_SURFACE = 4
    AIR_TEMPERATURE = 5
    TANK_VOLUME = 6
    O2_MODE = 7
    REBREATHER_DILUENT_GAS = 8
    ALTITUDE = 9


class ZdtField(IntEnum):
    """Fields of the ZDT dive trailer, in file order."""
    EXPORT_SEQUENCE = 0
    INTERNAL_DIVE_SEQUENCE = 1
    MAX_DEPTH = 2
    REACH_SURFACE = 3
    MIN_WATER_TEMP = 4
    PRESSURE_DROP = 5


def parse_dan_zdh(cursor: LineCursor, params: ParameterSet, filename: str) -> None:
    """Parse a ZDH header line and add its parameters."""
    cursor.skip(len(HEADER_MARKER))
    fields = project_fields(split_line(cursor, FIELD_DELIMITER, filename), ZdhField, filename)

    # Leave-surface should be YYYYMMDDHHMMSS, but a bare date is accepted too
    leave_surface = fields[ZdhField.LEAVE_SURFACE] or ""
    if len(leave_surface) >= 8:
        params.add("date", leave_surface[:8])
    if len(leave_surface) >= 14:
        params.add("time", "1" + leave_surface[8:14])

    params.add("airTemp", fields[ZdhField.AIR_TEMPERATURE] or "")
    params.add("diveNro", fields[ZdhField.INTERNAL_DIVE_SEQUENCE] or "")


def parse_dan_zdt(cursor: LineCursor, params: ParameterSet, filename: str) -> None:
    """Parse a ZDT trailer line and add its parameters."""
    cursor.skip(len(TRAILER_MARKER))
    fields = project_fields(split_line(cursor, FIELD_DELIMITER, filename), ZdtField, filename)
    params.add("waterTemp", fields[ZdtField.MIN_WATER_TEMP] or "")


def parse_dan_zdp(cursor: LineCursor, filename: str) -> bytes:
    """
    Extract the CSV lines between ``ZDP{`` and ``ZDP}``.

    The cursor is left on the line after ``ZDP}``.
    """
    if not cursor.startswith(PROFILE_START):
        raise MalformedInputError("Failed to find start of ZDP", filename)
    if cursor.data[cursor.pos + len(PROFILE_START):cursor.pos + len(PROFILE_START) + 1] == b"}":
        raise MalformedInputError(f"No dive profile found from '{filename}'", filename)
    if not cursor.next_line():
        raise MalformedInputError("Failed to find end of ZDP", filename)

    end = cursor.find(PROFILE_END)
    if end < 0:
        raise MalformedInputError("Failed to find end of ZDP", filename)
    payload = cursor.data[cursor.pos:end]

    cursor.seek(end)
    if not cursor.next_line():
        cursor.seek(len(cursor.data))
    return payload


def parse_dan_format(
    filename: str,
    params: ParameterSet,
    log: DiveLog,
    engine: TransformEngine
) -> int:
    """
    Decode every dive in a DL7 file.

    The parameter set is restored to its size on entry before each dive, so
    one dive's header and trailer values never reach the next.

    Returns:
        The engine statuses OR-ed together, 0 on success
    """
    params_orig_size = len(params)

    data = read_whole_file(filename)
    cursor = LineCursor.for_buffer(data, filename)
    # The first line is the file header; scanning starts at its newline
    cursor.seek(data.find(cursor.newline))
    status = 0
    dives = 0

    while not cursor.at_end:
        params.resize(params_orig_size)

        while not cursor.startswith(HEADER_MARKER):
            if not cursor.next_line():
                if dives:
                    return status
                raise MalformedInputError("Expected ZDH header not found", filename)

        parse_dan_zdh(cursor, params, filename)

        payload = b""
        if cursor.startswith(PROFILE_MARKER):
            payload = parse_dan_zdp(cursor, filename)
        else:
            logger.debug("Dive %s in '%s' has no profile", params.get("diveNro"), filename)

        if not cursor.startswith(TRAILER_MARKER):
            raise MalformedInputError("Expected ZDT trailer not found", filename)
        parse_dan_zdt(cursor, params, filename)

        document = bytearray(payload)
        wrap_in_markup(document, PROFILE_TAG)
        log_transform_command(params, PROFILE_TAG)
        status |= engine.transform(filename, bytes(document), log, params)
        dives += 1

    return status
