"""
Seabear CSV logs.

A Seabear log starts with a block of ``//`` comment lines describing the
device and the dive, followed by a blank line and a semicolon separated
sample table. Only the table is handed to the transform engine; the dive's
date and time are lifted from the line after ``Serial number:``.
"""
from __future__ import annotations

import logging
import re
from typing import Optional

from .csv_import import add_current_datetime
from .errors import UnrecognizedFormatError
from .io_handler import CRLF, LF, atoi, decode_field, read_whole_file
from .markup import wrap_in_markup
from .models import DiveLog
from .params import ParameterSet
from .transform import TransformEngine, log_transform_command

logger = logging.getLogger(__name__)

SERIAL_MARKER = b"Serial number:"
HARDWARE_MARKER = "//Hardware Version:"
LOG_INTERVAL_MARKER = "//Log interval:"
SEMICOLON_SEPARATOR_INDEX = "2"
UNUSED_COLUMN = "-1"

# Sample table column title -> transform parameter naming its index
SEABEAR_COLUMNS = {
    "sample time": "timeField",
    "sample depth": "depthField",
    "sample temperature": "tempField",
    "sample po2": "po2Field",
    "sample ndt": "ndlField",
    "sample tts": "ttsField",
    "sample stopdepth": "stopdepthField",
    "sample pressure": "pressureField",
    "sample setpoint": "setpointField",
    "sample sensor1 po2": "o2sensor1Field",
    "sample sensor2 po2": "o2sensor2Field",
    "sample sensor3 po2": "o2sensor3Field",
    "sample cns": "cnsField",
}

UNIT_SUFFIX = re.compile(r"\s*[\[(].*$")


def find_body_start(buffer: bytes) -> tuple[int, bytes]:
    """
    Locate the sample table after the last blank line.

    CRLF blank lines are looked for first; LF ones only when there are none.

    Returns:
        Offset of the table and the newline marker in use

    Raises:
        UnrecognizedFormatError: No blank line of either style exists
    """
    separator = buffer.rfind(CRLF + CRLF)
    if separator >= 0:
        return separator + 2 * len(CRLF), CRLF
    separator = buffer.rfind(LF + LF)
    if separator >= 0:
        return separator + 2 * len(LF), LF
    raise UnrecognizedFormatError("Not a Seabear CSV file: no blank line before the samples")


def _column_title(title: str) -> str:
    return UNIT_SUFFIX.sub("", title.strip()).lower()


def parse_seabear_header(buffer: bytes, params: ParameterSet) -> None:
    """
    Add device and column layout parameters read from the comment header.

    Adds ``hw`` and ``delta`` when the header names them, one ``...Field``
    parameter per known sample column (``-1`` when the table lacks it) and
    the semicolon ``separatorIndex``.
    """
    try:
        body_start, newline = find_body_start(buffer)
    except UnrecognizedFormatError:
        return

    for line in decode_field(buffer[:body_start]).splitlines():
        if line.startswith(HARDWARE_MARKER):
            params.add("hw", line[len(HARDWARE_MARKER):].strip())
        elif line.startswith(LOG_INTERVAL_MARKER):
            params.add_int("delta", atoi(line[len(LOG_INTERVAL_MARKER):]))

    end = buffer.find(newline, body_start)
    titles = decode_field(buffer[body_start:end if end >= 0 else len(buffer)]).split(";")
    indexes = {}
    for i, title in enumerate(titles):
        name = SEABEAR_COLUMNS.get(_column_title(title))
        if name is not None and name not in indexes:
            indexes[name] = i

    for name in SEABEAR_COLUMNS.values():
        params.add(name, str(indexes.get(name, UNUSED_COLUMN)))
    params.add("separatorIndex", SEMICOLON_SEPARATOR_INDEX)


def _header_date_line(buffer: bytes, newline: bytes) -> Optional[bytes]:
    """The line after ``Serial number:``, minus its two leading comment characters."""
    marker = buffer.find(SERIAL_MARKER)
    if marker < 0:
        return None
    line_end = buffer.find(newline, marker)
    if line_end < 0:
        return None
    return buffer[line_end + len(newline) + 2:]


def _override_date_time(buffer: bytes, newline: bytes, params: ParameterSet) -> None:
    line = _header_date_line(buffer, newline)
    if line is None:
        return
    # YYYY-MM-DD hh:mm
    if len(line) < 16:
        logger.info("Seabear date line too short, keeping the current date and time")
        return
    stamp = decode_field(line[:16])
    count = len(params)
    params.set_value(count - 2, stamp[0:4] + stamp[5:7] + stamp[8:10])
    params.set_value(count - 1, params.value(count - 1)[:1] + stamp[11:13] + stamp[14:16])


def parse_seabear_csv_file(
    filename: str,
    buffer: bytes,
    params: ParameterSet,
    csvtemplate: str,
    log: DiveLog,
    engine: TransformEngine
) -> int:
    """
    Hand the sample table of a Seabear log to the transform engine.

    The current date and time are appended as the last two parameters, then
    replaced by the dive's own when the header carries them.

    Returns:
        The engine status, 0 on success or when there is no sample table

    Raises:
        UnrecognizedFormatError: The buffer has no blank line separator
    """
    add_current_datetime(params)

    try:
        body_start, newline = find_body_start(buffer)
    except UnrecognizedFormatError as e:
        e.filename = filename
        raise

    _override_date_time(buffer, newline, params)

    buf = bytearray(buffer)
    del buf[:body_start]
    if not buf:
        logger.info("'%s' has no samples after its header, nothing to import", filename)
        return 0
    wrap_in_markup(buf, csvtemplate)
    log_transform_command(params, csvtemplate)
    return engine.transform(filename, bytes(buf), log, params)


def parse_seabear_log(filename: str, log: DiveLog, engine: TransformEngine) -> int:
    """Import a Seabear CSV log through the ``csv`` template."""
    buffer = read_whole_file(filename)
    params = ParameterSet()
    parse_seabear_header(buffer, params)
    return parse_seabear_csv_file(filename, buffer, params, "csv", log, engine)
