"""
Generic comma separated dumps, the templated CSV path and manual-entry files.
"""
from __future__ import annotations

import logging
import math
import re
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

from .dan_import import parse_dan_format
from .errors import ValueParseError
from .io_handler import INT_PREFIX, atoi, decode_field, read_whole_file
from .markup import wrap_in_markup
from .models import Dive, DiveLog
from .params import ParameterSet
from .transform import TransformEngine, log_transform_command
from .units import SampleFormat, add_sample_data, convert_sample_value

logger = logging.getLogger(__name__)

HEADER_FIELDS = 8
DIVE_NUMBER_FIELD = 1
DATE_FIELD = 2

MONTH_NAMES = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
               "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

# File extension -> what the value stream in that file is
CSV_EXTENSION_FORMATS = {
    "csv": SampleFormat.CSV_DEPTH,
    "dpt": SampleFormat.CSV_DEPTH,
    "lvd": SampleFormat.CSV_DEPTH,
    "tmp": SampleFormat.CSV_TEMP,
    "hp1": SampleFormat.CSV_PRESSURE,
}

DATE_SEPARATOR = re.compile(r"[- ]?")
CLOCK = re.compile(r"\s*([+-]?\d+):([+-]?\d+):([+-]?\d+)")
FLOAT_PREFIX = re.compile(rb"\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def _date_fields(text: str) -> Optional[tuple[int, ...]]:
    match = INT_PREFIX.match(text)
    if not match:
        return None
    day = int(match.group(1))
    if day < 1 or day > 31:
        return None
    pos = DATE_SEPARATOR.match(text, match.end()).end()

    abbrev = text[pos:pos + 3]
    if abbrev not in MONTH_NAMES:
        return None
    month = MONTH_NAMES.index(abbrev) + 1
    pos = DATE_SEPARATOR.match(text, pos + 3).end()

    match = INT_PREFIX.match(text, pos)
    if not match:
        return None
    year = int(match.group(1))
    if year < 70:
        year += 2000
    if year < 100:
        year += 1900

    match = CLOCK.match(text, match.end())
    if not match:
        return None
    hour, minute, second = (int(g) for g in match.groups())
    return year, month, day, hour, minute, second


def parse_date(text: str) -> Optional[int]:
    """
    Parse "DD Mon YYYY HH:MM:SS" into a wall clock timestamp.

    Day, month abbreviation and year may be run together or separated by a
    single space or dash. Two-digit years below 70 are 20xx, others 19xx.

    Returns:
        Seconds since epoch, or None when the text is not such a date
    """
    try:
        fields = _date_fields(text)
        if fields is None:
            return None
        return Dive.timestamp_from(datetime(*fields))
    except (ValueError, OverflowError):
        # overlong digit runs and out of range calendar values
        return None


def _out_of_range(text: str, value: float) -> bool:
    if math.isinf(value):
        return True
    if value == 0.0:
        mantissa = text.lower().split("e")[0]
        return any(c in "123456789" for c in mantissa)
    return abs(value) < sys.float_info.min


def try_to_open_csv(buffer: bytes, fmt: SampleFormat, log: DiveLog) -> bool:
    """
    Decode a generic comma separated dump.

    The first eight comma terminated fields are a header carrying the dive
    number and start date. Every following value is one sample, one second
    apart, until a value fails to parse or is not followed by a comma.

    Returns:
        False if the buffer does not look like this format
    """
    header = []
    pos = 0
    for _ in range(HEADER_FIELDS):
        comma = buffer.find(b",", pos)
        if comma < 0:
            return False
        header.append(decode_field(buffer[pos:comma]))
        pos = comma + 1

    when = parse_date(header[DATE_FIELD])
    if when is None:
        logger.debug("Unparseable CSV date %r", header[DATE_FIELD])
        return False

    dive = Dive(number=atoi(header[DIVE_NUMBER_FIELD]), when=when)
    dc = dive.dc

    time = 0
    while True:
        match = FLOAT_PREFIX.match(buffer, pos)
        if not match:
            break
        text = match.group().decode("ascii")
        value = float(text)
        if _out_of_range(text, value):
            break
        try:
            convert_sample_value(fmt, value)
        except ValueParseError:
            logger.debug("CSV value %s out of range after conversion", text.strip())
            break

        sample = dc.prepare_sample(time)
        add_sample_data(sample, fmt, value)
        time += 1
        dc.duration = time

        end = match.end()
        if buffer[end:end + 1] != b",":
            break
        pos = end + 1

    log.record_dive(dive)
    return True


def csv_format_for(path: Path | str) -> Optional[SampleFormat]:
    """Sample format implied by a generic dump's file extension."""
    return CSV_EXTENSION_FORMATS.get(Path(path).suffix.lstrip(".").lower())


def open_csv_file(filename: str, fmt: SampleFormat, log: DiveLog) -> bool:
    """Read *filename* and decode it as a generic dump of *fmt* values."""
    return try_to_open_csv(read_whole_file(filename), fmt, log)


def add_current_datetime(params: ParameterSet, now: Optional[datetime] = None) -> None:
    """
    Append default "date" and "time" parameters for the current local time.

    The time gets a leading "1" so a transform treating it as a number keeps
    the leading zero of the hour.
    """
    now = now or datetime.now()
    params.add("date", now.strftime("%Y%m%d"))
    params.add("time", now.strftime("1%H%M"))


def _transform_whole_file(
    filename: str,
    params: ParameterSet,
    tag: str,
    log: DiveLog,
    engine: TransformEngine
) -> int:
    buf = bytearray(read_whole_file(filename))
    if not buf:
        logger.info("'%s' is empty, nothing to import", filename)
        return 0
    wrap_in_markup(buf, tag)
    log_transform_command(params, tag, filename)
    return engine.transform(filename, bytes(buf), log, params)


def parse_csv_file(
    filename: str,
    params: ParameterSet,
    csvtemplate: str,
    log: DiveLog,
    engine: TransformEngine
) -> int:
    """
    Import a CSV file through the transform engine using *csvtemplate*.

    DL7 files get their own segment decoder. Otherwise the current date and
    time are supplied as defaults unless the caller already leads with a
    "date" parameter.

    Returns:
        The engine status, 0 on success
    """
    if csvtemplate == "DL7":
        return parse_dan_format(filename, params, log, engine)
    if len(params) == 0 or params.key(0) != "date":
        add_current_datetime(params)
    return _transform_whole_file(filename, params, csvtemplate, log, engine)


def parse_manual_file(
    filename: str,
    params: ParameterSet,
    log: DiveLog,
    engine: TransformEngine
) -> int:
    """Import a manually entered dive list; no format-specific parsing."""
    add_current_datetime(params)
    return _transform_whole_file(filename, params, "manualCSV", log, engine)
