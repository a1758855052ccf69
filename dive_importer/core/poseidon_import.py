"""
Poseidon MkVI Discovery rebreather logs.

A dive is a pair of files: a ``.txt`` header holding ``key: value`` lines
(start time, rig serial number, diluent mix, ...) and a ``.csv`` stream of
``timestamp,type,value`` records. All records sharing a timestamp make up
one sample.
"""
from __future__ import annotations

import itertools
import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterable, Iterator, Optional

from .errors import FileReadError, ValueParseError
from .io_handler import atoi, read_whole_file
from .models import (
    Cylinder,
    CylinderUse,
    Dive,
    DiveComputer,
    DiveLog,
    DiveMode,
    EventFlags,
    EventType,
    Sample,
)
from .units import SampleFormat, add_sample_data, bar_to_mbar

logger = logging.getLogger(__name__)

MKVI_MAGIC = b"MkVI_Config"
MKVI_MODEL = "Poseidon MkVI Discovery"
START_MARKER = "Dive started at"
KEY_SEPARATOR = ": "

# The vendor download tool wrote garbage sample times at and above this value
MKVI_TIME_OVERFLOW = 0xFFFF * 3 // 4

START_TIME = re.compile(r"\s*(\d+)-(\d+)-(\d+)\s+(\d+):(\d+):(\d+)")
RECORD = re.compile(r"\s*([+-]?\d+),\s*([+-]?\d+),\s*([+-]?\d+)")

# Record types
MOUTHPIECE = 0
POWER_OFF = 3
BATTERY = 4
SENSOR1 = 6
SENSOR2 = 7
DEPTH = 8
ASCENT_ALERT = 11
O2_TANK_PRESSURE = 13
DILUENT_TANK_PRESSURE = 14
SETPOINT = 20
O2_CALIBRATION_END = 22
CEILING = 25
O2_CALIBRATION_START = 31
NDL = 37
WATER_TEMPERATURE = 39
DILUENT_HE = 85
DILUENT_O2 = 86

MOUTHPIECE_POSITIONS = {
    0: "Mouth piece position OC",
    1: "Mouth piece position CC",
    2: "Mouth piece position unknown",
    3: "Mouth piece position not connected",
}

O2_CALIBRATION_FAILED = 2


def _set_tank_pressure(index: int) -> Callable[[Sample, int], None]:
    def store(sample: Sample, value: int) -> None:
        sample.pressure_mbar[index] = bar_to_mbar(value)
    return store


def _map_sample(fmt: SampleFormat) -> Callable[[Sample, int], None]:
    def store(sample: Sample, value: int) -> None:
        add_sample_data(sample, fmt, value)
    return store


# Record type -> sample field writer
MKVI_SAMPLE_CODES: dict[int, Callable[[Sample, int], None]] = {
    SENSOR1: _map_sample(SampleFormat.POSEIDON_SENSOR1),
    SENSOR2: _map_sample(SampleFormat.POSEIDON_SENSOR2),
    DEPTH: _map_sample(SampleFormat.POSEIDON_DEPTH),
    O2_TANK_PRESSURE: _set_tank_pressure(0),
    DILUENT_TANK_PRESSURE: _set_tank_pressure(1),
    SETPOINT: _map_sample(SampleFormat.POSEIDON_SETPOINT),
    CEILING: _map_sample(SampleFormat.POSEIDON_CEILING),
    NDL: _map_sample(SampleFormat.POSEIDON_NDL),
    WATER_TEMPERATURE: _map_sample(SampleFormat.POSEIDON_TEMP),
}


def _mouthpiece_event(dc: DiveComputer, time: int, value: int) -> None:
    name = MOUTHPIECE_POSITIONS.get(value)
    if name is not None:
        dc.add_event(time, name)


def _power_off_event(dc: DiveComputer, time: int, value: int) -> None:
    dc.add_event(time, "Power off")


def _battery_event(dc: DiveComputer, time: int, value: int) -> None:
    dc.add_event(time, "battery", value=value)


def _ascent_event(dc: DiveComputer, time: int, value: int) -> None:
    dc.add_event(time, "ascent", type=EventType.ASCENT)


def _calibration_end_event(dc: DiveComputer, time: int, value: int) -> None:
    # 0 = OK, 2 = failed; either way the rest of the dive runs setpoint 1.0
    if value == O2_CALIBRATION_FAILED:
        dc.add_event(time, "O₂ calibration failed", flags=EventFlags.END)
    dc.add_event(time, "O₂ calibration", flags=EventFlags.END)


def _calibration_start_event(dc: DiveComputer, time: int, value: int) -> None:
    dc.add_event(time, "O₂ calibration", flags=EventFlags.BEGIN)


# Record type -> event emitter
MKVI_EVENT_CODES: dict[int, Callable[[DiveComputer, int, int], None]] = {
    MOUTHPIECE: _mouthpiece_event,
    POWER_OFF: _power_off_event,
    BATTERY: _battery_event,
    ASCENT_ALERT: _ascent_event,
    O2_CALIBRATION_END: _calibration_end_event,
    O2_CALIBRATION_START: _calibration_start_event,
}


@dataclass
class CarryForward:
    """Last known values reused by samples that do not report them."""
    time: int = 0
    depth: int = 0
    setpoint: Optional[int] = None
    ndl: Optional[int] = None


def clamp_sample_time(raw: int, previous: int) -> int:
    """Replace a sample time at or above the firmware overflow with the previous one."""
    return raw if raw < MKVI_TIME_OVERFLOW else previous


def parse_mkvi_value(text: str, marker: str) -> str:
    """
    Value following *marker* in the header.

    The value is the text between the first ": " after the marker and the
    end of the marker's line, without a trailing carriage return. Empty when
    the marker, separator or line end is missing.
    """
    start = text.find(marker)
    if start < 0:
        return ""
    separator = text.find(KEY_SEPARATOR, start)
    line_end = text.find("\n", start)
    if separator < 0 or line_end < 0 or separator > line_end:
        return ""
    value = text[separator + len(KEY_SEPARATOR):line_end]
    if value.endswith("\r"):
        value = value[:-1]
    return value


def mkvi_header_pairs(text: str, after: str = START_MARKER) -> Iterator[tuple[str, str]]:
    """
    Yield ``key: value`` pairs from the lines following the *after* line.

    Stops at the first line without a separator or with an empty key or
    value; that marks the end of the structured header block.
    """
    start = text.find(after)
    if start < 0:
        return
    lines = text[start:].split("\n")[1:]
    for line in lines:
        key, separator, value = line.rstrip("\r").partition(KEY_SEPARATOR)
        if not separator or not key or not value:
            break
        yield key, value


def read_sample_records(text: str) -> Iterator[tuple[int, int, int]]:
    """Yield ``(timestamp, type, value)`` records, skipping lines that do not parse."""
    for line in text.splitlines():
        if not line.strip():
            continue
        match = RECORD.match(line)
        if not match:
            logger.info("Unable to parse input: %s", line)
            continue
        try:
            record = int(match.group(1)), int(match.group(2)), int(match.group(3))
        except ValueError:
            logger.info("Unable to convert input: %.40s...", line)
            continue
        yield record


def decode_sample_group(
    dc: DiveComputer,
    raw_time: int,
    records: Iterable[tuple[int, int, int]],
    carry: CarryForward
) -> Sample:
    """
    Build one sample from all records sharing *raw_time*.

    Depth missing from the group is taken from the previous group (zero for
    the first); setpoint and NDL only when an earlier group reported one.
    Temperature and pressures are never carried forward. The helium and
    oxygen diluent fractions combine into a single gas change event.
    """
    sample = dc.prepare_sample(clamp_sample_time(raw_time, carry.time))
    carry.time = sample.time

    has_depth = has_setpoint = has_ndl = False
    gaschange = 0

    for _, code, value in records:
        store = MKVI_SAMPLE_CODES.get(code)
        if store is not None:
            try:
                store(sample, value)
            except ValueParseError:
                logger.info("Skipping out of range value for record type %d at %ds", code, sample.time)
                continue
            if code == DEPTH:
                has_depth = True
                carry.depth = value
            elif code == SETPOINT:
                has_setpoint = True
                carry.setpoint = value
            elif code == NDL:
                has_ndl = True
                carry.ndl = value
            continue

        emit = MKVI_EVENT_CODES.get(code)
        if emit is not None:
            emit(dc, sample.time, value)
        elif code == DILUENT_HE:
            gaschange += value << 16
        elif code == DILUENT_O2:
            gaschange += value

    if gaschange:
        dc.add_event(sample.time, "gaschange", type=EventType.GASCHANGE2, value=gaschange)
    if not has_depth:
        add_sample_data(sample, SampleFormat.POSEIDON_DEPTH, carry.depth)
    if not has_setpoint and carry.setpoint is not None and carry.setpoint >= 0:
        add_sample_data(sample, SampleFormat.POSEIDON_SETPOINT, carry.setpoint)
    if not has_ndl and carry.ndl is not None and carry.ndl >= 0:
        add_sample_data(sample, SampleFormat.POSEIDON_NDL, carry.ndl)
    return sample


def decode_samples(dc: DiveComputer, text: str) -> None:
    """Turn the whole CSV record stream into samples and events on *dc*."""
    carry = CarryForward()
    for raw_time, records in itertools.groupby(read_sample_records(text), key=lambda r: r[0]):
        decode_sample_group(dc, raw_time, records, carry)
    if dc.samples:
        dc.duration = dc.samples[-1].time


def parse_start_time(value: str, filename: str) -> int:
    match = START_TIME.match(value)
    if not match:
        raise ValueParseError(f"Unparseable dive start time '{value}'", filename)
    try:
        y, m, d, hh, mm, ss = (int(g) for g in match.groups())
        return Dive.timestamp_from(datetime(y, m, d, hh, mm, ss))
    except (ValueError, OverflowError) as e:
        raise ValueParseError(f"Invalid dive start time '{value}'", filename) from e


def mkvi_cylinders(text: str) -> list[Cylinder]:
    """The rig's fixed oxygen bottle plus the diluent described in the header."""
    oxygen = Cylinder(
        description="3l Mk6",
        size_ml=3000,
        workingpressure_mbar=200000,
        o2_permille=1000,
        use=CylinderUse.OXYGEN,
        manually_added=True,
    )
    he = atoi(parse_mkvi_value(text, "Helium percentage"))
    n2 = atoi(parse_mkvi_value(text, "Nitrogen percentage"))
    diluent = Cylinder(
        description="3l Mk6",
        size_ml=3000,
        workingpressure_mbar=200000,
        o2_permille=(100 - n2 - he) * 10,
        he_permille=he * 10,
        use=CylinderUse.DILUENT,
    )
    return [oxygen, diluent]


def parse_txt_file(filename: str, csv: str, log: DiveLog) -> bool:
    """
    Import a MkVI dive from its header file *filename* and sample file *csv*.

    Returns:
        False if *filename* is not a MkVI header
    """
    header = read_whole_file(filename)
    if not header.startswith(MKVI_MAGIC):
        return False
    text = header.decode("utf-8", errors="replace")

    dive = Dive(when=parse_start_time(parse_mkvi_value(text, START_MARKER), filename))
    dc = dive.dc
    dc.model = MKVI_MODEL
    dc.device_id = atoi(parse_mkvi_value(text, "Rig Serial number"))
    dc.dive_mode = DiveMode.CCR
    dc.no_o2sensors = 2
    dive.cylinders.extend(mkvi_cylinders(text))

    for key, value in mkvi_header_pairs(text):
        dc.add_extra_data(key, value)

    try:
        samples = read_whole_file(csv)
    except FileReadError as e:
        raise FileReadError(f"Poseidon import failed: unable to read '{csv}'", csv) from e
    decode_samples(dc, samples.decode("utf-8", errors="replace"))

    log.record_dive(dive)
    return True
