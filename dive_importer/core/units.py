"""
Unit conversions and the raw-value to sample-field mapper.
"""
from __future__ import annotations

from enum import Enum, auto

import numpy as np

from .errors import ValueParseError
from .models import Sample

ZERO_C_IN_MKELVIN = 273150
MM_PER_FOOT = 304.8
PSI_PER_BAR = 14.5037738


class SampleFormat(Enum):
    """Which physical quantity a raw sample value encodes, and how."""
    CSV_DEPTH = auto()          # feet
    CSV_TEMP = auto()           # Fahrenheit
    CSV_PRESSURE = auto()       # psi / 4
    POSEIDON_DEPTH = auto()     # half meters
    POSEIDON_TEMP = auto()      # 0.2 Celsius steps
    POSEIDON_SETPOINT = auto()  # centibar
    POSEIDON_SENSOR1 = auto()   # centibar
    POSEIDON_SENSOR2 = auto()   # centibar
    POSEIDON_NDL = auto()       # minutes
    POSEIDON_CEILING = auto()   # meters


def lrint(value: float) -> int:
    """
    Round to nearest integer, ties to even.

    Raises:
        ValueParseError: *value* is not finite or too large for a float
    """
    try:
        rounded = np.rint(float(value))
    except OverflowError as e:
        raise ValueParseError("Value too large to convert") from e
    if not np.isfinite(rounded):
        raise ValueParseError(f"Cannot round non-finite value {rounded}")
    return int(rounded)


def feet_to_mm(feet: float) -> int:
    return lrint(feet * MM_PER_FOOT)


def f_to_mkelvin(fahrenheit: float) -> int:
    return lrint((fahrenheit - 32) * 1000 / 1.8 + ZERO_C_IN_MKELVIN)


def c_to_mkelvin(celsius: float) -> int:
    return lrint(celsius * 1000 + ZERO_C_IN_MKELVIN)


def psi_to_mbar(psi: float) -> int:
    return lrint(psi / PSI_PER_BAR * 1000)


def bar_to_mbar(bar: float) -> int:
    return lrint(bar * 1000)


def _set_depth(sample: Sample, mm: int) -> None:
    sample.depth_mm = mm


def _set_temperature(sample: Sample, mk: int) -> None:
    sample.temperature_mk = mk


def _set_pressure0(sample: Sample, mbar: int) -> None:
    sample.pressure_mbar[0] = mbar


def _set_setpoint(sample: Sample, mbar: int) -> None:
    sample.setpoint_mbar = mbar


def _set_sensor1(sample: Sample, mbar: int) -> None:
    sample.o2sensor_mbar[0] = mbar


def _set_sensor2(sample: Sample, mbar: int) -> None:
    sample.o2sensor_mbar[1] = mbar


def _set_ndl(sample: Sample, seconds: int) -> None:
    sample.ndl_s = seconds


def _set_ceiling(sample: Sample, mm: int) -> None:
    sample.stopdepth_mm = mm


# format -> (raw value -> canonical integer, sample field writer)
SAMPLE_MAPPERS = {
    SampleFormat.CSV_DEPTH: (feet_to_mm, _set_depth),
    SampleFormat.CSV_TEMP: (f_to_mkelvin, _set_temperature),
    SampleFormat.CSV_PRESSURE: (lambda v: psi_to_mbar(v * 4), _set_pressure0),
    SampleFormat.POSEIDON_DEPTH: (lambda v: lrint(v * 0.5 * 1000), _set_depth),
    SampleFormat.POSEIDON_TEMP: (lambda v: c_to_mkelvin(v * 0.2), _set_temperature),
    SampleFormat.POSEIDON_SETPOINT: (lambda v: lrint(v * 10), _set_setpoint),
    SampleFormat.POSEIDON_SENSOR1: (lambda v: lrint(v * 10), _set_sensor1),
    SampleFormat.POSEIDON_SENSOR2: (lambda v: lrint(v * 10), _set_sensor2),
    SampleFormat.POSEIDON_NDL: (lambda v: lrint(v * 60), _set_ndl),
    SampleFormat.POSEIDON_CEILING: (lambda v: lrint(v * 1000), _set_ceiling),
}


def convert_sample_value(fmt: SampleFormat, value: float) -> int:
    """
    Canonical integer for a raw *value* of *fmt*.

    Raises:
        ValueParseError: The converted value does not fit
    """
    convert, _ = SAMPLE_MAPPERS[fmt]
    try:
        return convert(value)
    except OverflowError as e:
        # int * float with an int beyond float range
        raise ValueParseError(f"{fmt.name} value out of range") from e


def add_sample_data(sample: Sample, fmt: SampleFormat, value: float) -> None:
    """Convert *value* according to *fmt* and store it in the matching sample field."""
    _, store = SAMPLE_MAPPERS[fmt]
    store(sample, convert_sample_value(fmt, value))
