"""
Core data models for the dive importer.
"""
from __future__ import annotations

from calendar import timegm
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum, IntEnum, IntFlag, auto
from typing import Any, Optional

import numpy as np
import pandas as pd


class DiveMode(Enum):
    """Breathing modes a dive computer can record."""
    OC = auto()        # Open circuit
    CCR = auto()       # Closed circuit rebreather
    PSCR = auto()      # Passive semi-closed rebreather
    FREEDIVE = auto()


class CylinderUse(Enum):
    """What a cylinder is used for on the dive."""
    OC_GAS = auto()
    DILUENT = auto()
    OXYGEN = auto()
    NOT_USED = auto()


class EventType(IntEnum):
    """Event type numbers as used by dive computer download libraries."""
    NONE = 0
    ASCENT = 3
    GASCHANGE2 = 25


class EventFlags(IntFlag):
    """Begin/end markers for events that span a period of time."""
    NONE = 0
    BEGIN = 1
    END = 2


@dataclass
class Sample:
    """A single profile sample. Unset values are None."""
    time: int = 0                           # seconds from dive start
    depth_mm: Optional[int] = None
    temperature_mk: Optional[int] = None
    setpoint_mbar: Optional[int] = None
    o2sensor_mbar: list[Optional[int]] = field(default_factory=lambda: [None, None])
    ndl_s: Optional[int] = None
    stopdepth_mm: Optional[int] = None
    pressure_mbar: list[Optional[int]] = field(default_factory=lambda: [None, None])

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "time": self.time,
            "depth_mm": self.depth_mm,
            "temperature_mk": self.temperature_mk,
            "setpoint_mbar": self.setpoint_mbar,
            "o2sensor_mbar": list(self.o2sensor_mbar),
            "ndl_s": self.ndl_s,
            "stopdepth_mm": self.stopdepth_mm,
            "pressure_mbar": list(self.pressure_mbar)
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Sample:
        """Deserialize from dictionary."""
        return cls(
            time=data.get("time", 0),
            depth_mm=data.get("depth_mm"),
            temperature_mk=data.get("temperature_mk"),
            setpoint_mbar=data.get("setpoint_mbar"),
            o2sensor_mbar=list(data.get("o2sensor_mbar", [None, None])),
            ndl_s=data.get("ndl_s"),
            stopdepth_mm=data.get("stopdepth_mm"),
            pressure_mbar=list(data.get("pressure_mbar", [None, None]))
        )


@dataclass
class Event:
    """A discrete event on the dive timeline."""
    time: int
    name: str
    type: EventType = EventType.NONE
    flags: EventFlags = EventFlags.NONE
    value: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "time": self.time,
            "name": self.name,
            "type": int(self.type),
            "flags": int(self.flags),
            "value": self.value
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Event:
        """Deserialize from dictionary."""
        return cls(
            time=data["time"],
            name=data["name"],
            type=EventType(data.get("type", 0)),
            flags=EventFlags(data.get("flags", 0)),
            value=data.get("value", 0)
        )


@dataclass
class Cylinder:
    """A gas cylinder carried on the dive."""
    description: str = ""
    size_ml: int = 0
    workingpressure_mbar: int = 0
    o2_permille: int = 0
    he_permille: int = 0
    use: CylinderUse = CylinderUse.OC_GAS
    manually_added: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "description": self.description,
            "size_ml": self.size_ml,
            "workingpressure_mbar": self.workingpressure_mbar,
            "o2_permille": self.o2_permille,
            "he_permille": self.he_permille,
            "use": self.use.name,
            "manually_added": self.manually_added
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Cylinder:
        """Deserialize from dictionary."""
        return cls(
            description=data.get("description", ""),
            size_ml=data.get("size_ml", 0),
            workingpressure_mbar=data.get("workingpressure_mbar", 0),
            o2_permille=data.get("o2_permille", 0),
            he_permille=data.get("he_permille", 0),
            use=CylinderUse[data.get("use", "OC_GAS")],
            manually_added=data.get("manually_added", False)
        )


def _milli(raw: int) -> float:
    return raw / 1000.0


# Column name -> (Sample attribute, index into list attribute or None, converter)
SAMPLE_COLUMNS = {
    "depth_m": ("depth_mm", None, _milli),
    "temperature_c": ("temperature_mk", None, lambda mk: (mk - 273150) / 1000.0),
    "setpoint_bar": ("setpoint_mbar", None, _milli),
    "o2sensor1_bar": ("o2sensor_mbar", 0, _milli),
    "o2sensor2_bar": ("o2sensor_mbar", 1, _milli),
    "ndl_min": ("ndl_s", None, lambda s: s / 60.0),
    "ceiling_m": ("stopdepth_mm", None, _milli),
    "pressure1_bar": ("pressure_mbar", 0, _milli),
    "pressure2_bar": ("pressure_mbar", 1, _milli),
}


@dataclass
class DiveComputer:
    """Device information plus the samples and events it recorded."""
    model: str = ""
    device_id: int = 0
    dive_mode: DiveMode = DiveMode.OC
    no_o2sensors: int = 0
    duration: int = 0  # seconds

    samples: list[Sample] = field(default_factory=list)
    events: list[Event] = field(default_factory=list)
    extra_data: dict[str, str] = field(default_factory=dict)

    def prepare_sample(self, time: int = 0) -> Sample:
        """Append a fresh sample and return it for filling in."""
        sample = Sample(time=time)
        self.samples.append(sample)
        return sample

    def add_event(
        self,
        time: int,
        name: str,
        type: EventType = EventType.NONE,
        flags: EventFlags = EventFlags.NONE,
        value: int = 0
    ) -> Event:
        """Append an event to the timeline."""
        event = Event(time=time, name=name, type=type, flags=flags, value=value)
        self.events.append(event)
        return event

    def add_extra_data(self, key: str, value: str) -> None:
        """Attach a free-form key/value pair reported by the device."""
        self.extra_data[key] = value

    def samples_dataframe(self) -> pd.DataFrame:
        """Get samples as a dataframe in metric display units, NaN where unset."""
        data: dict[str, Any] = {
            "time_s": np.array([s.time for s in self.samples], dtype=float)
        }
        for column, (attr, index, convert) in SAMPLE_COLUMNS.items():
            values = []
            for s in self.samples:
                raw = getattr(s, attr)
                if index is not None:
                    raw = raw[index]
                values.append(np.nan if raw is None else convert(raw))
            data[column] = np.array(values, dtype=float)
        return pd.DataFrame(data)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "model": self.model,
            "device_id": self.device_id,
            "dive_mode": self.dive_mode.name,
            "no_o2sensors": self.no_o2sensors,
            "duration": self.duration,
            "samples": [s.to_dict() for s in self.samples],
            "events": [e.to_dict() for e in self.events],
            "extra_data": dict(self.extra_data)
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DiveComputer:
        """Deserialize from dictionary."""
        dc = cls(
            model=data.get("model", ""),
            device_id=data.get("device_id", 0),
            dive_mode=DiveMode[data.get("dive_mode", "OC")],
            no_o2sensors=data.get("no_o2sensors", 0),
            duration=data.get("duration", 0),
            extra_data=dict(data.get("extra_data", {}))
        )
        for s_data in data.get("samples", []):
            dc.samples.append(Sample.from_dict(s_data))
        for e_data in data.get("events", []):
            dc.events.append(Event.from_dict(e_data))
        return dc


@dataclass
class Dive:
    """One dive: start time, cylinders and the recording dive computer."""
    number: int = 0
    when: int = 0  # seconds since epoch, wall clock time stored as UTC
    cylinders: list[Cylinder] = field(default_factory=list)
    dc: DiveComputer = field(default_factory=DiveComputer)

    @property
    def start_datetime(self) -> datetime:
        """Start time as a naive datetime in the dive's local wall clock."""
        return datetime.fromtimestamp(self.when, tz=timezone.utc).replace(tzinfo=None)

    @staticmethod
    def timestamp_from(value: datetime) -> int:
        """Convert a naive wall clock datetime to the `when` representation."""
        return timegm(value.timetuple())

    def get_max_depth_mm(self) -> int:
        """Deepest sample depth, 0 when no depths were recorded."""
        depths = [s.depth_mm for s in self.dc.samples if s.depth_mm is not None]
        return max(depths) if depths else 0

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "number": self.number,
            "when": self.when,
            "cylinders": [c.to_dict() for c in self.cylinders],
            "dc": self.dc.to_dict()
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Dive:
        """Deserialize from dictionary."""
        return cls(
            number=data.get("number", 0),
            when=data.get("when", 0),
            cylinders=[Cylinder.from_dict(c) for c in data.get("cylinders", [])],
            dc=DiveComputer.from_dict(data.get("dc", {}))
        )


@dataclass
class DiveLog:
    """Collection that decoded dives are appended to."""
    dives: list[Dive] = field(default_factory=list)

    def record_dive(self, dive: Dive) -> None:
        """Append a fully decoded dive. The log owns it from here on."""
        self.dives.append(dive)

    def __len__(self) -> int:
        return len(self.dives)

    def summary_dataframe(self) -> pd.DataFrame:
        """One row per dive with start time, duration, depth and sample counts."""
        rows = []
        for dive in self.dives:
            rows.append({
                "number": dive.number,
                "start": dive.start_datetime,
                "model": dive.dc.model,
                "duration_s": dive.dc.duration,
                "max_depth_m": dive.get_max_depth_mm() / 1000.0,
                "samples": len(dive.dc.samples),
                "events": len(dive.dc.events),
            })
        return pd.DataFrame(
            rows,
            columns=["number", "start", "model", "duration_s", "max_depth_m", "samples", "events"]
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "version": "1.0",
            "dives": [d.to_dict() for d in self.dives]
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DiveLog:
        """Deserialize from dictionary."""
        log = cls()
        for d_data in data.get("dives", []):
            log.dives.append(Dive.from_dict(d_data))
        return log
