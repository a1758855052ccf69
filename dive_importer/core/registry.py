"""
Format selection: maps a format name onto its decoder and runs it.
"""
from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Iterable, Optional

from rapidfuzz import fuzz

from .config import get_settings
from .csv_import import csv_format_for, open_csv_file, parse_csv_file, parse_manual_file
from .dan_import import parse_dan_format
from .errors import DiveImportError, UnknownFormatError
from .models import DiveLog
from .params import ParameterSet
from .poseidon_import import parse_txt_file
from .seabear_import import parse_seabear_log
from .transform import RecordingTransform, TransformEngine
from .units import SampleFormat

logger = logging.getLogger(__name__)


class DiveFormat(Enum):
    """Supported export formats."""
    CSV = "csv"              # generic comma separated value dump
    DL7 = "dl7"              # DAN interchange segments
    POSEIDON = "poseidon"    # MkVI .txt header + .csv samples
    SEABEAR = "seabear"      # Seabear CSV with comment header
    MANUAL = "manual"        # hand entered dive list
    TEMPLATE = "template"    # whole file through a named transform template


FORMAT_ALIASES = {
    "dan": DiveFormat.DL7,
    "zxu": DiveFormat.DL7,
    "mkvi": DiveFormat.POSEIDON,
    "mk6": DiveFormat.POSEIDON,
    "txt": DiveFormat.POSEIDON,
    "sbr": DiveFormat.SEABEAR,
    "manualcsv": DiveFormat.MANUAL,
    "xslt": DiveFormat.TEMPLATE,
}


def format_names() -> list[str]:
    """Every name `resolve_format` accepts."""
    return [f.value for f in DiveFormat] + list(FORMAT_ALIASES)


def suggest_formats(name: str, fuzzy_threshold: int = 60, limit: int = 3) -> list[str]:
    """
    Known format names resembling *name*, best match first.

    Args:
        name: The unrecognized name
        fuzzy_threshold: Minimum similarity score (0-100)
        limit: Maximum number of suggestions
    """
    scored = []
    for candidate in format_names():
        score = fuzz.token_sort_ratio(name.lower(), candidate)
        if score >= fuzzy_threshold:
            scored.append((score, candidate))
    scored.sort(key=lambda item: (-item[0], item[1]))
    return [candidate for _, candidate in scored[:limit]]


def resolve_format(name: str) -> DiveFormat:
    """
    Look up a format by name or alias, ignoring case.

    Raises:
        UnknownFormatError: With close matches as suggestions
    """
    key = name.strip().lower()
    for fmt in DiveFormat:
        if fmt.value == key:
            return fmt
    if key in FORMAT_ALIASES:
        return FORMAT_ALIASES[key]
    raise UnknownFormatError(name, suggest_formats(key))


def poseidon_samples_path(path: Path | str) -> Path:
    """The sample file paired with a MkVI header: same name, ``.csv`` suffix."""
    return Path(path).with_suffix(".csv")


def import_file(
    path: Path | str,
    fmt: DiveFormat,
    log: DiveLog,
    engine: Optional[TransformEngine] = None,
    params: Optional[ParameterSet] = None,
    csv_path: Optional[Path | str] = None,
    sample_format: Optional[SampleFormat] = None,
    template: Optional[str] = None
) -> bool:
    """
    Decode one file into *log*.

    Args:
        path: File to import
        fmt: Its format
        log: Dive log receiving the decoded dives
        engine: Transform engine for the template based formats
        params: Caller supplied transform parameters
        csv_path: MkVI sample file, derived from *path* when omitted
        sample_format: Quantity of a generic CSV value stream, derived from
            the file extension when omitted
        template: Transform template for `DiveFormat.TEMPLATE`

    Returns:
        True if the file was imported, False on failure (already logged)
    """
    filename = str(path)
    engine = engine if engine is not None else RecordingTransform()
    params = params if params is not None else ParameterSet()

    try:
        if fmt is DiveFormat.CSV:
            sample_format = sample_format or csv_format_for(filename) or SampleFormat.CSV_DEPTH
            if not open_csv_file(filename, sample_format, log):
                logger.error("Failed to import %s: not a CSV dive dump", filename)
                return False
            return True

        if fmt is DiveFormat.POSEIDON:
            csv_path = csv_path if csv_path is not None else poseidon_samples_path(filename)
            if not parse_txt_file(filename, str(csv_path), log):
                logger.error("Failed to import %s: not a Poseidon MkVI header", filename)
                return False
            return True

        if fmt is DiveFormat.DL7:
            status = parse_dan_format(filename, params, log, engine)
        elif fmt is DiveFormat.SEABEAR:
            status = parse_seabear_log(filename, log, engine)
        elif fmt is DiveFormat.MANUAL:
            status = parse_manual_file(filename, params, log, engine)
        else:
            status = parse_csv_file(
                filename, params, template or get_settings().default_template, log, engine
            )
    except DiveImportError as e:
        logger.error("Failed to import %s: %s", filename, e)
        return False

    if status != 0:
        logger.error("Failed to import %s: transform returned %d", filename, status)
        return False
    return True


def import_files(
    paths: Iterable[Path | str],
    fmt: DiveFormat,
    log: DiveLog,
    engine: Optional[TransformEngine] = None,
    **options
) -> dict[str, bool]:
    """
    Decode several files of one format into *log*.

    Each file gets a fresh copy of ``options["params"]`` when given.

    Returns:
        Dict mapping each path to whether it imported
    """
    engine = engine if engine is not None else RecordingTransform()
    base_params = options.pop("params", None)
    results = {}
    for path in paths:
        params = base_params.copy() if base_params is not None else None
        results[str(path)] = import_file(path, fmt, log, engine=engine, params=params, **options)
    return results
