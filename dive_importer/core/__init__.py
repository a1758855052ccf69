"""
Core module for the dive importer.
Contains data models, the shared tokenizer and wrapper, and one decoder per
supported dive computer export format.
"""

from .models import (
    Cylinder,
    CylinderUse,
    Dive,
    DiveComputer,
    DiveLog,
    DiveMode,
    Event,
    EventFlags,
    EventType,
    Sample,
)
from .errors import (
    DiveImportError,
    FieldCapacityError,
    FileReadError,
    MalformedInputError,
    UnknownFormatError,
    UnrecognizedFormatError,
    ValueParseError,
)
from .config import (
    ImportSettings,
    configure,
    get_settings,
    load_settings,
    save_settings,
)
from .params import ParameterSet
from .io_handler import (
    LineCursor,
    project_fields,
    read_whole_file,
    split_line,
)
from .units import SampleFormat, add_sample_data
from .markup import wrap_in_markup, wrapped_size
from .transform import RecordingTransform, TransformEngine
from .csv_import import (
    open_csv_file,
    parse_csv_file,
    parse_manual_file,
    try_to_open_csv,
)
from .dan_import import parse_dan_format
from .poseidon_import import parse_txt_file
from .seabear_import import parse_seabear_log
from .registry import (
    DiveFormat,
    import_file,
    import_files,
    resolve_format,
)

__all__ = [
    # Models
    "Cylinder",
    "CylinderUse",
    "Dive",
    "DiveComputer",
    "DiveLog",
    "DiveMode",
    "Event",
    "EventFlags",
    "EventType",
    "Sample",
    # Errors
    "DiveImportError",
    "FieldCapacityError",
    "FileReadError",
    "MalformedInputError",
    "UnknownFormatError",
    "UnrecognizedFormatError",
    "ValueParseError",
    # Settings
    "ImportSettings",
    "configure",
    "get_settings",
    "load_settings",
    "save_settings",
    # Tokenizer and transform
    "LineCursor",
    "ParameterSet",
    "RecordingTransform",
    "SampleFormat",
    "TransformEngine",
    "add_sample_data",
    "project_fields",
    "read_whole_file",
    "split_line",
    "wrap_in_markup",
    "wrapped_size",
    # Decoders
    "open_csv_file",
    "parse_csv_file",
    "parse_dan_format",
    "parse_manual_file",
    "parse_seabear_log",
    "parse_txt_file",
    "try_to_open_csv",
    # Format selection
    "DiveFormat",
    "import_file",
    "import_files",
    "resolve_format",
]
