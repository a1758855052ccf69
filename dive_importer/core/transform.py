"""
Interface to the structural transform engine that turns a wrapped document
plus a parameter set into dives.
"""
from __future__ import annotations

import logging
import shlex
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Protocol

from .config import get_settings
from .models import DiveLog
from .params import ParameterSet

logger = logging.getLogger(__name__)

# Template name -> stylesheet file
STYLESHEETS = {
    "csv": "csv2xml.xslt",
    "manualCSV": "manualcsv2xml.xslt",
}


class TransformEngine(Protocol):
    """Anything that can populate a dive log from a wrapped document."""

    def transform(
        self,
        filename: str,
        document: bytes,
        log: DiveLog,
        params: ParameterSet
    ) -> int:
        """Append decoded dives to *log*. Returns 0 on success."""
        ...


@dataclass
class TransformCall:
    """One recorded engine invocation."""
    filename: str
    document: bytes
    params: list[tuple[str, str]]


@dataclass
class RecordingTransform:
    """
    Engine stand-in that records documents instead of transforming them.

    Parameters are snapshotted at call time since decoders keep mutating
    the same set between calls.
    """
    status: int = 0
    calls: list[TransformCall] = field(default_factory=list)

    def transform(
        self,
        filename: str,
        document: bytes,
        log: DiveLog,
        params: ParameterSet
    ) -> int:
        self.calls.append(TransformCall(filename, bytes(document), params.items()))
        return self.status

    def dump(self, directory: Path | str) -> list[Path]:
        """Write each recorded document and its parameters to *directory*."""
        directory = Path(directory)
        directory.mkdir(parents=True, exist_ok=True)
        written = []
        for i, call in enumerate(self.calls):
            stem = f"{Path(call.filename).stem}_{i:03d}"
            doc_path = directory / f"{stem}.xml"
            doc_path.write_bytes(call.document)
            params_path = directory / f"{stem}.params"
            params_path.write_text(
                "".join(f"{k}={v}\n" for k, v in call.params),
                encoding="utf-8"
            )
            written.append(doc_path)
        return written


def xsltproc_command(
    params: ParameterSet,
    template: str,
    filename: Optional[str] = None
) -> str:
    """
    Build the xsltproc command line equivalent to a transform call.

    With *filename* the command wraps the file itself, so it can be pasted
    into a shell for manual testing.
    """
    settings = get_settings()
    stylesheet = Path(settings.xslt_dir) / STYLESHEETS.get(template, f"{template}.xslt")
    parts = []
    if filename is not None:
        parts.append(f"(echo '<{template}>'; cat {shlex.quote(filename)}; echo '</{template}>') |")
    parts.append("xsltproc")
    for key, value in params:
        parts.append(f"--stringparam {key} {shlex.quote(value)}")
    parts.append(f"{stylesheet} -")
    return " ".join(parts)


def log_transform_command(params: ParameterSet, template: str, filename: Optional[str] = None) -> None:
    """Log the equivalent xsltproc command line when verbosity is high enough."""
    if get_settings().verbose >= 2:
        logger.info("%s", xsltproc_command(params, template, filename))
