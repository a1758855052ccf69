"""
Command line entry point for the dive importer.
"""
from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Optional, Sequence

from ..core.config import configure, get_settings, load_settings
from ..core.errors import UnknownFormatError
from ..core.models import DiveLog
from ..core.params import ParameterSet
from ..core.registry import DiveFormat, format_names, import_files, resolve_format
from ..core.transform import RecordingTransform
from ..core.units import SampleFormat

logger = logging.getLogger(__name__)


def parse_param(text: str) -> tuple[str, str]:
    """Parse a ``KEY=VALUE`` transform parameter."""
    key, separator, value = text.partition("=")
    if not separator or not key:
        raise argparse.ArgumentTypeError(f"expected KEY=VALUE, got '{text}'")
    return key, value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dive-importer",
        description="Import dive computer exports into a dive log"
    )
    parser.add_argument("files", nargs="+", type=Path, help="Files to import")
    parser.add_argument(
        "--format", "-f",
        required=True,
        help=f"Export format ({', '.join(format_names())})"
    )
    parser.add_argument(
        "--csv",
        type=Path,
        help="Poseidon MkVI sample file (default: the header file with a .csv suffix)"
    )
    parser.add_argument(
        "--sample-format",
        choices=[f.name.lower() for f in SampleFormat],
        help="Quantity encoded by a generic CSV value stream (default: from the extension)"
    )
    parser.add_argument(
        "--template", "-t",
        help="Transform template for the template format"
    )
    parser.add_argument(
        "--param", "-p",
        action="append",
        type=parse_param,
        default=[],
        metavar="KEY=VALUE",
        help="Transform parameter, may be repeated"
    )
    parser.add_argument("--config", type=Path, help="JSON settings file")
    parser.add_argument(
        "--samples-out",
        type=Path,
        help="Write one samples CSV per imported dive into this directory"
    )
    parser.add_argument(
        "--dump-documents",
        type=Path,
        help="Write the documents handed to the transform engine into this directory"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="count",
        default=0,
        help="Increase verbosity (-vv also logs xsltproc command lines)"
    )
    return parser


def write_samples(log: DiveLog, directory: Path) -> list[Path]:
    """Write each dive's samples as CSV, in metric display units."""
    directory.mkdir(parents=True, exist_ok=True)
    written = []
    for i, dive in enumerate(log.dives, start=1):
        path = directory / f"dive_{dive.number or i:04d}_{i:03d}.csv"
        dive.dc.samples_dataframe().to_csv(path, index=False)
        written.append(path)
    return written


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the importer. Returns the process exit status."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose >= 3 else logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s"
    )

    settings = load_settings(args.config) if args.config else get_settings()
    configure(replace(settings, verbose=max(settings.verbose, args.verbose)))

    try:
        fmt = resolve_format(args.format)
    except UnknownFormatError as e:
        parser.error(str(e))

    if args.csv is not None and (fmt is not DiveFormat.POSEIDON or len(args.files) != 1):
        parser.error("--csv needs exactly one Poseidon header file")

    engine = RecordingTransform()
    log = DiveLog()
    results = import_files(
        args.files,
        fmt,
        log,
        engine=engine,
        params=ParameterSet(args.param),
        csv_path=args.csv,
        sample_format=SampleFormat[args.sample_format.upper()] if args.sample_format else None,
        template=args.template
    )

    if len(log):
        print(log.summary_dataframe().to_string(index=False))
    if engine.calls:
        print(f"{len(engine.calls)} document(s) prepared for the transform engine")

    if args.samples_out is not None:
        for path in write_samples(log, args.samples_out):
            logger.info("Wrote %s", path)
    if args.dump_documents is not None:
        for path in engine.dump(args.dump_documents):
            logger.info("Wrote %s", path)

    failed = [name for name, ok in results.items() if not ok]
    if failed:
        print(f"{len(failed)} of {len(results)} file(s) failed to import", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
