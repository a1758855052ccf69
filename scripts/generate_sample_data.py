#!/usr/bin/env python3
"""
Sample data generator for trying out the dive importer.

Generates one synthetic dive in each supported export format:
- Generic CSV depth dump
- DAN DL7 file with two dives
- Poseidon MkVI header + sample pair
- Seabear CSV log
- Manual entry list
"""

import argparse
from datetime import datetime, timedelta
from pathlib import Path

import numpy as np
import pandas as pd


def generate_noise(size: int, scale: float = 0.1) -> np.ndarray:
    """Generate random noise."""
    return np.random.normal(0, scale, size)


def dive_profile(duration_s: int, max_depth_m: float) -> np.ndarray:
    """
    Square-ish dive profile in meters, one value per second.

    Descends at 18 m/min, stays, then ascends at 9 m/min.
    """
    t = np.arange(duration_s)
    descent = t * 0.3
    ascent = (duration_s - t) * 0.15
    depth = np.minimum(np.minimum(descent, ascent), max_depth_m)
    depth = depth + generate_noise(duration_s, 0.05)
    return np.clip(depth, 0.0, None)


def generate_csv_dump(output_path: Path, start: datetime, duration_s: int = 1800):
    """
    Generate a generic comma separated depth dump.

    Eight header fields, the third of them the start date, then one depth
    value in feet per second.
    """
    feet = dive_profile(duration_s, 25.0) / 0.3048
    header = ["DIVE", "1", start.strftime("%d %b %Y %H:%M:%S"), "", "", "", "", ""]
    values = ",".join(f"{v:.1f}" for v in feet)
    output_path.write_text(",".join(header) + "," + values + ",", encoding="ascii")
    print(f"Generated: {output_path} ({duration_s} samples)")


def _dl7_dive(number: int, start: datetime, duration_s: int, max_depth_m: float) -> list[str]:
    depth = dive_profile(duration_s, max_depth_m)[::10]
    temp = 18 + generate_noise(len(depth), 0.2)
    profile = pd.DataFrame({
        "time_min": np.arange(len(depth)) / 6.0,
        "depth_m": depth.round(1),
        "gas": "",
        "pressure": "",
        "temp_c": temp.round(1),
    })
    lines = [
        f"ZDH|{number}|{number}|I|Q10S|{start:%Y%m%d%H%M%S}|22.0|11.1|FO2|AIR|0",
        "ZDP{",
        *profile.to_csv(sep="|", header=False, index=False).splitlines(),
        "ZDP}",
        f"ZDT|{number}|{number}|{depth.max():.1f}|{start + timedelta(seconds=duration_s):%Y%m%d%H%M%S}"
        f"|{temp.min():.1f}|",
    ]
    return lines


def generate_dl7(output_path: Path, start: datetime):
    """
    Generate a DAN DL7 file with two dives two hours apart.
    """
    lines = ["FSH|^~<>{}|DIVELOG^1.0|ZXU|"]
    lines += ["ZRH|^~<>{}|DiveLog|1|meter|kPa|celsius|"]
    lines += _dl7_dive(1, start, 2400, 30.0)
    lines += _dl7_dive(2, start + timedelta(hours=2), 1800, 18.0)
    output_path.write_text("\r\n".join(lines) + "\r\n", encoding="ascii")
    print(f"Generated: {output_path} (2 dives)")


def generate_poseidon(header_path: Path, start: datetime, duration_s: int = 3600):
    """
    Generate a Poseidon MkVI header and its ``.csv`` sample stream.

    Samples are written every 10 seconds as ``time,type,value`` records.
    """
    header_path.write_text(
        "MkVI_Config\n"
        f"Dive started at: {start:%Y-%m-%d %H:%M:%S}\n"
        "Rig Serial number: 12345\n"
        "Firmware version: 1.4.7\n"
        "Helium percentage: 20\n"
        "Nitrogen percentage: 59\n"
        "\n",
        encoding="ascii"
    )

    times = np.arange(0, duration_s, 10)
    depth = dive_profile(duration_s, 40.0)[times]
    records = []
    for i, (t, d) in enumerate(zip(times, depth)):
        records.append((t, 8, int(round(d * 2))))           # half meters
        records.append((t, 6, int(120 + generate_noise(1, 3)[0])))
        records.append((t, 7, int(121 + generate_noise(1, 3)[0])))
        if i % 6 == 0:
            records.append((t, 20, 120 if d > 6 else 70))    # centibar
            records.append((t, 37, max(0, 99 - i // 6)))     # minutes
            records.append((t, 39, 90))                     # 18 C in 0.2 C steps
        if i == 0:
            records.append((t, 0, 1))                       # mouthpiece CC
            records.append((t, 85, 20))
            records.append((t, 86, 21))

    df = pd.DataFrame(records, columns=["time", "type", "value"])
    csv_path = header_path.with_suffix(".csv")
    df.to_csv(csv_path, header=False, index=False)
    print(f"Generated: {header_path} + {csv_path} ({len(times)} samples)")


def generate_seabear(output_path: Path, start: datetime, duration_s: int = 2400):
    """
    Generate a Seabear CSV log: comment header, blank line, sample table.
    """
    times = np.arange(0, duration_s, 10)
    depth = dive_profile(duration_s, 22.0)[times]
    df = pd.DataFrame({
        "Sample time (s)": times,
        "Sample depth (m)": depth.round(2),
        "Sample temperature (C)": (16 + generate_noise(len(times), 0.2)).round(1),
    })
    header = "\r\n".join([
        "//Hardware Version: SEABEAR H3",
        "//Software Version: 4.06",
        "//Serial number: 0000042",
        f"//{start:%Y-%m-%d %H:%M}",
        "//Log interval: 10 s",
    ])
    body = df.to_csv(sep=";", index=False, lineterminator="\r\n")
    output_path.write_text(header + "\r\n\r\n" + body, encoding="ascii")
    print(f"Generated: {output_path} ({len(times)} samples)")


def generate_manual(output_path: Path, start: datetime, dives: int = 5):
    """
    Generate a manually kept dive list.
    """
    rng = np.random.default_rng()
    df = pd.DataFrame({
        "number": np.arange(1, dives + 1),
        "date": [(start + timedelta(days=i)).strftime("%Y-%m-%d") for i in range(dives)],
        "time": [(start + timedelta(hours=i)).strftime("%H:%M") for i in range(dives)],
        "duration": rng.integers(30, 70, dives),
        "maxdepth": rng.uniform(8, 35, dives).round(1),
        "location": ["Reef & Wall"] * dives,
    })
    df.to_csv(output_path, index=False)
    print(f"Generated: {output_path} ({dives} dives)")


def main():
    parser = argparse.ArgumentParser(description="Generate sample data for the dive importer")
    parser.add_argument(
        "--output-dir", "-o",
        type=Path,
        default=Path("sample_data"),
        help="Output directory for generated files"
    )
    parser.add_argument(
        "--seed",
        type=int,
        help="Random seed for reproducible files"
    )

    args = parser.parse_args()

    if args.seed is not None:
        np.random.seed(args.seed)

    # Create output directory
    args.output_dir.mkdir(parents=True, exist_ok=True)

    start = datetime(2024, 6, 1, 9, 30, 0)
    generate_csv_dump(args.output_dir / "dive.csv", start)
    generate_dl7(args.output_dir / "dives.zxu", start)
    generate_poseidon(args.output_dir / "mkvi_dive.txt", start)
    generate_seabear(args.output_dir / "seabear.csv", start)
    generate_manual(args.output_dir / "manual.csv", start)

    print(f"\nAll files generated in: {args.output_dir.absolute()}")
    print("\nUsage guide:")
    print("1. dive-importer sample_data/dive.csv --format csv")
    print("2. dive-importer sample_data/dives.zxu --format dl7 --dump-documents out")
    print("3. dive-importer sample_data/mkvi_dive.txt --format poseidon --samples-out out")
    print("4. dive-importer sample_data/seabear.csv --format seabear -vv")
    print("5. dive-importer sample_data/manual.csv --format manual")


if __name__ == "__main__":
    main()
