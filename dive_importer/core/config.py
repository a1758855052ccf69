"""
Import settings and their JSON persistence.
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any


@dataclass
class ImportSettings:
    """Settings read by the decoders during an import run."""
    verbose: int = 0                 # >= 2 logs the equivalent xsltproc command line
    xslt_dir: str = "xslt"           # where the transform stylesheets live
    default_template: str = "csv"    # template/tag for plain CSV through the transform engine

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "verbose": self.verbose,
            "xslt_dir": self.xslt_dir,
            "default_template": self.default_template
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ImportSettings:
        """Deserialize from dictionary."""
        return cls(
            verbose=int(data.get("verbose", 0)),
            xslt_dir=data.get("xslt_dir", "xslt"),
            default_template=data.get("default_template", "csv")
        )


_settings = ImportSettings()


def get_settings() -> ImportSettings:
    """Return the process-wide settings."""
    return _settings


def configure(settings: ImportSettings) -> None:
    """Replace the process-wide settings. Not to be called while decoding."""
    global _settings
    _settings = settings


def load_settings(path: Path | str) -> ImportSettings:
    """Load settings from a JSON file."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    return ImportSettings.from_dict(data)


def save_settings(settings: ImportSettings, path: Path | str) -> None:
    """Write settings to a JSON file."""
    with open(path, "w", encoding="utf-8") as f:
        json.dump(settings.to_dict(), f, indent=2)
