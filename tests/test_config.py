"""
Tests for import settings and the transform command line helpers.
"""
import json
import logging

from dive_importer.core import (
    ImportSettings,
    ParameterSet,
    configure,
    get_settings,
    load_settings,
    save_settings,
)
from dive_importer.core.transform import (
    RecordingTransform,
    log_transform_command,
    xsltproc_command,
)
from dive_importer.core.models import DiveLog


class TestImportSettings:
    """Tests for ImportSettings persistence."""

    def teardown_method(self):
        """Restore default settings."""
        configure(ImportSettings())

    def test_defaults(self):
        """Test default values."""
        settings = ImportSettings()

        assert settings.verbose == 0
        assert settings.xslt_dir == "xslt"
        assert settings.default_template == "csv"

    def test_save_and_load(self, tmp_path):
        """Test JSON persistence."""
        path = tmp_path / "settings.json"
        save_settings(ImportSettings(verbose=2, xslt_dir="/usr/share/xslt"), path)

        with open(path, encoding="utf-8") as f:
            assert json.load(f)["verbose"] == 2

        loaded = load_settings(path)
        assert loaded == ImportSettings(verbose=2, xslt_dir="/usr/share/xslt")

    def test_from_partial_dict(self):
        """Test missing keys fall back to defaults."""
        assert ImportSettings.from_dict({"verbose": "3"}) == ImportSettings(verbose=3)

    def test_configure(self):
        """Test replacing the process-wide settings."""
        configure(ImportSettings(default_template="manualCSV"))

        assert get_settings().default_template == "manualCSV"


class TestTransformHelpers:
    """Tests for the xsltproc command line and recording engine."""

    def setup_method(self):
        """Set up test fixtures."""
        self.params = ParameterSet([("date", "20240601"), ("hw", "SEABEAR H3")])

    def teardown_method(self):
        """Restore default settings."""
        configure(ImportSettings())

    def test_xsltproc_command(self):
        """Test the command names every parameter and the stylesheet."""
        command = xsltproc_command(self.params, "csv")

        assert command == (
            "xsltproc --stringparam date 20240601 "
            "--stringparam hw 'SEABEAR H3' xslt/csv2xml.xslt -"
        )

    def test_xsltproc_command_with_file(self):
        """Test the command wraps the input file for manual testing."""
        command = xsltproc_command(self.params, "manualCSV", "dives.csv")

        assert command.startswith("(echo '<manualCSV>'; cat dives.csv; echo '</manualCSV>') | xsltproc")
        assert command.endswith("xslt/manualcsv2xml.xslt -")

    def test_logged_only_when_verbose(self, caplog):
        """Test the command is logged from verbosity 2 on."""
        with caplog.at_level(logging.INFO):
            log_transform_command(self.params, "csv")
            assert "xsltproc" not in caplog.text

            configure(ImportSettings(verbose=2))
            log_transform_command(self.params, "csv")
            assert "xsltproc" in caplog.text

    def test_recording_transform_dump(self, tmp_path):
        """Test recorded documents and parameters are written out."""
        engine = RecordingTransform()
        engine.transform("dives.zxu", b"<csv>1</csv>", DiveLog(), self.params)
        self.params.add("extra", "1")

        written = engine.dump(tmp_path / "out")

        assert [p.name for p in written] == ["dives_000.xml"]
        assert written[0].read_bytes() == b"<csv>1</csv>"
        params_text = (tmp_path / "out" / "dives_000.params").read_text(encoding="utf-8")
        assert params_text == "date=20240601\nhw=SEABEAR H3\n"
