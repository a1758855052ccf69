"""
Tests for the Seabear CSV log decoder.
"""
import logging

import pytest

from dive_importer.core import (
    DiveLog,
    ParameterSet,
    RecordingTransform,
    UnrecognizedFormatError,
    parse_seabear_log,
)
from dive_importer.core.seabear_import import (
    find_body_start,
    parse_seabear_csv_file,
    parse_seabear_header,
)

HEADER = (
    b"//Hardware Version: SEABEAR H3\r\n"
    b"//Software Version: 4.06\r\n"
    b"//Serial number: 0000042\r\n"
    b"//2012-09-14 10:25\r\n"
    b"//Log interval: 10 s\r\n"
)

BODY = (
    b"Sample time (s);Sample depth (m);Sample temperature (C)\r\n"
    b"0;0.0;16.0\r\n"
    b"10;3.2;15.8\r\n"
)

LOG = HEADER + b"\r\n" + BODY


class TestFindBodyStart:
    """Tests for find_body_start function."""

    def test_crlf_separator(self):
        """Test the body starts after the CRLF blank line."""
        start, newline = find_body_start(LOG)

        assert LOG[start:] == BODY
        assert newline == b"\r\n"

    def test_last_separator_wins(self):
        """Test only the last blank line counts."""
        buffer = b"//a\n\n//b\n\nbody\n"

        start, newline = find_body_start(buffer)

        assert buffer[start:] == b"body\n"
        assert newline == b"\n"

    def test_crlf_preferred_over_lf(self):
        """Test LF blank lines are only used without CRLF ones."""
        buffer = b"//a\r\n\r\nmid\n\nbody\n"

        start, _ = find_body_start(buffer)

        assert buffer[start:] == b"mid\n\nbody\n"

    def test_no_separator(self):
        """Test a buffer without blank line is not a Seabear log."""
        with pytest.raises(UnrecognizedFormatError):
            find_body_start(b"//a\r\n//b\r\n0;1\r\n")


class TestParseSeabearHeader:
    """Tests for parse_seabear_header function."""

    def test_device_and_columns(self):
        """Test hardware, interval and column indexes."""
        params = ParameterSet()

        parse_seabear_header(LOG, params)

        values = params.to_dict()
        assert values["hw"] == "SEABEAR H3"
        assert values["delta"] == "10"
        assert values["timeField"] == "0"
        assert values["depthField"] == "1"
        assert values["tempField"] == "2"
        assert values["po2Field"] == "-1"
        assert values["cnsField"] == "-1"
        assert values["separatorIndex"] == "2"
        assert params.key(len(params) - 1) == "separatorIndex"

    def test_rebreather_columns(self):
        """Test sensor columns are told apart from the pO2 column."""
        body = b"Sample time;Sample sensor1 pO2;Sample pO2;Sample CNS [%]\n1;2;3;4\n"
        params = ParameterSet()

        parse_seabear_header(b"//x\n\n" + body, params)

        values = params.to_dict()
        assert values["o2sensor1Field"] == "1"
        assert values["po2Field"] == "2"
        assert values["cnsField"] == "3"
        assert "hw" not in values

    def test_no_separator_adds_nothing(self):
        """Test an unrecognized buffer leaves the parameters alone."""
        params = ParameterSet()

        parse_seabear_header(b"0;1\n", params)

        assert len(params) == 0


class TestParseSeabearCsvFile:
    """Tests for parse_seabear_csv_file and parse_seabear_log functions."""

    def setup_method(self):
        """Set up test fixtures."""
        self.log = DiveLog()
        self.engine = RecordingTransform()

    def test_date_time_overwrite(self):
        """Test the header date and time replace the defaults."""
        params = ParameterSet([("timeField", "0")])

        status = parse_seabear_csv_file("log.csv", LOG, params, "csv", self.log, self.engine)

        assert status == 0
        assert params.items() == [
            ("timeField", "0"),
            ("date", "20120914"),
            ("time", "11025"),
        ]

    def test_body_only_handed_over(self):
        """Test the header is discarded before wrapping."""
        parse_seabear_csv_file("log.csv", LOG, ParameterSet(), "csv", self.log, self.engine)

        assert self.engine.calls[0].document == b"<csv>" + BODY + b"</csv>"

    def test_lf_log(self):
        """Test a log with LF newlines."""
        buffer = LOG.replace(b"\r\n", b"\n")
        params = ParameterSet()

        parse_seabear_csv_file("log.csv", buffer, params, "csv", self.log, self.engine)

        assert params.items() == [("date", "20120914"), ("time", "11025")]
        assert self.engine.calls[0].document == b"<csv>" + BODY.replace(b"\r\n", b"\n") + b"</csv>"

    def test_without_serial_number_keeps_defaults(self):
        """Test the current date stays when the header has no date line."""
        params = ParameterSet()

        parse_seabear_csv_file("log.csv", b"//x\n\n0;1\n", params, "csv", self.log, self.engine)

        assert params.key(0) == "date"
        assert params.value(0) != "20120914"
        assert params.value(1).startswith("1")
        assert len(params.value(1)) == 5

    def test_short_date_line_keeps_defaults(self):
        """Test a truncated date line is ignored."""
        params = ParameterSet()

        parse_seabear_csv_file(
            "log.csv", b"//Serial number: 1\n//2012\n\n0;1\n", params, "csv", self.log, self.engine
        )

        assert len(params.value(0)) == 8
        assert params.value(0) != "20120914"

    def test_empty_body_skips_engine(self, caplog):
        """Test a log with nothing after its header is not handed to the engine."""
        params = ParameterSet()

        with caplog.at_level(logging.INFO):
            status = parse_seabear_csv_file("log.csv", HEADER + b"\r\n", params, "csv", self.log, self.engine)

        assert status == 0
        assert self.engine.calls == []
        assert "nothing to import" in caplog.text

    def test_missing_separator_fails(self):
        """Test a buffer without blank line fails as unrecognized."""
        buffer = b"//Serial number: 1\r\n//2012-09-14 10:25\r\n0;1\r\n"

        with pytest.raises(UnrecognizedFormatError) as exc_info:
            parse_seabear_csv_file("log.csv", buffer, ParameterSet(), "csv", self.log, self.engine)

        assert exc_info.value.filename == "log.csv"
        assert self.engine.calls == []

    def test_parse_seabear_log(self, tmp_path):
        """Test the whole file path with header parameters first."""
        path = tmp_path / "seabear.csv"
        path.write_bytes(LOG)

        status = parse_seabear_log(str(path), self.log, self.engine)

        assert status == 0
        keys = [k for k, _ in self.engine.calls[0].params]
        assert keys[:3] == ["hw", "delta", "timeField"]
        assert keys[-3:] == ["separatorIndex", "date", "time"]
        assert dict(self.engine.calls[0].params)["date"] == "20120914"

    def test_parse_seabear_log_unrecognized(self, tmp_path):
        """Test a file without blank line is rejected by the log entry point."""
        path = tmp_path / "seabear.csv"
        path.write_bytes(b"0;1\n1;2\n")

        with pytest.raises(UnrecognizedFormatError):
            parse_seabear_log(str(path), self.log, self.engine)
