"""
Tests for the escape-and-wrap markup helper.
"""
import logging

from dive_importer.core import markup, wrap_in_markup, wrapped_size


class TestWrapInMarkup:
    """Tests for wrap_in_markup function."""

    def test_escapes_ampersand(self):
        """Test the ampersand is escaped and the payload wrapped."""
        buf = bytearray(b"A&B")

        wrap_in_markup(buf, "x")

        assert bytes(buf) == b"<x>A&amp;B</x>"

    def test_plain_payload(self):
        """Test a payload without ampersands is only wrapped."""
        buf = bytearray(b"1,2,3\n4,5,6\n")

        wrap_in_markup(buf, "csv")

        assert bytes(buf) == b"<csv>1,2,3\n4,5,6\n</csv>"

    def test_empty_is_noop(self, caplog):
        """Test empty input is left alone without a warning."""
        buf = bytearray()

        with caplog.at_level(logging.INFO):
            wrap_in_markup(buf, "csv")

        assert buf == bytearray()
        assert not [r for r in caplog.records if r.levelno >= logging.WARNING]

    def test_size_formula(self):
        """Test wrapped length is original + 4 per ampersand + 2 tags + 5."""
        for payload in [b"&", b"&&a&", b"a&b&c&d", b"R&D;&amp;"]:
            buf = bytearray(payload)
            wrap_in_markup(buf, "manualCSV")
            expected = len(payload) + 4 * payload.count(b"&") + 2 * len("manualCSV") + 5
            assert len(buf) == expected
            assert wrapped_size(payload, "manualCSV") == expected

    def test_consecutive_ampersands(self):
        """Test neighbouring ampersands are escaped independently."""
        buf = bytearray(b"&&")

        wrap_in_markup(buf, "t")

        assert bytes(buf) == b"<t>&amp;&amp;</t>"

    def test_no_offset_warning(self, caplog):
        """Test a normal wrap does not report a cursor mismatch."""
        buf = bytearray(b"a&b,c&d")

        with caplog.at_level(logging.WARNING):
            wrap_in_markup(buf, "csv")

        assert "off by" not in caplog.text

    def test_offset_warning_on_size_mismatch(self, monkeypatch, caplog):
        """Test a size formula that disagrees with the fill is reported, not raised."""
        exact = markup.wrapped_size
        monkeypatch.setattr(markup, "wrapped_size", lambda data, tag: exact(data, tag) + 2)
        buf = bytearray(b"a&b")

        with caplog.at_level(logging.WARNING):
            result = wrap_in_markup(buf, "csv")

        assert result is None
        assert "write cursor off by 2" in caplog.text
        assert bytes(buf[2:]) == b"<csv>a&amp;b</csv>"
