"""
Tests for the transform parameter set.
"""
import pytest

from dive_importer.core import ParameterSet


class TestParameterSet:
    """Tests for ParameterSet class."""

    def setup_method(self):
        """Set up test fixtures."""
        self.params = ParameterSet([("timeField", "0"), ("depthField", "1")])

    def test_add_keeps_order(self):
        """Test parameters are appended in order."""
        self.params.add("date", "20240601")
        self.params.add_int("delta", 10)

        assert len(self.params) == 4
        assert self.params.key(2) == "date"
        assert self.params.value(3) == "10"
        assert list(self.params)[-1] == ("delta", "10")

    def test_duplicate_keys(self):
        """Test duplicate keys are kept and get returns the last one."""
        self.params.add("date", "20240601")
        self.params.add("date", "20240602")

        assert len(self.params) == 4
        assert self.params.get("date") == "20240602"
        assert self.params.get("missing") is None
        assert self.params.get("missing", "x") == "x"

    def test_set_value(self):
        """Test overwriting a value keeps its key."""
        self.params.set_value(1, "5")

        assert self.params.key(1) == "depthField"
        assert self.params.value(1) == "5"

    def test_resize(self):
        """Test truncating back to an earlier size."""
        self.params.add("airTemp", "22")
        self.params.add("waterTemp", "18")

        self.params.resize(2)

        assert self.params.items() == [("timeField", "0"), ("depthField", "1")]

    def test_resize_cannot_grow(self):
        """Test resizing beyond the current size is rejected."""
        with pytest.raises(ValueError):
            self.params.resize(5)
        with pytest.raises(ValueError):
            self.params.resize(-1)

    def test_copy_is_independent(self):
        """Test a copy does not share its list."""
        copy = self.params.copy()
        copy.add("date", "20240601")

        assert len(self.params) == 2
        assert len(copy) == 3

    def test_to_dict(self):
        """Test mapping view with later duplicates winning."""
        self.params.add("timeField", "3")

        assert self.params.to_dict() == {"timeField": "3", "depthField": "1"}
