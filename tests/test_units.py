"""
Tests for unit conversions and the sample mapper.
"""
import pytest

from dive_importer.core import Sample, SampleFormat, ValueParseError, add_sample_data
from dive_importer.core.units import (
    bar_to_mbar,
    c_to_mkelvin,
    convert_sample_value,
    f_to_mkelvin,
    feet_to_mm,
    lrint,
    psi_to_mbar,
)


class TestConversions:
    """Tests for the unit conversion helpers."""

    def test_lrint_ties_to_even(self):
        """Test halfway values round to the even neighbour."""
        assert lrint(2.5) == 2
        assert lrint(3.5) == 4
        assert lrint(-2.5) == -2
        assert lrint(2.6) == 3

    def test_feet_to_mm(self):
        """Test feet conversion."""
        assert feet_to_mm(10) == 3048
        assert feet_to_mm(0) == 0

    def test_temperatures(self):
        """Test Fahrenheit and Celsius to millikelvin."""
        assert f_to_mkelvin(32) == 273150
        assert f_to_mkelvin(212) == 373150
        assert c_to_mkelvin(0) == 273150
        assert c_to_mkelvin(-10) == 263150

    def test_pressures(self):
        """Test psi and bar to millibar."""
        assert psi_to_mbar(14.5037738) == 1000
        assert bar_to_mbar(200) == 200000

    def test_lrint_rejects_overflow(self):
        """Test values a float or an integer cannot hold raise a parse error."""
        with pytest.raises(ValueParseError):
            lrint(float("inf"))
        with pytest.raises(ValueParseError):
            lrint(float("nan"))
        with pytest.raises(ValueParseError):
            bar_to_mbar(10 ** 400)

    def test_scaled_value_overflow(self):
        """Test a finite raw value that overflows once scaled."""
        with pytest.raises(ValueParseError):
            convert_sample_value(SampleFormat.CSV_DEPTH, 1e306)
        with pytest.raises(ValueParseError):
            convert_sample_value(SampleFormat.POSEIDON_DEPTH, 10 ** 400)

    def test_overflow_leaves_sample_untouched(self):
        """Test a failed conversion writes nothing."""
        sample = Sample(time=0)

        with pytest.raises(ValueParseError):
            add_sample_data(sample, SampleFormat.CSV_PRESSURE, 1e307)

        assert sample.pressure_mbar[0] is None


class TestAddSampleData:
    """Tests for add_sample_data function."""

    def setup_method(self):
        """Set up test fixtures."""
        self.sample = Sample(time=10)

    def test_csv_depth(self):
        """Test generic CSV depth values are feet."""
        add_sample_data(self.sample, SampleFormat.CSV_DEPTH, 100.0)

        assert self.sample.depth_mm == 30480

    def test_csv_temperature(self):
        """Test generic CSV temperatures are Fahrenheit."""
        add_sample_data(self.sample, SampleFormat.CSV_TEMP, 50.0)

        assert self.sample.temperature_mk == 283150

    def test_csv_pressure(self):
        """Test generic CSV pressures are a quarter psi."""
        add_sample_data(self.sample, SampleFormat.CSV_PRESSURE, 100.0)

        assert self.sample.pressure_mbar[0] == psi_to_mbar(400.0)
        assert self.sample.pressure_mbar[1] is None

    @pytest.mark.parametrize("fmt, value, attr, expected", [
        (SampleFormat.POSEIDON_DEPTH, 25, "depth_mm", 12500),
        (SampleFormat.POSEIDON_TEMP, 90, "temperature_mk", 291150),
        (SampleFormat.POSEIDON_SETPOINT, 130, "setpoint_mbar", 1300),
        (SampleFormat.POSEIDON_NDL, 5, "ndl_s", 300),
        (SampleFormat.POSEIDON_CEILING, 3, "stopdepth_mm", 3000),
    ])
    def test_poseidon_scalars(self, fmt, value, attr, expected):
        """Test Poseidon raw units."""
        add_sample_data(self.sample, fmt, value)

        assert getattr(self.sample, attr) == expected

    def test_poseidon_sensors(self):
        """Test the two O2 sensors land in their own slots."""
        add_sample_data(self.sample, SampleFormat.POSEIDON_SENSOR1, 98)
        add_sample_data(self.sample, SampleFormat.POSEIDON_SENSOR2, 102)

        assert self.sample.o2sensor_mbar == [980, 1020]

    def test_other_fields_untouched(self):
        """Test only the mapped field is written."""
        add_sample_data(self.sample, SampleFormat.POSEIDON_DEPTH, 10)

        assert self.sample.time == 10
        assert self.sample.temperature_mk is None
        assert self.sample.setpoint_mbar is None
