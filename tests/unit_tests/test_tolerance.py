"""Unit tests for mass tolerances."""

import math

import pytest

from massalign.exceptions import InvalidToleranceError
from massalign.tolerance import Tolerance, as_tolerance


class TestConstruction:
    """Test tolerance construction and validation."""

    def test_default_is_10_ppm(self):
        """Test the default tolerance."""
        tol = Tolerance()
        assert tol.value == 10.0
        assert tol.is_ppm

    def test_presets(self):
        """Test the ppm and Dalton constructors."""
        assert Tolerance.ppm(5).unit == "ppm"
        assert Tolerance.da(0.02).unit == "da"
        assert Tolerance.da(0.02).value == pytest.approx(0.02)

    def test_parse(self):
        """Test parsing tolerance strings."""
        assert Tolerance.parse("10ppm") == Tolerance.ppm(10.0)
        assert Tolerance.parse("0.02 Da") == Tolerance.da(0.02)
        assert Tolerance.parse(" 5PPM ") == Tolerance.ppm(5.0)

    def test_parse_invalid(self):
        """Test that malformed strings are rejected."""
        with pytest.raises(InvalidToleranceError):
            Tolerance.parse("ten ppm")
        with pytest.raises(InvalidToleranceError):
            Tolerance.parse("10")

    def test_negative_rejected(self):
        """Test that negative tolerances are rejected."""
        with pytest.raises(InvalidToleranceError):
            Tolerance.da(-0.1)

    def test_non_finite_rejected(self):
        """Test that NaN and infinite tolerances are rejected."""
        with pytest.raises(InvalidToleranceError):
            Tolerance.ppm(math.nan)
        with pytest.raises(InvalidToleranceError):
            Tolerance.da(math.inf)

    def test_unknown_unit_rejected(self):
        """Test that unknown units are rejected."""
        with pytest.raises(InvalidToleranceError):
            Tolerance(1.0, "mmu")

    def test_is_value_error(self):
        """Test that tolerance errors can be caught as ValueError."""
        with pytest.raises(ValueError):
            Tolerance.da(-1.0)


class TestComparison:
    """Test mass comparison under a tolerance."""

    def test_dalton_boundary_inclusive(self):
        """Test that a difference of exactly the tolerance is within."""
        tol = Tolerance.da(0.5)
        assert tol.within(100.0, 100.5)
        assert tol.within(100.0, 99.5)
        assert not tol.within(100.0, 100.500001)

    def test_ppm(self):
        """Test relative comparison."""
        tol = Tolerance.ppm(10)
        assert tol.within(1000.0, 1000.009)
        assert not tol.within(1000.0, 1000.011)

    def test_ppm_symmetric(self):
        """Test that argument order does not matter."""
        tol = Tolerance.ppm(10)
        for a, b in [(1000.0, 1000.01), (500.0, 500.005), (100.0, 100.002)]:
            assert tol.within(a, b) == tol.within(b, a)

    def test_zero_tolerance(self):
        """Test that a zero tolerance only accepts equal masses."""
        tol = Tolerance.da(0.0)
        assert tol.within(57.021464, 57.021464)
        assert not tol.within(57.021464, 57.021465)

    def test_dalton_bounds(self):
        """Test the mass window for absolute tolerances."""
        assert Tolerance.da(0.5).bounds(100.0) == (99.5, 100.5)

    def test_ppm_bounds_contain_window(self):
        """Test that ppm bounds include every mass that is within tolerance."""
        tol = Tolerance.ppm(10)
        low, high = tol.bounds(1000.0)
        assert low < 1000.0 < high
        assert tol.within(1000.0, 1000.0 + 0.0099)
        assert low <= 1000.0 - 0.0099
        assert high >= 1000.0 + 0.0099


class TestAsTolerance:
    """Test coercion of user input."""

    def test_none(self):
        """Test the default."""
        assert as_tolerance(None) == Tolerance()

    def test_number_is_dalton(self):
        """Test that plain numbers are Dalton."""
        assert as_tolerance(0.01) == Tolerance.da(0.01)

    def test_string(self):
        """Test that strings are parsed."""
        assert as_tolerance("5ppm") == Tolerance.ppm(5.0)

    def test_passthrough(self):
        """Test that tolerances are returned as-is."""
        tol = Tolerance.ppm(3)
        assert as_tolerance(tol) is tol
