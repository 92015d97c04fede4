"""Tests for calibration computation and its sanity bounds."""

from __future__ import annotations

import pytest

from printer_profiles import (
    CalibrationMeasurement,
    OutOfRangeError,
    PaletteType,
    compute_calibration,
    print_value_bounds,
    pulses_per_mm,
)
from printer_profiles.calibration import apply_calibration
from printer_profiles.constants import DEFAULT_PPM, PING_EXTRUSION_COUNTS

from conftest import make_profile


def _measurement(loading_offset: int = 32000, print_value: int = 3000, length: float = 100.0):
    return CalibrationMeasurement(
        loading_offset=loading_offset,
        print_value=print_value,
        calibration_gcode_length=length,
    )


# ---------------------------------------------------------------------------
# Pulses per mm
# ---------------------------------------------------------------------------


class TestPulsesPerMm:
    def test_ratio(self) -> None:
        assert pulses_per_mm(3000, 100) == pytest.approx(30.0)

    def test_unmeasured_length_rejected(self) -> None:
        with pytest.raises(ValueError):
            pulses_per_mm(3000, 0)

    def test_compute_returns_result(self) -> None:
        result = compute_calibration(_measurement())
        assert result.pulses_per_mm == pytest.approx(30.0)
        assert result.loading_offset == 32000
        assert result.calibration_gcode_length == 100.0


# ---------------------------------------------------------------------------
# Sanity bounds
# ---------------------------------------------------------------------------


class TestBounds:
    def test_print_value_bounds(self) -> None:
        assert print_value_bounds(100) == (2000, 4000)

    @pytest.mark.parametrize("print_value", [2000, 4000])
    def test_print_value_limits_inclusive(self, print_value: int) -> None:
        compute_calibration(_measurement(print_value=print_value))

    @pytest.mark.parametrize("print_value", [1999, 4001])
    def test_print_value_out_of_range(self, print_value: int) -> None:
        with pytest.raises(OutOfRangeError) as exc_info:
            compute_calibration(_measurement(print_value=print_value))
        assert exc_info.value.field == "print_value"
        assert (exc_info.value.lower, exc_info.value.upper) == (2000, 4000)

    @pytest.mark.parametrize("loading_offset", [2000, 90000])
    def test_loading_offset_limits_inclusive(self, loading_offset: int) -> None:
        compute_calibration(_measurement(loading_offset=loading_offset))

    @pytest.mark.parametrize("loading_offset", [1999, 90001])
    def test_loading_offset_out_of_range(self, loading_offset: int) -> None:
        with pytest.raises(OutOfRangeError) as exc_info:
            compute_calibration(_measurement(loading_offset=loading_offset))
        assert exc_info.value.field == "loading_offset"

    def test_unmeasured_model_is_a_precondition_error(self) -> None:
        with pytest.raises(ValueError):
            compute_calibration(_measurement(length=0))


# ---------------------------------------------------------------------------
# Profile integration
# ---------------------------------------------------------------------------


class TestProfileCalibration:
    def test_apply_derives_pulses_per_mm(self) -> None:
        profile = make_profile()
        apply_calibration(profile, compute_calibration(_measurement(print_value=3615, length=120.5)))
        assert profile.calibration.pulses_per_mm == pytest.approx(3615 / 120.5)
        assert profile.calibration.measured

    def test_uncalibrated_profile_has_zero_ppm(self) -> None:
        profile = make_profile()
        assert profile.calibration.pulses_per_mm == 0.0
        assert profile.ping_extrusion_length() == 0.0

    def test_palette2_uses_fixed_ppm(self) -> None:
        profile = make_profile(palette_type=PaletteType.PALETTE_2)
        assert profile.effective_pulses_per_mm() == DEFAULT_PPM
        assert profile.ping_extrusion_length() == pytest.approx(PING_EXTRUSION_COUNTS / DEFAULT_PPM)

    def test_pulses_per_mm_serialized(self) -> None:
        profile = make_profile()
        apply_calibration(profile, compute_calibration(_measurement()))
        assert profile.model_dump()["calibration"]["pulses_per_mm"] == pytest.approx(30.0)
