"""
Calibration computation: converts calibration-print measurements into a
pulses-per-mm coefficient, rejecting implausible measurements.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .constants import (
    LOADING_OFFSET_MAX,
    LOADING_OFFSET_MIN,
    PRINT_VALUE_MAX_RATIO,
    PRINT_VALUE_MIN_RATIO,
)
from .errors import OutOfRangeError
from .models import PrinterProfile

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CalibrationMeasurement:
    """Raw values read off the accessory after a calibration print."""

    loading_offset: int  # pulses from staging position to "ready"
    print_value: int  # pulses counted during the calibration print
    calibration_gcode_length: float  # expected filament length of the model, mm


@dataclass(frozen=True)
class CalibrationResult:
    loading_offset: int
    print_value: int
    calibration_gcode_length: float
    pulses_per_mm: float


def print_value_bounds(calibration_gcode_length: float) -> tuple[float, float]:
    """Plausible ``print_value`` range for a calibration model of the given length."""
    return (
        PRINT_VALUE_MIN_RATIO * calibration_gcode_length,
        PRINT_VALUE_MAX_RATIO * calibration_gcode_length,
    )


def pulses_per_mm(print_value: float, calibration_gcode_length: float) -> float:
    if calibration_gcode_length <= 0:
        raise ValueError("calibration_gcode_length must be measured (> 0) first")
    return print_value / calibration_gcode_length


def compute_calibration(measurement: CalibrationMeasurement) -> CalibrationResult:
    """
    Validate a measurement and derive its pulses-per-mm coefficient.

    Raises:
        ValueError: ``calibration_gcode_length`` is not positive.  Callers
            must gate calibration on a successful model measurement.
        OutOfRangeError: ``loading_offset`` or ``print_value`` is outside its
            sanity bounds.  The measurement should be repeated.
    """
    length = measurement.calibration_gcode_length
    if length <= 0:
        raise ValueError("calibration_gcode_length must be measured (> 0) first")

    if not LOADING_OFFSET_MIN <= measurement.loading_offset <= LOADING_OFFSET_MAX:
        raise OutOfRangeError(
            "loading_offset", measurement.loading_offset, LOADING_OFFSET_MIN, LOADING_OFFSET_MAX
        )

    lower, upper = print_value_bounds(length)
    if not lower <= measurement.print_value <= upper:
        raise OutOfRangeError("print_value", measurement.print_value, lower, upper)

    ppm = pulses_per_mm(measurement.print_value, length)
    logger.debug(
        "Calibration accepted: print_value=%s length=%s ppm=%.4f",
        measurement.print_value,
        length,
        ppm,
    )
    return CalibrationResult(
        loading_offset=measurement.loading_offset,
        print_value=measurement.print_value,
        calibration_gcode_length=length,
        pulses_per_mm=ppm,
    )


def apply_calibration(profile: PrinterProfile, result: CalibrationResult) -> None:
    """Stage accepted calibration values on a profile; pulses-per-mm follows from them."""
    profile.calibration.loading_offset = result.loading_offset
    profile.calibration.print_value = result.print_value
    profile.calibration.calibration_gcode_length = result.calibration_gcode_length
