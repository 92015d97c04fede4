"""
Full invariant check of a printer profile.

Returns per-field violations instead of raising, so callers can route the
user to the offending group of fields.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from .constants import (
    EXTRUDER_COUNT_MAX,
    EXTRUDER_COUNT_MIN,
    TARGET_POSITION_MAX,
    TARGET_POSITION_MIN,
    TRANSITION_MAX_LENGTH,
    TRANSITION_MAX_LENGTH_ADVANCED,
    TRANSITION_MIN_LENGTH,
    TRANSITION_MIN_LENGTH_ADVANCED,
)
from .errors import FieldViolation
from .models import BedOrigin, CircularBed, PrinterProfile

if TYPE_CHECKING:
    from .registry import ProfileRegistry


def transition_length_bounds(simplified: bool) -> tuple[float, float]:
    if simplified:
        return TRANSITION_MIN_LENGTH, TRANSITION_MAX_LENGTH
    return TRANSITION_MIN_LENGTH_ADVANCED, TRANSITION_MAX_LENGTH_ADVANCED


def validate_profile(
    profile: PrinterProfile,
    registry: Optional["ProfileRegistry"] = None,
    simplified: bool = False,
    replacing: Optional[PrinterProfile] = None,
) -> list[FieldViolation]:
    """
    Check every profile invariant.

    Args:
        profile: The profile to check.
        registry: If given, the name must be unique among its other profiles.
        simplified: Apply simplified-mode rules (collapsed purge lengths,
            narrower transition-length bounds).
        replacing: Registry entry the profile will replace; excluded from
            the uniqueness check.

    Returns:
        List of violations, empty when the profile is valid.
    """
    violations: list[FieldViolation] = []

    def fail(field: str, message: str) -> None:
        violations.append(FieldViolation(field, message))

    # Name
    name = profile.profile_name.strip()
    if not name:
        fail("profile_name", "Profile name is required")
    elif registry is not None and not registry.is_name_available(
        name, excluding=replacing or profile
    ):
        fail("profile_name", f"A profile named '{name}' already exists")

    # Print bed
    bed = profile.print_bed
    if isinstance(bed.dimensions, CircularBed):
        if bed.dimensions.diameter <= 0:
            fail("print_bed.diameter", "Bed diameter must be greater than 0")
    else:
        if bed.dimensions.x <= 0:
            fail("print_bed.x", "Bed width must be greater than 0")
        if bed.dimensions.y <= 0:
            fail("print_bed.y", "Bed depth must be greater than 0")
    if bed.origin is not BedOrigin.CUSTOM:
        extent_x, extent_y = bed.extent
        expected = (0.0, 0.0) if bed.origin is BedOrigin.BOTTOM_LEFT else (extent_x / 2, extent_y / 2)
        if (bed.origin_offsets.x, bed.origin_offsets.y) != expected:
            fail("print_bed.origin_offsets", f"Offsets do not match the {bed.origin.value} origin")

    # Hardware
    if profile.nozzle_diameter <= 0:
        fail("nozzle_diameter", "Nozzle diameter must be greater than 0")
    if profile.filament_diameter <= 0:
        fail("filament_diameter", "Filament diameter must be greater than 0")
    if not EXTRUDER_COUNT_MIN <= profile.extruder_count <= EXTRUDER_COUNT_MAX:
        fail(
            "extruder_count",
            f"Extruder count must be between {EXTRUDER_COUNT_MIN} and {EXTRUDER_COUNT_MAX}",
        )
    if profile.print_extruder is not None and not (
        0 <= profile.print_extruder < profile.extruder_count
    ):
        fail("print_extruder", "Print extruder must be one of the printer's extruders")
    if profile.bowden_tube is not None and profile.bowden_tube <= 0:
        fail("bowden_tube", "Bowden tube length must be greater than 0")
    if profile.firmware_purge < 0:
        fail("firmware_purge", "Firmware purge cannot be negative")
    if profile.integrated and not profile.is_palette2():
        fail("integrated", "Integrated mode requires a Palette 2 generation accessory")
    if not profile.input_parsers:
        fail("input_parsers", "At least one input format must be accepted")

    # Transitions
    ts = profile.transition_settings
    if not ts.min_purge_length <= ts.purge_length <= ts.initial_purge_length:
        fail(
            "transition_settings.purge_length",
            "Purge lengths must satisfy minimum <= purge <= initial",
        )
    if simplified and not ts.min_purge_length == ts.purge_length == ts.initial_purge_length:
        fail(
            "transition_settings.purge_length",
            "Purge lengths must be equal in simplified mode",
        )
    low, high = transition_length_bounds(simplified)
    for field in ("min_purge_length", "purge_length", "initial_purge_length"):
        value = getattr(ts, field)
        if not low <= value <= high:
            fail(f"transition_settings.{field}", f"Must be between {low} and {high} mm")
    if not TARGET_POSITION_MIN <= ts.target_position <= TARGET_POSITION_MAX:
        fail(
            "transition_settings.target_position",
            f"Must be between {TARGET_POSITION_MIN} and {TARGET_POSITION_MAX}",
        )

    towers = ts.towers
    if not towers.min_density <= towers.min_first_layer_density <= towers.max_density:
        fail(
            "transition_settings.towers.min_first_layer_density",
            "Densities must satisfy minimum <= first layer minimum <= maximum",
        )
    for field in ("min_density", "min_first_layer_density", "max_density"):
        value = getattr(towers, field)
        if not 0 <= value <= 1:
            fail(f"transition_settings.towers.{field}", "Density must be between 0 and 1")

    # Calibration
    calibration = profile.calibration
    for field in ("loading_offset", "print_value", "calibration_gcode_length"):
        if getattr(calibration, field) < 0:
            fail(f"calibration.{field}", "Cannot be negative")

    return violations
