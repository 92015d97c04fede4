"""
Constraint propagation rules applied after a single-field edit.

Every function here is deterministic and free of I/O.  Out-of-range input
is never rejected: dependent fields are cascaded so the edited value stands
and the coupled ranges stay ordered.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import NamedTuple

from .models import (
    BedOrigin,
    CircularBed,
    PaletteType,
    PrintBed,
    PrinterProfile,
    RectangularBed,
)

logger = logging.getLogger(__name__)


class TripleField(str, Enum):
    MIN = "min"
    MID = "mid"
    MAX = "max"


class OrderedTriple(NamedTuple):
    min: float
    mid: float
    max: float

    def is_ordered(self) -> bool:
        return self.min <= self.mid <= self.max


# Profile fields that participate in a coupled triple, by their role in it.
TRANSITION_LENGTH_FIELDS: dict[str, TripleField] = {
    "min_purge_length": TripleField.MIN,
    "purge_length": TripleField.MID,
    "initial_purge_length": TripleField.MAX,
}

DENSITY_FIELDS: dict[str, TripleField] = {
    "min_density": TripleField.MIN,
    "min_first_layer_density": TripleField.MID,
    "max_density": TripleField.MAX,
}


def adjust_ordered_triple(
    current: OrderedTriple, edited: TripleField, new_value: float
) -> OrderedTriple:
    """
    Set one member of a ``(min, mid, max)`` triple and cascade its neighbours.

    The edited member keeps ``new_value``.  A neighbour it overtakes is
    pushed to the same value, and that push carries on to the next member
    if needed:

    - raising ``min`` past ``mid`` raises ``mid``, then possibly ``max``;
    - lowering ``max`` below ``mid`` lowers ``mid``, then possibly ``min``;
    - moving ``mid`` past either end drags that end along.

    Applying the same edit twice gives the same result as applying it once.
    """
    low, mid, high = current
    if edited is TripleField.MIN:
        low = new_value
        if low > mid:
            mid = low
            if mid > high:
                high = mid
    elif edited is TripleField.MAX:
        high = new_value
        if high < mid:
            mid = high
            if mid < low:
                low = mid
    else:
        mid = new_value
        if low > mid:
            low = mid
        if high < mid:
            high = mid
    return OrderedTriple(low, mid, high)


def collapse_triple(value: float) -> OrderedTriple:
    """Simplified editing: all three members take the same value."""
    return OrderedTriple(value, value, value)


def apply_transition_length_edit(
    profile: PrinterProfile, field: str, value: float, simplified: bool = False
) -> None:
    ts = profile.transition_settings
    if simplified:
        triple = collapse_triple(value)
    else:
        current = OrderedTriple(ts.min_purge_length, ts.purge_length, ts.initial_purge_length)
        triple = adjust_ordered_triple(current, TRANSITION_LENGTH_FIELDS[field], value)
    ts.min_purge_length, ts.purge_length, ts.initial_purge_length = triple


def apply_density_edit(profile: PrinterProfile, field: str, value: float) -> None:
    towers = profile.transition_settings.towers
    current = OrderedTriple(
        towers.min_density, towers.min_first_layer_density, towers.max_density
    )
    triple = adjust_ordered_triple(current, DENSITY_FIELDS[field], value)
    towers.min_density, towers.min_first_layer_density, towers.max_density = triple


# --- Print bed ---


def normalize_origin(bed: PrintBed) -> None:
    """Re-derive origin offsets for the non-custom origins."""
    if bed.origin is BedOrigin.BOTTOM_LEFT:
        bed.origin_offsets.x = 0.0
        bed.origin_offsets.y = 0.0
    elif bed.origin is BedOrigin.MIDDLE:
        extent_x, extent_y = bed.extent
        bed.origin_offsets.x = extent_x / 2
        bed.origin_offsets.y = extent_y / 2


def set_bed_shape(bed: PrintBed, shape: str) -> None:
    """Switch between the rectangular and circular variants.

    The new variant starts with zeroed dimensions.
    """
    if shape == bed.dimensions.shape:
        return
    if shape == "circular":
        bed.dimensions = CircularBed()
    elif shape == "rectangular":
        bed.dimensions = RectangularBed()
    else:
        raise ValueError(f"Unknown bed shape: {shape!r}")
    normalize_origin(bed)


def set_bed_dimension(bed: PrintBed, name: str, value: float) -> None:
    if not hasattr(bed.dimensions, name) or name == "shape":
        raise ValueError(f"'{name}' does not apply to a {bed.dimensions.shape} bed")
    setattr(bed.dimensions, name, value)
    normalize_origin(bed)


def set_bed_origin(bed: PrintBed, origin: BedOrigin | str) -> None:
    # Switching to CUSTOM keeps the current offsets as a starting point.
    bed.origin = BedOrigin(origin)
    normalize_origin(bed)


def set_origin_offset(bed: PrintBed, axis: str, value: float) -> None:
    """Entering an offset by hand makes the origin custom."""
    if axis not in ("x", "y"):
        raise ValueError(f"Unknown axis: {axis!r}")
    bed.origin = BedOrigin.CUSTOM
    setattr(bed.origin_offsets, axis, value)


# --- Extruders and accessory ---


def set_extruder_count(profile: PrinterProfile, count: int) -> None:
    profile.extruder_count = count
    if profile.print_extruder is not None and profile.print_extruder >= count:
        logger.debug(
            "print_extruder %d no longer fits %d extruder(s); resetting to ask",
            profile.print_extruder,
            count,
        )
        profile.print_extruder = None


def set_palette_type(profile: PrinterProfile, palette_type: PaletteType | str) -> None:
    profile.palette_type = PaletteType(palette_type)
    if not profile.is_palette2():
        profile.integrated = False


def normalize(profile: PrinterProfile, simplified: bool = False) -> None:
    """Re-apply every propagation rule to a whole profile.

    Used on profiles that did not go through single-field edits, such as
    imported documents.
    """
    ts = profile.transition_settings
    apply_transition_length_edit(profile, "purge_length", ts.purge_length, simplified)
    apply_density_edit(
        profile, "min_first_layer_density", ts.towers.min_first_layer_density
    )
    normalize_origin(profile.print_bed)
    set_extruder_count(profile, profile.extruder_count)
    set_palette_type(profile, profile.palette_type)
