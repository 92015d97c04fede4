from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field, computed_field

from .constants import (
    DEFAULT_PPM,
    DEFAULT_PURGE_LENGTH,
    FIRST_PIECE_MIN_LENGTH,
    FIRST_PIECE_MIN_LENGTH_P2,
    PING_EXTRUSION_COUNTS,
)


class PaletteType(str, Enum):
    PALETTE = "Palette/Palette+"
    PALETTE_2 = "Palette 2"
    PALETTE_2_PRO = "Palette 2 Pro"

    @property
    def generation(self) -> int:
        return 1 if self is PaletteType.PALETTE else 2


class TransitionType(int, Enum):
    NONE = 0
    TOWER = 1
    SIDE = 2


class BedOrigin(str, Enum):
    BOTTOM_LEFT = "bottomleft"
    MIDDLE = "middle"
    CUSTOM = "custom"


class _Model(BaseModel):
    # Assignments are type-checked; cross-field rules live in constraints.py
    model_config = {"validate_assignment": True}


class RectangularBed(_Model):
    shape: Literal["rectangular"] = "rectangular"
    x: float = 0.0
    y: float = 0.0


class CircularBed(_Model):
    shape: Literal["circular"] = "circular"
    diameter: float = 0.0


class Point(_Model):
    x: float = 0.0
    y: float = 0.0


class PrintBed(_Model):
    """
    Print bed geometry.

    ``dimensions`` is a tagged union on ``shape``: exactly one of the
    rectangular or circular variants exists at a time.  Origin offsets are
    derived for ``BOTTOM_LEFT`` and ``MIDDLE`` and free-form for ``CUSTOM``.
    """

    dimensions: RectangularBed | CircularBed = Field(
        default_factory=RectangularBed, discriminator="shape"
    )
    origin: BedOrigin = BedOrigin.BOTTOM_LEFT
    origin_offsets: Point = Field(default_factory=Point)

    @property
    def circular(self) -> bool:
        return isinstance(self.dimensions, CircularBed)

    @property
    def extent(self) -> tuple[float, float]:
        """Bed size along (x, y); a circular bed spans its diameter on both axes."""
        if isinstance(self.dimensions, CircularBed):
            return self.dimensions.diameter, self.dimensions.diameter
        return self.dimensions.x, self.dimensions.y


class TowerSettings(_Model):
    print_speed: float | Literal["auto"] = "auto"
    extrusion_width: float | Literal["auto"] = "auto"
    min_density: float = 0.05
    min_first_layer_density: float = 0.8
    max_density: float = 1.0
    perimeter_speed_multiplier: float = 0.5
    force_bottom_perimeter: bool = True
    infill_perimeter_overlap: float | Literal["auto"] = "auto"


class SideTransitionSettings(_Model):
    purge_speed: float = 4.0
    purge_in_place: bool = False
    coordinates: Point = Field(default_factory=Point)
    purge_edge: Literal["north", "south", "east", "west"] = "west"
    purge_edge_offset: float = 2.0


class TransitionSettings(_Model):
    type: TransitionType = TransitionType.TOWER
    purge_length: float = DEFAULT_PURGE_LENGTH
    min_purge_length: float = DEFAULT_PURGE_LENGTH
    initial_purge_length: float = DEFAULT_PURGE_LENGTH
    target_position: float = 0.4
    use_infill_for_transition: bool = False
    use_support_for_transition: bool = False
    towers: TowerSettings = Field(default_factory=TowerSettings)
    side_transitions: SideTransitionSettings = Field(default_factory=SideTransitionSettings)


class PingSettings(_Model):
    jog_pauses: bool = False
    retraction: float | Literal["auto"] = "auto"
    ping_off_tower: bool = False
    mechanical_ping_gcode: str = ""


class CalibrationSettings(_Model):
    """Raw calibration measurements; ``pulses_per_mm`` is always derived."""

    loading_offset: int = 0
    print_value: int = 0
    calibration_gcode_length: float = 0.0

    @computed_field  # type: ignore[prop-decorator]
    @property
    def pulses_per_mm(self) -> float:
        if self.print_value == 0 or self.calibration_gcode_length == 0:
            return 0.0
        return self.print_value / self.calibration_gcode_length

    @property
    def measured(self) -> bool:
        """True once the calibration model's filament length is known."""
        return self.calibration_gcode_length > 0


class PrinterProfile(_Model):
    """
    A printer profile: physical and firmware characteristics of a printer
    plus the splicing accessory's calibration coefficients.

    Instances are mutated only through an edit session; see
    :mod:`printer_profiles.session`.
    """

    uuid: str | None = None
    version: int = 2
    profile_name: str = ""
    base_profile: str = "custom"
    palette_type: PaletteType = PaletteType.PALETTE
    integrated: bool = False

    print_bed: PrintBed = Field(default_factory=PrintBed)
    filament_diameter: float = 1.75
    nozzle_diameter: float = 0.4
    extruder_count: int = 1
    print_extruder: int | None = None  # None: ask for the extruder on every print

    engine: str = "reprap"
    postprocessing: str | None = None
    volumetric: bool = False
    independent_extruder_axes: bool = False
    input_parsers: list[str] = Field(default_factory=lambda: ["gcode"])
    bowden_tube: float | None = None  # None: direct drive, no Bowden tube
    firmware_purge: float = 0.0
    extruder_steps_per_mm: float = 0.0

    transition_settings: TransitionSettings = Field(default_factory=TransitionSettings)
    pings: PingSettings = Field(default_factory=PingSettings)
    calibration: CalibrationSettings = Field(default_factory=CalibrationSettings)

    def clone(self) -> PrinterProfile:
        """Independent deep copy, safe to mutate without touching the original."""
        return self.model_copy(deep=True)

    # --- Accessory generation helpers ---

    def is_palette2(self) -> bool:
        return self.palette_type.generation >= 2

    def is_integrated(self) -> bool:
        return self.is_palette2() and self.integrated

    def splice_core(self) -> str:
        if self.palette_type is PaletteType.PALETTE_2:
            return "SC"
        if self.palette_type is PaletteType.PALETTE_2_PRO:
            return "SCP"
        return "P"

    def msf_version(self) -> float:
        return 2.0 if self.is_palette2() else 1.4

    def msf_extension(self, allow_integrated: bool = True) -> str:
        if self.is_palette2():
            return "mcf" if allow_integrated and self.is_integrated() else "maf"
        return "msf"

    def printer_id(self) -> str:
        """16 hex-digit printer identifier written into splice documents."""
        if not self.uuid:
            return format(1, "016x")
        return self.uuid.replace("-", "")[-16:]

    def min_first_piece_length(self) -> float:
        if self.is_palette2():
            return FIRST_PIECE_MIN_LENGTH_P2
        return FIRST_PIECE_MIN_LENGTH

    # --- Derived quantities ---

    def effective_pulses_per_mm(self) -> float:
        """Pulses-per-mm used for output; Palette 2 generations use a fixed value."""
        if self.is_palette2():
            return DEFAULT_PPM
        return self.calibration.pulses_per_mm

    def ping_extrusion_length(self) -> float:
        ppm = self.effective_pulses_per_mm()
        if ppm == 0:
            return 0.0
        return PING_EXTRUSION_COUNTS / ppm

    def interpolate_purge_length(self, from_strength: int, to_strength: int) -> float:
        """
        Purge length for a transition between two material strengths.

        Strengths are 0 (weak), 1 (normal) and 2 (strong).  The result is
        interpolated between ``min_purge_length`` and ``purge_length``::

                   to:  0     1     2
            from 0    0.5   0.25  0
                 1    0.75  0.5   0.25
                 2    1     0.75  0.5
        """
        low = self.transition_settings.min_purge_length
        high = self.transition_settings.purge_length
        if low >= high:
            return high
        t = (from_strength - to_strength + 2) / 4
        return low + t * (high - low)

    def can_infill_dump(self, simplified: bool = False) -> bool:
        ts = self.transition_settings
        return not simplified and (ts.use_infill_for_transition or ts.use_support_for_transition)
