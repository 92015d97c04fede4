"""
Profile documents: the structured, format-neutral form used for import and
export.  Encoding the document to YAML or JSON is left to the caller.

Two layouts are understood:

- version 2 (current): nested ``printBed`` / ``transitions`` / ``pings`` /
  ``calibration`` sections;
- version 1 (legacy): flat keys such as ``printBedX`` and ``purgeFactor``.
  Legacy profiles lack several settings and come back with defaults.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from . import constraints
from .constants import BOWDEN_NONE
from .errors import ProfileValidationError
from .models import (
    BedOrigin,
    CircularBed,
    PaletteType,
    PrinterProfile,
    RectangularBed,
)
from .registry import ProfileRegistry
from .validation import validate_profile

logger = logging.getLogger(__name__)

DOCUMENT_VERSION = 2


def export_document(profile: PrinterProfile) -> dict[str, Any]:
    """Serialize a profile to a version 2 document."""
    bed = profile.print_bed
    dims = bed.dimensions
    ts = profile.transition_settings
    towers = ts.towers
    side = ts.side_transitions
    return {
        "version": DOCUMENT_VERSION,
        "uuid": profile.uuid,
        "name": profile.profile_name,
        "preset": profile.base_profile,
        "inputs": list(profile.input_parsers),
        "engine": profile.engine,
        "postprocessing": profile.postprocessing or False,
        "volumetric": profile.volumetric,
        "independentExtruderAxes": profile.independent_extruder_axes,
        "extruderStepsPerMM": profile.extruder_steps_per_mm,
        "paletteType": profile.palette_type.value,
        "integrated": profile.integrated,
        "filamentDiameter": profile.filament_diameter,
        "nozzleDiameter": profile.nozzle_diameter,
        "extruderCount": profile.extruder_count,
        "printExtruder": False if profile.print_extruder is None else profile.print_extruder,
        "printBed": {
            # The inactive shape's dimensions are written as zeros.
            "circular": bed.circular,
            "x": dims.x if isinstance(dims, RectangularBed) else 0,
            "y": dims.y if isinstance(dims, RectangularBed) else 0,
            "diameter": dims.diameter if isinstance(dims, CircularBed) else 0,
            "origin": bed.origin.value,
            "originOffsets": {"x": bed.origin_offsets.x, "y": bed.origin_offsets.y},
        },
        "bowdenTube": False if profile.bowden_tube is None else profile.bowden_tube,
        "firmwarePurge": profile.firmware_purge,
        "transitions": {
            "method": ts.type.value,
            "purgeLength": ts.purge_length,
            "minPurgeLength": ts.min_purge_length,
            "initialPurgeLength": ts.initial_purge_length,
            "purgeTarget": ts.target_position,
            "transitionInInfill": ts.use_infill_for_transition,
            "transitionInSupport": ts.use_support_for_transition,
            "towers": {
                "printSpeed": towers.print_speed,
                "extrusionWidth": towers.extrusion_width,
                "minDensity": towers.min_density,
                "minBottomDensity": towers.min_first_layer_density,
                "maxDensity": towers.max_density,
                "perimeterSpeedMultiplier": towers.perimeter_speed_multiplier,
                "forceBottomPerimeter": towers.force_bottom_perimeter,
                "infillPerimeterOverlap": towers.infill_perimeter_overlap,
            },
            "sideTransitions": {
                "purgeSpeed": side.purge_speed,
                "purgeInPlace": side.purge_in_place,
                "coordinates": {"x": side.coordinates.x, "y": side.coordinates.y},
                "purgeEdge": side.purge_edge,
                "purgeEdgeOffset": side.purge_edge_offset,
            },
        },
        "pings": {
            "jogPauses": profile.pings.jog_pauses,
            "retraction": profile.pings.retraction,
            "pingOffTower": profile.pings.ping_off_tower,
            "mechanicalPingGCode": profile.pings.mechanical_ping_gcode,
        },
        "calibration": {
            "loadingOffset": profile.calibration.loading_offset,
            "printValue": profile.calibration.print_value,
            "calibrationGCodeLength": profile.calibration.calibration_gcode_length,
        },
    }


def import_document(data: dict[str, Any], name: Optional[str] = None) -> PrinterProfile:
    """
    Reconstruct a profile from a version 1 or version 2 document.

    Args:
        data: The decoded document.
        name: Overrides the document's own name (e.g. the imported file's stem).

    The result is not validated; see :func:`import_into_registry`.
    """
    version = data.get("version")
    if version in (None, 1):
        fields = _fields_from_v1(data)
    else:
        fields = _fields_from_v2(data)
    if name:
        fields["profile_name"] = name
    profile = PrinterProfile.model_validate(fields)
    logger.debug("Imported version %s document '%s'", version or 1, profile.profile_name)
    return profile


def import_into_registry(
    registry: ProfileRegistry,
    data: dict[str, Any],
    name: Optional[str] = None,
    simplified: bool = False,
) -> PrinterProfile:
    """
    Import a document into the registry.

    The profile is normalised, renamed ``"<name> 2"``, ``"<name> 3"``, ...
    if its name is taken, and checked against every invariant before it is
    accepted.

    Raises:
        ProfileValidationError: the imported profile violates an invariant.
    """
    profile = import_document(data, name)
    constraints.normalize(profile, simplified)
    with registry.transaction():
        profile.profile_name = registry.unique_name(profile.profile_name.strip())
        if profile.uuid and registry.get(profile.uuid) is not None:
            # Same uuid as an existing profile: import as a separate copy
            profile.uuid = None
        violations = validate_profile(profile, registry, simplified)
        if violations:
            raise ProfileValidationError(violations, profile=profile)
        registry.add(profile)
    return profile


# --- Internal helpers ---


def _fields_from_v2(data: dict[str, Any]) -> dict[str, Any]:
    bed = data.get("printBed", {})
    transitions = data.get("transitions", {})
    towers = transitions.get("towers", {})
    side = transitions.get("sideTransitions", {})
    pings = data.get("pings", {})
    calibration = data.get("calibration", {})

    fields: dict[str, Any] = {
        "version": DOCUMENT_VERSION,
        "uuid": data.get("uuid"),
        "profile_name": data.get("name", ""),
        "base_profile": data.get("preset", "custom"),
        "input_parsers": data.get("inputs", ["gcode"]),
        "engine": data.get("engine", "reprap"),
        "postprocessing": _optional(
            data.get("postprocessing", "x3g" if data.get("gpxProfile") else False)
        ),
        "volumetric": bool(data.get("volumetric")),
        "independent_extruder_axes": bool(data.get("independentExtruderAxes")),
        "extruder_steps_per_mm": data.get("extruderStepsPerMM") or 0,
        "palette_type": data.get("paletteType") or PaletteType.PALETTE,
        "integrated": bool(data.get("integrated")),
        "print_extruder": _optional(data.get("printExtruder", False)),
        "bowden_tube": _optional(data.get("bowdenTube", False)),
        "firmware_purge": data.get("firmwarePurge") or 0,
        "print_bed": _print_bed(
            circular=bool(bed.get("circular")),
            x=bed.get("x", 0),
            y=bed.get("y", 0),
            diameter=bed.get("diameter", 0),
            origin=bed.get("origin", BedOrigin.BOTTOM_LEFT.value),
            offsets=bed.get("originOffsets", {}),
        ),
        "transition_settings": {
            "purge_length": transitions.get("purgeLength"),
            "min_purge_length": transitions.get("minPurgeLength", transitions.get("purgeLength")),
            "initial_purge_length": transitions.get(
                "initialPurgeLength", transitions.get("purgeLength")
            ),
            "type": transitions.get("method"),
            "target_position": transitions.get("purgeTarget"),
            "use_infill_for_transition": bool(transitions.get("transitionInInfill")),
            "use_support_for_transition": bool(transitions.get("transitionInSupport")),
            "towers": {
                "print_speed": towers.get("printSpeed", "auto"),
                "extrusion_width": towers.get("extrusionWidth", "auto"),
                "min_density": towers.get("minDensity"),
                "min_first_layer_density": towers.get("minBottomDensity"),
                "max_density": towers.get("maxDensity"),
                "perimeter_speed_multiplier": towers.get("perimeterSpeedMultiplier"),
                "force_bottom_perimeter": towers.get("forceBottomPerimeter"),
                "infill_perimeter_overlap": towers.get("infillPerimeterOverlap", "auto"),
            },
            "side_transitions": {
                "purge_speed": side.get("purgeSpeed"),
                "purge_in_place": bool(side.get("purgeInPlace")),
                "coordinates": side.get("coordinates", {"x": 0, "y": 0}),
                "purge_edge": side.get("purgeEdge", "west"),
                "purge_edge_offset": side.get("purgeEdgeOffset", 2),
            },
        },
        "pings": {
            "jog_pauses": pings.get("jogPauses"),
            "retraction": pings.get("retraction", "auto"),
            "ping_off_tower": bool(pings.get("pingOffTower")),
            "mechanical_ping_gcode": pings.get("mechanicalPingGCode"),
        },
        "calibration": {
            "loading_offset": calibration.get("loadingOffset"),
            "print_value": calibration.get("printValue"),
            "calibration_gcode_length": calibration.get("calibrationGCodeLength"),
        },
    }
    for key in ("filamentDiameter", "nozzleDiameter", "extruderCount"):
        if data.get(key) is not None:
            fields[_SNAKE[key]] = data[key]
    return _drop_none(fields)


def _fields_from_v1(data: dict[str, Any]) -> dict[str, Any]:
    middle = bool(data.get("printBedOriginMiddle"))
    bed_x = data.get("printBedX") or 0
    bed_y = data.get("printBedY") or 0
    bowden = data.get("bowdenTubeLength")
    purge = data.get("purgeFactor")
    fields: dict[str, Any] = {
        "version": 1,
        "profile_name": data.get("name", ""),
        "postprocessing": "x3g" if data.get("gpxProfile") else None,
        # Legacy profiles never recorded a nozzle diameter; the user must fill it in.
        "nozzle_diameter": 0,
        "bowden_tube": None if bowden in (None, False, BOWDEN_NONE) else bowden,
        "print_bed": _print_bed(
            circular=bool(data.get("printBedCircular")),
            x=bed_x,
            y=bed_y,
            diameter=data.get("printBedDiameter") or 0,
            origin=BedOrigin.MIDDLE.value if middle else BedOrigin.BOTTOM_LEFT.value,
            offsets={"x": bed_x / 2, "y": bed_y / 2} if middle else {"x": 0, "y": 0},
        ),
        "transition_settings": {
            "purge_length": purge,
            "min_purge_length": purge,
            "initial_purge_length": purge,
            "target_position": data.get("purgeTarget"),
            "towers": {
                "min_density": data.get("minTowerDensity"),
                "min_first_layer_density": data.get("minTowerBottomDensity"),
                "max_density": data.get("maxTowerDensity"),
                "perimeter_speed_multiplier": data.get("towerPerimeterSpeedMultiplier"),
                "force_bottom_perimeter": data.get("forceTowerBottomPerimeter"),
            },
            "side_transitions": {"purge_speed": data.get("sideTransitionPurgeSpeed")},
        },
        "pings": {
            "jog_pauses": data.get("jogPauses"),
            "mechanical_ping_gcode": data.get("mechanicalPingGCode"),
        },
        "calibration": {
            "loading_offset": data.get("loadingOffset"),
            "print_value": data.get("printValue"),
            "calibration_gcode_length": data.get("calibrationGCodeLength"),
        },
    }
    return _drop_none(fields)


_SNAKE = {
    "filamentDiameter": "filament_diameter",
    "nozzleDiameter": "nozzle_diameter",
    "extruderCount": "extruder_count",
}


def _print_bed(
    circular: bool,
    x: float,
    y: float,
    diameter: float,
    origin: str,
    offsets: dict[str, Any],
) -> dict[str, Any]:
    if circular:
        dimensions: dict[str, Any] = {"shape": "circular", "diameter": diameter}
    else:
        dimensions = {"shape": "rectangular", "x": x, "y": y}
    return {
        "dimensions": dimensions,
        "origin": origin,
        "origin_offsets": {"x": offsets.get("x", 0), "y": offsets.get("y", 0)},
    }


def _optional(value: Any) -> Any:
    """Documents use ``false`` for "not set"; the model uses ``None``."""
    return None if value is False else value


def _drop_none(fields: dict[str, Any]) -> dict[str, Any]:
    """Remove missing values recursively so model defaults apply."""
    cleaned: dict[str, Any] = {}
    for key, value in fields.items():
        if isinstance(value, dict):
            value = _drop_none(value)
        if value is not None:
            cleaned[key] = value
    return cleaned
