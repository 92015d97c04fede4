"""
ProfileEditSession: one edit transaction against a working copy of a profile.

The session owns all editing state.  Nothing outside it sees the working
copy until ``commit()`` hands it to the registry.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional, Protocol

from pydantic import BaseModel

from . import constraints
from .calibration import CalibrationMeasurement, CalibrationResult, apply_calibration, compute_calibration
from .errors import (
    DuplicateNameError,
    FieldViolation,
    MeasurementInProgressError,
    ProfileValidationError,
    SessionClosedError,
)
from .models import PrinterProfile
from .registry import ProfileRegistry
from .splices import CalibrationSpliceDocument, MaterialSlot, SplicePoint, build_calibration_document, plan_calibration_splices
from .validation import validate_profile

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Collaborators
# ---------------------------------------------------------------------------


class ProfilePersistence(Protocol):
    """Durable storage for profiles."""

    def save(self, profile: PrinterProfile) -> None: ...
    def delete(self, profile: PrinterProfile) -> None: ...
    def list_profiles(self) -> list[PrinterProfile]: ...


@dataclass(frozen=True)
class FilamentMeasurement:
    """Filament consumed by a sliced file, as reported by the measurer."""

    total_extrusion_length: float  # mm
    base_path: str
    extension: str


class FilamentMeasurer(Protocol):
    """Measures filament consumption of a sliced file; may be slow."""

    async def measure(self, path: str | Path, profile: PrinterProfile) -> FilamentMeasurement: ...


# ---------------------------------------------------------------------------
# Field routing
# ---------------------------------------------------------------------------

_READ_ONLY_FIELDS = frozenset({"uuid", "version", "calibration.pulses_per_mm"})


def _float(value: Any) -> float:
    return float(value)


def _transition_length(name: str) -> Callable[[PrinterProfile, Any, bool], None]:
    def handler(profile: PrinterProfile, value: Any, simplified: bool) -> None:
        constraints.apply_transition_length_edit(profile, name, _float(value), simplified)
    return handler


def _density(name: str) -> Callable[[PrinterProfile, Any, bool], None]:
    def handler(profile: PrinterProfile, value: Any, simplified: bool) -> None:
        constraints.apply_density_edit(profile, name, _float(value))
    return handler


def _bed_dimension(name: str) -> Callable[[PrinterProfile, Any, bool], None]:
    def handler(profile: PrinterProfile, value: Any, simplified: bool) -> None:
        constraints.set_bed_dimension(profile.print_bed, name, _float(value))
    return handler


def _origin_offset(axis: str) -> Callable[[PrinterProfile, Any, bool], None]:
    def handler(profile: PrinterProfile, value: Any, simplified: bool) -> None:
        constraints.set_origin_offset(profile.print_bed, axis, _float(value))
    return handler


# Fields whose edits cascade into other fields.
_COUPLED_FIELDS: dict[str, Callable[[PrinterProfile, Any, bool], None]] = {
    **{
        f"transition_settings.{name}": _transition_length(name)
        for name in constraints.TRANSITION_LENGTH_FIELDS
    },
    **{
        f"transition_settings.towers.{name}": _density(name)
        for name in constraints.DENSITY_FIELDS
    },
    "print_bed.shape": lambda p, v, s: constraints.set_bed_shape(p.print_bed, str(v)),
    "print_bed.x": _bed_dimension("x"),
    "print_bed.y": _bed_dimension("y"),
    "print_bed.diameter": _bed_dimension("diameter"),
    "print_bed.origin": lambda p, v, s: constraints.set_bed_origin(p.print_bed, v),
    "print_bed.origin_offsets.x": _origin_offset("x"),
    "print_bed.origin_offsets.y": _origin_offset("y"),
    "extruder_count": lambda p, v, s: constraints.set_extruder_count(p, int(v)),
    "palette_type": lambda p, v, s: constraints.set_palette_type(p, v),
}


def _set_plain_field(profile: PrinterProfile, field: str, value: Any) -> None:
    """Assign a field that has no coupled neighbours, via its dotted path."""
    *parents, leaf = field.split(".")
    target: Any = profile
    for part in parents:
        if not isinstance(target, BaseModel) or part not in type(target).model_fields:
            raise KeyError(f"Unknown profile field: {field}")
        target = getattr(target, part)
    if not isinstance(target, BaseModel) or leaf not in type(target).model_fields:
        raise KeyError(f"Unknown profile field: {field}")
    if isinstance(getattr(target, leaf), BaseModel):
        raise KeyError(f"'{field}' is a group of fields; edit its members instead")
    setattr(target, leaf, value)


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------


class ProfileEditSession:
    """
    Edit transaction over a working copy of a printer profile.

    Usage:
        session = ProfileEditSession.begin(registry, store, source=profile)
        session.apply("transition_settings.purge_length", 150)
        measurement = await session.measure_calibration_model("calibration.gcode")
        session.run_calibration(session.calibration_measurement(32000, 3000))
        session.commit()   # or session.discard()

    Two sessions opened on the same source own independent working copies.
    """

    def __init__(
        self,
        registry: ProfileRegistry,
        persistence: Optional[ProfilePersistence] = None,
        source: Optional[PrinterProfile] = None,
        simplified: bool = False,
        measurer: Optional[FilamentMeasurer] = None,
    ):
        self.registry = registry
        self.persistence = persistence
        self.source = source
        self.simplified = simplified
        self.measurer = measurer
        self._working: Optional[PrinterProfile] = source.clone() if source is not None else PrinterProfile()
        self._measurement_pending = False
        self.measurement: Optional[FilamentMeasurement] = None
        self.committed = False

    @classmethod
    def begin(
        cls,
        registry: ProfileRegistry,
        persistence: Optional[ProfilePersistence] = None,
        source: Optional[PrinterProfile] = None,
        simplified: bool = False,
        measurer: Optional[FilamentMeasurer] = None,
    ) -> ProfileEditSession:
        """Open a session editing a clone of ``source``, or a new default profile."""
        session = cls(registry, persistence, source, simplified, measurer)
        logger.debug(
            "Opened edit session for %s",
            f"'{source.profile_name}'" if source is not None else "a new profile",
        )
        return session

    def __enter__(self) -> ProfileEditSession:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # type: ignore[no-untyped-def]
        if self.is_open:
            self.discard()

    @property
    def is_open(self) -> bool:
        return self._working is not None

    @property
    def working(self) -> PrinterProfile:
        if self._working is None:
            raise SessionClosedError("The edit session is closed")
        return self._working

    @property
    def measurement_pending(self) -> bool:
        return self._measurement_pending

    # --- Editing ---

    def apply(self, field: str, value: Any) -> None:
        """
        Set one field of the working copy by dotted path and re-normalise
        the fields coupled to it.

        Raises:
            KeyError: unknown field.
            ValueError: read-only or derived field, or a field that does not
                apply to the current bed shape.
        """
        profile = self.working
        if field in _READ_ONLY_FIELDS:
            raise ValueError(f"'{field}' cannot be edited directly")
        if field.startswith("calibration."):
            raise ValueError("Calibration values are set through run_calibration()")
        if field.startswith("print_bed.dimensions"):
            raise KeyError(f"Unknown profile field: {field} (use print_bed.x, .y or .diameter)")
        handler = _COUPLED_FIELDS.get(field)
        if handler is not None:
            handler(profile, value, self.simplified)
        else:
            _set_plain_field(profile, field, value)
        logger.debug("Applied %s=%r", field, value)

    def apply_many(self, edits: dict[str, Any]) -> None:
        for field, value in edits.items():
            self.apply(field, value)

    # --- Calibration ---

    async def measure_calibration_model(self, path: str | Path) -> FilamentMeasurement:
        """
        Measure the filament length of the sliced calibration model.

        Only one measurement may be in flight per session.  A failed
        measurement propagates its error and leaves the session unchanged.

        Raises:
            MeasurementInProgressError: another measurement is pending.
        """
        profile = self.working
        if self.measurer is None:
            raise ValueError("No filament measurer is configured for this session")
        if self._measurement_pending:
            raise MeasurementInProgressError("A calibration measurement is already in progress")
        self._measurement_pending = True
        try:
            result = await self.measurer.measure(path, profile.clone())
        finally:
            self._measurement_pending = False
        if not self.is_open:
            logger.debug("Session closed during measurement; result dropped")
            return result
        if result.total_extrusion_length <= 0:
            raise ValueError(f"Measured no filament consumption in {path}")
        self.measurement = result
        logger.info("Calibration model uses %.2f mm of filament", result.total_extrusion_length)
        return result

    def calibration_measurement(self, loading_offset: int, print_value: int) -> CalibrationMeasurement:
        """Combine values read off the accessory with the measured model length."""
        if self.measurement is None:
            raise ValueError("Measure the calibration model before entering calibration values")
        return CalibrationMeasurement(
            loading_offset=loading_offset,
            print_value=print_value,
            calibration_gcode_length=self.measurement.total_extrusion_length,
        )

    def run_calibration(self, measurement: CalibrationMeasurement) -> CalibrationResult:
        """
        Validate a calibration measurement and stage it on the working copy.

        Raises:
            OutOfRangeError: the working copy is left unchanged.
            MeasurementInProgressError: a model measurement is still pending.
        """
        profile = self.working
        if self._measurement_pending:
            raise MeasurementInProgressError("A calibration measurement is already in progress")
        result = compute_calibration(measurement)
        apply_calibration(profile, result)
        logger.info("Staged calibration: %.4f pulses/mm", result.pulses_per_mm)
        return result

    def plan_calibration_splices(self) -> list[SplicePoint]:
        profile = self.working
        if self.measurement is None:
            raise ValueError("Measure the calibration model before planning splices")
        return plan_calibration_splices(
            self.measurement.total_extrusion_length, profile.min_first_piece_length()
        )

    def calibration_document(
        self, materials: Optional[list[MaterialSlot]] = None
    ) -> CalibrationSpliceDocument:
        profile = self.working
        if self.measurement is None:
            raise ValueError("Measure the calibration model before building the splice document")
        return build_calibration_document(profile, self.measurement.total_extrusion_length, materials)

    # --- Lifecycle ---

    def validate(self) -> list[FieldViolation]:
        return validate_profile(self.working, self.registry, self.simplified, replacing=self.source)

    def commit(self) -> PrinterProfile:
        """
        Validate the working copy, persist it, and insert it into (or replace
        the source in) the registry.  Closes the session on success.

        Raises:
            ProfileValidationError: one or more invariants are violated;
                nothing is persisted and the session stays open.
            MeasurementInProgressError: a measurement is still pending.
        """
        profile = self.working
        if self._measurement_pending:
            raise MeasurementInProgressError("Cannot commit while a measurement is in progress")

        with self.registry.transaction():
            violations = self.validate()
            if violations:
                raise ProfileValidationError(violations)
            # A failed save must leave the working copy untouched
            final = profile.clone()
            if final.uuid is None:
                final.uuid = self.registry.new_uuid()
            # Legacy profiles are upgraded once every setting has been filled in
            final.version = 2
            if self.persistence is not None:
                self.persistence.save(final)
            try:
                self.registry.commit(final, replacing=self.source)
            except DuplicateNameError as e:
                raise ProfileValidationError(
                    [FieldViolation("profile_name", str(e))]
                ) from e
            if self.registry.active is None:
                self.registry.set_active(final)

        self._working = None
        self.committed = True
        logger.info("Committed profile '%s'", final.profile_name)
        return final

    def discard(self) -> None:
        """Drop the working copy; the source profile is untouched."""
        if self._working is not None:
            logger.debug("Discarded edits to '%s'", self._working.profile_name)
        self._working = None


def delete_profile(
    registry: ProfileRegistry,
    profile: PrinterProfile,
    persistence: Optional[ProfilePersistence] = None,
) -> None:
    """Remove a profile from the registry and from durable storage."""
    with registry.transaction():
        registry.remove(profile)
        if persistence is not None:
            persistence.delete(profile)
