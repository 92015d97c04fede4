"""
Splice planning for the synthetic three-material calibration print.

Only the content of the splice document is produced here; encoding it to
bytes belongs to the splice-document encoder.
"""

from __future__ import annotations

import logging
from typing import NamedTuple, Optional

from pydantic import BaseModel, Field

from .constants import CALIBRATION_MATERIAL_COUNT, DRIVE_COUNT, SPLICE_MIN_LENGTH
from .models import PrinterProfile

logger = logging.getLogger(__name__)


class SplicePoint(NamedTuple):
    material_index: int
    cumulative_length: float


class MaterialSlot(BaseModel):
    index: int
    name: str = ""
    color: str = ""  # hex RGB, e.g. "ff0000"


class CalibrationSpliceDocument(BaseModel):
    """Everything the splice-document encoder needs for a calibration print."""

    profile_name: str
    printer_id: str
    msf_version: float
    extension: str
    splice_core: str
    loading_offset: int
    materials: list[MaterialSlot] = Field(default_factory=list)
    splices: list[tuple[int, float]] = Field(default_factory=list)
    total_length: float = 0.0


def plan_calibration_splices(
    total_extrusion: float,
    min_first_piece_length: float,
    splice_min_length: float = SPLICE_MIN_LENGTH,
) -> list[SplicePoint]:
    """
    Three-splice schedule for the calibration print.

    The first material covers the priming length; the model's extrusion is
    then split evenly between the second and third materials, each segment
    at least ``splice_min_length`` long.

    Raises:
        ValueError: ``total_extrusion`` is not positive.  The calibration
            model must be measured before planning.
    """
    if total_extrusion <= 0:
        raise ValueError("total_extrusion must be measured (> 0) before planning splices")
    half = max(total_extrusion / 2, splice_min_length)
    splices = [
        SplicePoint(0, min_first_piece_length),
        SplicePoint(1, min_first_piece_length + half),
        SplicePoint(2, min_first_piece_length + 2 * half),
    ]
    logger.debug("Planned calibration splices: %s", splices)
    return splices


def total_filament_length(splices: list[SplicePoint]) -> float:
    if not splices:
        return 0.0
    return splices[-1].cumulative_length


def filament_lengths_by_material(
    splices: list[SplicePoint], materials: int = DRIVE_COUNT
) -> list[float]:
    """Filament consumed per material (drive) over a splice list."""
    lengths = [0.0] * materials
    previous = 0.0
    for material_index, cumulative in splices:
        lengths[material_index] += cumulative - previous
        previous = cumulative
    return lengths


def build_calibration_document(
    profile: PrinterProfile,
    total_extrusion: float,
    materials: Optional[list[MaterialSlot]] = None,
) -> CalibrationSpliceDocument:
    """Plan the calibration splices for ``profile`` and bundle the document content."""
    splices = plan_calibration_splices(total_extrusion, profile.min_first_piece_length())
    if materials is None:
        materials = [MaterialSlot(index=i + 1) for i in range(CALIBRATION_MATERIAL_COUNT)]
    return CalibrationSpliceDocument(
        profile_name=profile.profile_name,
        printer_id=profile.printer_id(),
        msf_version=profile.msf_version(),
        extension=profile.msf_extension(allow_integrated=False),
        splice_core=profile.splice_core(),
        loading_offset=profile.calibration.loading_offset,
        materials=materials,
        splices=[(s.material_index, s.cumulative_length) for s in splices],
        total_length=total_filament_length(splices),
    )
