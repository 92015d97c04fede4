"""
printer_profiles — Printer profile editing for multi-material splicing accessories

Keeps a registry of printer profiles, edits them through isolated sessions
that hold coupled settings consistent, turns calibration-print measurements
into a pulses-per-mm value, and plans the splices of the calibration print.
"""

from .models import (
    PaletteType,
    TransitionType,
    BedOrigin,
    RectangularBed,
    CircularBed,
    Point,
    PrintBed,
    TowerSettings,
    SideTransitionSettings,
    TransitionSettings,
    PingSettings,
    CalibrationSettings,
    PrinterProfile,
)
from .errors import (
    ProfileError,
    FieldViolation,
    ProfileValidationError,
    DuplicateNameError,
    OutOfRangeError,
    MeasurementInProgressError,
    SessionClosedError,
)
from .constraints import adjust_ordered_triple, collapse_triple, normalize, OrderedTriple
from .validation import validate_profile, transition_length_bounds
from .registry import ProfileRegistry
from .calibration import (
    CalibrationMeasurement,
    CalibrationResult,
    compute_calibration,
    print_value_bounds,
    pulses_per_mm,
)
from .splices import (
    SplicePoint,
    MaterialSlot,
    CalibrationSpliceDocument,
    plan_calibration_splices,
    build_calibration_document,
    filament_lengths_by_material,
    total_filament_length,
)
from .session import (
    ProfileEditSession,
    ProfilePersistence,
    FilamentMeasurer,
    FilamentMeasurement,
    delete_profile,
)
from .documents import export_document, import_document, import_into_registry
from .store import ProfileStore

__all__ = [
    # Enums
    "PaletteType",
    "TransitionType",
    "BedOrigin",
    # Models
    "RectangularBed",
    "CircularBed",
    "Point",
    "PrintBed",
    "TowerSettings",
    "SideTransitionSettings",
    "TransitionSettings",
    "PingSettings",
    "CalibrationSettings",
    "PrinterProfile",
    # Constraints & Validation
    "OrderedTriple",
    "adjust_ordered_triple",
    "collapse_triple",
    "normalize",
    "validate_profile",
    "transition_length_bounds",
    # Registry & Sessions
    "ProfileRegistry",
    "ProfileEditSession",
    "ProfilePersistence",
    "FilamentMeasurer",
    "FilamentMeasurement",
    "delete_profile",
    # Calibration
    "CalibrationMeasurement",
    "CalibrationResult",
    "compute_calibration",
    "print_value_bounds",
    "pulses_per_mm",
    # Splices
    "SplicePoint",
    "MaterialSlot",
    "CalibrationSpliceDocument",
    "plan_calibration_splices",
    "build_calibration_document",
    "filament_lengths_by_material",
    "total_filament_length",
    # Documents & Store
    "export_document",
    "import_document",
    "import_into_registry",
    "ProfileStore",
    # Exceptions
    "ProfileError",
    "FieldViolation",
    "ProfileValidationError",
    "DuplicateNameError",
    "OutOfRangeError",
    "MeasurementInProgressError",
    "SessionClosedError",
]
