"""
Exception taxonomy for profile editing.

Every error raised by the core derives from :class:`ProfileError`.
Precondition violations (programming errors at the call site) are plain
``ValueError``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .models import PrinterProfile


class ProfileError(Exception):
    """Base class for all printer-profile errors."""


@dataclass(frozen=True)
class FieldViolation:
    """A single invariant violation, scoped to one field."""

    field: str  # dotted path, e.g. "transition_settings.purge_length"
    message: str

    @property
    def group(self) -> str:
        """Logical group of fields the violation belongs to (first path segment)."""
        return self.field.split(".", 1)[0]


class ProfileValidationError(ProfileError):
    """Raised by ``commit()`` when one or more invariants are violated.

    Non-fatal: the working copy stays editable.
    """

    def __init__(self, violations: list[FieldViolation], profile: Optional["PrinterProfile"] = None):
        self.violations = list(violations)
        self.profile = profile  # the rejected profile, when there is no session holding it
        summary = "; ".join(f"{v.field}: {v.message}" for v in self.violations)
        super().__init__(f"Profile is invalid: {summary}")

    def by_group(self) -> dict[str, list[FieldViolation]]:
        """Group violations by logical field group, in first-seen order."""
        groups: dict[str, list[FieldViolation]] = {}
        for violation in self.violations:
            groups.setdefault(violation.group, []).append(violation)
        return groups

    @property
    def fields(self) -> list[str]:
        return [v.field for v in self.violations]


class DuplicateNameError(ProfileError):
    """Raised when a profile name collides (case-insensitively) with another."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"A profile named '{name}' already exists")


class OutOfRangeError(ProfileError):
    """Raised when a calibration measurement falls outside its sanity bounds."""

    def __init__(self, field: str, value: float, lower: float, upper: float):
        self.field = field
        self.value = value
        self.lower = lower
        self.upper = upper
        super().__init__(
            f"{field}={value} is outside the plausible range [{lower}, {upper}]; "
            "please re-measure"
        )


class MeasurementInProgressError(ProfileError):
    """Raised when a calibration measurement is requested while one is pending."""


class SessionClosedError(ProfileError):
    """Raised when an edit session is used after commit or discard."""
