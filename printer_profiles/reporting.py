"""Console reporting for CLI commands."""

from __future__ import annotations

from typing import Optional, Protocol

from .errors import ProfileValidationError
from .models import PrinterProfile
from .splices import SplicePoint


class Reporter(Protocol):
    """Protocol for human-readable command output."""

    def update_status(self, message: str) -> None: ...
    def profiles(self, profiles: list[PrinterProfile], active: Optional[PrinterProfile]) -> None: ...
    def violations(self, error: ProfileValidationError) -> None: ...
    def splices(self, splices: list[SplicePoint]) -> None: ...


class RichReporter:
    """Rich-based reporter with tables and status messages."""

    def __init__(self) -> None:
        from rich.console import Console

        self.console = Console()

    def update_status(self, message: str) -> None:
        self.console.print(f"[bold blue]>>>[/] {message}")

    def profiles(self, profiles: list[PrinterProfile], active: Optional[PrinterProfile]) -> None:
        from rich.table import Table

        table = Table(title="Printer profiles")
        table.add_column("", width=1)
        table.add_column("Name")
        table.add_column("Accessory")
        table.add_column("Bed")
        table.add_column("Pulses/mm", justify="right")
        for profile in profiles:
            extent_x, extent_y = profile.print_bed.extent
            bed = (
                f"⌀{extent_x:g}"
                if profile.print_bed.circular
                else f"{extent_x:g} x {extent_y:g}"
            )
            ppm = profile.effective_pulses_per_mm()
            table.add_row(
                "*" if active is not None and profile.uuid == active.uuid else "",
                profile.profile_name,
                profile.palette_type.value,
                bed,
                f"{ppm:.4f}" if ppm else "[dim]-[/]",
            )
        self.console.print(table)

    def violations(self, error: ProfileValidationError) -> None:
        self.console.print("[bold red]Profile is invalid:[/]")
        for group, violations in error.by_group().items():
            self.console.print(f"  [bold]{group}[/]")
            for violation in violations:
                self.console.print(f"    [red]x[/] {violation.field}: {violation.message}")

    def splices(self, splices: list[SplicePoint]) -> None:
        from rich.table import Table

        table = Table(title="Calibration splices")
        table.add_column("Material", justify="right")
        table.add_column("Cumulative length (mm)", justify="right")
        for splice in splices:
            table.add_row(str(splice.material_index), f"{splice.cumulative_length:.2f}")
        self.console.print(table)


class NullReporter:
    """No-op reporter for --json mode or testing."""

    def update_status(self, message: str) -> None:
        pass

    def profiles(self, profiles: list[PrinterProfile], active: Optional[PrinterProfile]) -> None:
        pass

    def violations(self, error: ProfileValidationError) -> None:
        pass

    def splices(self, splices: list[SplicePoint]) -> None:
        pass
