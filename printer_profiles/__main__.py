"""
printer_profiles CLI — Manage printer profiles, calibration and calibration splices.

Usage:
    printer-profiles <command> [options]
    python -m printer_profiles <command> [options]
"""

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any

from printer_profiles import (
    CalibrationMeasurement,
    OutOfRangeError,
    PaletteType,
    PrinterProfile,
    ProfileEditSession,
    ProfileRegistry,
    ProfileStore,
    ProfileValidationError,
    delete_profile,
    export_document,
    import_into_registry,
    plan_calibration_splices,
)
from printer_profiles.reporting import NullReporter, Reporter, RichReporter

logger = logging.getLogger(__name__)


def create_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""
    parser = argparse.ArgumentParser(
        prog="printer-profiles",
        description="Printer profile editing, calibration and splice planning",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  printer-profiles list
  printer-profiles new "Ender 3" --set print_bed.x=235 --set print_bed.y=235
  printer-profiles edit "Ender 3" --set transition_settings.purge_length=150
  printer-profiles calibrate "Ender 3" --length 120.5 --loading-offset 32000 --print-value 3615
  printer-profiles splices "Ender 3" --total-extrusion 1000
  printer-profiles export "Ender 3" ender3.json
  printer-profiles import ender3.json --name "Ender 3 copy"

Environment variables:
  PRINTER_PROFILES_STORE    Default store directory (instead of "profiles")
        """,
    )

    parser.add_argument(
        "--verbose", "-V", action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--quiet", "-q", action="store_true",
        help="Suppress non-error output (logging only)",
    )
    parser.add_argument(
        "--store",
        "-s",
        default=None,
        help="Store directory path (default: $PRINTER_PROFILES_STORE or 'profiles')",
    )
    parser.add_argument(
        "--json", action="store_true", help="Output as JSON"
    )

    subparsers = parser.add_subparsers(
        title="commands",
        dest="command",
        required=True,
        metavar="<command>",
    )

    # --- list ---
    list_parser = subparsers.add_parser("list", help="List stored profiles")
    list_parser.set_defaults(func=run_list)

    # --- show ---
    show_parser = subparsers.add_parser("show", help="Print a profile document")
    show_parser.add_argument("profile", help="Profile name (case-insensitive)")
    show_parser.set_defaults(func=run_show)

    # --- new / edit ---
    new_parser = subparsers.add_parser("new", help="Create a profile")
    new_parser.add_argument("profile", help="Profile name")
    new_parser.add_argument(
        "--palette",
        choices=[p.value for p in PaletteType],
        default=PaletteType.PALETTE.value,
        help="Accessory generation",
    )
    _add_edit_arguments(new_parser)
    new_parser.set_defaults(func=run_new)

    edit_parser = subparsers.add_parser("edit", help="Edit fields of a profile")
    edit_parser.add_argument("profile", help="Profile name (case-insensitive)")
    _add_edit_arguments(edit_parser)
    edit_parser.set_defaults(func=run_edit)

    # --- rename ---
    rename_parser = subparsers.add_parser("rename", help="Rename a profile")
    rename_parser.add_argument("profile", help="Current name")
    rename_parser.add_argument("new_name", help="New name")
    rename_parser.set_defaults(func=run_rename)

    # --- delete ---
    delete_parser = subparsers.add_parser("delete", help="Delete a profile")
    delete_parser.add_argument("profile", help="Profile name (case-insensitive)")
    delete_parser.set_defaults(func=run_delete)

    # --- activate ---
    activate_parser = subparsers.add_parser("activate", help="Make a profile the active one")
    activate_parser.add_argument("profile", help="Profile name (case-insensitive)")
    activate_parser.set_defaults(func=run_activate)

    # --- import / export ---
    import_parser = subparsers.add_parser("import", help="Import a JSON profile document")
    import_parser.add_argument("path", type=Path, help="Document path")
    import_parser.add_argument("--name", default=None, help="Name override (default: file name)")
    import_parser.set_defaults(func=run_import)

    export_parser = subparsers.add_parser("export", help="Export a profile as a JSON document")
    export_parser.add_argument("profile", help="Profile name (case-insensitive)")
    export_parser.add_argument("path", type=Path, help="Output path")
    export_parser.set_defaults(func=run_export)

    # --- calibrate ---
    calibrate_parser = subparsers.add_parser(
        "calibrate", help="Enter calibration-print measurements for a profile"
    )
    calibrate_parser.add_argument("profile", help="Profile name (case-insensitive)")
    calibrate_parser.add_argument(
        "--length", type=float, required=True,
        help="Filament length of the calibration model, in mm",
    )
    calibrate_parser.add_argument("--loading-offset", type=int, required=True)
    calibrate_parser.add_argument("--print-value", type=int, required=True)
    calibrate_parser.add_argument(
        "--dry-run", action="store_true", help="Check the values without saving"
    )
    calibrate_parser.set_defaults(func=run_calibrate)

    # --- splices ---
    splices_parser = subparsers.add_parser(
        "splices", help="Plan the splices of the calibration print"
    )
    splices_parser.add_argument("profile", help="Profile name (case-insensitive)")
    splices_parser.add_argument(
        "--total-extrusion", type=float, required=True,
        help="Filament length of the calibration model, in mm",
    )
    splices_parser.set_defaults(func=run_splices)

    return parser


def _add_edit_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--set",
        dest="edits",
        action="append",
        default=[],
        metavar="FIELD=VALUE",
        help="Field edit by dotted path, e.g. transition_settings.purge_length=150",
    )
    parser.add_argument(
        "--simplified",
        action="store_true",
        help="Simplified editing: all purge lengths move together",
    )


def _default_store() -> str:
    """Return the default store path from env or fallback."""
    return os.environ.get("PRINTER_PROFILES_STORE", "profiles")


def _open_store(args: argparse.Namespace) -> ProfileStore:
    return ProfileStore(Path(args.store or _default_store()))


def _make_reporter(use_json: bool) -> Reporter:
    """Create the appropriate reporter."""
    return NullReporter() if use_json else RichReporter()


def _parse_edits(edits: list[str]) -> dict[str, Any]:
    """Parse FIELD=VALUE pairs; values are read as JSON when possible."""
    parsed: dict[str, Any] = {}
    for edit in edits:
        field, sep, raw = edit.partition("=")
        if not sep:
            raise ValueError(f"Expected FIELD=VALUE, got '{edit}'")
        try:
            parsed[field.strip()] = json.loads(raw)
        except json.JSONDecodeError:
            parsed[field.strip()] = raw
    return parsed


def _lookup(registry: ProfileRegistry, name: str) -> PrinterProfile:
    profile = registry.find(name)
    if profile is None:
        raise LookupError(f"Profile not found: {name}")
    return profile


def _commit(
    session: ProfileEditSession,
    args: argparse.Namespace,
    reporter: Reporter,
    extra: dict[str, Any] | None = None,
) -> int:
    """Commit the session and report the outcome; ``extra`` is merged into JSON output."""
    extra = extra or {}
    try:
        profile = session.commit()
    except ProfileValidationError as e:
        if args.json:
            print(json.dumps({
                **extra,
                "valid": False,
                "violations": [{"field": v.field, "message": v.message} for v in e.violations],
            }, indent=2))
        else:
            reporter.violations(e)
        return 1
    if args.json:
        print(json.dumps({
            **extra,
            "valid": True,
            "uuid": profile.uuid,
            "name": profile.profile_name,
        }, indent=2))
    else:
        reporter.update_status(f"Saved '{profile.profile_name}'")
    return 0


def run_list(args: argparse.Namespace) -> int:
    """Execute the list command."""
    registry = _open_store(args).load_registry()
    if args.json:
        active = registry.active
        print(json.dumps([{
            "name": p.profile_name,
            "uuid": p.uuid,
            "palette_type": p.palette_type.value,
            "active": active is not None and p.uuid == active.uuid,
        } for p in registry], indent=2))
    elif not len(registry):
        print("No profiles.")
    else:
        _make_reporter(False).profiles(registry.profiles, registry.active)
    return 0


def run_show(args: argparse.Namespace) -> int:
    """Execute the show command."""
    registry = _open_store(args).load_registry()
    profile = _lookup(registry, args.profile)
    print(json.dumps(export_document(profile), indent=2))
    return 0


def run_new(args: argparse.Namespace) -> int:
    """Execute the new command."""
    store = _open_store(args)
    registry = store.load_registry()
    reporter = _make_reporter(args.json)
    with ProfileEditSession.begin(registry, store, simplified=args.simplified) as session:
        session.apply("profile_name", args.profile)
        session.apply("palette_type", args.palette)
        session.apply_many(_parse_edits(args.edits))
        status = _commit(session, args, reporter)
    if status == 0:
        store.save_active(registry.active)
    return status


def run_edit(args: argparse.Namespace) -> int:
    """Execute the edit command."""
    store = _open_store(args)
    registry = store.load_registry()
    reporter = _make_reporter(args.json)
    source = _lookup(registry, args.profile)
    with ProfileEditSession.begin(registry, store, source=source, simplified=args.simplified) as session:
        session.apply_many(_parse_edits(args.edits))
        return _commit(session, args, reporter)


def run_rename(args: argparse.Namespace) -> int:
    """Execute the rename command."""
    store = _open_store(args)
    registry = store.load_registry()
    profile = _lookup(registry, args.profile)
    registry.rename(profile, args.new_name)
    store.save(profile)
    _make_reporter(args.json).update_status(f"Renamed to '{profile.profile_name}'")
    return 0


def run_delete(args: argparse.Namespace) -> int:
    """Execute the delete command."""
    store = _open_store(args)
    registry = store.load_registry()
    profile = _lookup(registry, args.profile)
    reporter = _make_reporter(args.json)
    registry.on_empty = lambda: reporter.update_status(
        "No profiles left; create one with 'printer-profiles new'"
    )
    delete_profile(registry, profile, store)
    store.save_active(registry.active)
    reporter.update_status(f"Deleted '{profile.profile_name}'")
    return 0


def run_activate(args: argparse.Namespace) -> int:
    """Execute the activate command."""
    store = _open_store(args)
    registry = store.load_registry()
    profile = _lookup(registry, args.profile)
    registry.set_active(profile)
    store.save_active(profile)
    _make_reporter(args.json).update_status(f"'{profile.profile_name}' is now active")
    return 0


def run_import(args: argparse.Namespace) -> int:
    """Execute the import command."""
    store = _open_store(args)
    registry = store.load_registry()
    reporter = _make_reporter(args.json)
    data = json.loads(args.path.read_text(encoding="utf-8"))
    try:
        profile = import_into_registry(registry, data, name=args.name or args.path.stem)
    except ProfileValidationError as e:
        if args.json:
            print(json.dumps({
                "valid": False,
                "violations": [{"field": v.field, "message": v.message} for v in e.violations],
            }, indent=2))
        else:
            reporter.violations(e)
        return 1
    store.save(profile)
    if args.json:
        print(json.dumps({"valid": True, "uuid": profile.uuid, "name": profile.profile_name}, indent=2))
    else:
        reporter.update_status(f"Imported '{profile.profile_name}'")
    return 0


def run_export(args: argparse.Namespace) -> int:
    """Execute the export command."""
    registry = _open_store(args).load_registry()
    profile = _lookup(registry, args.profile)
    args.path.write_text(
        json.dumps(export_document(profile), indent=2, ensure_ascii=False),
        encoding="utf-8",
    )
    _make_reporter(args.json).update_status(f"Exported '{profile.profile_name}' to {args.path}")
    return 0


def run_calibrate(args: argparse.Namespace) -> int:
    """Execute the calibrate command."""
    store = _open_store(args)
    registry = store.load_registry()
    reporter = _make_reporter(args.json)
    source = _lookup(registry, args.profile)
    measurement = CalibrationMeasurement(
        loading_offset=args.loading_offset,
        print_value=args.print_value,
        calibration_gcode_length=args.length,
    )
    with ProfileEditSession.begin(registry, store, source=source) as session:
        try:
            result = session.run_calibration(measurement)
        except OutOfRangeError as e:
            if args.json:
                print(json.dumps({
                    "accepted": False,
                    "field": e.field,
                    "value": e.value,
                    "range": [e.lower, e.upper],
                }, indent=2))
            else:
                logger.error("%s", e)
            return 1
        accepted = {"accepted": True, "pulses_per_mm": result.pulses_per_mm}
        if not args.json:
            reporter.update_status(f"Pulses per mm: {result.pulses_per_mm:.4f}")
        if args.dry_run:
            if args.json:
                print(json.dumps(accepted, indent=2))
            return 0
        return _commit(session, args, reporter, extra=accepted)


def run_splices(args: argparse.Namespace) -> int:
    """Execute the splices command."""
    registry = _open_store(args).load_registry()
    profile = _lookup(registry, args.profile)
    splices = plan_calibration_splices(args.total_extrusion, profile.min_first_piece_length())
    if args.json:
        print(json.dumps([
            {"material_index": s.material_index, "cumulative_length": s.cumulative_length}
            for s in splices
        ], indent=2))
    else:
        _make_reporter(False).splices(splices)
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = create_parser()
    args = parser.parse_args(argv)

    # Configure logging
    if getattr(args, "verbose", False):
        log_level = logging.DEBUG
    elif getattr(args, "quiet", False):
        log_level = logging.ERROR
    else:
        log_level = logging.WARNING
    logging.basicConfig(
        level=log_level,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    if hasattr(args, "func"):
        try:
            return args.func(args)
        except KeyboardInterrupt:
            logger.error("Interrupted")
            return 1
        except Exception as e:
            logger.error("%s", e)
            if getattr(args, "verbose", False):
                logger.debug("Traceback:", exc_info=True)
            return 1
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
