"""Tests for the printer-profiles command line."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from printer_profiles import ProfileStore
from printer_profiles.__main__ import create_parser, main

from conftest import make_profile


@pytest.fixture
def store_dir(tmp_path: Path) -> Path:
    return tmp_path / "profiles"


def run(store_dir: Path, *argv: str) -> int:
    return main(["--store", str(store_dir), *argv])


def _new_ender(store_dir: Path) -> None:
    assert run(
        store_dir, "new", "Ender 3",
        "--set", "print_bed.x=235", "--set", "print_bed.y=235",
    ) == 0


class TestParser:
    def test_command_required(self) -> None:
        with pytest.raises(SystemExit):
            create_parser().parse_args([])

    def test_repeated_edits(self) -> None:
        args = create_parser().parse_args(["edit", "x", "--set", "a=1", "--set", "b=2"])
        assert args.edits == ["a=1", "b=2"]


class TestCommands:
    def test_new_and_list(self, store_dir: Path, capsys: pytest.CaptureFixture[str]) -> None:
        _new_ender(store_dir)
        capsys.readouterr()
        assert run(store_dir, "--json", "list") == 0
        listed = json.loads(capsys.readouterr().out)
        assert [p["name"] for p in listed] == ["Ender 3"]
        assert listed[0]["active"] is True

    def test_invalid_new_fails(self, store_dir: Path, capsys: pytest.CaptureFixture[str]) -> None:
        assert run(store_dir, "--json", "new", "Flat") == 1
        result = json.loads(capsys.readouterr().out)
        assert result["valid"] is False
        assert {v["field"] for v in result["violations"]} == {"print_bed.x", "print_bed.y"}

    def test_edit(self, store_dir: Path) -> None:
        _new_ender(store_dir)
        assert run(store_dir, "edit", "ender 3", "--set", "transition_settings.min_purge_length=200") == 0
        profile = ProfileStore(store_dir).load_registry().find("Ender 3")
        assert profile.transition_settings.purge_length == 200

    def test_unknown_field_fails(self, store_dir: Path) -> None:
        _new_ender(store_dir)
        assert run(store_dir, "edit", "Ender 3", "--set", "colour=red") == 1

    def test_calibrate(self, store_dir: Path, capsys: pytest.CaptureFixture[str]) -> None:
        _new_ender(store_dir)
        capsys.readouterr()
        assert run(
            store_dir, "--json", "calibrate", "Ender 3",
            "--length", "100", "--loading-offset", "32000", "--print-value", "3000",
        ) == 0
        assert json.loads(capsys.readouterr().out)["pulses_per_mm"] == pytest.approx(30.0)
        profile = ProfileStore(store_dir).load_registry().find("Ender 3")
        assert profile.calibration.print_value == 3000

    def test_calibrate_reports_invalid_profile(
        self, store_dir: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        ProfileStore(store_dir).save(
            make_profile("Bad", uuid="3d5e7f90-1a2b-4c3d-8e9f-0a1b2c3d4e5f", nozzle_diameter=0)
        )
        assert run(
            store_dir, "--json", "calibrate", "Bad",
            "--length", "100", "--loading-offset", "32000", "--print-value", "3000",
        ) == 1
        result = json.loads(capsys.readouterr().out)
        assert result["accepted"] is True
        assert result["valid"] is False
        assert [v["field"] for v in result["violations"]] == ["nozzle_diameter"]
        profile = ProfileStore(store_dir).load_registry().find("Bad")
        assert profile.calibration.print_value == 0

    def test_calibrate_out_of_range(self, store_dir: Path) -> None:
        _new_ender(store_dir)
        assert run(
            store_dir, "calibrate", "Ender 3",
            "--length", "100", "--loading-offset", "32000", "--print-value", "9000",
        ) == 1
        profile = ProfileStore(store_dir).load_registry().find("Ender 3")
        assert profile.calibration.print_value == 0

    def test_splices(self, store_dir: Path, capsys: pytest.CaptureFixture[str]) -> None:
        _new_ender(store_dir)
        capsys.readouterr()
        assert run(store_dir, "--json", "splices", "Ender 3", "--total-extrusion", "1000") == 0
        splices = json.loads(capsys.readouterr().out)
        assert [s["cumulative_length"] for s in splices] == [140, 640, 1140]

    def test_export_import(self, store_dir: Path, tmp_path: Path) -> None:
        _new_ender(store_dir)
        document = tmp_path / "ender.json"
        assert run(store_dir, "export", "Ender 3", str(document)) == 0
        assert json.loads(document.read_text(encoding="utf-8"))["name"] == "Ender 3"
        assert run(store_dir, "import", str(document), "--name", "Ender 3") == 0
        names = [p.profile_name for p in ProfileStore(store_dir).load_registry()]
        assert names == ["Ender 3", "Ender 3 2"]

    def test_rename_activate_delete(self, store_dir: Path) -> None:
        _new_ender(store_dir)
        assert run(store_dir, "new", "Voron", "--set", "print_bed.x=300", "--set", "print_bed.y=300") == 0
        assert run(store_dir, "rename", "Voron", "Voron 2.4") == 0
        assert run(store_dir, "activate", "voron 2.4") == 0
        assert ProfileStore(store_dir).load_registry().active.profile_name == "Voron 2.4"
        assert run(store_dir, "delete", "Voron 2.4") == 0
        registry = ProfileStore(store_dir).load_registry()
        assert [p.profile_name for p in registry] == ["Ender 3"]
        assert registry.active.profile_name == "Ender 3"

    @pytest.mark.parametrize("new_name", ["", "   "])
    def test_rename_to_blank_rejected(self, store_dir: Path, new_name: str) -> None:
        _new_ender(store_dir)
        assert run(store_dir, "rename", "Ender 3", new_name) == 1
        names = [p.profile_name for p in ProfileStore(store_dir).load_registry()]
        assert names == ["Ender 3"]

    def test_missing_profile(self, store_dir: Path) -> None:
        assert run(store_dir, "show", "nothing") == 1
