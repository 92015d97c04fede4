"""Tests for calibration-print splice planning."""

from __future__ import annotations

import pytest

from printer_profiles import (
    MaterialSlot,
    PaletteType,
    SplicePoint,
    build_calibration_document,
    filament_lengths_by_material,
    plan_calibration_splices,
    total_filament_length,
)

from conftest import make_profile


class TestPlanCalibrationSplices:
    def test_short_model_uses_minimum_segment(self) -> None:
        splices = plan_calibration_splices(200, min_first_piece_length=500, splice_min_length=150)
        assert splices == [SplicePoint(0, 500), SplicePoint(1, 650), SplicePoint(2, 800)]

    def test_long_model_split_in_half(self) -> None:
        splices = plan_calibration_splices(1000, min_first_piece_length=500, splice_min_length=150)
        assert splices == [SplicePoint(0, 500), SplicePoint(1, 1000), SplicePoint(2, 1500)]

    def test_default_constants(self) -> None:
        splices = plan_calibration_splices(100, min_first_piece_length=140)
        assert [s.cumulative_length for s in splices] == [140, 220, 300]

    @pytest.mark.parametrize("total", [0, -5])
    def test_unmeasured_model_rejected(self, total: float) -> None:
        with pytest.raises(ValueError):
            plan_calibration_splices(total, min_first_piece_length=140)

    def test_lengths_strictly_increase(self) -> None:
        splices = plan_calibration_splices(37.5, min_first_piece_length=100)
        lengths = [s.cumulative_length for s in splices]
        assert lengths == sorted(lengths)
        assert len(set(lengths)) == 3


class TestSpliceTotals:
    def test_total_and_per_material(self) -> None:
        splices = plan_calibration_splices(1000, min_first_piece_length=500, splice_min_length=150)
        assert total_filament_length(splices) == 1500
        assert filament_lengths_by_material(splices) == [500, 500, 500, 0]

    def test_empty(self) -> None:
        assert total_filament_length([]) == 0.0


class TestCalibrationDocument:
    def test_palette_document(self) -> None:
        profile = make_profile(uuid="0a1b2c3d-0000-4000-8000-1234567890ab")
        profile.calibration.loading_offset = 32000
        document = build_calibration_document(profile, 400)
        assert document.extension == "msf"
        assert document.msf_version == 1.4
        assert document.splice_core == "P"
        assert document.printer_id == "80001234567890ab"
        assert document.loading_offset == 32000
        assert [m.index for m in document.materials] == [1, 2, 3]
        assert document.splices == [(0, 140), (1, 340), (2, 540)]
        assert document.total_length == 540

    def test_palette2_document_never_integrated(self) -> None:
        profile = make_profile(palette_type=PaletteType.PALETTE_2_PRO, integrated=True)
        document = build_calibration_document(profile, 400)
        assert document.extension == "maf"
        assert document.splice_core == "SCP"
        assert document.splices[0] == (0, 100)

    def test_custom_materials(self) -> None:
        materials = [MaterialSlot(index=i, name=f"PLA {i}", color="ff0000") for i in (1, 2, 3)]
        document = build_calibration_document(make_profile(), 400, materials)
        assert document.materials[0].name == "PLA 1"
