"""Tests for profile model helpers."""

from __future__ import annotations

import pytest

from printer_profiles import PaletteType

from conftest import make_profile


class TestAccessoryHelpers:
    @pytest.mark.parametrize(
        "palette_type, core, version",
        [
            (PaletteType.PALETTE, "P", 1.4),
            (PaletteType.PALETTE_2, "SC", 2.0),
            (PaletteType.PALETTE_2_PRO, "SCP", 2.0),
        ],
    )
    def test_splice_core_and_version(self, palette_type: PaletteType, core: str, version: float) -> None:
        profile = make_profile(palette_type=palette_type)
        assert profile.splice_core() == core
        assert profile.msf_version() == version

    def test_extensions(self) -> None:
        assert make_profile().msf_extension() == "msf"
        integrated = make_profile(palette_type=PaletteType.PALETTE_2, integrated=True)
        assert integrated.msf_extension() == "mcf"
        assert integrated.msf_extension(allow_integrated=False) == "maf"

    def test_first_generation_never_integrated(self) -> None:
        assert not make_profile(integrated=True).is_integrated()

    def test_printer_id_without_uuid(self) -> None:
        assert make_profile().printer_id() == "0000000000000001"


class TestTransitionHelpers:
    def test_interpolate_purge_length(self) -> None:
        profile = make_profile()
        profile.transition_settings.min_purge_length = 100
        profile.transition_settings.purge_length = 140
        assert profile.interpolate_purge_length(0, 2) == 100
        assert profile.interpolate_purge_length(1, 1) == 120
        assert profile.interpolate_purge_length(2, 0) == 140

    def test_interpolate_without_range(self) -> None:
        assert make_profile().interpolate_purge_length(0, 2) == 130

    def test_infill_dump_disabled_in_simplified_mode(self) -> None:
        profile = make_profile()
        profile.transition_settings.use_infill_for_transition = True
        assert profile.can_infill_dump()
        assert not profile.can_infill_dump(simplified=True)

    def test_clone_is_independent(self) -> None:
        profile = make_profile()
        copy = profile.clone()
        copy.print_bed.origin_offsets.x = 5
        assert profile.print_bed.origin_offsets.x == 0
