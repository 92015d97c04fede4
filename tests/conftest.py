"""Shared fixtures for printer profile tests."""

from __future__ import annotations

import pytest

from printer_profiles import PrintBed, PrinterProfile, ProfileRegistry, RectangularBed


def make_profile(name: str = "Ender 3", **overrides) -> PrinterProfile:
    """A profile that passes every validation rule."""
    fields = {
        "profile_name": name,
        "print_bed": PrintBed(dimensions=RectangularBed(x=235, y=235)),
    }
    fields.update(overrides)
    return PrinterProfile(**fields)


class MemoryPersistence:
    """In-memory stand-in for the on-disk store."""

    def __init__(self) -> None:
        self.saved: dict[str, PrinterProfile] = {}
        self.deleted: list[str] = []

    def save(self, profile: PrinterProfile) -> None:
        self.saved[profile.uuid] = profile.clone()

    def delete(self, profile: PrinterProfile) -> None:
        self.saved.pop(profile.uuid, None)
        self.deleted.append(profile.uuid)

    def list_profiles(self) -> list[PrinterProfile]:
        return list(self.saved.values())


@pytest.fixture
def registry() -> ProfileRegistry:
    return ProfileRegistry()


@pytest.fixture
def persistence() -> MemoryPersistence:
    return MemoryPersistence()


@pytest.fixture
def ender(registry: ProfileRegistry) -> PrinterProfile:
    return registry.add(make_profile("Ender 3"))
