"""Tests for the on-disk profile store."""

from __future__ import annotations

from pathlib import Path

import pytest

from printer_profiles import ProfileEditSession, ProfileStore

from conftest import make_profile

UUID_A = "6f1c2a4e-0d3b-4c55-9a61-2f0e8b7d1a01"
UUID_B = "6f1c2a4e-0d3b-4c55-9a61-2f0e8b7d1a02"


@pytest.fixture
def store(tmp_path: Path) -> ProfileStore:
    return ProfileStore(tmp_path / "profiles")


class TestProfileStore:
    def test_save_and_get(self, store: ProfileStore) -> None:
        profile = make_profile(uuid=UUID_A)
        store.save(profile)
        assert (store.root / f"{UUID_A}.json").exists()
        assert store.get(UUID_A) == profile

    def test_save_requires_uuid(self, store: ProfileStore) -> None:
        with pytest.raises(ValueError):
            store.save(make_profile())

    @pytest.mark.parametrize("key", ["../outside", "not-a-uuid"])
    def test_non_uuid_key_rejected(self, store: ProfileStore, key: str) -> None:
        with pytest.raises(ValueError):
            store.save(make_profile(uuid=key))
        assert not store.root.exists()

    def test_delete(self, store: ProfileStore) -> None:
        profile = make_profile(uuid=UUID_A)
        store.save(profile)
        store.delete(profile)
        assert store.get(UUID_A) is None
        assert store.list_profiles() == []

    def test_unreadable_file_skipped(self, store: ProfileStore) -> None:
        store.save(make_profile(uuid=UUID_A))
        (store.root / "broken.json").write_text("{not json", encoding="utf-8")
        profiles = store.list_profiles()
        assert [p.uuid for p in profiles] == [UUID_A]

    def test_missing_root(self, store: ProfileStore) -> None:
        assert store.list_profiles() == []
        assert len(store.load_registry()) == 0


class TestLoadRegistry:
    def test_active_restored(self, store: ProfileStore) -> None:
        a = make_profile("A", uuid=UUID_A)
        b = make_profile("B", uuid=UUID_B)
        store.save(a)
        store.save(b)
        store.save_active(b)
        registry = store.load_registry()
        assert registry.active.uuid == UUID_B

    def test_first_profile_active_by_default(self, store: ProfileStore) -> None:
        store.save(make_profile("B", uuid=UUID_B))
        store.save(make_profile("A", uuid=UUID_A))
        assert store.load_registry().active.profile_name == "A"

    def test_duplicate_names_skipped(self, store: ProfileStore) -> None:
        store.save(make_profile("Ender", uuid=UUID_A))
        store.save(make_profile("ENDER", uuid=UUID_B))
        assert len(store.load_registry()) == 1

    def test_unnamed_profile_skipped(self, store: ProfileStore) -> None:
        store.save(make_profile("Ender", uuid=UUID_A))
        store.save(make_profile("  ", uuid=UUID_B))
        assert [p.uuid for p in store.load_registry()] == [UUID_A]

    def test_session_commit_persists(self, store: ProfileStore) -> None:
        registry = store.load_registry()
        session = ProfileEditSession.begin(registry, store)
        session.apply_many({"profile_name": "Voron", "print_bed.x": 300, "print_bed.y": 300})
        profile = session.commit()
        reloaded = store.load_registry()
        assert reloaded.get(profile.uuid).profile_name == "Voron"

    def test_rename_keeps_single_file(self, store: ProfileStore) -> None:
        registry = store.load_registry()
        profile = registry.add(make_profile("Old"))
        store.save(profile)
        registry.rename(profile, "New")
        store.save(profile)
        assert len(list(store.root.glob("*.json"))) == 1
