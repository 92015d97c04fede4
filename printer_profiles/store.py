"""
ProfileStore: JSON-on-disk persistence for printer profiles.
"""

import json
import logging
import uuid as uuid_lib
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from .errors import DuplicateNameError, ProfileValidationError
from .models import PrinterProfile
from .registry import ProfileRegistry

logger = logging.getLogger(__name__)


class ProfileStore:
    """
    Persistent store with one JSON document per profile.

    Files are keyed by profile uuid, so renaming a profile never leaves a
    stale file behind.  An ``_meta.json`` file remembers the active profile.

    Usage:
        store = ProfileStore("/path/to/profiles")
        store.save(profile)

        registry = store.load_registry()
        session = ProfileEditSession.begin(registry, store, source=registry.active)
    """

    def __init__(self, store_path: str | Path):
        self.root = Path(store_path)

    def save(self, profile: PrinterProfile) -> None:
        if not profile.uuid:
            raise ValueError(f"Profile '{profile.profile_name}' has no uuid; register it first")
        path = self._profile_path(profile.uuid)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(profile.model_dump_json(indent=2), encoding="utf-8")
        logger.debug("Saved '%s' to %s", profile.profile_name, path)

    def delete(self, profile: PrinterProfile) -> None:
        """Delete a stored profile file from disk."""
        if not profile.uuid:
            return
        path = self._profile_path(profile.uuid)
        if path.exists():
            path.unlink()
            logger.debug("Deleted %s", path)

    def get(self, profile_uuid: str) -> Optional[PrinterProfile]:
        path = self._profile_path(profile_uuid)
        if not path.exists():
            return None
        return PrinterProfile.model_validate_json(path.read_text(encoding="utf-8"))

    def list_profiles(self) -> list[PrinterProfile]:
        """Load every stored profile; unreadable files are logged and skipped."""
        if not self.root.exists():
            return []

        profiles = []
        for json_file in sorted(self.root.glob("*.json")):
            if json_file.name.startswith("_"):
                continue
            try:
                profiles.append(
                    PrinterProfile.model_validate_json(json_file.read_text(encoding="utf-8"))
                )
            except (OSError, ValidationError) as e:
                logger.warning("Skipping unreadable profile %s: %s", json_file, e)
        return profiles

    def load_registry(self) -> ProfileRegistry:
        """Build a registry from the stored profiles and restore the active one."""
        registry = ProfileRegistry()
        for profile in self.list_profiles():
            try:
                registry.add(profile)
            except (DuplicateNameError, ProfileValidationError) as e:
                logger.warning(
                    "Skipping '%s' (%s): %s",
                    profile.profile_name,
                    profile.uuid,
                    e,
                )
        active_uuid = self._load_meta().get("active")
        active = registry.get(active_uuid) if active_uuid else None
        if active is None and len(registry):
            active = registry.profiles[0]
        registry.set_active(active)
        return registry

    def save_active(self, profile: Optional[PrinterProfile]) -> None:
        meta = self._load_meta()
        meta["active"] = profile.uuid if profile is not None else None
        self.root.mkdir(parents=True, exist_ok=True)
        (self.root / "_meta.json").write_text(
            json.dumps(meta, indent=2, ensure_ascii=False),
            encoding="utf-8",
        )

    # --- Internal methods ---

    def _profile_path(self, profile_uuid: str) -> Path:
        # ValueError for anything but a uuid
        return self.root / f"{uuid_lib.UUID(profile_uuid)}.json"

    def _load_meta(self) -> dict:
        meta_path = self.root / "_meta.json"
        if not meta_path.exists():
            return {}
        return json.loads(meta_path.read_text(encoding="utf-8"))
