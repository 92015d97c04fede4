"""
ProfileRegistry: the canonical in-memory list of printer profiles.
"""

from __future__ import annotations

import logging
import threading
import uuid as uuid_lib
from contextlib import contextmanager
from typing import Callable, Iterator, Optional

from .errors import DuplicateNameError, FieldViolation, ProfileValidationError
from .models import PrinterProfile

logger = logging.getLogger(__name__)


def _name_key(name: str) -> str:
    return name.strip().lower()


def _require_name(name: str) -> None:
    if not _name_key(name):
        raise ProfileValidationError([FieldViolation("profile_name", "Profile name is required")])


class ProfileRegistry:
    """
    Known printer profiles plus the active-profile pointer.

    Names are unique case-insensitively.  The list is kept sorted
    alphabetically (case-insensitive); the active profile is tracked by
    reference so sorting never changes which profile is active.

    Every mutation holds an internal lock, so the uniqueness check and the
    insert/replace it guards happen as one step.

    Usage:
        registry = ProfileRegistry(on_empty=start_first_run_setup)
        registry.add(profile)
        registry.set_active(profile)
        registry.is_name_available("ender3")  # False if "Ender3" exists
    """

    def __init__(
        self,
        profiles: Optional[list[PrinterProfile]] = None,
        on_empty: Optional[Callable[[], None]] = None,
    ):
        self._profiles: list[PrinterProfile] = []
        self._active: Optional[PrinterProfile] = None
        self._lock = threading.RLock()
        self.on_empty = on_empty
        for profile in profiles or []:
            self.add(profile)

    def __len__(self) -> int:
        return len(self._profiles)

    def __iter__(self) -> Iterator[PrinterProfile]:
        return iter(list(self._profiles))

    def __contains__(self, profile: object) -> bool:
        return isinstance(profile, PrinterProfile) and self._index_of(profile) >= 0

    @property
    def profiles(self) -> list[PrinterProfile]:
        return list(self._profiles)

    @property
    def active(self) -> Optional[PrinterProfile]:
        return self._active

    def set_active(self, profile: Optional[PrinterProfile]) -> None:
        if profile is None:
            self._active = None
            return
        index = self._index_of(profile)
        if index < 0:
            raise KeyError(f"Profile '{profile.profile_name}' is not registered")
        self._active = self._profiles[index]

    # --- Queries ---

    def is_name_available(
        self, name: str, excluding: Optional[PrinterProfile] = None
    ) -> bool:
        """True if no other profile uses ``name`` (case-insensitive)."""
        key = _name_key(name)
        for profile in self._profiles:
            if excluding is not None and self._same(profile, excluding):
                continue
            if _name_key(profile.profile_name) == key:
                return False
        return True

    def unique_name(self, base: str) -> str:
        """Return ``base``, or ``"base 2"``, ``"base 3"``, ... whichever is free first."""
        candidate = base
        counter = 2
        while not self.is_name_available(candidate):
            candidate = f"{base} {counter}"
            counter += 1
        return candidate

    def get(self, profile_uuid: str) -> Optional[PrinterProfile]:
        for profile in self._profiles:
            if profile.uuid == profile_uuid:
                return profile
        return None

    def find(self, name: str) -> Optional[PrinterProfile]:
        """Case-insensitive lookup by name."""
        key = _name_key(name)
        for profile in self._profiles:
            if _name_key(profile.profile_name) == key:
                return profile
        return None

    # --- Mutations ---

    def add(self, profile: PrinterProfile) -> PrinterProfile:
        """Insert a profile.

        Raises:
            ProfileValidationError: the name is empty.
            DuplicateNameError: the name collides with another profile.
        """
        with self._lock:
            _require_name(profile.profile_name)
            if not self.is_name_available(profile.profile_name):
                raise DuplicateNameError(profile.profile_name)
            self._insert(profile)
        logger.info("Added profile '%s'", profile.profile_name)
        return profile

    def remove(self, profile: PrinterProfile) -> None:
        """
        Remove a profile.  If it was active, the profile that takes its list
        position becomes active (or the new last one); when none remain, no
        profile is active and ``on_empty`` is called.
        """
        with self._lock:
            index = self._index_of(profile)
            if index < 0:
                raise KeyError(f"Profile '{profile.profile_name}' is not registered")
            removed = self._profiles.pop(index)
            was_active = self._active is removed
            if was_active:
                if self._profiles:
                    self._active = self._profiles[min(index, len(self._profiles) - 1)]
                else:
                    self._active = None
        logger.info("Removed profile '%s'", removed.profile_name)
        if not self._profiles and self.on_empty is not None:
            self.on_empty()

    def rename(self, profile: PrinterProfile, new_name: str) -> None:
        """Rename a registered profile; the stored name is stripped of surrounding whitespace."""
        new_name = new_name.strip()
        _require_name(new_name)
        with self._lock:
            index = self._index_of(profile)
            if index < 0:
                raise KeyError(f"Profile '{profile.profile_name}' is not registered")
            if not self.is_name_available(new_name, excluding=profile):
                raise DuplicateNameError(new_name)
            entry = self._profiles[index]
            old_name = entry.profile_name
            entry.profile_name = new_name
            self._sort()
        logger.info("Renamed profile '%s' to '%s'", old_name, new_name)

    def commit(
        self, profile: PrinterProfile, replacing: Optional[PrinterProfile] = None
    ) -> PrinterProfile:
        """
        Atomically insert ``profile`` or replace ``replacing`` with it.

        ``replacing`` is matched by identity or uuid; if it is no longer
        registered the profile is inserted.  Raises DuplicateNameError if the
        name collides with any profile other than the one being replaced.
        """
        with self._lock:
            _require_name(profile.profile_name)
            if not self.is_name_available(profile.profile_name, excluding=replacing or profile):
                raise DuplicateNameError(profile.profile_name)
            index = self._index_of(replacing) if replacing is not None else -1
            if index < 0:
                index = self._index_of(profile)
            if index >= 0:
                previous = self._profiles[index]
                if profile.uuid is None:
                    profile.uuid = previous.uuid
                self._profiles[index] = profile
                if self._active is previous:
                    self._active = profile
                self._sort()
                logger.info("Replaced profile '%s'", profile.profile_name)
            else:
                self._insert(profile)
                logger.info("Inserted profile '%s'", profile.profile_name)
        return profile

    def clear(self) -> None:
        with self._lock:
            self._profiles = []
            self._active = None

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Hold the registry lock across a check-then-mutate sequence."""
        with self._lock:
            yield

    @staticmethod
    def new_uuid() -> str:
        return str(uuid_lib.uuid4())

    # --- Internal methods ---

    def _insert(self, profile: PrinterProfile) -> None:
        if not profile.uuid:
            profile.uuid = self.new_uuid()
        self._profiles.append(profile)
        self._sort()

    def _sort(self) -> None:
        self._profiles.sort(key=lambda p: _name_key(p.profile_name))

    def _index_of(self, profile: PrinterProfile) -> int:
        for i, candidate in enumerate(self._profiles):
            if candidate is profile:
                return i
        if profile.uuid:
            for i, candidate in enumerate(self._profiles):
                if candidate.uuid == profile.uuid:
                    return i
        return -1

    @staticmethod
    def _same(a: PrinterProfile, b: PrinterProfile) -> bool:
        return a is b or (a.uuid is not None and a.uuid == b.uuid)
