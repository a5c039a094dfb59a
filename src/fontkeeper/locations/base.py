"""Shared install/uninstall behaviour of every install location.

A location is *managed* when fontkeeper owns the directory and may replace
files in it. In a non-managed directory (one shared with the OS or the user)
an existing file is never overwritten: the new copy gets a ``-fontist``
suffixed name and a warning explains the duplicate.
"""

from __future__ import annotations

import os
import re
import shutil
from enum import StrEnum
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

from fontkeeper.errors import InstallError, UninstallError
from fontkeeper.platforms import MANAGED_SUBDIRECTORY, system_managed_example, user_managed_example

if TYPE_CHECKING:
    from fontkeeper.config import Settings
    from fontkeeper.indexes.font_indexes import FontCollectionIndex
    from fontkeeper.models.fonts import FontRecord
    from fontkeeper.models.formula import Formula

log = structlog.get_logger()


class LocationType(StrEnum):
    FONTIST = "fontist"
    USER = "user"
    SYSTEM = "system"


def is_managed(
    location_type: LocationType,
    configured_path: str | None,
    *,
    os_managed: bool = False,
) -> bool:
    """Whether files in the location may be replaced in place."""
    if location_type is LocationType.FONTIST or os_managed:
        return True
    if not configured_path:
        return True
    segments = [part for part in re.split(r"[\\/]", configured_path) if part]
    return bool(segments) and segments[-1] == MANAGED_SUBDIRECTORY


class BaseLocation:
    """One place fonts of a formula can be installed to.

    Subclasses provide ``location_type``, ``base_path`` and ``managed``.
    ``index`` is the install-location index covering ``base_path``.
    """

    location_type: LocationType

    def __init__(self, formula: Formula, index: FontCollectionIndex, settings: Settings) -> None:
        self.formula = formula
        self.index = index
        self.settings = settings

    @property
    def base_path(self) -> Path:
        raise NotImplementedError

    @property
    def managed(self) -> bool:
        raise NotImplementedError

    def font_path(self, filename: str) -> Path:
        return self.base_path / filename

    # ------------------------------------------------------------------
    # Install / uninstall
    # ------------------------------------------------------------------

    def install_font(self, source_path: str | Path, target_filename: str) -> str:
        """Copy ``source_path`` into this location and return the installed path."""
        target = self.font_path(target_filename)

        # A file the index has not seen (e.g. unreadable metadata) still counts.
        if not (self.font_exists(target_filename) or target.exists()):
            return self._copy(source_path, target, event="font_installed")

        if self.managed:
            return self._copy(source_path, target, event="font_replaced")

        unique_target = self.font_path(self.generate_unique_filename(target_filename))
        installed = self._copy(source_path, unique_target, event="font_installed")
        self._warn_duplicate(target, unique_target)
        return installed

    def uninstall_font(self, filename: str) -> str | None:
        """Delete ``filename`` from this location; ``None`` when it is not there."""
        target = self.font_path(filename)
        if not target.exists():
            return None

        try:
            target.unlink()
        except OSError as exc:
            raise UninstallError(str(target), str(exc)) from exc

        self.index.remove_font(str(target))
        log.info("font_uninstalled", location=self.location_type, path=str(target))
        return str(target)

    def generate_unique_filename(self, filename: str) -> str:
        """``Name-fontist.ext``, then ``Name-fontist-2.ext`` and so on, checked on disk."""
        stem, ext = os.path.splitext(filename)
        candidate = f"{stem}-fontist{ext}"
        counter = 2
        while self.font_path(candidate).exists():
            candidate = f"{stem}-fontist-{counter}{ext}"
            counter += 1
        return candidate

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def font_exists(self, filename: str) -> bool:
        return self.index.font_exists(str(self.font_path(filename)))

    def find_fonts(self, family_name: str, style: str | None = None) -> list[FontRecord]:
        return self.index.find(family_name, style)

    @property
    def requires_elevated_permissions(self) -> bool:
        return False

    @property
    def permission_warning(self) -> str | None:
        return None

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _copy(self, source: str | Path, target: Path, *, event: str) -> str:
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(source, target)
        except OSError as exc:
            suggestion = self.permission_warning if self.requires_elevated_permissions else None
            raise InstallError(str(target), str(exc), suggestion=suggestion) from exc

        self.index.add_font(str(target))
        # The managed library is an implementation detail; only shared locations are announced.
        emit = log.debug if self.location_type is LocationType.FONTIST else log.info
        emit(event, location=self.location_type, path=str(target))
        return str(target)

    def _warn_duplicate(self, existing: Path, installed: Path) -> None:
        log.warning(
            "duplicate_font_installed",
            existing=str(existing),
            installed=str(installed),
            message=(
                f"A font already exists at {existing}, in a location not managed by "
                f"fontkeeper, so a duplicate was installed at {installed}. Managed "
                f"locations such as {user_managed_example()} or {system_managed_example()} "
                "are replaced in place. Delete the old file manually to keep only the new copy."
            ),
        )
