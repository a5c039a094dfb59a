from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING

from fontkeeper.errors import InstallError
from fontkeeper.locations.base import BaseLocation, LocationType, is_managed
from fontkeeper.platforms import (
    MANAGED_SUBDIRECTORY,
    default_system_fonts_dir,
    macos_supplementary_base,
    user_os,
)

if TYPE_CHECKING:
    from fontkeeper.config import Settings
    from fontkeeper.models.formula import Formula


def system_base_path(settings: Settings, formula: Formula | None = None) -> Path:
    """Install root for system-wide fonts.

    Supplementary macOS fonts go to the OS asset catalog; everything else to
    the configured system fonts path or the platform default plus ``fontist``.
    """
    custom = settings.paths.system_fonts_path
    if custom:
        return Path(os.path.abspath(os.path.expanduser(custom)))
    if formula is not None and formula.is_macos_import and user_os() == "macos":
        return _macos_supplementary_path(formula)
    return default_system_fonts_dir() / MANAGED_SUBDIRECTORY


def _macos_supplementary_path(formula: Formula) -> Path:
    source = formula.macos_import
    if source is None or source.framework_version is None:
        raise InstallError(formula.key, "framework version of the supplementary font is unknown")
    if not source.asset_id:
        raise InstallError(formula.key, "asset id of the supplementary font is missing")
    base = macos_supplementary_base(source.framework_version)
    return base / f"{source.asset_id}.asset" / "AssetData"


class SystemLocation(BaseLocation):
    """The system-wide font directory. Writing to it needs elevated privileges."""

    location_type = LocationType.SYSTEM

    @property
    def base_path(self) -> Path:
        return system_base_path(self.settings, self.formula)

    @property
    def managed(self) -> bool:
        return is_managed(
            self.location_type,
            self.settings.paths.system_fonts_path,
            os_managed=self.formula.is_macos_import,
        )

    @property
    def requires_elevated_permissions(self) -> bool:
        return True

    @property
    def permission_warning(self) -> str:
        return (
            "Installing to the system font directory requires root or administrator "
            "permissions and affects every user. Prefer the fontist or user location "
            "unless the font must be visible system-wide."
        )
