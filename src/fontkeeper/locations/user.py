from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING

from fontkeeper.locations.base import BaseLocation, LocationType, is_managed
from fontkeeper.platforms import MANAGED_SUBDIRECTORY, default_user_fonts_dir

if TYPE_CHECKING:
    from fontkeeper.config import Settings


def user_base_path(settings: Settings) -> Path:
    """The configured user fonts path, else the platform default plus ``fontist``."""
    custom = settings.paths.user_fonts_path
    if custom:
        return Path(os.path.abspath(os.path.expanduser(custom)))
    return default_user_fonts_dir() / MANAGED_SUBDIRECTORY


class UserLocation(BaseLocation):
    """The current user's font directory."""

    location_type = LocationType.USER

    @property
    def base_path(self) -> Path:
        return user_base_path(self.settings)

    @property
    def managed(self) -> bool:
        return is_managed(self.location_type, self.settings.paths.user_fonts_path)
