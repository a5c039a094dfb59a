from __future__ import annotations

from pathlib import Path

from fontkeeper.locations.base import BaseLocation, LocationType


class FontistLocation(BaseLocation):
    """The managed library: ``<fonts_path>/<formula key>``."""

    location_type = LocationType.FONTIST

    @property
    def base_path(self) -> Path:
        return self.settings.paths.fonts_dir / self.formula.key

    @property
    def managed(self) -> bool:
        return True
