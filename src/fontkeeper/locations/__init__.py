"""Install locations: where a formula's fonts can be installed."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fontkeeper.errors import InvalidLocationError
from fontkeeper.locations.base import BaseLocation, LocationType, is_managed
from fontkeeper.locations.fontist import FontistLocation
from fontkeeper.locations.system import SystemLocation, system_base_path
from fontkeeper.locations.user import UserLocation, user_base_path

if TYPE_CHECKING:
    from fontkeeper.models.formula import Formula
    from fontkeeper.state import AppState

_ALIASES: dict[str, LocationType] = {
    "fontist": LocationType.FONTIST,
    "fontist-library": LocationType.FONTIST,
    "user": LocationType.USER,
    "system": LocationType.SYSTEM,
}


def parse_location_type(value: str | LocationType) -> LocationType:
    """Accepts ``fontist``, ``fontist-library``, ``user`` or ``system``.

    ``_`` and ``-`` are equivalent and case is ignored.
    """
    if isinstance(value, LocationType):
        return value
    normalized = value.strip().lower().replace("_", "-")
    try:
        return _ALIASES[normalized]
    except KeyError:
        raise InvalidLocationError(value) from None


def create_location(
    formula: Formula,
    state: AppState,
    location_type: str | LocationType | None = None,
) -> BaseLocation:
    """Location object for ``formula``; defaults to the configured install location."""
    kind = parse_location_type(location_type or state.settings.install.location)
    if kind is LocationType.FONTIST:
        return FontistLocation(formula, state.indexes.fontist, state.settings)
    if kind is LocationType.USER:
        return UserLocation(formula, state.indexes.user, state.settings)
    return SystemLocation(formula, state.indexes.system, state.settings)


def all_locations(formula: Formula, state: AppState) -> list[BaseLocation]:
    return [create_location(formula, state, kind) for kind in LocationType]


__all__ = [
    "BaseLocation",
    "FontistLocation",
    "LocationType",
    "SystemLocation",
    "UserLocation",
    "all_locations",
    "create_location",
    "is_managed",
    "parse_location_type",
    "system_base_path",
    "user_base_path",
]
