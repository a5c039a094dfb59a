"""Font name-table extraction.

Reads the family, subfamily, full and PostScript names of every face in a
font file. Collections (ttc/otc) yield one record per face.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

from fontTools.ttLib import TTCollection, TTFont

from fontkeeper.errors import UnknownFontTypeError
from fontkeeper.models.fonts import FontRecord

if TYPE_CHECKING:
    from fontTools.ttLib.tables._n_a_m_e import table__n_a_m_e

_SINGLE_FONT_EXTENSIONS = {".ttf", ".otf", ".woff", ".woff2"}
_COLLECTION_EXTENSIONS = {".ttc", ".otc"}

# OpenType name IDs
_FAMILY = 1
_SUBFAMILY = 2
_FULL_NAME = 4
_POSTSCRIPT_NAME = 6
_TYPOGRAPHIC_FAMILY = 16
_TYPOGRAPHIC_SUBFAMILY = 17


def extract_font_records(path: str) -> list[FontRecord]:
    """Return one ``FontRecord`` per face in ``path``.

    Raises ``UnknownFontTypeError`` for unsupported extensions; parse errors
    from fontTools propagate to the caller.
    """
    ext = os.path.splitext(path)[1].lower()
    if ext in _SINGLE_FONT_EXTENSIONS:
        with TTFont(path, lazy=True) as font:
            return [_record_from_name_table(font["name"], path)]
    if ext in _COLLECTION_EXTENSIONS:
        collection = TTCollection(path, lazy=True)
        try:
            return [_record_from_name_table(font["name"], path) for font in collection.fonts]
        finally:
            collection.close()
    raise UnknownFontTypeError(path)


def _record_from_name_table(names: table__n_a_m_e, path: str) -> FontRecord:
    family = _name(names, _TYPOGRAPHIC_FAMILY) or _name(names, _FAMILY) or ""
    style = _name(names, _TYPOGRAPHIC_SUBFAMILY) or _name(names, _SUBFAMILY) or "Regular"
    full_name = _name(names, _FULL_NAME) or f"{family} {style}".strip()
    return FontRecord(
        family_name=family,
        style=style,
        full_name=full_name,
        postscript_name=_name(names, _POSTSCRIPT_NAME),
        path=path,
    )


def _name(names: table__n_a_m_e, name_id: int) -> str | None:
    value = names.getDebugName(name_id)
    if value is None:
        return None
    # Some vendors pad names with control characters.
    cleaned = "".join(ch for ch in value if ch.isprintable()).strip()
    return cleaned or None
