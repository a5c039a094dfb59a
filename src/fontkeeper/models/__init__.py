from __future__ import annotations

from fontkeeper.models.files import FileInfo, FontFormat
from fontkeeper.models.fonts import FontRecord
from fontkeeper.models.formula import (
    Formula,
    FormulaFont,
    FormulaFontCollection,
    FormulaStyle,
    MacosImport,
)

__all__ = [
    # files
    "FileInfo",
    "FontFormat",
    # fonts
    "FontRecord",
    # formula
    "Formula",
    "FormulaFont",
    "FormulaFontCollection",
    "FormulaStyle",
    "MacosImport",
]
