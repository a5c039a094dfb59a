"""Minimal view of a formula: the declarative definition of a font package.

Only the fields the indexes and install locations read are modelled; every
other key in a formula file is ignored.
"""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict


class FormulaStyle(BaseModel):
    model_config = ConfigDict(extra="ignore")

    family_name: str
    type: str = "Regular"
    full_name: str | None = None
    preferred_family_name: str | None = None
    default_family_name: str | None = None
    font: str | None = None  # Installed filename
    source_font: str | None = None  # Filename inside the archive, when different


class FormulaFont(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str
    styles: list[FormulaStyle] = []


class FormulaFontCollection(BaseModel):
    model_config = ConfigDict(extra="ignore")

    filename: str
    source_filename: str | None = None
    fonts: list[FormulaFont] = []


class MacosImport(BaseModel):
    """Present on formulas describing an OS-bundled supplementary macOS font."""

    model_config = ConfigDict(extra="ignore")

    asset_id: str | None = None
    framework_version: int | None = None


class Formula(BaseModel):
    model_config = ConfigDict(extra="ignore")

    key: str
    path: str = ""
    fonts: list[FormulaFont] = []
    font_collections: list[FormulaFontCollection] = []
    macos_import: MacosImport | None = None

    @property
    def is_macos_import(self) -> bool:
        return self.macos_import is not None

    def all_styles(self) -> list[FormulaStyle]:
        """Styles of standalone fonts plus collection members.

        Collection members are installed under the collection's filename, so
        their ``font``/``source_font`` are taken from the collection.
        """
        styles = [style for font in self.fonts for style in font.styles]
        for collection in self.font_collections:
            for font in collection.fonts:
                for style in font.styles:
                    styles.append(
                        style.model_copy(
                            update={
                                "font": collection.filename,
                                "source_font": collection.source_filename,
                            }
                        )
                    )
        return styles

    @classmethod
    def from_file(cls, path: Path, formulas_dir: Path | None = None) -> Formula:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        if not isinstance(data, dict):
            raise ValueError(f"formula {path} is not a mapping")
        if formulas_dir is not None and path.is_relative_to(formulas_dir):
            relative = path.relative_to(formulas_dir)
        else:
            relative = Path(path.name)
        data.setdefault("key", relative.with_suffix("").as_posix())
        data["path"] = str(path)
        return cls.model_validate(data)
