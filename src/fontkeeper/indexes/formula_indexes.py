"""Lookup tables from a font name or filename to the formulas providing it.

Each table is persisted as its own YAML file::

    andale mono:
    - andale.yml
    - macos/andale_mono.yml

Paths are stored relative to the formulas directory.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING

import structlog
import yaml

from fontkeeper.errors import IndexCorruptedError
from fontkeeper.indexes.enumerators import FormulaPaths
from fontkeeper.locking import exclusive_lock, lock_path_for
from fontkeeper.models.formula import Formula

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from fontkeeper.models.formula import FormulaFont, FormulaStyle

log = structlog.get_logger()


class FormulaIndex:
    """Base table; subclasses choose which style attribute becomes the key."""

    def __init__(self, path: Path, formulas_dir: Path) -> None:
        self.path = Path(path)
        self.formulas_dir = Path(formulas_dir)
        self.entries: dict[str, list[str]] = {}

    # ------------------------------------------------------------------
    # Naming policy
    # ------------------------------------------------------------------

    def normalize_key(self, key: str) -> str:
        return key.lower()

    def style_key(self, font: FormulaFont, style: FormulaStyle) -> str | None:
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Building
    # ------------------------------------------------------------------

    def add_formula(self, formula: Formula) -> None:
        for font, style in _iter_styles(formula):
            key = self.style_key(font, style)
            if not key:
                log.debug("formula_style_skipped", formula=formula.key, family=style.family_name)
                continue
            self.add_index_formula(key, formula.path)

    def add_index_formula(self, key: str, formula_path: str) -> None:
        paths = self.entries.setdefault(self.normalize_key(key), [])
        relative = self._relative_path(formula_path)
        if relative not in paths:
            paths.append(relative)

    def build(self, formulas: Iterable[Formula]) -> FormulaIndex:
        self.entries = {}
        for formula in formulas:
            self.add_formula(formula)
        self.to_file()
        return self

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def find(self, key: str) -> list[str]:
        """Relative formula paths registered under ``key``."""
        return list(self.entries.get(self.normalize_key(key), []))

    def load_formulas(self, key: str) -> list[Formula]:
        return [
            Formula.from_file(self.formulas_dir / relative, self.formulas_dir)
            for relative in self.find(key)
        ]

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def to_file(self, path: Path | None = None) -> None:
        target = Path(path) if path is not None else self.path
        target.parent.mkdir(parents=True, exist_ok=True)
        temp_path = target.with_name(target.name + ".tmp")
        with exclusive_lock(lock_path_for(target)):
            try:
                temp_path.write_text(
                    yaml.safe_dump(self.entries, sort_keys=True, allow_unicode=True),
                    encoding="utf-8",
                )
                os.replace(temp_path, target)
            finally:
                temp_path.unlink(missing_ok=True)

    @classmethod
    def from_file(cls, path: Path, formulas_dir: Path) -> FormulaIndex:
        """Load the table, building it from every formula when the file is missing."""
        index = cls(path, formulas_dir)
        if not index.path.exists():
            log.info("formula_index_missing", path=str(path))
            return index.build(load_all_formulas(formulas_dir))

        try:
            content = index.path.read_text(encoding="utf-8")
        except OSError as exc:
            raise IndexCorruptedError(str(path), f"unreadable: {exc}") from exc
        if not content.strip():
            raise IndexCorruptedError(str(path), "empty file")
        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as exc:
            raise IndexCorruptedError(str(path), f"invalid YAML: {exc}") from exc
        if not isinstance(data, dict) or not all(
            isinstance(paths, list) for paths in data.values()
        ):
            raise IndexCorruptedError(str(path), "expected a mapping of lists")

        index.entries = {str(key): [str(p) for p in paths] for key, paths in data.items()}
        return index

    def _relative_path(self, formula_path: str) -> str:
        path = Path(formula_path)
        if path.is_relative_to(self.formulas_dir):
            return path.relative_to(self.formulas_dir).as_posix()
        return path.as_posix()


class DefaultFamilyFormulaIndex(FormulaIndex):
    """Keyed by the lowercased default family name, falling back to the family name."""

    def style_key(self, font: FormulaFont, style: FormulaStyle) -> str | None:
        return style.default_family_name or style.family_name


class PreferredFamilyFormulaIndex(FormulaIndex):
    """Keyed by the lowercased preferred family name, falling back to the font name."""

    def style_key(self, font: FormulaFont, style: FormulaStyle) -> str | None:
        return style.preferred_family_name or font.name


class FilenameFormulaIndex(FormulaIndex):
    """Keyed by the exact installed filename."""

    def normalize_key(self, key: str) -> str:
        return key

    def style_key(self, font: FormulaFont, style: FormulaStyle) -> str | None:
        return style.font


def _iter_styles(formula: Formula) -> Iterator[tuple[FormulaFont, FormulaStyle]]:
    for font in formula.fonts:
        for style in font.styles:
            yield font, style
    for collection in formula.font_collections:
        for font in collection.fonts:
            for style in font.styles:
                yield font, style.model_copy(
                    update={"font": collection.filename, "source_font": collection.source_filename}
                )


def load_all_formulas(formulas_dir: Path) -> list[Formula]:
    """Every readable formula below ``formulas_dir``; unreadable files are skipped."""
    formulas = []
    for path in FormulaPaths(formulas_dir).paths():
        try:
            formulas.append(Formula.from_file(Path(path), formulas_dir))
        except (OSError, yaml.YAMLError, ValueError):
            log.warning("formula_unreadable", path=path, exc_info=True)
    return formulas
