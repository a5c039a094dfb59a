"""Application state container.

One ``AppState`` is created per process (or per test) and passed to every
install location and to the ``FontCatalog`` facade. The indexes are built
lazily on first access and then shared, so every location writing to a root
updates the same in-memory collection.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from fontkeeper.cache import CacheManager
from fontkeeper.config import Settings
from fontkeeper.downloads import DownloadCache
from fontkeeper.indexes.enumerators import FontistPaths, SystemPaths, UserPaths
from fontkeeper.indexes.font_indexes import FontistIndex, SystemIndex, UserIndex
from fontkeeper.indexes.formula_indexes import (
    DefaultFamilyFormulaIndex,
    FilenameFormulaIndex,
    PreferredFamilyFormulaIndex,
)
from fontkeeper.locations.system import system_base_path
from fontkeeper.locations.user import user_base_path
from fontkeeper.metadata import extract_font_records

if TYPE_CHECKING:
    from fontkeeper.models.formula import Formula
    from fontkeeper.protocols import FontMetadataExtractor


class FontIndexes:
    """The install-location and formula indexes, each constructed on first use."""

    def __init__(
        self,
        settings: Settings,
        cache: CacheManager,
        extractor: FontMetadataExtractor = extract_font_records,
    ) -> None:
        self.settings = settings
        self.cache = cache
        self.extractor = extractor
        self._fontist: FontistIndex | None = None
        self._user: UserIndex | None = None
        self._system: SystemIndex | None = None
        self._formula: DefaultFamilyFormulaIndex | None = None
        self._preferred_family: PreferredFamilyFormulaIndex | None = None
        self._filename: FilenameFormulaIndex | None = None

    @property
    def snapshot_ttl(self) -> int:
        return self.settings.cache.snapshot_ttl_seconds

    @property
    def fontist(self) -> FontistIndex:
        if self._fontist is None:
            paths = self.settings.paths
            self._fontist = FontistIndex(
                paths.fontist_index_path,
                FontistPaths(paths.fonts_dir),
                self.extractor,
                self.cache,
                snapshot_ttl=self.snapshot_ttl,
            )
        return self._fontist

    @property
    def user(self) -> UserIndex:
        if self._user is None:
            self._user = UserIndex(
                self.settings.paths.user_index_path,
                UserPaths(lambda: user_base_path(self.settings)),
                self.extractor,
                self.cache,
                snapshot_ttl=self.snapshot_ttl,
            )
        return self._user

    @property
    def system(self) -> SystemIndex:
        if self._system is None:
            paths = self.settings.paths
            directories = None
            if paths.system_font_dirs is not None:
                directories = tuple(paths.system_font_dirs)
            extra = (str(system_base_path(self.settings)),) if paths.system_fonts_path else ()
            self._system = SystemIndex(
                paths.system_index_path,
                SystemPaths(directories=directories, extra_directories=extra),
                self.extractor,
                self.cache,
                snapshot_ttl=self.snapshot_ttl,
            )
        return self._system

    @property
    def formula(self) -> DefaultFamilyFormulaIndex:
        if self._formula is None:
            paths = self.settings.paths
            self._formula = DefaultFamilyFormulaIndex.from_file(
                paths.formula_index_path, paths.formulas_dir
            )
        return self._formula

    @property
    def preferred_family(self) -> PreferredFamilyFormulaIndex:
        if self._preferred_family is None:
            paths = self.settings.paths
            self._preferred_family = PreferredFamilyFormulaIndex.from_file(
                paths.formula_preferred_family_index_path, paths.formulas_dir
            )
        return self._preferred_family

    @property
    def filename(self) -> FilenameFormulaIndex:
        if self._filename is None:
            paths = self.settings.paths
            self._filename = FilenameFormulaIndex.from_file(
                paths.formula_filename_index_path, paths.formulas_dir
            )
        return self._filename

    def rebuild_formula_indexes(self, formulas: list[Formula]) -> None:
        paths = self.settings.paths
        self._formula = DefaultFamilyFormulaIndex(paths.formula_index_path, paths.formulas_dir)
        self._preferred_family = PreferredFamilyFormulaIndex(
            paths.formula_preferred_family_index_path, paths.formulas_dir
        )
        self._filename = FilenameFormulaIndex(paths.formula_filename_index_path, paths.formulas_dir)
        for index in (self._formula, self._preferred_family, self._filename):
            index.build(formulas)

    def font_indexes(self) -> list[FontistIndex | UserIndex | SystemIndex]:
        return [self.fontist, self.user, self.system]

    def reset(self) -> None:
        """Forget every loaded index; the next access reloads from disk."""
        self._fontist = self._user = self._system = None
        self._formula = self._preferred_family = self._filename = None


@dataclass
class AppState:
    """Holds all shared runtime state."""

    settings: Settings
    cache: CacheManager
    indexes: FontIndexes = field(init=False)
    downloads: DownloadCache = field(init=False)
    extractor: FontMetadataExtractor = extract_font_records

    def __post_init__(self) -> None:
        self.indexes = FontIndexes(self.settings, self.cache, self.extractor)
        self.downloads = DownloadCache(
            self.settings.paths.downloads_dir, settings=self.settings.downloads
        )


def build_app_state(
    settings: Settings | None = None,
    extractor: FontMetadataExtractor = extract_font_records,
) -> AppState:
    settings = settings or Settings()
    return AppState(
        settings=settings,
        cache=CacheManager(settings.paths.cache_dir),
        extractor=extractor,
    )
