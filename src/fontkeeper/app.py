"""Library boundary used by a command-line front end.

``FontCatalog`` ties the install locations and indexes of one ``AppState``
together: install and uninstall font files, look fonts up across every root,
and rebuild or clear the derived data.
"""

from __future__ import annotations

import logging
import os
import sys
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

from fontkeeper.indexes.formula_indexes import load_all_formulas
from fontkeeper.indexes.scanner import find_font_files
from fontkeeper.locations import create_location
from fontkeeper.models.fonts import FontRecord

if TYPE_CHECKING:
    from fontkeeper.config import Settings
    from fontkeeper.locations import LocationType
    from fontkeeper.models.formula import Formula, FormulaStyle
    from fontkeeper.protocols import ArchiveExtractor
    from fontkeeper.state import AppState

log = structlog.get_logger()


def setup_logging(settings: Settings) -> None:
    """Configure structlog. Called once before any log statements."""
    log_level = logging.getLevelNamesMapping()[settings.logging.level]

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if settings.logging.format == "json":
        processors = [*shared_processors, structlog.processors.JSONRenderer()]
    else:
        processors = [*shared_processors, structlog.dev.ConsoleRenderer()]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        # stdout stays free for command output
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


class FontCatalog:
    def __init__(self, state: AppState) -> None:
        self.state = state

    # ------------------------------------------------------------------
    # Install / uninstall
    # ------------------------------------------------------------------

    def install(
        self,
        source_path: str | Path,
        target_filename: str,
        formula: Formula,
        location: str | LocationType | None = None,
    ) -> str:
        """Install one font file and return the path it was written to."""
        target = create_location(formula, self.state, location)
        if target.requires_elevated_permissions:
            log.warning(
                "elevated_permissions_required",
                location=target.location_type,
                message=target.permission_warning,
            )
        return target.install_font(source_path, target_filename)

    def uninstall(
        self,
        filename: str,
        formula: Formula,
        location: str | LocationType | None = None,
    ) -> str | None:
        return create_location(formula, self.state, location).uninstall_font(filename)

    def install_from_directory(
        self,
        extracted_dir: str | Path,
        formula: Formula,
        location: str | LocationType | None = None,
    ) -> list[str]:
        """Install every file the formula names from an unpacked archive.

        Files are matched by their archive name (``source_font``, falling back
        to ``font``) and installed under ``font``. A style whose file cannot be
        found by name is matched on its full name against the fonts found in
        the directory. Each target file is installed once.
        """
        extracted_dir = Path(extracted_dir)
        by_name: dict[str, str] = {}
        for path in sorted(find_font_files(extracted_dir)):
            by_name.setdefault(os.path.basename(path), path)

        installed: list[str] = []
        done: set[str] = set()
        for style in formula.all_styles():
            if not style.font or style.font in done:
                continue
            source = by_name.get(style.source_font or style.font) or self._match_by_name(
                extracted_dir, style
            )
            if source is None:
                log.warning(
                    "formula_font_missing",
                    formula=formula.key,
                    font=style.font,
                    directory=str(extracted_dir),
                )
                continue
            installed.append(self.install(source, style.font, formula, location))
            done.add(style.font)
        return installed

    def install_archive(
        self,
        archive_path: str | Path,
        formula: Formula,
        extractor: ArchiveExtractor,
        location: str | LocationType | None = None,
    ) -> list[str]:
        """Unpack ``archive_path`` into a scratch directory and install from it."""
        with tempfile.TemporaryDirectory(prefix="fontkeeper-") as scratch:
            extracted = extractor.extract(Path(archive_path), Path(scratch))
            return self.install_from_directory(extracted, formula, location)

    def install_from_url(
        self,
        url: str,
        formula: Formula,
        extractor: ArchiveExtractor,
        location: str | LocationType | None = None,
    ) -> list[str]:
        """Fetch the archive at ``url`` through the download cache, then install it."""
        archive = self.state.downloads.fetch(url)
        return self.install_archive(archive, formula, extractor, location)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def find(self, family_name: str, style: str | None = None) -> list[FontRecord]:
        """Fonts matching ``family_name`` in the fontist, user and system roots."""
        seen: set[str] = set()
        results: list[FontRecord] = []
        for index in self.state.indexes.font_indexes():
            for record in index.find(family_name, style):
                if record.path not in seen:
                    seen.add(record.path)
                    results.append(record)
        return results

    def suggest(self, family_name: str, limit: int = 5) -> list[str]:
        suggestions: list[str] = []
        for index in self.state.indexes.font_indexes():
            for name in index.suggest(family_name, limit=limit):
                if name not in suggestions:
                    suggestions.append(name)
        return suggestions[:limit]

    def directory_fonts(self, directory: str | Path) -> list[FontRecord]:
        """Records of every font file below ``directory``.

        Cached for ``cache.directory_fonts_ttl_seconds``.
        """
        key = str(directory)
        cached = self.state.cache.get_directory_fonts(key)
        if isinstance(cached, list):
            return [FontRecord.model_validate(entry) for entry in cached]

        records: list[FontRecord] = []
        for path in sorted(find_font_files(directory)):
            try:
                records.extend(self.state.extractor(path))
            except Exception:
                log.warning("font_unreadable", path=path, exc_info=True)
        self.state.cache.set_directory_fonts(
            key,
            [record.model_dump() for record in records],
            ttl=self.state.settings.cache.directory_fonts_ttl_seconds,
        )
        return records

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def rebuild(self, *, verbose: bool = False) -> None:
        """Rebuild every font index from disk and the formula indexes from formulas."""
        indexes = self.state.indexes
        for index in indexes.font_indexes():
            index.rebuild(verbose=verbose)

        formulas = load_all_formulas(self.state.settings.paths.formulas_dir)
        indexes.rebuild_formula_indexes(formulas)
        log.info("indexes_rebuilt", formulas=len(formulas))

    def clear_cache(self) -> None:
        self.state.cache.clear()
        self.state.indexes.reset()

    def _match_by_name(self, directory: Path, style: FormulaStyle) -> str | None:
        for record in self.directory_fonts(directory):
            if style.full_name and record.full_name == style.full_name:
                return record.path
        return None

