"""Candidate-file enumerators, one per index root."""

from __future__ import annotations

import glob
import os
from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog

from fontkeeper.errors import UnsupportedPlatformError
from fontkeeper.indexes.scanner import (
    extension_globs,
    find_font_files,
    font_file_patterns,
    glob_font_files,
)
from fontkeeper.platforms import system_font_patterns

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

log = structlog.get_logger()


def _glob_all(patterns: list[str]) -> list[str]:
    seen: dict[str, None] = {}
    for pattern in patterns:
        for path in glob_font_files(pattern):
            seen.setdefault(path, None)
    return list(seen)


@dataclass(frozen=True)
class FontistPaths:
    """Every font file below the managed library (``<fonts_path>/<formula>/...``)."""

    fonts_dir: Path

    def paths(self) -> list[str]:
        return find_font_files(self.fonts_dir)


@dataclass(frozen=True)
class UserPaths:
    """Every font file below the user install location.

    The base directory is resolved lazily because it depends on the platform
    and on configuration; a root that cannot be determined yields no paths.
    """

    base_dir: Callable[[], Path]

    def paths(self) -> list[str]:
        try:
            base = self.base_dir()
        except UnsupportedPlatformError:
            log.debug("user_font_paths_unavailable", exc_info=True)
            return []
        return find_font_files(base)


@dataclass(frozen=True)
class SystemPaths:
    """Font files in the OS font directories, or in ``directories`` when configured.

    ``extra_directories`` are always scanned as well; a custom system install
    root outside the OS directories is passed here.
    """

    directories: tuple[str, ...] | None = None
    extra_directories: tuple[str, ...] = ()

    def paths(self) -> list[str]:
        patterns = [
            pattern
            for directory in self.extra_directories
            for pattern in font_file_patterns(os.path.expanduser(directory))
        ]
        if self.directories is not None:
            patterns += [
                pattern
                for directory in self.directories
                for pattern in font_file_patterns(os.path.expanduser(directory))
            ]
            return _glob_all(patterns)

        try:
            patterns += system_font_patterns(extension_globs())
        except UnsupportedPlatformError:
            log.warning("system_font_paths_unavailable", exc_info=True)
        return _glob_all(patterns)


@dataclass(frozen=True)
class FormulaPaths:
    """Formula definition files (``*.yml``) below the formulas directory."""

    formulas_dir: Path

    def paths(self) -> list[str]:
        pattern = os.path.join(str(self.formulas_dir), "**", "*.yml")
        return sorted(path for path in glob.glob(pattern, recursive=True) if os.path.isfile(path))
