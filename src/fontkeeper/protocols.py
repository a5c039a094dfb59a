"""Protocol interfaces for swappable collaborators.

Indexes and install locations reference these protocols, not concrete
implementations, so tests can substitute lightweight fakes (a metadata
extractor that reads names from filenames, an enumerator over a tmp dir).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from pathlib import Path

    from fontkeeper.models.fonts import FontRecord


class FontPathEnumerator(Protocol):
    """Enumerates the candidate font files of one index root."""

    def paths(self) -> list[str]: ...


class FontMetadataExtractor(Protocol):
    """Reads the font records contained in one font file."""

    def __call__(self, path: str) -> list[FontRecord]: ...


class ArchiveExtractor(Protocol):
    """Unpacks a downloaded archive and returns the directory holding its files."""

    def extract(self, archive_path: Path, destination: Path) -> Path: ...
