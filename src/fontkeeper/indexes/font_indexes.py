"""Install-location indexes: one persisted ``FontCollection`` per root."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from rapidfuzz import fuzz, process

from fontkeeper.indexes.collection import FontCollection
from fontkeeper.indexes.updater import SNAPSHOT_TTL

if TYPE_CHECKING:
    from pathlib import Path

    from fontkeeper.cache import CacheManager
    from fontkeeper.models.fonts import FontRecord
    from fontkeeper.protocols import FontMetadataExtractor, FontPathEnumerator

log = structlog.get_logger()


class FontCollectionIndex:
    """Lazily loaded index over the fonts found under one root.

    The collection is read from ``index_path`` on first use; a missing file
    triggers a full build, a corrupted one raises ``IndexCorruptedError``.
    """

    def __init__(
        self,
        index_path: Path,
        enumerator: FontPathEnumerator,
        extractor: FontMetadataExtractor,
        cache: CacheManager,
        *,
        snapshot_ttl: int = SNAPSHOT_TTL,
    ) -> None:
        self.index_path = index_path
        self.enumerator = enumerator
        self.extractor = extractor
        self.cache = cache
        self.snapshot_ttl = snapshot_ttl
        self._collection: FontCollection | None = None

    @property
    def collection(self) -> FontCollection:
        if self._collection is None:
            self._collection = FontCollection.from_file(
                self.index_path,
                self.enumerator,
                self.extractor,
                self.cache,
                snapshot_ttl=self.snapshot_ttl,
            )
        return self._collection

    def find(self, family_name: str, style: str | None = None) -> list[FontRecord]:
        return self.collection.find(family_name, style)

    @property
    def fonts(self) -> list[FontRecord]:
        return self.collection.fonts

    def font_exists(self, path: str) -> bool:
        return self.collection.font_exists(path)

    def add_font(self, path: str) -> None:
        """Make a newly written file visible to queries.

        The whole root is re-enumerated; metadata of files whose snapshot
        entry is unchanged is reused, so only ``path`` and other changed
        files are read.
        """
        log.debug("index_add_font", index=str(self.index_path), path=path)
        self.collection.reset_verification()
        self.collection.build(forced=True)

    def remove_font(self, path: str) -> None:
        log.debug("index_remove_font", index=str(self.index_path), path=path)
        self.collection.remove(path)

    def rebuild(self, *, verbose: bool = False) -> None:
        if self._collection is None:
            self._collection = FontCollection(
                self.index_path,
                self.enumerator,
                self.extractor,
                self.cache,
                snapshot_ttl=self.snapshot_ttl,
            )
        self._collection.rebuild(verbose=verbose)

    def read_only_mode(self) -> FontCollectionIndex:
        self.collection.read_only_mode()
        return self

    def reset_cache(self) -> None:
        """Drop the in-memory collection so the next query reloads the file."""
        self._collection = None

    def suggest(self, family_name: str, limit: int = 5, score_cutoff: int = 60) -> list[str]:
        """Closest indexed family names, best first, for "not found" messages."""
        families = sorted({record.family_name for record in self.fonts})
        results = process.extract(
            family_name,
            families,
            scorer=fuzz.WRatio,
            limit=limit,
            score_cutoff=score_cutoff,
        )
        return [name for name, _score, _idx in results]


class FontistIndex(FontCollectionIndex):
    """Fonts installed into the managed library."""


class UserIndex(FontCollectionIndex):
    """Fonts found below the user install location."""


class SystemIndex(FontCollectionIndex):
    """Fonts shipped with the OS or placed in its font directories."""
