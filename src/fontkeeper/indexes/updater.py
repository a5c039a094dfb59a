"""Incremental directory change detection backed by cached snapshots."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from fontkeeper.cache import INDEXES_NAMESPACE
from fontkeeper.indexes.snapshot import DirectoryChange, DirectorySnapshot

if TYPE_CHECKING:
    from fontkeeper.cache import CacheManager

log = structlog.get_logger()

SNAPSHOT_TTL = 300


class IncrementalIndexUpdater:
    """Diff a directory against the snapshot cached by the previous check.

    A cold cache (nothing stored, or the stored snapshot expired) is treated
    like an empty prior state, so every file currently present is reported
    as Added. The fresh snapshot is written back after every check, which
    keeps its TTL sliding forward.

    ``scope`` names the consumer of the diff. Each consumer keeps its own
    snapshot, so one index reading a change does not hide it from another
    index covering the same directory.
    """

    def __init__(
        self,
        directory_path: str,
        cache: CacheManager,
        *,
        ttl: int = SNAPSHOT_TTL,
        scope: str | None = None,
    ) -> None:
        self.directory_path = str(directory_path)
        self.cache = cache
        self.ttl = ttl
        self.scope = scope
        self.changes: list[DirectoryChange] = []

    def update(self) -> list[DirectoryChange]:
        old_snapshot = self._load_snapshot()
        new_snapshot = DirectorySnapshot.create(self.directory_path)

        if old_snapshot is None:
            self.changes = [
                DirectoryChange.added(info.filename, info) for info in new_snapshot.files
            ]
        else:
            self.changes = DirectoryChange.diff(old_snapshot, new_snapshot)

        self._save_snapshot(new_snapshot)

        log.debug(
            "directory_changes_detected",
            directory=self.directory_path,
            cold=old_snapshot is None,
            **self.stats(),
        )
        return self.changes

    @property
    def added_files(self) -> list[DirectoryChange]:
        return [change for change in self.changes if change.is_added]

    @property
    def modified_files(self) -> list[DirectoryChange]:
        return [change for change in self.changes if change.is_modified]

    @property
    def removed_files(self) -> list[DirectoryChange]:
        return [change for change in self.changes if change.is_removed]

    @property
    def has_changes(self) -> bool:
        return bool(self.changes)

    def stats(self) -> dict[str, int]:
        return {
            "total_changes": len(self.changes),
            "added": len(self.added_files),
            "modified": len(self.modified_files),
            "removed": len(self.removed_files),
        }

    @property
    def snapshot_cache_key(self) -> str:
        if self.scope is None:
            return f"snapshot:{self.directory_path}"
        return f"snapshot:{self.scope}:{self.directory_path}"

    def _load_snapshot(self) -> DirectorySnapshot | None:
        cached, found = self.cache.lookup(self.snapshot_cache_key, namespace=INDEXES_NAMESPACE)
        if not found:
            return None
        try:
            return DirectorySnapshot.from_dict(cached)
        except (KeyError, TypeError, ValueError):
            log.warning("snapshot_cache_invalid", directory=self.directory_path, exc_info=True)
            return None

    def _save_snapshot(self, snapshot: DirectorySnapshot) -> None:
        self.cache.set(
            self.snapshot_cache_key,
            snapshot.to_dict(),
            ttl=self.ttl,
            namespace=INDEXES_NAMESPACE,
        )
