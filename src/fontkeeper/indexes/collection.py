"""Persisted font collection: the table behind each install-location index.

The index file is a YAML mapping from a lowercased family key to the records
of that family. It is human-diffable and always rewritten whole, under an
exclusive lock on ``<index>.lock``, via a temp file and ``os.replace``.
"""

from __future__ import annotations

import os
import threading
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path
from typing import TYPE_CHECKING

import structlog
import yaml
from pydantic import ValidationError

from fontkeeper.errors import IndexCorruptedError
from fontkeeper.indexes.updater import SNAPSHOT_TTL, IncrementalIndexUpdater
from fontkeeper.locking import exclusive_lock, lock_path_for
from fontkeeper.models.fonts import FontRecord

if TYPE_CHECKING:
    from fontkeeper.cache import CacheManager
    from fontkeeper.protocols import FontMetadataExtractor, FontPathEnumerator

log = structlog.get_logger()


class IndexLoadStatus(StrEnum):
    MISSING = "missing"
    CORRUPTED = "corrupted"
    OK = "ok"


@dataclass(frozen=True)
class IndexLoadResult:
    status: IndexLoadStatus
    records: tuple[FontRecord, ...] = field(default_factory=tuple)
    error: str | None = None


def load_index_file(path: Path) -> IndexLoadResult:
    """Read a persisted index without raising.

    A file that is absent is ``MISSING``; one that is empty, unparsable or
    of the wrong shape is ``CORRUPTED``.
    """
    try:
        content = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return IndexLoadResult(IndexLoadStatus.MISSING)
    except OSError as exc:
        return IndexLoadResult(IndexLoadStatus.CORRUPTED, error=f"unreadable: {exc}")

    if not content.strip():
        return IndexLoadResult(IndexLoadStatus.CORRUPTED, error="empty file")

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        return IndexLoadResult(IndexLoadStatus.CORRUPTED, error=f"invalid YAML: {exc}")

    if not isinstance(data, dict):
        return IndexLoadResult(IndexLoadStatus.CORRUPTED, error="expected a mapping")

    records: list[FontRecord] = []
    try:
        for entries in data.values():
            if not isinstance(entries, list):
                raise ValueError("family entry is not a list")
            records.extend(FontRecord.model_validate(entry) for entry in entries)
    except (ValidationError, ValueError) as exc:
        return IndexLoadResult(IndexLoadStatus.CORRUPTED, error=f"invalid record: {exc}")

    return IndexLoadResult(IndexLoadStatus.OK, records=tuple(records))


def dump_index(records: tuple[FontRecord, ...] | list[FontRecord]) -> str:
    grouped: dict[str, list[dict]] = {}
    for record in records:
        grouped.setdefault(record.family_name.lower(), []).append(
            record.model_dump(exclude_none=True)
        )
    return yaml.safe_dump(grouped, sort_keys=True, allow_unicode=True)


def write_index_file(path: Path, records: tuple[FontRecord, ...] | list[FontRecord]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = path.with_name(path.name + ".tmp")
    with exclusive_lock(lock_path_for(path)):
        try:
            temp_path.write_text(dump_index(records), encoding="utf-8")
            os.replace(temp_path, path)
        finally:
            temp_path.unlink(missing_ok=True)


def _normalize(path: str) -> str:
    return os.path.normpath(path)


class FontCollection:
    """In-memory font records for one root plus the file they persist to.

    ``build`` is the warm path: candidate files are enumerated again and each
    directory is diffed against its cached snapshot, so only new or modified
    files have their metadata extracted. ``rebuild`` is the cold path and
    re-extracts every file.
    """

    def __init__(
        self,
        path: Path,
        enumerator: FontPathEnumerator,
        extractor: FontMetadataExtractor,
        cache: CacheManager,
        *,
        records: tuple[FontRecord, ...] = (),
        snapshot_ttl: int = SNAPSHOT_TTL,
    ) -> None:
        self.path = Path(path)
        self.enumerator = enumerator
        self.extractor = extractor
        self.cache = cache
        self.snapshot_ttl = snapshot_ttl
        self._records = tuple(records)
        self._verified = False
        self._read_only = False
        self._lock = threading.RLock()

    @classmethod
    def from_file(
        cls,
        path: Path,
        enumerator: FontPathEnumerator,
        extractor: FontMetadataExtractor,
        cache: CacheManager,
        *,
        snapshot_ttl: int = SNAPSHOT_TTL,
    ) -> FontCollection:
        """Load the persisted collection, building it when the file is missing.

        Raises ``IndexCorruptedError`` for an empty or unparsable file; such
        a file is never discarded silently.
        """
        result = load_index_file(Path(path))
        if result.status is IndexLoadStatus.CORRUPTED:
            raise IndexCorruptedError(str(path), result.error or "unknown")

        collection = cls(
            path,
            enumerator,
            extractor,
            cache,
            records=result.records,
            snapshot_ttl=snapshot_ttl,
        )
        if result.status is IndexLoadStatus.MISSING:
            log.info("index_missing", path=str(path))
            collection.rebuild()
        return collection

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def fonts(self) -> list[FontRecord]:
        self._ensure_verified()
        return list(self._records)

    def find(self, family_name: str, style: str | None = None) -> list[FontRecord]:
        """Exact, case-sensitive match on family name and optional style."""
        return [
            record
            for record in self.fonts
            if record.family_name == family_name and (style is None or record.style == style)
        ]

    def font_exists(self, path: str) -> bool:
        target = _normalize(path)
        return any(_normalize(record.path) == target for record in self.fonts)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def read_only_mode(self) -> FontCollection:
        """Skip freshness checks until the next forced build."""
        self._read_only = True
        return self

    def reset_verification(self) -> None:
        self._verified = False

    def remove(self, path: str) -> None:
        target = _normalize(path)
        with self._lock:
            self._records = tuple(r for r in self._records if _normalize(r.path) != target)
            self.to_file()

    def build(self, *, forced: bool = False, verbose: bool = False) -> None:
        with self._lock:
            if not forced and (self._read_only or self._verified):
                return

            paths = self._enumerate()
            changed = self._refresh_snapshots(paths)

            existing: dict[str, list[FontRecord]] = {}
            for record in self._records:
                existing.setdefault(_normalize(record.path), []).append(record)

            records: list[FontRecord] = []
            extracted = 0
            for path in paths:
                if path in existing and path not in changed:
                    records.extend(existing[path])
                    continue
                records.extend(self._extract(path, verbose=verbose))
                extracted += 1

            old_records = self._records
            self._records = tuple(records)
            self._verified = True

            if self._records != old_records or not self.path.exists():
                self.to_file()

            (log.info if verbose else log.debug)(
                "index_built",
                path=str(self.path),
                files=len(paths),
                extracted=extracted,
                fonts=len(self._records),
            )

    def rebuild(self, *, verbose: bool = False) -> None:
        with self._lock:
            paths = self._enumerate()
            self._refresh_snapshots(paths)

            records: list[FontRecord] = []
            for path in paths:
                records.extend(self._extract(path, verbose=verbose))

            self._records = tuple(records)
            self._verified = True
            self.to_file()

            (log.info if verbose else log.debug)(
                "index_rebuilt",
                path=str(self.path),
                files=len(paths),
                fonts=len(self._records),
            )

    def to_file(self, path: Path | None = None) -> None:
        write_index_file(Path(path) if path is not None else self.path, self._records)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _ensure_verified(self) -> None:
        if not self._verified and not self._read_only:
            self.build()

    def _enumerate(self) -> list[str]:
        seen: dict[str, None] = {}
        for path in self.enumerator.paths():
            seen.setdefault(_normalize(path), None)
        return list(seen)

    def _refresh_snapshots(self, paths: list[str]) -> set[str]:
        """Diff each directory holding a candidate and return new or modified paths."""
        directories = dict.fromkeys(os.path.dirname(path) for path in paths)
        changed: set[str] = set()
        for directory in directories:
            updater = IncrementalIndexUpdater(
                directory, self.cache, ttl=self.snapshot_ttl, scope=str(self.path)
            )
            for change in updater.update():
                if change.new_info is not None and (change.is_added or change.is_modified):
                    changed.add(_normalize(change.new_info.path))
        return changed

    def _extract(self, path: str, *, verbose: bool) -> list[FontRecord]:
        try:
            records = self.extractor(path)
        except Exception:
            # One unreadable file must not abort indexing of the whole root.
            log.warning("font_unreadable", path=path, exc_info=True)
            return []
        if verbose:
            log.info("font_indexed", path=path, faces=len(records))
        return records
