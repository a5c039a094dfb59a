"""Immutable directory snapshots and the changes between two of them."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from fontkeeper.indexes.scanner import scan_directory
from fontkeeper.models.files import FileInfo


@dataclass(frozen=True)
class DirectorySnapshot:
    """The font files of one directory at one point in time.

    Built only by scanning (``create``) or by restoring a cached
    representation (``from_dict``). Filenames are unique within a snapshot;
    on a collision the entry seen last wins.
    """

    directory_path: str
    files: tuple[FileInfo, ...]
    scanned_at: int
    _by_filename: dict[str, FileInfo] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        by_filename: dict[str, FileInfo] = {}
        for info in self.files:
            by_filename.pop(info.filename, None)
            by_filename[info.filename] = info
        object.__setattr__(self, "files", tuple(by_filename.values()))
        object.__setattr__(self, "_by_filename", by_filename)

    @classmethod
    def create(cls, directory_path: str) -> DirectorySnapshot:
        directory_path = str(directory_path)
        return cls(
            directory_path=directory_path,
            files=tuple(scan_directory(directory_path)),
            scanned_at=int(time.time()),
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DirectorySnapshot:
        return cls(
            directory_path=str(data["directory_path"]),
            files=tuple(FileInfo.model_validate(item) for item in data["files"]),
            scanned_at=int(data["scanned_at"]),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "directory_path": self.directory_path,
            "files": [info.model_dump(mode="json") for info in self.files],
            "scanned_at": self.scanned_at,
        }

    def file_info(self, filename: str) -> FileInfo | None:
        return self._by_filename.get(filename)

    def has_file(self, filename: str) -> bool:
        return filename in self._by_filename

    @property
    def file_count(self) -> int:
        return len(self.files)

    def older_than(self, seconds: int) -> bool:
        return int(time.time()) - self.scanned_at > seconds


class ChangeType(StrEnum):
    ADDED = "added"
    MODIFIED = "modified"
    REMOVED = "removed"
    UNCHANGED = "unchanged"


@dataclass(frozen=True)
class DirectoryChange:
    """One file-level difference between two snapshots."""

    change_type: ChangeType
    filename: str
    old_info: FileInfo | None = None
    new_info: FileInfo | None = None

    @classmethod
    def added(cls, filename: str, new_info: FileInfo) -> DirectoryChange:
        return cls(ChangeType.ADDED, filename, None, new_info)

    @classmethod
    def modified(cls, filename: str, old_info: FileInfo, new_info: FileInfo) -> DirectoryChange:
        return cls(ChangeType.MODIFIED, filename, old_info, new_info)

    @classmethod
    def removed(cls, filename: str, old_info: FileInfo) -> DirectoryChange:
        return cls(ChangeType.REMOVED, filename, old_info, None)

    @classmethod
    def unchanged(cls, filename: str, info: FileInfo) -> DirectoryChange:
        return cls(ChangeType.UNCHANGED, filename, info, info)

    @classmethod
    def diff(cls, old: DirectorySnapshot, new: DirectorySnapshot) -> list[DirectoryChange]:
        """Compare two snapshots.

        Emits Added and Modified in ``new`` order, then Removed in ``old``
        order. Unchanged files are omitted.
        """
        changes: list[DirectoryChange] = []

        for new_file in new.files:
            old_file = old.file_info(new_file.filename)
            if old_file is None:
                changes.append(cls.added(new_file.filename, new_file))
            elif _file_modified(old_file, new_file):
                changes.append(cls.modified(new_file.filename, old_file, new_file))

        for old_file in old.files:
            if not new.has_file(old_file.filename):
                changes.append(cls.removed(old_file.filename, old_file))

        return changes

    @property
    def is_added(self) -> bool:
        return self.change_type is ChangeType.ADDED

    @property
    def is_modified(self) -> bool:
        return self.change_type is ChangeType.MODIFIED

    @property
    def is_removed(self) -> bool:
        return self.change_type is ChangeType.REMOVED

    @property
    def is_unchanged(self) -> bool:
        return self.change_type is ChangeType.UNCHANGED

    def to_dict(self) -> dict[str, Any]:
        return {
            "change_type": self.change_type.value,
            "filename": self.filename,
            "old_info": self.old_info.model_dump(mode="json") if self.old_info else None,
            "new_info": self.new_info.model_dump(mode="json") if self.new_info else None,
        }


def _file_modified(old: FileInfo, new: FileInfo) -> bool:
    return (
        old.file_size != new.file_size
        or old.file_mtime != new.file_mtime
        or old.signature != new.signature
    )
