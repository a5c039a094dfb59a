"""Namespaced file-backed key/value cache with per-entry TTL.

Each namespace is a directory under the cache root; each key is one JSON
file in it, so writers of different keys never contend. Expiry is enforced
lazily on read: an expired entry is deleted when it is looked up and is
reported as a miss.

Cached values are derived, re-computable data. Read failures (unreadable or
corrupted entry files) are treated as misses and write failures are logged
and ignored, so an unhealthy cache directory never stops an index update.
Concurrent writers to the same key race and the last writer wins.
"""

from __future__ import annotations

import hashlib
import json
import os
import re
import shutil
import time
from contextlib import suppress
from pathlib import Path
from typing import Any

import structlog

log = structlog.get_logger()

DEFAULT_NAMESPACE = "default"
INDEXES_NAMESPACE = "indexes"
DIRECTORY_FONTS_TTL = 3600

MAX_KEY_LENGTH = 200
_UNSAFE_KEY_CHARS = re.compile(r"[^\w-]", re.ASCII)
_ENTRY_SUFFIX = ".json"
_TEMP_SUFFIX = ".tmp"


def _now() -> int:
    return int(time.time())


def sanitize_key(key: str) -> str:
    """Map an arbitrary key to a filesystem-safe file stem.

    Non-word characters become underscores. Keys that are still longer than
    200 characters are replaced by a fixed-length digest so they stay under
    common filename limits.
    """
    safe = _UNSAFE_KEY_CHARS.sub("_", str(key))
    if len(safe) > MAX_KEY_LENGTH:
        return "key_" + hashlib.sha256(safe.encode("utf-8")).hexdigest()[:32]
    return safe


class CacheStore:
    """A single cache namespace backed by one directory."""

    def __init__(self, cache_dir: Path) -> None:
        self.cache_dir = Path(cache_dir)

    def lookup(self, key: str) -> tuple[Any, bool]:
        """Return ``(value, found)``. ``found`` is False on a miss or an expired entry."""
        path = self._entry_path(key)
        if not path.is_file():
            return None, False

        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
            value = payload["value"]
            expires_at = payload.get("expires_at")
        except (OSError, ValueError, KeyError, TypeError):
            log.warning("cache_entry_corrupted", key=key, path=str(path), exc_info=True)
            self._remove(path)
            return None, False

        if expires_at is not None and _now() > expires_at:
            log.debug("cache_entry_expired", key=key)
            self._remove(path)
            return None, False

        return value, True

    def get(self, key: str, default: Any = None) -> Any:
        value, found = self.lookup(key)
        return value if found else default

    def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        """Store ``value`` under ``key``. ``ttl=None`` never expires."""
        expires_at = _now() + ttl if ttl is not None else None
        path = self._entry_path(key)
        temp_path = path.with_name(path.name + _TEMP_SUFFIX)
        try:
            # Directory creation is lazy: the namespace appears on first write.
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            data = json.dumps({"value": value, "expires_at": expires_at})
            temp_path.write_text(data, encoding="utf-8")
            os.replace(temp_path, path)
        except (OSError, TypeError, ValueError):
            log.warning("cache_write_error", key=key, path=str(path), exc_info=True)
            self._remove(temp_path)

    def delete(self, key: str) -> None:
        self._remove(self._entry_path(key))

    def clear(self) -> None:
        if not self.cache_dir.is_dir():
            return
        for path in self.cache_dir.glob("*" + _ENTRY_SUFFIX):
            self._remove(path)

    def cleanup_temp_files(self) -> int:
        """Remove orphaned temp files left behind by interrupted writes."""
        if not self.cache_dir.is_dir():
            return 0
        removed = 0
        for path in self.cache_dir.glob("*" + _TEMP_SUFFIX):
            if self._remove(path):
                removed += 1
        return removed

    def _entry_path(self, key: str) -> Path:
        return self.cache_dir / (sanitize_key(key) + _ENTRY_SUFFIX)

    @staticmethod
    def _remove(path: Path) -> bool:
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError:
            log.debug("cache_remove_failed", path=str(path), exc_info=True)
            return False
        return True


class CacheManager:
    """Entry point for cache operations, partitioned into namespaces.

    Omitting ``namespace`` selects the ``default`` namespace. Stores are
    created on first use and reused for the lifetime of the manager.
    """

    def __init__(self, cache_dir: Path) -> None:
        self.cache_dir = Path(cache_dir)
        self._stores: dict[str, CacheStore] = {}

    def store(self, namespace: str | None = None) -> CacheStore:
        name = namespace or DEFAULT_NAMESPACE
        if name not in self._stores:
            self._stores[name] = CacheStore(self.cache_dir / name)
        return self._stores[name]

    def lookup(self, key: str, namespace: str | None = None) -> tuple[Any, bool]:
        return self.store(namespace).lookup(key)

    def get(self, key: str, namespace: str | None = None, default: Any = None) -> Any:
        return self.store(namespace).get(key, default)

    def set(
        self,
        key: str,
        value: Any,
        ttl: int | None = None,
        namespace: str | None = None,
    ) -> None:
        self.store(namespace).set(key, value, ttl=ttl)

    def delete(self, key: str, namespace: str | None = None) -> None:
        self.store(namespace).delete(key)

    def clear(self, namespace: str | None = None) -> None:
        """Clear one namespace, or every namespace when none is given."""
        if namespace is not None:
            self.store(namespace).clear()
            return

        if not self.cache_dir.is_dir():
            return
        for path in self.cache_dir.iterdir():
            with suppress(OSError):
                if path.is_dir():
                    shutil.rmtree(path)
                else:
                    path.unlink()
        log.info("cache_cleared", path=str(self.cache_dir))

    # ------------------------------------------------------------------
    # Directory-level helpers
    # ------------------------------------------------------------------

    def get_directory_fonts(self, directory: str) -> Any:
        return self.get(f"directory:{directory}", namespace=INDEXES_NAMESPACE)

    def set_directory_fonts(
        self, directory: str, fonts: Any, ttl: int = DIRECTORY_FONTS_TTL
    ) -> None:
        self.set(
            f"directory:{directory}",
            fonts,
            ttl=ttl,
            namespace=INDEXES_NAMESPACE,
        )
