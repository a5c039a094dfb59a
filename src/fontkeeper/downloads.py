"""Cache of downloaded archives.

Downloads live under the downloads directory, each in its own temporary
subdirectory. ``map.yml`` maps a key (usually the URL) to the file's path
relative to the downloads directory. Every read-modify-write of the map holds
an exclusive lock on ``map.yml.lock``.
"""

from __future__ import annotations

import os
import posixpath
import shutil
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING
from urllib.parse import unquote, urlparse

import httpx
import structlog
import yaml

from fontkeeper.errors import DownloadError
from fontkeeper.locking import exclusive_lock, lock_path_for

if TYPE_CHECKING:
    from collections.abc import Iterable

    from fontkeeper.config import DownloadSettings

log = structlog.get_logger()

MAX_FILENAME_SIZE = 255
_CHUNK_SIZE = 64 * 1024


def build_http_client(settings: DownloadSettings | None = None) -> httpx.Client:
    """Create the client used for archive downloads."""
    connect = settings.open_timeout if settings else 60.0
    read = settings.read_timeout if settings else 60.0
    return httpx.Client(
        follow_redirects=True,
        timeout=httpx.Timeout(read, connect=connect),
        headers={"User-Agent": "fontkeeper/1.0"},
    )


def format_filename(filename: str) -> str:
    """Truncate ``filename`` to the filesystem limit, keeping its extension."""
    if len(filename) <= MAX_FILENAME_SIZE:
        return filename
    ext = os.path.splitext(filename)[1]
    return filename[: MAX_FILENAME_SIZE - len(ext)] + ext


def filename_from_url(url: str) -> str:
    name = posixpath.basename(unquote(urlparse(url).path))
    return format_filename(name or "download")


class DownloadCache:
    def __init__(
        self,
        downloads_path: Path,
        client: httpx.Client | None = None,
        settings: DownloadSettings | None = None,
    ) -> None:
        self.downloads_path = Path(downloads_path)
        self.settings = settings
        self._client = client

    @property
    def map_path(self) -> Path:
        return self.downloads_path / "map.yml"

    @property
    def client(self) -> httpx.Client:
        if self._client is None:
            self._client = build_http_client(self.settings)
        return self._client

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def fetch(self, url: str, key: str | None = None) -> Path:
        """Return the local copy of ``url``, downloading it on a cache miss."""
        key = key or url
        cached = self._cached_path(self._load_map().get(key))
        if cached is not None:
            log.info("download_cache_hit", url=url, size_bytes=cached.stat().st_size)
            return cached

        path = self._download(url)
        self.set(key, path.relative_to(self.downloads_path).as_posix())
        return path

    def already_fetched(self, keys: Iterable[str]) -> str | None:
        """The first of ``keys`` whose download is still on disk."""
        entries = self._load_map()
        for key in keys:
            if self._cached_path(entries.get(key)) is not None:
                return key
        return None

    def set(self, key: str, value: str) -> None:
        with exclusive_lock(lock_path_for(self.map_path)):
            entries = self._load_map()
            entries[key] = value
            self._write_map(entries)

    def delete(self, key: str) -> str | None:
        with exclusive_lock(lock_path_for(self.map_path)):
            entries = self._load_map()
            if key not in entries:
                return None
            value = entries.pop(key)
            self._write_map(entries)
            return value

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _load_map(self) -> dict[str, str]:
        try:
            data = yaml.safe_load(self.map_path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except yaml.YAMLError:
            log.warning("download_map_unreadable", path=str(self.map_path), exc_info=True)
            return {}
        return data if isinstance(data, dict) else {}

    def _write_map(self, entries: dict[str, str]) -> None:
        self.downloads_path.mkdir(parents=True, exist_ok=True)
        self.map_path.write_text(yaml.safe_dump(entries, sort_keys=True), encoding="utf-8")

    def _cached_path(self, value: str | None) -> Path | None:
        if not value:
            return None
        path = self.downloads_path / value
        return path if path.is_file() else None

    def _download(self, url: str) -> Path:
        self.downloads_path.mkdir(parents=True, exist_ok=True)
        target = Path(tempfile.mkdtemp(dir=self.downloads_path)) / filename_from_url(url)

        try:
            self._stream_to(url, target)
        except BaseException:
            shutil.rmtree(target.parent, ignore_errors=True)
            raise

        log.info("download_complete", url=url, path=str(target), size_bytes=target.stat().st_size)
        return target

    def _stream_to(self, url: str, target: Path) -> None:
        try:
            with self.client.stream("GET", url) as response:
                if not response.is_success:
                    raise DownloadError(url, f"HTTP {response.status_code}")
                with target.open("wb") as handle:
                    for chunk in response.iter_bytes(_CHUNK_SIZE):
                        handle.write(chunk)
        except httpx.HTTPError as exc:
            raise DownloadError(url, str(exc)) from exc
        except OSError as exc:
            raise DownloadError(url, f"could not write {target}: {exc}") from exc
