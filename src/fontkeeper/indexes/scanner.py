"""Stateless font directory scanning.

Produces ``FileInfo`` records from cheap file metadata: size, whole-second
mtime, a sha256 of the first 1KB and a format sniffed from the magic bytes.
Hashing only the head trades a small blind spot (a file whose first 1KB,
size and mtime all stay the same while its tail changes) for scans that do
not read whole font files.
"""

from __future__ import annotations

import glob
import hashlib
import os
from pathlib import Path

import structlog

from fontkeeper.models.files import FileInfo, FontFormat

log = structlog.get_logger()

FONT_EXTENSIONS: frozenset[str] = frozenset({".ttf", ".ttc", ".otf", ".otc", ".woff", ".woff2"})

SIGNATURE_BYTES = 1024

_MAGIC: tuple[tuple[bytes, FontFormat], ...] = (
    (b"\x00\x01\x00\x00", FontFormat.TRUETYPE),
    (b"OTTO", FontFormat.OPENTYPE),
    (b"wOFF", FontFormat.WOFF),
    (b"wOF2", FontFormat.WOFF2),
)


def is_font_filename(filename: str) -> bool:
    return os.path.splitext(filename)[1].lower() in FONT_EXTENSIONS


def list_font_directory(directory: str | Path) -> list[str]:
    """List font files directly inside ``directory`` (non-recursive)."""
    try:
        names = os.listdir(directory)
    except (FileNotFoundError, NotADirectoryError):
        return []
    except PermissionError:
        log.debug("font_directory_unreadable", directory=str(directory))
        return []

    return [
        os.path.join(directory, name)
        for name in sorted(names)
        if is_font_filename(name) and os.path.isfile(os.path.join(directory, name))
    ]


def extension_globs() -> list[str]:
    """Font extensions spelled as case-insensitive glob fragments, e.g. ``[tT][tT][fF]``.

    ``glob`` ignores case folding on Linux, so the classes are spelled out.
    """
    return [
        "".join(f"[{c.lower()}{c.upper()}]" if c.isalpha() else c for c in ext[1:])
        for ext in sorted(FONT_EXTENSIONS)
    ]


def font_file_patterns(base: str | Path) -> list[str]:
    """Recursive glob patterns matching font files under ``base``."""
    return [os.path.join(str(base), "**", f"*.{ext}") for ext in extension_globs()]


def glob_font_files(pattern: str) -> list[str]:
    """Expand ``pattern`` and keep existing font files, preserving first-seen order."""
    seen: dict[str, None] = {}
    for path in glob.glob(pattern, recursive=True):
        if os.path.isfile(path) and is_font_filename(path):
            seen.setdefault(path, None)
    return list(seen)


def scan_directory(directory: str | Path) -> list[FileInfo]:
    """Scan every font file in ``directory``. A missing directory yields ``[]``."""
    if not os.path.isdir(directory):
        return []

    infos = []
    for path in list_font_directory(directory):
        info = scan_font_file(path)
        if info is not None:
            infos.append(info)
    return infos


def scan_font_file(path: str | Path) -> FileInfo | None:
    """Return metadata for ``path``, or ``None`` if it vanished or cannot be read."""
    try:
        stat = os.stat(path)
        with open(path, "rb") as handle:
            head = handle.read(SIGNATURE_BYTES)
    except FileNotFoundError:
        return None
    except OSError:
        log.warning("font_file_unreadable", path=str(path), exc_info=True)
        return None

    return FileInfo(
        path=str(path),
        filename=os.path.basename(path),
        file_size=stat.st_size,
        file_mtime=int(stat.st_mtime),
        signature=hashlib.sha256(head).hexdigest(),
        format=_format_from_header(head[:4]),
    )


def scan_with_cache(path: str | Path, cached: FileInfo | None) -> FileInfo | None:
    """Reuse ``cached`` when size and mtime still match, otherwise rescan."""
    try:
        stat = os.stat(path)
    except FileNotFoundError:
        return None
    except OSError:
        log.warning("font_file_unreadable", path=str(path), exc_info=True)
        return None

    if (
        cached is not None
        and cached.file_size == stat.st_size
        and cached.file_mtime == int(stat.st_mtime)
    ):
        return cached

    return scan_font_file(path)


def scan_batch(
    paths: list[str],
    cache: dict[str, FileInfo] | None = None,
) -> list[FileInfo]:
    """Scan several files, consulting ``cache`` (path → previous info) first."""
    cache = cache or {}
    infos = []
    for path in paths:
        cached = cache.get(path)
        info = scan_with_cache(path, cached) if cached else scan_font_file(path)
        if info is not None:
            infos.append(info)
    return infos


def compute_signature(path: str | Path) -> str | None:
    try:
        with open(path, "rb") as handle:
            return hashlib.sha256(handle.read(SIGNATURE_BYTES)).hexdigest()
    except FileNotFoundError:
        return None
    except OSError:
        log.warning("font_file_unreadable", path=str(path), exc_info=True)
        return None


def detect_format(path: str | Path) -> FontFormat:
    try:
        with open(path, "rb") as handle:
            return _format_from_header(handle.read(4))
    except FileNotFoundError:
        return FontFormat.UNKNOWN
    except OSError:
        log.warning("font_file_unreadable", path=str(path), exc_info=True)
        return FontFormat.UNKNOWN


def _format_from_header(header: bytes) -> FontFormat:
    for magic, font_format in _MAGIC:
        if header.startswith(magic):
            return font_format
    return FontFormat.UNKNOWN


def find_font_files(base: str | Path) -> list[str]:
    """Every font file below ``base``, recursively, in first-seen order."""
    seen: dict[str, None] = {}
    for pattern in font_file_patterns(base):
        for path in glob_font_files(pattern):
            seen.setdefault(path, None)
    return list(seen)
