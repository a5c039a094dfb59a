"""Per-platform font directory defaults."""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Literal

from fontkeeper.errors import UnsupportedPlatformError

OperatingSystem = Literal["macos", "linux", "windows"]

MANAGED_SUBDIRECTORY = "fontist"

# Glob patterns of OS font directories indexed by the system index.
SYSTEM_FONT_PATTERNS: dict[OperatingSystem, list[str]] = {
    "macos": [
        "/System/Library/Fonts/**/*.{ext}",
        "/Library/Fonts/**/*.{ext}",
        "~/Library/Fonts/**/*.{ext}",
        "/System/Library/Assets*/com_apple_MobileAsset_Font*/**/*.{ext}",
    ],
    "linux": [
        "/usr/share/fonts/**/*.{ext}",
        "/usr/local/share/fonts/**/*.{ext}",
        "~/.fonts/**/*.{ext}",
        "~/.local/share/fonts/**/*.{ext}",
    ],
    "windows": [
        "{windir}/Fonts/**/*.{ext}",
        "{localappdata}/Microsoft/Windows/Fonts/**/*.{ext}",
    ],
}

_USER_EXAMPLES: dict[OperatingSystem, str] = {
    "macos": "~/Library/Fonts/fontist/",
    "linux": "~/.local/share/fonts/fontist/",
    "windows": "%LOCALAPPDATA%/Microsoft/Windows/Fonts/fontist/",
}

_SYSTEM_EXAMPLES: dict[OperatingSystem, str] = {
    "macos": "/Library/Fonts/fontist/",
    "linux": "/usr/local/share/fonts/fontist/",
    "windows": "%windir%/Fonts/fontist/",
}


def user_os(purpose: str = "font installation") -> OperatingSystem:
    if sys.platform == "darwin":
        return "macos"
    if sys.platform.startswith("linux"):
        return "linux"
    if sys.platform in ("win32", "cygwin"):
        return "windows"
    raise UnsupportedPlatformError(sys.platform, purpose)


def _windows_dir() -> str:
    return os.environ.get("windir") or os.environ.get("SystemRoot") or "C:/Windows"


def _local_appdata() -> str:
    return os.environ.get("LOCALAPPDATA") or os.path.expanduser("~/AppData/Local")


def default_user_fonts_dir() -> Path:
    """The user font directory, without the managed subdirectory."""
    system = user_os("user font installation")
    if system == "macos":
        return Path("~/Library/Fonts").expanduser()
    if system == "linux":
        return Path("~/.local/share/fonts").expanduser()
    return Path(_local_appdata()) / "Microsoft" / "Windows" / "Fonts"


def default_system_fonts_dir() -> Path:
    """The system font directory, without the managed subdirectory."""
    system = user_os("system font installation")
    if system == "macos":
        return Path("/Library/Fonts")
    if system == "linux":
        return Path("/usr/local/share/fonts")
    return Path(_windows_dir()) / "Fonts"


def macos_supplementary_base(framework_version: int) -> Path:
    """Root of the OS asset catalog holding supplementary fonts for a framework."""
    assets = "AssetsV2" if framework_version >= 5 else "Assets"
    return Path("/System/Library") / assets / f"com_apple_MobileAsset_Font{framework_version}"


def system_font_patterns(extensions: list[str]) -> list[str]:
    """Expanded glob patterns for every OS font directory and extension."""
    system = user_os("system font indexing")
    patterns = []
    for template in SYSTEM_FONT_PATTERNS[system]:
        for ext in extensions:
            pattern = template.format(
                ext=ext,
                windir=_windows_dir(),
                localappdata=_local_appdata(),
            )
            patterns.append(os.path.expanduser(pattern))
    return patterns


def user_managed_example() -> str:
    try:
        return _USER_EXAMPLES[user_os()]
    except UnsupportedPlatformError:
        return "/path/to/user/fonts/fontist/"


def system_managed_example() -> str:
    try:
        return _SYSTEM_EXAMPLES[user_os()]
    except UnsupportedPlatformError:
        return "/path/to/system/fonts/fontist/"
