"""Unit tests for fontkeeper.platforms."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

from fontkeeper import platforms
from fontkeeper.errors import ErrorCode, UnsupportedPlatformError


class TestUserOs:
    @pytest.mark.parametrize(
        ("platform", "expected"),
        [("darwin", "macos"), ("linux", "linux"), ("win32", "windows"), ("cygwin", "windows")],
    )
    def test_known_platforms(
        self, monkeypatch: pytest.MonkeyPatch, platform: str, expected: str
    ) -> None:
        monkeypatch.setattr(sys, "platform", platform)
        assert platforms.user_os() == expected

    def test_unknown_platform(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(sys, "platform", "plan9")
        with pytest.raises(UnsupportedPlatformError) as exc_info:
            platforms.user_os("system font installation")
        assert exc_info.value.code == ErrorCode.UNSUPPORTED_PLATFORM
        assert "plan9" in exc_info.value.message

    def test_examples_fall_back_on_unknown_platform(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(sys, "platform", "plan9")
        assert platforms.user_managed_example() == "/path/to/user/fonts/fontist/"
        assert platforms.system_managed_example() == "/path/to/system/fonts/fontist/"


class TestDefaultDirectories:
    def test_linux(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(sys, "platform", "linux")
        assert platforms.default_user_fonts_dir() == Path("~/.local/share/fonts").expanduser()
        assert platforms.default_system_fonts_dir() == Path("/usr/local/share/fonts")
        assert platforms.user_managed_example() == "~/.local/share/fonts/fontist/"

    def test_macos(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(sys, "platform", "darwin")
        assert platforms.default_user_fonts_dir() == Path("~/Library/Fonts").expanduser()
        assert platforms.default_system_fonts_dir() == Path("/Library/Fonts")

    def test_windows_uses_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(sys, "platform", "win32")
        monkeypatch.setenv("windir", "D:/Win")
        monkeypatch.setenv("LOCALAPPDATA", "D:/Users/me/AppData/Local")
        assert platforms.default_system_fonts_dir() == Path("D:/Win") / "Fonts"
        assert platforms.default_user_fonts_dir() == (
            Path("D:/Users/me/AppData/Local") / "Microsoft" / "Windows" / "Fonts"
        )


class TestPatterns:
    def test_macos_supplementary_base(self) -> None:
        assert platforms.macos_supplementary_base(4) == Path(
            "/System/Library/Assets/com_apple_MobileAsset_Font4"
        )
        assert platforms.macos_supplementary_base(5) == Path(
            "/System/Library/AssetsV2/com_apple_MobileAsset_Font5"
        )

    def test_system_font_patterns_expand_extensions(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(sys, "platform", "linux")
        patterns = platforms.system_font_patterns(["ttf", "otf"])
        assert "/usr/share/fonts/**/*.ttf" in patterns
        assert "/usr/local/share/fonts/**/*.otf" in patterns
        assert len(patterns) == 2 * len(platforms.SYSTEM_FONT_PATTERNS["linux"])
        assert not any("~" in p for p in patterns)
