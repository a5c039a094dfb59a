"""Unit tests for configuration loading and defaults."""

from __future__ import annotations

from pathlib import Path

import platformdirs
import pytest

from fontkeeper.config import _DEFAULT_HOME, PathSettings, Settings


class TestPlatformDefaults:
    def test_default_home_matches_platformdirs(self) -> None:
        assert platformdirs.user_data_dir("fontkeeper") == _DEFAULT_HOME

    def test_derived_paths_under_home(self, tmp_path: Path) -> None:
        paths = PathSettings(home=str(tmp_path))
        assert paths.fonts_dir == tmp_path / "fonts"
        assert paths.formulas_dir == tmp_path / "formulas"
        assert paths.cache_dir == tmp_path / "cache"
        assert paths.downloads_dir == tmp_path / "downloads"
        assert paths.fontist_index_path.parent == tmp_path

    def test_index_files_are_distinct(self, tmp_path: Path) -> None:
        paths = PathSettings(home=str(tmp_path))
        files = {
            paths.fontist_index_path,
            paths.user_index_path,
            paths.system_index_path,
            paths.formula_index_path,
            paths.formula_preferred_family_index_path,
            paths.formula_filename_index_path,
        }
        assert len(files) == 6

    def test_explicit_paths_override_home(self, tmp_path: Path) -> None:
        paths = PathSettings(
            home=str(tmp_path),
            fonts_path=str(tmp_path / "lib"),
            formulas_path=str(tmp_path / "repo"),
        )
        assert paths.fonts_dir == tmp_path / "lib"
        assert paths.formulas_dir == tmp_path / "repo"

    def test_home_expands_user(self) -> None:
        assert PathSettings(home="~/fk").home_dir == Path("~/fk").expanduser()


class TestSettingsSources:
    def test_defaults(self) -> None:
        settings = Settings()
        assert settings.install.location == "fontist"
        assert settings.cache.snapshot_ttl_seconds == 300
        assert settings.logging.format == "text"

    def test_environment_variables(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("FONTKEEPER__INSTALL__LOCATION", "user")
        monkeypatch.setenv("FONTKEEPER__PATHS__USER_FONTS_PATH", "~/Library/Fonts")
        settings = Settings()
        assert settings.install.location == "user"
        assert settings.paths.user_fonts_path == "~/Library/Fonts"

    def test_constructor_beats_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("FONTKEEPER__INSTALL__LOCATION", "user")
        settings = Settings(install={"location": "system"})
        assert settings.install.location == "system"

    def test_invalid_location_rejected(self) -> None:
        with pytest.raises(ValueError):
            Settings(install={"location": "desktop"})
