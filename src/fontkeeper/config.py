"""Configuration loading.

Settings are loaded in priority order (highest first):
  1. Environment variables  (FONTKEEPER__PATHS__USER_FONTS_PATH=~/Library/Fonts)
  2. fontkeeper.yaml        (searched in cwd, then platform config dir)
  3. Hardcoded defaults

The config file is optional; every field has a default.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import platformdirs
from pydantic import BaseModel
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

_DEFAULT_HOME = platformdirs.user_data_dir("fontkeeper")


def _find_config_file() -> str | None:
    """Return the path of the first fontkeeper.yaml found, or None."""
    candidates = [
        Path("fontkeeper.yaml"),
        Path(platformdirs.user_config_dir("fontkeeper")) / "fontkeeper.yaml",
    ]
    for path in candidates:
        if path.exists():
            return str(path)
    return None


class PathSettings(BaseModel):
    home: str = _DEFAULT_HOME
    fonts_path: str | None = None
    formulas_path: str | None = None
    # Custom install roots. A root not ending in a "fontist" segment is
    # treated as shared with the OS or the user (non-managed).
    user_fonts_path: str | None = None
    system_fonts_path: str | None = None
    # Replaces the platform table of system font globs when set.
    system_font_dirs: list[str] | None = None

    @property
    def home_dir(self) -> Path:
        return Path(self.home).expanduser()

    @property
    def fonts_dir(self) -> Path:
        if self.fonts_path:
            return Path(self.fonts_path).expanduser()
        return self.home_dir / "fonts"

    @property
    def formulas_dir(self) -> Path:
        if self.formulas_path:
            return Path(self.formulas_path).expanduser()
        return self.home_dir / "formulas"

    @property
    def cache_dir(self) -> Path:
        return self.home_dir / "cache"

    @property
    def downloads_dir(self) -> Path:
        return self.home_dir / "downloads"

    @property
    def fontist_index_path(self) -> Path:
        return self.home_dir / "fontist_index.default_family.yml"

    @property
    def user_index_path(self) -> Path:
        return self.home_dir / "user_index.default_family.yml"

    @property
    def system_index_path(self) -> Path:
        return self.home_dir / "system_index.default_family.yml"

    @property
    def formula_index_path(self) -> Path:
        return self.home_dir / "formula_index.default_family.yml"

    @property
    def formula_preferred_family_index_path(self) -> Path:
        return self.home_dir / "formula_index.preferred_family.yml"

    @property
    def formula_filename_index_path(self) -> Path:
        return self.home_dir / "filename_index.yml"


class InstallSettings(BaseModel):
    location: Literal["fontist", "user", "system"] = "fontist"


class CacheSettings(BaseModel):
    snapshot_ttl_seconds: int = 300
    directory_fonts_ttl_seconds: int = 3600


class DownloadSettings(BaseModel):
    open_timeout: float = 60.0
    read_timeout: float = 60.0


class LoggingSettings(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["json", "text"] = "text"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Double-underscore separates nesting: FONTKEEPER__INSTALL__LOCATION=user
        env_prefix="FONTKEEPER__",
        env_nested_delimiter="__",
        yaml_file=_find_config_file(),
        yaml_file_encoding="utf-8",
    )

    paths: PathSettings = PathSettings()
    install: InstallSettings = InstallSettings()
    cache: CacheSettings = CacheSettings()
    downloads: DownloadSettings = DownloadSettings()
    logging: LoggingSettings = LoggingSettings()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
        **kwargs: Any,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,  # Constructor args (highest priority)
            env_settings,  # Environment variables
            YamlConfigSettingsSource(settings_cls),  # YAML file
            # dotenv and file secrets intentionally excluded
        )
