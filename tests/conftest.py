"""Shared test fixtures for the fontkeeper test suite."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
import structlog

from fontkeeper.cache import CacheManager
from fontkeeper.config import PathSettings, Settings
from fontkeeper.models.fonts import FontRecord
from fontkeeper.models.formula import Formula, FormulaFont, FormulaStyle
from fontkeeper.state import AppState

if TYPE_CHECKING:
    from pathlib import Path


def fake_extractor(path: str) -> list[FontRecord]:
    """Read family and style from a ``Family-Style.ext`` filename.

    Stands in for the fontTools extractor so tests can use arbitrary bytes
    as font files.
    """
    stem = os.path.splitext(os.path.basename(path))[0]
    family, _, rest = stem.partition("-")
    style = rest.split("-")[0] if rest else "Regular"
    return [
        FontRecord(
            family_name=family,
            style=style,
            full_name=f"{family} {style}",
            path=path,
        )
    ]


def write_font(path: Path, size: int = 1024, fill: bytes = b"\x00") -> Path:
    """Write a TrueType-looking file of exactly ``size`` bytes."""
    path.parent.mkdir(parents=True, exist_ok=True)
    header = b"\x00\x01\x00\x00"
    path.write_bytes(header + fill * (size - len(header)))
    return path


def write_named_font(path: Path, family: str, style: str = "Regular") -> Path:
    """Write a file whose bytes, not its name, carry the family and style."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"\x00\x01\x00\x00" + f"{family}|{style}".encode())
    return path


def content_extractor(path: str) -> list[FontRecord]:
    """Read family and style back from a file written by ``write_named_font``."""
    with open(path, "rb") as f:
        family, _, style = f.read()[4:].decode().partition("|")
    return [
        FontRecord(
            family_name=family,
            style=style or "Regular",
            full_name=f"{family} {style or 'Regular'}",
            path=path,
        )
    ]


@pytest.fixture(autouse=True)
def _reset_structlog():
    yield
    structlog.reset_defaults()


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    """Settings rooted in tmp_path; the user and system roots are managed subdirectories."""
    return Settings(
        paths=PathSettings(
            home=str(tmp_path / "home"),
            user_fonts_path=str(tmp_path / "user" / "fontist"),
            system_fonts_path=str(tmp_path / "system" / "fontist"),
            system_font_dirs=[],
        )
    )


@pytest.fixture()
def cache(tmp_path: Path) -> CacheManager:
    return CacheManager(tmp_path / "cache")


@pytest.fixture()
def app_state(settings: Settings) -> AppState:
    return AppState(
        settings=settings,
        cache=CacheManager(settings.paths.cache_dir),
        extractor=fake_extractor,
    )


@pytest.fixture()
def formula() -> Formula:
    return Formula(
        key="roboto",
        path="roboto.yml",
        fonts=[
            FormulaFont(
                name="Roboto",
                styles=[
                    FormulaStyle(family_name="Roboto", type="Regular", font="Roboto-Regular.ttf"),
                    FormulaStyle(family_name="Roboto", type="Bold", font="Roboto-Bold.ttf"),
                ],
            )
        ],
    )


@pytest.fixture()
def source_font(tmp_path: Path) -> Path:
    return write_font(tmp_path / "downloads" / "Roboto-Regular.ttf", size=2048, fill=b"\x01")


@pytest.fixture()
def extractor():
    return fake_extractor


@pytest.fixture()
def make_font():
    return write_font


@pytest.fixture()
def make_named_font():
    return write_named_font


@pytest.fixture()
def named_extractor():
    return content_extractor
