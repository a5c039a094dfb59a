"""Unit tests for the persisted font collection."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
import yaml

from fontkeeper.errors import ErrorCode, IndexCorruptedError
from fontkeeper.indexes.collection import (
    FontCollection,
    IndexLoadStatus,
    dump_index,
    load_index_file,
)
from fontkeeper.indexes.enumerators import FontistPaths
from fontkeeper.indexes.updater import IncrementalIndexUpdater
from fontkeeper.models.fonts import FontRecord

if TYPE_CHECKING:
    from pathlib import Path

    from fontkeeper.cache import CacheManager


class CountingExtractor:
    """Wraps an extractor and records every path it is asked to read."""

    def __init__(self, inner) -> None:
        self.inner = inner
        self.calls: list[str] = []

    def __call__(self, path: str) -> list[FontRecord]:
        self.calls.append(os.path.basename(path))
        return self.inner(path)


def _record(family: str, style: str, path: str) -> FontRecord:
    return FontRecord(family_name=family, style=style, full_name=f"{family} {style}", path=path)


# ---------------------------------------------------------------------------
# File format
# ---------------------------------------------------------------------------


class TestLoadIndexFile:
    def test_missing(self, tmp_path: Path) -> None:
        assert load_index_file(tmp_path / "index.yml").status is IndexLoadStatus.MISSING

    def test_empty_is_corrupted(self, tmp_path: Path) -> None:
        path = tmp_path / "index.yml"
        path.write_text("   \n")
        result = load_index_file(path)
        assert result.status is IndexLoadStatus.CORRUPTED
        assert result.error == "empty file"

    def test_unparsable_is_corrupted(self, tmp_path: Path) -> None:
        path = tmp_path / "index.yml"
        path.write_text("roboto: [unclosed")
        assert load_index_file(path).status is IndexLoadStatus.CORRUPTED

    def test_wrong_shape_is_corrupted(self, tmp_path: Path) -> None:
        path = tmp_path / "index.yml"
        path.write_text("- just\n- a list\n")
        assert load_index_file(path).status is IndexLoadStatus.CORRUPTED

    def test_invalid_record_is_corrupted(self, tmp_path: Path) -> None:
        path = tmp_path / "index.yml"
        path.write_text("roboto:\n- family_name: Roboto\n")
        assert load_index_file(path).status is IndexLoadStatus.CORRUPTED

    def test_round_trip_grouped_by_family(self, tmp_path: Path) -> None:
        records = [
            _record("Roboto", "Regular", "/f/Roboto-Regular.ttf"),
            _record("Roboto", "Bold", "/f/Roboto-Bold.ttf"),
            _record("Lato", "Regular", "/f/Lato-Regular.ttf"),
        ]
        path = tmp_path / "index.yml"
        path.write_text(dump_index(records))

        data = yaml.safe_load(path.read_text())
        assert sorted(data) == ["lato", "roboto"]
        assert len(data["roboto"]) == 2

        result = load_index_file(path)
        assert result.status is IndexLoadStatus.OK
        assert set(result.records) == set(records)


# ---------------------------------------------------------------------------
# FontCollection
# ---------------------------------------------------------------------------


class TestFontCollection:
    def _collection(self, tmp_path: Path, cache: CacheManager, extractor) -> FontCollection:
        return FontCollection.from_file(
            tmp_path / "index.yml", FontistPaths(tmp_path / "fonts"), extractor, cache
        )

    def test_missing_index_is_built(
        self, tmp_path: Path, cache: CacheManager, extractor, make_font
    ) -> None:
        make_font(tmp_path / "fonts" / "roboto" / "Roboto-Regular.ttf")
        collection = self._collection(tmp_path, cache, extractor)

        assert (tmp_path / "index.yml").is_file()
        assert [r.family_name for r in collection.fonts] == ["Roboto"]

    def test_empty_root_yields_empty_valid_index(
        self, tmp_path: Path, cache: CacheManager, extractor
    ) -> None:
        collection = self._collection(tmp_path, cache, extractor)
        assert collection.fonts == []
        assert load_index_file(tmp_path / "index.yml").status is IndexLoadStatus.OK

    def test_corrupted_index_raises(self, tmp_path: Path, cache: CacheManager, extractor) -> None:
        (tmp_path / "index.yml").write_text("")
        with pytest.raises(IndexCorruptedError) as exc_info:
            self._collection(tmp_path, cache, extractor)
        assert exc_info.value.code == ErrorCode.INDEX_CORRUPTED
        assert exc_info.value.recoverable is True
        # Never discarded silently
        assert (tmp_path / "index.yml").read_text() == ""

    def test_find_exact_family_and_style(
        self, tmp_path: Path, cache: CacheManager, extractor, make_font
    ) -> None:
        make_font(tmp_path / "fonts" / "roboto" / "Roboto-Regular.ttf")
        make_font(tmp_path / "fonts" / "roboto" / "Roboto-Bold.ttf")
        collection = self._collection(tmp_path, cache, extractor)

        assert len(collection.find("Roboto")) == 2
        assert [r.style for r in collection.find("Roboto", "Bold")] == ["Bold"]
        assert collection.find("roboto") == []
        assert collection.find("Roboto", "Italic") == []

    def test_font_exists_normalizes_paths(
        self, tmp_path: Path, cache: CacheManager, extractor, make_font
    ) -> None:
        path = make_font(tmp_path / "fonts" / "roboto" / "Roboto-Regular.ttf")
        collection = self._collection(tmp_path, cache, extractor)

        assert collection.font_exists(str(path))
        assert collection.font_exists(f"{tmp_path}/fonts/roboto/../roboto/Roboto-Regular.ttf")
        assert not collection.font_exists(str(tmp_path / "fonts" / "Other.ttf"))

    def test_build_reextracts_only_changed_files(
        self, tmp_path: Path, cache: CacheManager, extractor, make_font
    ) -> None:
        fonts = tmp_path / "fonts" / "roboto"
        make_font(fonts / "Roboto-Regular.ttf")
        make_font(fonts / "Roboto-Bold.ttf")
        counting = CountingExtractor(extractor)
        collection = self._collection(tmp_path, cache, counting)
        counting.calls.clear()

        make_font(fonts / "Roboto-Italic.ttf")
        collection.build(forced=True)

        assert counting.calls == ["Roboto-Italic.ttf"]
        assert {r.style for r in collection.fonts} == {"Regular", "Bold", "Italic"}

    def test_overlapping_collections_each_see_modification(
        self, tmp_path: Path, cache: CacheManager, named_extractor, make_named_font
    ) -> None:
        font = make_named_font(tmp_path / "fonts" / "shared" / "X.ttf", "Foo")
        first = FontCollection.from_file(
            tmp_path / "first.yml", FontistPaths(tmp_path / "fonts"), named_extractor, cache
        )
        second = FontCollection.from_file(
            tmp_path / "second.yml",
            FontistPaths(tmp_path / "fonts" / "shared"),
            named_extractor,
            cache,
        )

        make_named_font(font, "Barbaz")
        first.build(forced=True)
        second.build(forced=True)

        for collection in (first, second):
            assert [r.family_name for r in collection.fonts] == ["Barbaz"]

    def test_updater_snapshots_scoped_per_collection(
        self, tmp_path: Path, cache: CacheManager, extractor, make_font
    ) -> None:
        make_font(tmp_path / "fonts" / "roboto" / "Roboto-Regular.ttf")
        self._collection(tmp_path, cache, extractor)
        directory = str(tmp_path / "fonts" / "roboto")

        scoped = IncrementalIndexUpdater(directory, cache, scope=str(tmp_path / "index.yml"))
        shared = IncrementalIndexUpdater(directory, cache)

        assert scoped.update() == []
        assert [c.filename for c in shared.update()] == ["Roboto-Regular.ttf"]

    def test_build_drops_vanished_files(
        self, tmp_path: Path, cache: CacheManager, extractor, make_font
    ) -> None:
        fonts = tmp_path / "fonts" / "roboto"
        make_font(fonts / "Roboto-Regular.ttf")
        gone = make_font(fonts / "Roboto-Bold.ttf")
        collection = self._collection(tmp_path, cache, extractor)

        gone.unlink()
        collection.build(forced=True)

        assert [r.style for r in collection.fonts] == ["Regular"]
        reloaded = load_index_file(tmp_path / "index.yml")
        assert [r.style for r in reloaded.records] == ["Regular"]

    def test_unforced_build_skips_when_verified(
        self, tmp_path: Path, cache: CacheManager, extractor, make_font
    ) -> None:
        fonts = tmp_path / "fonts" / "roboto"
        collection = self._collection(tmp_path, cache, extractor)
        make_font(fonts / "Roboto-Regular.ttf")

        collection.build()
        assert collection.fonts == []

        collection.reset_verification()
        assert [r.family_name for r in collection.fonts] == ["Roboto"]

    def test_read_only_mode_skips_freshness_checks(
        self, tmp_path: Path, cache: CacheManager, extractor, make_font
    ) -> None:
        make_font(tmp_path / "fonts" / "roboto" / "Roboto-Regular.ttf")
        self._collection(tmp_path, cache, extractor)

        counting = CountingExtractor(extractor)
        collection = self._collection(tmp_path, cache, counting).read_only_mode()
        make_font(tmp_path / "fonts" / "lato" / "Lato-Regular.ttf")

        assert [r.family_name for r in collection.fonts] == ["Roboto"]
        assert counting.calls == []

    def test_rebuild_reextracts_everything(
        self, tmp_path: Path, cache: CacheManager, extractor, make_font
    ) -> None:
        fonts = tmp_path / "fonts" / "roboto"
        make_font(fonts / "Roboto-Regular.ttf")
        make_font(fonts / "Roboto-Bold.ttf")
        counting = CountingExtractor(extractor)
        collection = self._collection(tmp_path, cache, counting)
        counting.calls.clear()

        collection.rebuild()
        assert sorted(counting.calls) == ["Roboto-Bold.ttf", "Roboto-Regular.ttf"]

    def test_unreadable_font_skipped(self, tmp_path: Path, cache: CacheManager, make_font) -> None:
        make_font(tmp_path / "fonts" / "a" / "Good-Regular.ttf")
        make_font(tmp_path / "fonts" / "a" / "Broken-Regular.ttf")

        def flaky(path: str) -> list[FontRecord]:
            if "Broken" in path:
                raise ValueError("bad name table")
            return [_record("Good", "Regular", path)]

        collection = self._collection(tmp_path, cache, flaky)
        assert [r.family_name for r in collection.fonts] == ["Good"]

    def test_remove_persists(
        self, tmp_path: Path, cache: CacheManager, extractor, make_font
    ) -> None:
        path = make_font(tmp_path / "fonts" / "roboto" / "Roboto-Regular.ttf")
        collection = self._collection(tmp_path, cache, extractor)

        collection.remove(str(path))

        assert not collection.font_exists(str(path))
        assert load_index_file(tmp_path / "index.yml").records == ()

    def test_to_file_leaves_no_temp_file(
        self, tmp_path: Path, cache: CacheManager, extractor
    ) -> None:
        collection = self._collection(tmp_path, cache, extractor)
        collection.to_file()
        assert not (tmp_path / "index.yml.tmp").exists()
        assert (tmp_path / "index.yml.lock").exists()
