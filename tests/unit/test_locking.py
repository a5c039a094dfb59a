"""Unit tests for fontkeeper.locking and the error envelope."""

from __future__ import annotations

import threading
from pathlib import Path

import pytest

from fontkeeper.errors import ErrorCode, IndexCorruptedError, InstallError
from fontkeeper.locking import exclusive_lock, lock_path_for


class TestExclusiveLock:
    def test_lock_path_for(self) -> None:
        assert lock_path_for(Path("/d/map.yml")) == Path("/d/map.yml.lock")

    def test_creates_parent_directory(self, tmp_path: Path) -> None:
        lock = tmp_path / "nested" / "x.lock"
        with exclusive_lock(lock):
            assert lock.exists()

    def test_released_when_block_raises(self, tmp_path: Path) -> None:
        lock = tmp_path / "x.lock"
        with pytest.raises(RuntimeError), exclusive_lock(lock):
            raise RuntimeError("boom")

        acquired = threading.Event()

        def take() -> None:
            with exclusive_lock(lock):
                acquired.set()

        thread = threading.Thread(target=take)
        thread.start()
        thread.join(timeout=5)
        assert acquired.is_set()

    def test_serialises_holders(self, tmp_path: Path) -> None:
        lock = tmp_path / "x.lock"
        order: list[str] = []
        inside = threading.Event()
        release = threading.Event()

        def first() -> None:
            with exclusive_lock(lock):
                order.append("first-in")
                inside.set()
                release.wait(timeout=5)
                order.append("first-out")

        def second() -> None:
            inside.wait(timeout=5)
            with exclusive_lock(lock):
                order.append("second-in")

        t1 = threading.Thread(target=first)
        t2 = threading.Thread(target=second)
        t1.start()
        t2.start()
        inside.wait(timeout=5)
        release.set()
        t1.join(timeout=5)
        t2.join(timeout=5)

        assert order == ["first-in", "first-out", "second-in"]


class TestErrorEnvelope:
    def test_to_dict(self) -> None:
        error = IndexCorruptedError("/home/index.yml", "empty file")
        assert error.to_dict() == {
            "error": {
                "code": ErrorCode.INDEX_CORRUPTED,
                "message": "Index file is corrupted (empty file): /home/index.yml",
                "suggestion": "Rebuild the index to regenerate it from the font directories.",
                "recoverable": True,
            }
        }

    def test_custom_suggestion(self) -> None:
        error = InstallError("/x", "denied", suggestion="Use sudo.")
        assert error.suggestion == "Use sudo."
        assert str(error) == "Could not install font to /x: denied"
