from __future__ import annotations

from pathlib import Path

import pytest

from study_quiz.storage import KeyStore, StorageError


def test_save_load_clear(tmp_path: Path):
    store = KeyStore(tmp_path / "config" / "keys.json")
    assert store.load() is None
    store.save("  sk-abcdefghijkl  ")
    assert store.load() == "sk-abcdefghijkl"
    assert (store.path.stat().st_mode & 0o777) == 0o600
    assert store.clear()
    assert store.load() is None
    assert not store.clear()


def test_empty_key_is_refused(tmp_path: Path):
    with pytest.raises(StorageError):
        KeyStore(tmp_path / "keys.json").save("   ")


def test_unreadable_file_loads_as_missing(tmp_path: Path):
    path = tmp_path / "keys.json"
    path.write_text("not json", encoding="utf-8")
    assert KeyStore(path).load() is None
