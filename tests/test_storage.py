from __future__ import annotations

import asyncio
import json
from pathlib import Path

import pytest

from authservice.storage import StorageError, UserStore, resolve_database_path


@pytest.fixture()
def store(tmp_path: Path) -> UserStore:
    db = UserStore(tmp_path / "data" / "db.json")
    db.initialize()
    return db


def test_initialize_creates_empty_dataset(store: UserStore) -> None:
    assert store.path.exists()
    assert json.loads(store.path.read_text(encoding="utf-8")) == {"users": []}


def test_initialize_keeps_existing_file(tmp_path: Path) -> None:
    path = tmp_path / "db.json"
    path.write_text(json.dumps({"users": [{"email": "a@b.com"}]}), encoding="utf-8")

    UserStore(path).initialize()

    assert json.loads(path.read_text(encoding="utf-8")) == {"users": [{"email": "a@b.com"}]}


def test_persist_rewrites_whole_file_with_indentation(store: UserStore) -> None:
    dataset = {"users": [{"_id": "x" * 28, "email": "a@b.com", "username": "u1"}]}

    asyncio.run(store.persist(dataset))

    text = store.path.read_text(encoding="utf-8")
    assert text == json.dumps(dataset, indent=2)
    assert asyncio.run(store.load()) == dataset


def test_load_defaults_missing_users_key(store: UserStore) -> None:
    store.path.write_text("{}", encoding="utf-8")

    assert asyncio.run(store.load()) == {"users": []}


@pytest.mark.parametrize("content", ["not json", "[]", '{"users": {}}'])
def test_load_rejects_malformed_dataset(store: UserStore, content: str) -> None:
    store.path.write_text(content, encoding="utf-8")

    with pytest.raises(StorageError):
        asyncio.run(store.load())


def test_load_reports_missing_file(tmp_path: Path) -> None:
    store = UserStore(tmp_path / "absent.json")

    with pytest.raises(StorageError):
        asyncio.run(store.load())


def test_resolve_database_path_prefers_explicit_value(tmp_path: Path) -> None:
    explicit = tmp_path / "custom.json"
    assert resolve_database_path(str(explicit)) == explicit.resolve()
    assert resolve_database_path(None).name == "db.json"


def test_persist_swaps_file_without_leaving_temporaries(store: UserStore) -> None:
    asyncio.run(store.persist({"users": [{"email": "a@b.com"}]}))
    asyncio.run(store.persist({"users": [{"email": "c@d.com"}]}))

    assert sorted(p.name for p in store.path.parent.iterdir()) == ["db.json"]
    assert asyncio.run(store.load()) == {"users": [{"email": "c@d.com"}]}


def test_failed_persist_cleans_up_and_keeps_target(tmp_path: Path) -> None:
    target = tmp_path / "db.json"
    target.mkdir()
    store = UserStore(target)

    with pytest.raises(StorageError):
        asyncio.run(store.persist({"users": []}))

    assert target.is_dir()
    assert [p.name for p in tmp_path.iterdir()] == ["db.json"]
