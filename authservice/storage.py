"""JSON file persistence for the user dataset."""
from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional

import anyio

logger = logging.getLogger("authservice.storage")

Dataset = Dict[str, Any]


class StorageError(RuntimeError):
    """Raised when the dataset file cannot be read, parsed, or written."""


def _ensure_directory(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def resolve_database_path(env_value: Optional[str]) -> Path:
    """Resolve the on-disk path for the user dataset."""

    if env_value:
        return Path(env_value).expanduser().resolve(strict=False)
    base_dir = Path(__file__).resolve().parent.parent / "data"
    return (base_dir / "db.json").resolve(strict=False)


def empty_dataset() -> Dataset:
    return {"users": []}


class UserStore:
    """Whole-dataset access to a single JSON file.

    Every call to :meth:`load` re-reads the file and every call to
    :meth:`persist` rewrites it completely. Callers performing a
    read-modify-write must hold :attr:`lock` for the whole sequence.
    """

    def __init__(self, path: Path) -> None:
        self._path = path
        self._lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        return self._path

    @property
    def lock(self) -> asyncio.Lock:
        return self._lock

    def initialize(self) -> None:
        """Create an empty dataset file if one does not exist yet."""

        _ensure_directory(self._path)
        if self._path.exists():
            return
        self._path.write_text(json.dumps(empty_dataset(), indent=2), encoding="utf-8")
        logger.info("Created empty user dataset at %s", self._path)

    async def load(self) -> Dataset:
        return await anyio.to_thread.run_sync(self._read)

    async def persist(self, dataset: Dataset) -> None:
        await anyio.to_thread.run_sync(self._write, dataset)

    def _read(self) -> Dataset:
        try:
            raw = self._path.read_text(encoding="utf-8")
        except OSError as exc:
            raise StorageError(f"Failed to read user dataset at {self._path}") from exc

        try:
            dataset = json.loads(raw)
        except ValueError as exc:
            raise StorageError(f"User dataset at {self._path} is not valid JSON") from exc

        if not isinstance(dataset, dict):
            raise StorageError(f"User dataset at {self._path} must contain a JSON object")
        users = dataset.get("users")
        if users is None:
            dataset["users"] = []
        elif not isinstance(users, list):
            raise StorageError(f"'users' in {self._path} must be a list")
        return dataset

    def _write(self, dataset: Dataset) -> None:
        try:
            serialized = json.dumps(dataset, indent=2)
        except (TypeError, ValueError) as exc:
            raise StorageError("User dataset could not be serialized") from exc

        # Readers run without the lock; they must only ever see a complete file.
        temp_name: Optional[str] = None
        try:
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self._path.parent,
                prefix=f".{self._path.name}.",
                suffix=".tmp",
                delete=False,
            ) as handle:
                temp_name = handle.name
                handle.write(serialized)
            os.replace(temp_name, self._path)
        except OSError as exc:
            if temp_name is not None:
                Path(temp_name).unlink(missing_ok=True)
            raise StorageError(f"Failed to write user dataset to {self._path}") from exc


__all__ = ["Dataset", "StorageError", "UserStore", "empty_dataset", "resolve_database_path"]
