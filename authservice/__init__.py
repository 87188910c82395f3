"""Flat-file user registration and login service."""

from __future__ import annotations

from typing import Any

from .storage import StorageError, UserStore, resolve_database_path


def create_app(*args: Any, **kwargs: Any):
    """Factory function that returns the HTTP application."""

    from .api import create_app as _create_app

    return _create_app(*args, **kwargs)


__all__ = [
    "StorageError",
    "UserStore",
    "resolve_database_path",
    "create_app",
]
