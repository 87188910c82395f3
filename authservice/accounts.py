"""Registration and login against the flat-file user store."""
from __future__ import annotations

import logging
import secrets
from typing import Any, Dict, List, Mapping, Optional

import anyio

from .passwords import hash_password, verify_password
from .storage import UserStore

logger = logging.getLogger("authservice.accounts")

USER_ID_LENGTH = 28

Record = Dict[str, Any]


class UserExistsError(ValueError):
    """Raised when registering an email that is already taken."""


def generate_user_id() -> str:
    # 21 random bytes encode to exactly 28 URL-safe characters.
    return secrets.token_urlsafe(21)[:USER_ID_LENGTH]


def _normalise_email(value: object) -> Optional[str]:
    if not isinstance(value, str):
        return None
    return value.lower()


def find_user_by_email(users: List[Record], email: str) -> Optional[Record]:
    wanted = email.lower()
    for user in users:
        if _normalise_email(user.get("email")) == wanted:
            return user
    return None


def public_view(record: Mapping[str, Any]) -> Record:
    """Return a copy of ``record`` that is safe to send to clients."""

    return {key: value for key, value in record.items() if key != "password"}


async def register_user(store: UserStore, payload: Mapping[str, Any]) -> Record:
    """Append a new user built from ``payload`` and persist the dataset.

    ``payload`` must contain non-empty ``email``, ``password`` and ``username``.
    """

    email = str(payload["email"])
    password_hash = await anyio.to_thread.run_sync(hash_password, str(payload["password"]))

    async with store.lock:
        dataset = await store.load()
        users: List[Record] = dataset["users"]

        if find_user_by_email(users, email) is not None:
            raise UserExistsError("User already exist")

        record: Record = {**payload, "password": password_hash, "_id": generate_user_id()}
        users.append(record)
        await store.persist(dataset)

    logger.info("Registered user %s (%s)", record["_id"], email)
    return public_view(record)


async def authenticate_user(store: UserStore, email: str, password: str) -> Optional[Record]:
    dataset = await store.load()
    wanted = email.lower()
    for user in dataset["users"]:
        if _normalise_email(user.get("email")) != wanted:
            continue
        if await anyio.to_thread.run_sync(verify_password, password, user.get("password")):
            return public_view(user)
    return None


async def list_users(store: UserStore) -> List[Record]:
    dataset = await store.load()
    return [public_view(user) for user in dataset["users"]]


__all__ = [
    "USER_ID_LENGTH",
    "UserExistsError",
    "authenticate_user",
    "find_user_by_email",
    "generate_user_id",
    "list_users",
    "public_view",
    "register_user",
]
