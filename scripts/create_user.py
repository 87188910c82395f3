import argparse
import asyncio
import getpass
import os
import sys
from pathlib import Path
from typing import Sequence

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from authservice.accounts import UserExistsError, register_user
from authservice.storage import StorageError, UserStore, resolve_database_path


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Register a user directly in the dataset file")
    parser.add_argument("username", help="Display name for the user")
    parser.add_argument("email", help="Unique email address for login")
    parser.add_argument(
        "--db",
        dest="db_path",
        default=None,
        help="Path to the dataset file (defaults to AUTH_DB_PATH or data/db.json)",
    )
    return parser.parse_args(argv)


def prompt_for_password() -> str:
    for _ in range(3):
        password = getpass.getpass("Password: ")
        confirm = getpass.getpass("Confirm password: ")
        if password != confirm:
            print("Passwords do not match. Try again.", file=sys.stderr)
            continue
        if not password:
            print("Password must not be empty.", file=sys.stderr)
            continue
        return password
    raise SystemExit("Failed to set password after three attempts.")


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    username = args.username.strip()
    email = args.email.strip()
    if not username or not email:
        print("Error: username and email must not be empty", file=sys.stderr)
        return 1

    password = prompt_for_password()

    db_env = args.db_path or os.getenv("AUTH_DB_PATH")
    store = UserStore(resolve_database_path(db_env))
    store.initialize()

    payload = {"email": email, "password": password, "username": username}
    try:
        user = asyncio.run(register_user(store, payload))
    except (UserExistsError, StorageError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print(f"Created user {user['_id']}: {user['username']} <{user['email']}>")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
