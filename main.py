"""Command-line interface for the authentication service."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from typing import Sequence

from authservice.accounts import list_users
from authservice.config import ServiceConfig, load_service_config, resolve_config_path
from authservice.storage import StorageError, UserStore

logger = logging.getLogger("authservice.main")


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Flat-file authentication service")
    subparsers = parser.add_subparsers(dest="command")

    parser.set_defaults(command="serve", config=None)

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        default=None,
        help="Path to a YAML configuration file (default: config/service.yaml)",
    )

    subparsers.add_parser("init-db", parents=[common], help="Create the user dataset file if it is missing")
    subparsers.add_parser("list-users", parents=[common], help="Print every registered user")

    serve_parser = subparsers.add_parser("serve", parents=[common], help="Start the HTTP service")
    serve_parser.add_argument("--host", default=None, help="Bind address (default: 0.0.0.0)")
    serve_parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port to listen on (default: 8080)",
    )

    args_list = list(argv) if argv is not None else sys.argv[1:]
    known_commands = {"serve", "init-db", "list-users"}

    if not args_list:
        args_list = ["serve"]
    else:
        first = args_list[0]
        if first in ("-h", "--help"):
            return parser.parse_args(args_list)
        if first not in known_commands:
            if any(flag in args_list for flag in ("-h", "--help")):
                return parser.parse_args(args_list)
            args_list = ["serve", *args_list]

    return parser.parse_args(args_list)


def _load_config(config_path: str | None) -> ServiceConfig:
    path = resolve_config_path(config_path or os.getenv("AUTH_CONFIG_PATH"))
    try:
        config = load_service_config(path)
    except ValueError as exc:
        raise SystemExit(f"Invalid configuration in {path}: {exc}") from exc
    return config.with_overrides(database_path=os.getenv("AUTH_DB_PATH"))


def _initialise_store(config: ServiceConfig) -> UserStore:
    store = UserStore(config.database_path)
    store.initialize()
    logger.info("User dataset ready at %s", config.database_path)
    return store


def _serve(*, store: UserStore, config: ServiceConfig) -> None:
    from authservice.api import create_app
    import uvicorn

    logger.info("Starting authentication service on http://%s:%s", config.host, config.port)

    app = create_app(store=store, config=config)
    uvicorn.run(app, host=config.host, port=config.port, log_level="info")


def _print_users(store: UserStore) -> None:
    try:
        users = asyncio.run(list_users(store))
    except StorageError as exc:
        raise SystemExit(f"Failed to read users: {exc}") from exc

    if not users:
        print("No users are currently registered.")
        return

    print(f"{len(users)} user(s) found:")
    print(f"{'ID':<28}  {'Email':<32}  Username")
    print("-" * 80)
    for user in users:
        print(f"{str(user.get('_id', '')):<28}  {str(user.get('email', '')):<32}  {user.get('username', '')}")


def main(argv: Sequence[str] | None = None) -> None:
    """Entry point for CLI usage."""

    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")

    args = _parse_args(argv)
    config = _load_config(args.config)

    if args.command == "serve":
        config = config.with_overrides(host=args.host, port=args.port)

    store = _initialise_store(config)

    if args.command == "serve":
        _serve(store=store, config=config)
    elif args.command == "list-users":
        _print_users(store)
    elif args.command == "init-db":
        print(f"User dataset initialised at {config.database_path}.")


if __name__ == "__main__":
    main()
