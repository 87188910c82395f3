"""Configuration management for the authentication service."""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Dict, Optional, Tuple

import yaml

from .storage import resolve_database_path

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8080


@dataclass(frozen=True)
class ServiceConfig:
    """Runtime settings for the HTTP service."""

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    database_path: Path = field(default_factory=lambda: resolve_database_path(None))
    cors_origins: Tuple[str, ...] = ("*",)

    @staticmethod
    def from_dict(data: Dict[str, object], base_path: Path | None = None) -> "ServiceConfig":
        """Create a :class:`ServiceConfig` from raw dictionary data."""
        unknown = set(data.keys()) - {"host", "port", "database_path", "cors_origins"}
        if unknown:
            raise ValueError(f"Unknown configuration fields: {', '.join(sorted(unknown))}")

        host = str(data.get("host") or DEFAULT_HOST)

        try:
            port = int(data.get("port", DEFAULT_PORT))  # type: ignore[arg-type]
        except (TypeError, ValueError) as exc:
            raise ValueError("port must be an integer") from exc
        if not 1 <= port <= 65535:
            raise ValueError("port must be between 1 and 65535")

        raw_path = data.get("database_path")
        if raw_path:
            expanded = Path(str(raw_path)).expanduser()
            if not expanded.is_absolute() and base_path is not None:
                expanded = base_path / expanded
            database_path = expanded.resolve(strict=False)
        else:
            database_path = resolve_database_path(None)

        raw_origins = data.get("cors_origins", ["*"])
        if isinstance(raw_origins, str):
            raw_origins = [raw_origins]
        if not isinstance(raw_origins, list):
            raise ValueError("cors_origins must be a string or a list of strings")
        origins = tuple(str(origin).strip() for origin in raw_origins if str(origin).strip())

        return ServiceConfig(host=host, port=port, database_path=database_path, cors_origins=origins)

    def with_overrides(
        self,
        *,
        host: Optional[str] = None,
        port: Optional[int] = None,
        database_path: Optional[str] = None,
    ) -> "ServiceConfig":
        updated = self
        if host:
            updated = replace(updated, host=host)
        if port is not None:
            updated = replace(updated, port=port)
        if database_path:
            updated = replace(updated, database_path=resolve_database_path(database_path))
        return updated


def load_service_config(config_path: Path) -> ServiceConfig:
    """Load service settings from a YAML file, falling back to defaults."""
    if not config_path.exists():
        return ServiceConfig()

    with config_path.open("r", encoding="utf-8") as handle:
        raw = yaml.safe_load(handle) or {}

    if not isinstance(raw, dict):
        raise ValueError("Configuration file must contain a mapping at the top level")

    return ServiceConfig.from_dict(raw, base_path=config_path.parent)


def resolve_config_path(env_value: Optional[str]) -> Path:
    """Resolve the path to the configuration file."""
    if env_value:
        candidate = Path(env_value).expanduser().resolve(strict=False)
    else:
        candidate = (Path(__file__).resolve().parent.parent / "config" / "service.yaml").resolve(strict=False)
    return candidate


__all__ = [
    "DEFAULT_HOST",
    "DEFAULT_PORT",
    "ServiceConfig",
    "load_service_config",
    "resolve_config_path",
]
