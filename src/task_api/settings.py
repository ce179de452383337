from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import List, Optional


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - PERSISTENCE_BACKEND: 'sqlalchemy' (default) or 'memory'
    - DATABASE_URL: SQLAlchemy database URL. Default 'sqlite:///./data/tasks.db'
    - CORS_ALLOW_ORIGINS: comma-separated list of allowed origins; '*' by default
    - ENABLE_AUTH: 'true' to require a bearer token on task routes (default: false)
    - AUTH_TOKEN: expected bearer token (required when ENABLE_AUTH=true)
    - LOG_LEVEL: root log level name (default: INFO)
    - HOST / PORT: bind address for the development server
    """

    persistence_backend: str
    database_url: str
    cors_allow_origins: List[str]
    enable_auth: bool
    auth_token: Optional[str]
    log_level: str
    host: str
    port: int


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _parse_bool(value: str, default: bool = False) -> bool:
    v = value.strip().lower()
    if v in {"1", "true", "yes", "on"}:
        return True
    if v in {"0", "false", "no", "off"}:
        return False
    return default


def _parse_int(value: str, default: int) -> int:
    try:
        return int(value.strip())
    except ValueError:
        return default


def _parse_origins(origins_value: str) -> List[str]:
    """
    Parse CORS origins from env. Supports:
    - '*' to allow all origins
    - Comma-separated list of origins
    """
    value = origins_value.strip()
    if value == "*":
        return ["*"]
    return [o.strip() for o in value.split(",") if o.strip()]


def load_settings() -> Settings:
    """Read settings from the current environment, uncached."""
    backend = _get_env("PERSISTENCE_BACKEND", "sqlalchemy").strip().lower()
    if backend not in {"memory", "sqlalchemy"}:
        backend = "sqlalchemy"

    enable_auth = _parse_bool(_get_env("ENABLE_AUTH", "false"), False)

    return Settings(
        persistence_backend=backend,
        database_url=_get_env("DATABASE_URL", "sqlite:///./data/tasks.db").strip(),
        cors_allow_origins=_parse_origins(_get_env("CORS_ALLOW_ORIGINS", "*")),
        enable_auth=enable_auth,
        auth_token=os.getenv("AUTH_TOKEN") if enable_auth else None,
        log_level=_get_env("LOG_LEVEL", "INFO").strip().upper(),
        host=_get_env("HOST", "127.0.0.1").strip(),
        port=_parse_int(_get_env("PORT", "8000"), 8000),
    )


# PUBLIC_INTERFACE
@lru_cache
def get_settings() -> Settings:
    """Return application settings, read once per process."""
    return load_settings()
