"""
Database configuration from a single connection string.

The catalog runs against one of two storage dialects:

- a relational server (MySQL/MariaDB or PostgreSQL), selected by URL prefix
- an embedded SQLite file for everything else

Usage:
    from config.database import database_from_url

    DATABASES = {"default": database_from_url(os.getenv("DATABASE_URL", ""))}
"""

from pathlib import Path
from typing import Any, Dict
from urllib.parse import parse_qsl, unquote, urlparse

MYSQL_PREFIXES = ("mysql://", "mariadb://")
POSTGRES_PREFIXES = ("postgres://", "postgresql://")

DEFAULT_SQLITE_PATH = "./local.db"

ENGINES = {
    "mysql": "django.db.backends.mysql",
    "postgresql": "django.db.backends.postgresql",
    "sqlite": "django.db.backends.sqlite3",
}


def detect_dialect(database_url: str) -> str:
    """Return "mysql", "postgresql" or "sqlite" for a connection string."""
    url = (database_url or "").strip()
    if url.startswith(MYSQL_PREFIXES):
        return "mysql"
    if url.startswith(POSTGRES_PREFIXES):
        return "postgresql"
    return "sqlite"


def is_relational_url(database_url: str) -> bool:
    """True when the URL points at a relational server rather than a file."""
    return detect_dialect(database_url) != "sqlite"


def sqlite_path(database_url: str) -> str:
    """
    Resolve the SQLite file path for a non-server connection string.

    "file:./catalog.db" -> "./catalog.db"; an empty string or anything
    without the "file:" prefix falls back to the local default file.
    """
    url = (database_url or "").strip()
    if url.startswith("file:"):
        path = url[len("file:"):]
        return path or DEFAULT_SQLITE_PATH
    return DEFAULT_SQLITE_PATH


def database_from_url(database_url: str, base_dir: Path = None) -> Dict[str, Any]:
    """
    Build a Django DATABASES entry from a connection string.

    Args:
        database_url: mysql://, mariadb://, postgres://, postgresql:// or file: URL
        base_dir: Directory that relative SQLite paths are resolved against

    Returns:
        Dict suitable for settings.DATABASES["default"]
    """
    dialect = detect_dialect(database_url)

    if dialect == "sqlite":
        path = sqlite_path(database_url)
        if path != ":memory:" and base_dir is not None and not Path(path).is_absolute():
            path = str(Path(base_dir) / path)
        return {
            "ENGINE": ENGINES["sqlite"],
            "NAME": path,
        }

    parsed = urlparse(database_url.strip())
    config = {
        "ENGINE": ENGINES[dialect],
        "NAME": unquote(parsed.path.lstrip("/")),
        "USER": unquote(parsed.username or ""),
        "PASSWORD": unquote(parsed.password or ""),
        "HOST": parsed.hostname or "",
        "PORT": str(parsed.port or ""),
    }

    options = dict(parse_qsl(parsed.query))
    if dialect == "mysql":
        options.setdefault("charset", "utf8mb4")
    if options:
        config["OPTIONS"] = options

    return config
