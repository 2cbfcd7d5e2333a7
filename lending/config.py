"""Config management for the lending service.

Reads `config.ini` from DATA_DIR (the project root unless the DATA_DIR
environment variable points elsewhere).
"""

from __future__ import annotations

import configparser
import dataclasses
import os
import pathlib
import secrets
from typing import Optional

from .logging_config import get_logger

logger = get_logger(__name__)

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]

# DATA_DIR holds all persistent state (config.ini, library.json, lending.log).
DATA_DIR = pathlib.Path(os.environ.get("DATA_DIR", str(PROJECT_ROOT)))
DEFAULT_CONFIG_PATH = DATA_DIR / "config.ini"
DEFAULT_STORE_PATH = DATA_DIR / "library.json"


@dataclasses.dataclass
class LibraryConfig:
    name: str = "Book Lending System"


@dataclasses.dataclass
class StoreConfig:
    path: pathlib.Path = DEFAULT_STORE_PATH


@dataclasses.dataclass
class ServerConfig:
    host: str = "0.0.0.0"
    port: int = 3001


@dataclasses.dataclass
class AuthConfig:
    """Signing secret and lifetime for bearer session tokens."""

    secret: str = ""
    token_ttl_hours: int = 24

    @property
    def token_ttl_seconds(self) -> int:
        return self.token_ttl_hours * 3600


@dataclasses.dataclass
class LoggingConfig:
    level: str = "INFO"


@dataclasses.dataclass
class LendingConfig:
    library: LibraryConfig
    store: StoreConfig
    server: ServerConfig
    auth: AuthConfig
    logging: LoggingConfig

    @property
    def store_path(self) -> pathlib.Path:
        return self.store.path

    @property
    def server_host(self) -> str:
        return self.server.host

    @property
    def server_port(self) -> int:
        return self.server.port


def load_config(config_path: Optional[pathlib.Path] = None) -> LendingConfig:
    """Load configuration from config.ini.

    Defaults to `config.ini` in DATA_DIR. Relative store paths resolve
    against the directory holding the config file.
    """
    path = config_path or DEFAULT_CONFIG_PATH
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    parser = configparser.ConfigParser()
    parser.read(path)

    store_path = pathlib.Path(
        parser.get("store", "path", fallback=str(DEFAULT_STORE_PATH))
    ).expanduser()
    if not store_path.is_absolute():
        store_path = path.parent / store_path

    auth = AuthConfig(
        secret=parser.get("auth", "secret", fallback="").strip(),
        token_ttl_hours=parser.getint("auth", "token_ttl_hours", fallback=24),
    )
    if not auth.secret:
        logger.warning("No [auth] secret configured; session tokens will be rejected")

    return LendingConfig(
        library=LibraryConfig(
            name=parser.get("library", "name", fallback="Book Lending System"),
        ),
        store=StoreConfig(path=store_path),
        server=ServerConfig(
            host=parser.get("server", "host", fallback="0.0.0.0"),
            port=parser.getint("server", "port", fallback=3001),
        ),
        auth=auth,
        logging=LoggingConfig(
            level=parser.get("logging", "level", fallback="INFO").strip().upper(),
        ),
    )


_cached_config: Optional[LendingConfig] = None


def get_config() -> LendingConfig:
    """Return the cached config singleton. Loads from disk on first call."""
    global _cached_config
    if _cached_config is None:
        _cached_config = load_config()
    return _cached_config


def reset_config_cache() -> None:
    """Clear the cached config (useful for tests)."""
    global _cached_config
    _cached_config = None


def write_default_config(
    config_path: pathlib.Path,
    library_name: str,
    store_path: Optional[pathlib.Path] = None,
) -> pathlib.Path:
    """Write a config.ini with defaults and a freshly generated signing secret."""
    parser = configparser.ConfigParser()

    parser["library"] = {"name": library_name}
    parser["store"] = {"path": str(store_path or DEFAULT_STORE_PATH)}
    parser["server"] = {"host": "0.0.0.0", "port": "3001"}
    parser["auth"] = {
        "secret": secrets.token_hex(32),
        "token_ttl_hours": "24",
    }
    parser["logging"] = {"level": "INFO"}

    config_path.parent.mkdir(parents=True, exist_ok=True)
    with config_path.open("w") as handle:
        parser.write(handle)
    return config_path
