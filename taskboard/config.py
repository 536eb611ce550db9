# Task board: configuration
# Defaults, overridden by config.yaml, then environment, then CLI flags.

import os
import secrets
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

CONFIG_PATH = Path(__file__).parent.parent / "config.yaml"

_SQLITE_PREFIX = "sqlite:///"
_DATA_SOURCE_PREFIX = "data source="


class ConfigError(Exception):
    """Raised when configuration is invalid or incomplete."""
    pass


@dataclass
class Config:
    """Runtime configuration for the board server."""

    # Store location: sqlite:///path, "Data Source=path" or a bare path
    database: str = "sqlite:///kanban.db"

    # Signs the session cookie that carries the anti-forgery token
    secret_key: str = field(default_factory=lambda: secrets.token_hex(32))

    host: str = "127.0.0.1"
    port: int = 5000
    seed_demo: bool = False
    log_level: str = "INFO"

    @property
    def db_path(self) -> str:
        """Filesystem path named by the connection string."""
        conn = self.database.strip()
        if conn.startswith(_SQLITE_PREFIX):
            path = conn[len(_SQLITE_PREFIX):]
        elif conn.lower().startswith(_DATA_SOURCE_PREFIX):
            path = conn[len(_DATA_SOURCE_PREFIX):].split(";", 1)[0]
        else:
            path = conn
        path = path.strip()
        if not path:
            raise ConfigError(f"No database path in connection string {self.database!r}")
        return str(Path(path).expanduser())

    def apply_env(self, environ=None):
        """Override fields from KANBAN_* environment variables."""
        env = os.environ if environ is None else environ
        if env.get("KANBAN_DB"):
            self.database = env["KANBAN_DB"]
        if env.get("KANBAN_SECRET_KEY"):
            self.secret_key = env["KANBAN_SECRET_KEY"]
        if env.get("KANBAN_LOG_LEVEL"):
            self.log_level = env["KANBAN_LOG_LEVEL"].upper()
        if env.get("KANBAN_PORT"):
            try:
                self.port = int(env["KANBAN_PORT"])
            except ValueError:
                raise ConfigError(f"KANBAN_PORT must be an integer, got {env['KANBAN_PORT']!r}")

    @classmethod
    def load(cls, path: Optional[str] = None, environ=None) -> "Config":
        """Load config from YAML, falling back to defaults, then apply env."""
        cfg_path = Path(path) if path else CONFIG_PATH
        if cfg_path.exists():
            try:
                with open(cfg_path, "r") as f:
                    data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigError(f"Cannot parse {cfg_path}: {e}")
            if not isinstance(data, dict):
                raise ConfigError(f"{cfg_path} must contain a mapping")
            cfg = cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})
        elif path:
            raise ConfigError(f"Config file not found: {cfg_path}")
        else:
            cfg = cls()
        cfg.apply_env(environ)
        return cfg
