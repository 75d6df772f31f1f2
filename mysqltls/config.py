"""Configuration loading helpers."""

from __future__ import annotations

import os
from pathlib import Path

import tomllib

from pydantic import BaseModel, Field, ValidationError

from .models import Credentials, ErrorVisibility, TlsMaterial
from .session import DEFAULT_INCOMPATIBLE_MODES, SessionSettings

CONFIG_ENV_VAR = "MYSQLTLS_CONFIG"
CONFIG_FILE = Path.home() / ".config" / "mysqltls" / "config.toml"


class DatabaseConfig(BaseModel):
    """Credentials and session options for the target database."""

    user: str = ""
    password: str = ""
    name: str = ""
    host: str = "localhost"
    charset: str | None = "utf8"
    collation: str | None = None
    incompatible_modes: tuple[str, ...] = DEFAULT_INCOMPATIBLE_MODES


class TlsConfig(BaseModel):
    """Paths to TLS material; all three must be set for TLS to apply."""

    ca: str | None = None
    cert: str | None = None
    key: str | None = None
    verify_server_cert: bool = False

    def material(self) -> TlsMaterial | None:
        return TlsMaterial.from_paths(self.ca, self.cert, self.key)


class AppConfig(BaseModel):
    """Shape of the configuration file."""

    debug: bool = False
    allow_legacy_fallback: bool = True
    client_flags: int | None = None
    connect_timeout: float = Field(default=10.0, gt=0)
    bracket_ipv6: bool = False
    error_template: Path | None = None
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    tls: TlsConfig = Field(default_factory=TlsConfig)

    @property
    def visibility(self) -> ErrorVisibility:
        return ErrorVisibility.DEBUG if self.debug else ErrorVisibility.PRODUCTION

    def credentials(self) -> Credentials:
        db = self.database
        return Credentials(user=db.user, password=db.password, database=db.name, host=db.host)

    def session_settings(self) -> SessionSettings:
        db = self.database
        return SessionSettings(
            database=db.name,
            charset=db.charset or None,
            collation=db.collation or None,
            incompatible_modes=tuple(db.incompatible_modes),
        )


def config_path() -> Path:
    """Resolve the config file, honouring the environment override."""

    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return CONFIG_FILE


def load_config(path: Path | None = None) -> AppConfig:
    """Load configuration from disk; fall back to defaults if missing or invalid."""

    target = path or config_path()
    try:
        with target.open("rb") as handle:
            raw = tomllib.load(handle)
    except FileNotFoundError:
        return AppConfig()
    except (tomllib.TOMLDecodeError, OSError):
        return AppConfig()

    try:
        return AppConfig.model_validate(raw)
    except ValidationError:
        return AppConfig()


__all__ = [
    "AppConfig",
    "CONFIG_ENV_VAR",
    "CONFIG_FILE",
    "DatabaseConfig",
    "TlsConfig",
    "config_path",
    "load_config",
]
