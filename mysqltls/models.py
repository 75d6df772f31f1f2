"""Shared dataclasses used across connection modules."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum


class DriverGeneration(str, Enum):
    """Client API generation used to speak the MySQL wire protocol."""

    MODERN = "modern"
    LEGACY = "legacy"


class ErrorVisibility(str, Enum):
    """How loudly driver-level warnings are reported."""

    DEBUG = "debug"
    PRODUCTION = "production"


class ConnectorPhase(str, Enum):
    """Position of a connector in its connect state machine."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTING_LEGACY_FALLBACK = "connecting-legacy-fallback"
    CONNECTED = "connected"
    READY = "ready"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class ConnectionTarget:
    """Structured form of a raw host specification."""

    host: str
    port: int | None = None
    socket_path: str | None = None
    is_ipv6: bool = False

    def bracketed(self) -> ConnectionTarget:
        """Return a copy with the IPv6 literal wrapped in square brackets."""

        if not self.is_ipv6 or self.host.startswith("["):
            return self
        return replace(self, host=f"[{self.host}]")


@dataclass(frozen=True, slots=True)
class TlsMaterial:
    """CA, client certificate and client key used for encrypted transport."""

    ca_path: str
    cert_path: str
    key_path: str

    @property
    def complete(self) -> bool:
        """True only when CA, certificate and key paths are all non-empty."""

        return bool(self.ca_path and self.cert_path and self.key_path)

    @classmethod
    def from_paths(
        cls,
        ca_path: str | None,
        cert_path: str | None,
        key_path: str | None,
    ) -> TlsMaterial | None:
        """Build material only when all three paths are present."""

        material = cls(ca_path=ca_path or "", cert_path=cert_path or "", key_path=key_path or "")
        return material if material.complete else None


@dataclass(frozen=True, slots=True)
class Credentials:
    """Login details and raw host specification for one database."""

    user: str = ""
    password: str = ""
    database: str = ""
    host: str = ""

    def __repr__(self) -> str:
        return (
            f"Credentials(user={self.user!r}, password='***', "
            f"database={self.database!r}, host={self.host!r})"
        )


__all__ = [
    "ConnectionTarget",
    "ConnectorPhase",
    "Credentials",
    "DriverGeneration",
    "ErrorVisibility",
    "TlsMaterial",
]
