"""Driver generations and the connection handle they fill in."""

from __future__ import annotations

import importlib
import importlib.util
import logging
import ssl
from typing import Any, Protocol, runtime_checkable

import pymysql
from pymysql.constants import CLIENT

from .models import ConnectionTarget, Credentials, DriverGeneration, TlsMaterial

LOG = logging.getLogger(__name__)

LEGACY_MODULE = "MySQLdb"


class DriverError(RuntimeError):
    """Raised when a driver cannot open a connection."""


class HandleStateError(RuntimeError):
    """Raised when a handle is configured out of order."""


@runtime_checkable
class LiveConnection(Protocol):
    """Subset of the DB-API connection surface used after connecting.

    Both ``pymysql.connections.Connection`` and ``MySQLdb.Connection``
    satisfy it.
    """

    def get_server_info(self) -> str: ...

    def set_character_set(self, charset: str, collation: str | None = None) -> None: ...

    def select_db(self, db: str) -> None: ...

    def cursor(self) -> Any: ...

    def close(self) -> None: ...


def build_ssl_context(material: TlsMaterial, *, verify_server_cert: bool = False) -> ssl.SSLContext:
    """Create a client SSL context carrying the CA and client identity.

    Raises ``OSError`` or ``ssl.SSLError`` when a file is unreadable or invalid.
    """

    context = ssl.create_default_context(cafile=material.ca_path)
    context.load_cert_chain(certfile=material.cert_path, keyfile=material.key_path)
    if not verify_server_cert:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    return context


class ConnectionHandle:
    """A handle prepared before the network call, filled in by a driver.

    TLS can only be set while the handle is unconnected and only on the
    modern generation.
    """

    def __init__(self, generation: DriverGeneration) -> None:
        self.generation = generation
        self.tls_material: TlsMaterial | None = None
        self.ssl_context: ssl.SSLContext | None = None
        self.connection: LiveConnection | None = None
        self.error: Exception | None = None

    @property
    def connected(self) -> bool:
        return self.connection is not None

    @property
    def encrypted(self) -> bool:
        return self.ssl_context is not None

    def ssl_set(self, material: TlsMaterial, *, verify_server_cert: bool = False) -> None:
        """Attach TLS settings; nothing is changed if building the context fails."""

        if self.connected:
            raise HandleStateError("TLS must be configured before the handle connects.")
        if self.generation is DriverGeneration.LEGACY:
            raise HandleStateError("The legacy driver generation has no TLS support.")
        context = build_ssl_context(material, verify_server_cert=verify_server_cert)
        self.ssl_context = context
        self.tls_material = material

    def attach(self, connection: LiveConnection) -> None:
        if self.connected:
            raise HandleStateError("Handle is already connected.")
        self.connection = connection
        self.error = None

    def close(self) -> None:
        """Close the live connection, if any; safe to call repeatedly."""

        connection, self.connection = self.connection, None
        if connection is None:
            return
        try:
            connection.close()
        except Exception:  # pragma: no cover - best effort cleanup
            LOG.debug("Ignoring error while closing %s handle", self.generation.value, exc_info=True)


@runtime_checkable
class Driver(Protocol):
    """Protocol implemented by the two driver generations."""

    generation: DriverGeneration
    supports_tls: bool

    def available(self) -> bool:
        """Whether the driver can be used in this runtime."""

    def brackets_ipv6(self) -> bool:
        """Whether IPv6 literals must be passed as ``[addr]``."""

    def connect(
        self,
        handle: ConnectionHandle,
        target: ConnectionTarget,
        credentials: Credentials,
        client_flags: int,
    ) -> None:
        """Open one connection into ``handle`` or raise ``DriverError``."""


class PyMySQLDriver:
    """Modern driver generation backed by PyMySQL."""

    generation = DriverGeneration.MODERN
    supports_tls = True

    def __init__(self, *, connect_timeout: float = 10.0, bracket_ipv6: bool = False) -> None:
        self._connect_timeout = connect_timeout
        self._bracket_ipv6 = bracket_ipv6

    def available(self) -> bool:
        return True

    def brackets_ipv6(self) -> bool:
        return self._bracket_ipv6

    def connect(
        self,
        handle: ConnectionHandle,
        target: ConnectionTarget,
        credentials: Credentials,
        client_flags: int,
    ) -> None:
        kwargs = _connect_kwargs(target, credentials, client_flags, self._connect_timeout)
        if handle.ssl_context is not None:
            kwargs["ssl"] = handle.ssl_context
        try:
            connection = pymysql.connect(**kwargs)
        except (pymysql.MySQLError, OSError) as exc:
            raise DriverError(f"Failed to connect to '{target.host}': {exc}") from exc
        handle.attach(connection)


class MySQLdbDriver:
    """Legacy driver generation backed by mysqlclient, when it is installed."""

    generation = DriverGeneration.LEGACY
    supports_tls = False

    def __init__(self, *, connect_timeout: float = 10.0, module_name: str = LEGACY_MODULE) -> None:
        self._connect_timeout = connect_timeout
        self._module_name = module_name

    def available(self) -> bool:
        try:
            return importlib.util.find_spec(self._module_name) is not None
        except (ImportError, ValueError):
            return False

    def brackets_ipv6(self) -> bool:
        return False

    def connect(
        self,
        handle: ConnectionHandle,
        target: ConnectionTarget,
        credentials: Credentials,
        client_flags: int,
    ) -> None:
        try:
            module = importlib.import_module(self._module_name)
        except ImportError as exc:
            raise DriverError(f"Legacy driver '{self._module_name}' is not installed") from exc
        kwargs = _connect_kwargs(target, credentials, client_flags, self._connect_timeout)
        kwargs["connect_timeout"] = max(1, int(self._connect_timeout))
        errors: tuple[type[BaseException], ...] = (getattr(module, "MySQLError", OSError), OSError)
        try:
            connection = module.connect(**kwargs)
        except errors as exc:
            raise DriverError(f"Failed to connect to '{target.host}': {exc}") from exc
        handle.attach(connection)


def _connect_kwargs(
    target: ConnectionTarget,
    credentials: Credentials,
    client_flags: int,
    connect_timeout: float,
) -> dict[str, Any]:
    # The SSL bit is owned by the driver: PyMySQL adds it when given a context.
    kwargs: dict[str, Any] = {
        "host": target.host,
        "user": credentials.user,
        "password": credentials.password,
        "client_flag": client_flags & ~CLIENT.SSL,
        "connect_timeout": connect_timeout,
    }
    if target.port is not None:
        kwargs["port"] = target.port
    if target.socket_path is not None:
        kwargs["unix_socket"] = target.socket_path
    return kwargs


__all__ = [
    "ConnectionHandle",
    "Driver",
    "DriverError",
    "HandleStateError",
    "LiveConnection",
    "MySQLdbDriver",
    "PyMySQLDriver",
    "build_ssl_context",
]
