"""TLS-aware MySQL connection establishment with legacy driver fallback."""

from __future__ import annotations

from .bootstrap import register
from .connector import ConnectDependencies, ConnectionState, Connector
from .drivers import ConnectionHandle, DriverError, HandleStateError, MySQLdbDriver, PyMySQLDriver
from .failures import FailureContext, FailureReporter, TerminatingFailureReporter
from .hosts import parse_host, resolve_target
from .models import (
    ConnectionTarget,
    ConnectorPhase,
    Credentials,
    DriverGeneration,
    ErrorVisibility,
    TlsMaterial,
)
from .tls import ClientFlags, TlsProvisioner

__version__ = "0.1.0"

__all__ = [
    "ClientFlags",
    "ConnectDependencies",
    "ConnectionHandle",
    "ConnectionState",
    "ConnectionTarget",
    "Connector",
    "ConnectorPhase",
    "Credentials",
    "DriverError",
    "DriverGeneration",
    "ErrorVisibility",
    "FailureContext",
    "FailureReporter",
    "HandleStateError",
    "MySQLdbDriver",
    "PyMySQLDriver",
    "TerminatingFailureReporter",
    "TlsMaterial",
    "TlsProvisioner",
    "__version__",
    "parse_host",
    "register",
    "resolve_target",
]
