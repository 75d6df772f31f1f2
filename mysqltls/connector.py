"""Connection establishment with TLS provisioning and legacy fallback."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, Mapping

from .drivers import ConnectionHandle, Driver, DriverError, LiveConnection
from .failures import FailureContext, FailureReporter
from .hosts import resolve_target
from .models import ConnectorPhase, Credentials, DriverGeneration, ErrorVisibility, TlsMaterial
from .session import (
    CharsetChoice,
    SessionSettings,
    apply_charset,
    apply_sql_mode,
    negotiate_charset,
    select_database,
)
from .tls import ClientFlags, TlsProvisioner

LOG = logging.getLogger(__name__)


class ConnectionState:
    """Mutable state of the one database handle a process owns.

    ``has_connected_successfully`` only ever goes from false to true, and the
    driver generation can be downgraded to legacy once.
    """

    def __init__(self, *, client_flags: int | None = None) -> None:
        self._driver_generation = DriverGeneration.MODERN
        self._has_connected = False
        self._handle: ConnectionHandle | None = None
        self.client_flags = ClientFlags(client_flags)
        self.charset: CharsetChoice | None = None
        self.phase = ConnectorPhase.DISCONNECTED
        self.ready = False

    @property
    def driver_generation(self) -> DriverGeneration:
        return self._driver_generation

    @property
    def has_connected_successfully(self) -> bool:
        return self._has_connected

    @property
    def handle(self) -> ConnectionHandle | None:
        return self._handle

    def mark_connected(self) -> None:
        self._has_connected = True

    def downgrade_to_legacy(self) -> None:
        if self._driver_generation is DriverGeneration.LEGACY:
            raise RuntimeError("Driver generation is already legacy.")
        self._driver_generation = DriverGeneration.LEGACY

    def replace_handle(self, handle: ConnectionHandle | None) -> None:
        """Close the current handle, then take ownership of ``handle``."""

        previous, self._handle = self._handle, None
        if previous is not None and previous is not handle:
            previous.close()
        self._handle = handle


@dataclass(frozen=True, slots=True)
class ConnectDependencies:
    """Everything a connector needs from the host application."""

    credentials: Credentials
    drivers: Mapping[DriverGeneration, Driver]
    provisioner: TlsProvisioner
    failure_reporter: FailureReporter
    tls_material: TlsMaterial | None = None
    session: SessionSettings = field(default_factory=SessionSettings)
    allow_legacy_fallback: bool = True
    visibility: ErrorVisibility = ErrorVisibility.PRODUCTION


class Connector:
    """Opens the process database handle, falling back to the legacy driver once."""

    def __init__(self, state: ConnectionState, dependencies: ConnectDependencies) -> None:
        self._state = state
        self._deps = dependencies
        self._lock = threading.Lock()
        self._last_error: Exception | None = None

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def connection(self) -> LiveConnection | None:
        handle = self._state.handle
        return handle.connection if handle else None

    @property
    def last_error(self) -> Exception | None:
        return self._last_error

    def connect(self, allow_bail: bool = True) -> bool:
        """Connect and select the configured database.

        Returns ``True`` when a transport connection was made; ``state.ready``
        tells whether charset, SQL mode and schema selection also succeeded.
        On terminal failure the failure reporter runs when ``allow_bail`` is
        set, and ``False`` is returned.
        """

        with self._lock:
            self._state.ready = False
            handle = self._attempt()
            if handle is None and self._fallback_eligible():
                self._state.phase = ConnectorPhase.CONNECTING_LEGACY_FALLBACK
                LOG.info("Modern driver failed before any connection; retrying with the legacy driver")
                self._state.downgrade_to_legacy()
                handle = self._attempt()

            if handle is None:
                self._state.phase = ConnectorPhase.FAILED
                if allow_bail:
                    self._deps.failure_reporter.report(
                        FailureContext(
                            host=self._deps.credentials.host,
                            database=self._deps.session.database,
                            error=self._last_error,
                        )
                    )
                return False

            self._state.phase = ConnectorPhase.CONNECTED
            first_connection = not self._state.has_connected_successfully
            self._state.mark_connected()
            if self._initialise(handle, first_connection):
                self._state.ready = True
                self._state.phase = ConnectorPhase.READY
            return True

    def close(self) -> None:
        """Release the handle; the connected-once flag is kept."""

        with self._lock:
            self._state.replace_handle(None)
            self._state.ready = False
            self._state.phase = ConnectorPhase.DISCONNECTED

    def _attempt(self) -> ConnectionHandle | None:
        state = self._state
        generation = state.driver_generation
        state.phase = ConnectorPhase.CONNECTING
        state.replace_handle(None)

        driver = self._deps.drivers.get(generation)
        if driver is None or not driver.available():
            self._last_error = DriverError(f"No {generation.value} driver is available")
            return None

        handle = ConnectionHandle(generation)
        state.replace_handle(handle)
        target = resolve_target(
            self._deps.credentials.host,
            generation,
            bracket_ipv6=driver.brackets_ipv6(),
        )
        if generation is DriverGeneration.MODERN and driver.supports_tls:
            self._deps.provisioner.configure(handle, self._deps.tls_material)

        try:
            driver.connect(handle, target, self._deps.credentials, state.client_flags.value)
        except DriverError as exc:
            handle.error = exc
            self._last_error = exc
            self._log_driver_error("Connect with the %s driver failed", generation.value)
            state.replace_handle(None)
            return None
        self._last_error = None
        LOG.debug(
            "Connected to %s with the %s driver (tls=%s)",
            target.host,
            generation.value,
            handle.encrypted,
        )
        return handle

    def _fallback_eligible(self) -> bool:
        if self._state.driver_generation is not DriverGeneration.MODERN:
            return False
        if self._state.has_connected_successfully:
            return False
        if not self._deps.allow_legacy_fallback:
            return False
        legacy = self._deps.drivers.get(DriverGeneration.LEGACY)
        return legacy is not None and legacy.available()

    def _initialise(self, handle: ConnectionHandle, first_connection: bool) -> bool:
        connection = handle.connection
        if connection is None:
            return False
        settings = self._deps.session

        negotiated = True
        if first_connection or self._state.charset is None:
            try:
                self._state.charset = negotiate_charset(connection, settings)
            except Exception:
                LOG.warning("Charset negotiation failed; using the configured charset", exc_info=True)
                self._state.charset = CharsetChoice(settings.charset or None, settings.collation or None)
                negotiated = False
        charset = self._state.charset

        results = [
            negotiated,
            self._step("charset", lambda: apply_charset(connection, charset)),
            self._step("sql mode", lambda: apply_sql_mode(connection, settings.incompatible_modes)),
            self._step("schema selection", lambda: select_database(connection, settings.database)),
        ]
        return all(results)

    def _step(self, name: str, step: Callable[[], None]) -> bool:
        # Error types differ per driver generation.
        try:
            step()
        except Exception:
            LOG.warning("Database %s failed", name, exc_info=True)
            return False
        return True

    def _log_driver_error(self, message: str, *args: object) -> None:
        if self._deps.visibility is ErrorVisibility.DEBUG:
            LOG.warning(message, *args, exc_info=self._last_error)
        else:
            LOG.debug(message + ": %s", *args, self._last_error)


__all__ = ["ConnectDependencies", "ConnectionState", "Connector"]
