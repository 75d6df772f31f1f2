"""Process start-up wiring for the database connector."""

from __future__ import annotations

import logging
from typing import TextIO

from .config import AppConfig, load_config
from .connector import ConnectDependencies, ConnectionState, Connector
from .drivers import MySQLdbDriver, PyMySQLDriver
from .failures import FailureReporter, TerminatingFailureReporter
from .models import DriverGeneration
from .tls import TlsProvisioner

LOG = logging.getLogger(__name__)


def register(
    config: AppConfig | None = None,
    *,
    failure_reporter: FailureReporter | None = None,
    stream: TextIO | None = None,
) -> Connector:
    """Build the connector that owns this process's database handle.

    Called once at start-up. The caller keeps the returned instance and hands
    it to whatever needs the database.
    """

    config = config or load_config()
    state = ConnectionState(client_flags=config.client_flags)
    provisioner = TlsProvisioner(
        state.client_flags,
        verify_server_cert=config.tls.verify_server_cert,
        visibility=config.visibility,
    )
    reporter = failure_reporter or TerminatingFailureReporter(
        stream=stream,
        template_path=config.error_template,
    )
    drivers = {
        DriverGeneration.MODERN: PyMySQLDriver(
            connect_timeout=config.connect_timeout,
            bracket_ipv6=config.bracket_ipv6,
        ),
        DriverGeneration.LEGACY: MySQLdbDriver(connect_timeout=config.connect_timeout),
    }
    material = config.tls.material()
    if material is None and any((config.tls.ca, config.tls.cert, config.tls.key)):
        LOG.info("Incomplete TLS material configured; connecting without TLS")

    dependencies = ConnectDependencies(
        credentials=config.credentials(),
        drivers=drivers,
        provisioner=provisioner,
        failure_reporter=reporter,
        tls_material=material,
        session=config.session_settings(),
        allow_legacy_fallback=config.allow_legacy_fallback,
        visibility=config.visibility,
    )
    return Connector(state, dependencies)


__all__ = ["register"]
