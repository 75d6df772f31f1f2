"""Terminal connection failure reporting."""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from string import Template
from typing import Protocol, TextIO, runtime_checkable

LOG = logging.getLogger(__name__)

DEFAULT_MESSAGE = Template(
    """Error establishing a database connection

This either means that the username and password information in your
configuration is incorrect or that contact with the database server at
$host could not be established. This could mean the database server is down.

  * Are you sure you have the correct username and password?
  * Are you sure you have typed the correct hostname?
  * Are you sure the database server is running?
"""
)


@dataclass(frozen=True, slots=True)
class FailureContext:
    """What the connector knows when it gives up."""

    host: str
    database: str
    error: Exception | None = None


@runtime_checkable
class FailureReporter(Protocol):
    """Hook invoked once per terminal failure when bailing is allowed."""

    def report(self, context: FailureContext) -> None:
        """Present the failure; the default implementation ends the process."""


class TerminatingFailureReporter:
    """Writes an error page to a stream and exits the process."""

    def __init__(
        self,
        *,
        stream: TextIO | None = None,
        template_path: Path | None = None,
        exit_code: int = 1,
    ) -> None:
        self._stream = stream
        self._template_path = template_path
        self._exit_code = exit_code

    def render(self, context: FailureContext) -> str:
        template = DEFAULT_MESSAGE
        if self._template_path is not None and self._template_path.is_file():
            try:
                template = Template(self._template_path.read_text())
            except OSError:
                LOG.warning("Unable to read error template %s", self._template_path, exc_info=True)
        return template.safe_substitute(host=context.host, database=context.database)

    def report(self, context: FailureContext) -> None:
        LOG.critical(
            "Error establishing a database connection to %s: %s",
            context.host,
            context.error or "no handle available",
        )
        stream = self._stream or sys.stderr
        stream.write(self.render(context))
        stream.flush()
        raise SystemExit(self._exit_code)


__all__ = ["DEFAULT_MESSAGE", "FailureContext", "FailureReporter", "TerminatingFailureReporter"]
