"""Tests for the failure reporter."""

from __future__ import annotations

import io
from pathlib import Path

import pytest

from mysqltls.drivers import DriverError
from mysqltls.failures import FailureContext, TerminatingFailureReporter


def test_reporter_writes_message_and_exits() -> None:
    stream = io.StringIO()
    reporter = TerminatingFailureReporter(stream=stream)

    with pytest.raises(SystemExit) as excinfo:
        reporter.report(FailureContext(host="db.internal:3307", database="wp", error=DriverError("refused")))

    assert excinfo.value.code == 1
    content = stream.getvalue()
    assert "Error establishing a database connection" in content
    assert "db.internal:3307" in content


def test_reporter_uses_custom_template(tmp_path: Path) -> None:
    template = tmp_path / "db-error.txt"
    template.write_text("Down for maintenance ($database on $host) $unknown")
    reporter = TerminatingFailureReporter(stream=io.StringIO(), template_path=template)

    rendered = reporter.render(FailureContext(host="db", database="shop"))

    assert rendered == "Down for maintenance (shop on db) $unknown"


def test_reporter_ignores_missing_template(tmp_path: Path) -> None:
    reporter = TerminatingFailureReporter(template_path=tmp_path / "absent.txt")

    assert "Error establishing a database connection" in reporter.render(FailureContext(host="db", database="x"))
