"""Tests for the bootstrap wiring and the probe entry point."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pymysql
import pytest

from mysqltls import app as app_module
from mysqltls.bootstrap import register
from mysqltls.config import AppConfig
from mysqltls.failures import FailureContext
from mysqltls.models import ConnectorPhase, DriverGeneration, TlsMaterial


class _Cursor:
    def execute(self, sql: str, args: Any = None) -> None:
        return None

    def fetchone(self) -> tuple[str]:
        return ("",)

    def close(self) -> None:
        return None


class _Connection:
    def get_server_info(self) -> str:
        return "8.0.36"

    def set_character_set(self, charset: str, collation: str | None = None) -> None:
        return None

    def select_db(self, db: str) -> None:
        return None

    def cursor(self) -> _Cursor:
        return _Cursor()

    def close(self) -> None:
        return None


def _refuse(**kwargs: Any) -> None:
    raise pymysql.err.OperationalError(2003, "Can't connect to MySQL server")


def _config_file(tmp_path: Path) -> Path:
    path = tmp_path / "config.toml"
    path.write_text(
        """
allow_legacy_fallback = false

[database]
user = "wp"
password = "secret"
name = "wordpress"
host = "db.internal"
"""
    )
    return path


def test_register_wires_tls_and_reporter(monkeypatch: pytest.MonkeyPatch, tls_material: TlsMaterial) -> None:
    captured: list[dict[str, Any]] = []

    def _connect(**kwargs: Any) -> _Connection:
        captured.append(kwargs)
        return _Connection()

    monkeypatch.setattr("mysqltls.drivers.pymysql.connect", _connect)
    config = AppConfig.model_validate(
        {
            "database": {"user": "wp", "password": "secret", "name": "wordpress", "host": "db:3307"},
            "tls": {
                "ca": tls_material.ca_path,
                "cert": tls_material.cert_path,
                "key": tls_material.key_path,
            },
        }
    )
    connector = register(config)

    assert connector.connect() is True
    assert connector.state.phase is ConnectorPhase.READY
    assert captured[0]["port"] == 3307
    assert "ssl" in captured[0]


def test_register_uses_supplied_reporter(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("mysqltls.drivers.pymysql.connect", _refuse)
    seen: list[FailureContext] = []

    class _Reporter:
        def report(self, context: FailureContext) -> None:
            seen.append(context)

    connector = register(AppConfig(allow_legacy_fallback=False), failure_reporter=_Reporter())

    assert connector.connect() is False
    assert len(seen) == 1
    assert connector.state.driver_generation is DriverGeneration.MODERN


def test_probe_reports_failure_quietly(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setattr("mysqltls.drivers.pymysql.connect", _refuse)

    exit_code = app_module.main(["--config", str(_config_file(tmp_path))])

    assert exit_code == 1
    out = capsys.readouterr()
    assert "phase=failed" in out.out
    assert "Error establishing" not in out.err


def test_probe_bail_exits_process(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setattr("mysqltls.drivers.pymysql.connect", _refuse)

    with pytest.raises(SystemExit) as excinfo:
        app_module.main(["--config", str(_config_file(tmp_path)), "--bail"])

    assert excinfo.value.code == 1
    assert "Error establishing a database connection" in capsys.readouterr().err


def test_probe_reports_ready(monkeypatch: pytest.MonkeyPatch, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    monkeypatch.setattr("mysqltls.drivers.pymysql.connect", lambda **kwargs: _Connection())

    exit_code = app_module.main(["--config", str(_config_file(tmp_path))])

    assert exit_code == 0
    assert "phase=ready driver=modern tls=off ready=true" in capsys.readouterr().out
