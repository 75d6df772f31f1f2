"""Shared fixtures for mysqltls tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from mysqltls.models import TlsMaterial

FIXTURES = Path(__file__).parent / "fixtures" / "tls"


@pytest.fixture
def tls_material() -> TlsMaterial:
    return TlsMaterial(
        ca_path=str(FIXTURES / "ca.pem"),
        cert_path=str(FIXTURES / "client-cert.pem"),
        key_path=str(FIXTURES / "client-key.pem"),
    )
