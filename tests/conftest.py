"""Shared test fixtures for getpi."""

from __future__ import annotations

import base64
from pathlib import Path
from typing import Any, Optional
from unittest.mock import MagicMock

import pytest

from getpi.crypto import TokenCipher
from getpi.models import Host, SyncConfig

LOGIN_PAGE = """
<html>
  <body>
    <div id="token" hidden>s3cr3t-t0ken+/=</div>
    <div class="box">Pi-hole admin</div>
  </body>
</html>
"""


class FakeResponse:
    """Just enough of requests.Response for HostSession."""

    def __init__(
        self,
        status_code: int = 200,
        text: str = "",
        content: Optional[bytes] = None,
        headers: Optional[dict[str, str]] = None,
        reason: str = "OK",
    ) -> None:
        self.status_code = status_code
        self.text = text
        self.content = content if content is not None else text.encode("utf-8")
        self.headers = headers or {}
        self.reason = reason


def make_http(*responses: Any) -> MagicMock:
    """A mock requests.Session whose request() returns responses in order.

    An exception instance in responses is raised instead of returned.
    """
    http = MagicMock()
    http.verify = True
    http.request.side_effect = list(responses)
    return http


@pytest.fixture
def encryption_key() -> str:
    """A fixed, valid base64 256-bit key."""
    return base64.b64encode(bytes(range(32))).decode("ascii")


@pytest.fixture
def cipher(encryption_key: str) -> TokenCipher:
    return TokenCipher(encryption_key)


@pytest.fixture
def primary_host() -> Host:
    return Host(baseurl="http://10.0.0.2", password="primary-pw")


@pytest.fixture
def secondary_hosts() -> list[Host]:
    return [
        Host(baseurl="http://10.0.0.3", password="pw-3"),
        Host(baseurl="https://10.0.0.4/pi/", password="pw-4", sslSecure=False),
    ]


@pytest.fixture
def sync_config(primary_host: Host, secondary_hosts: list[Host], tmp_path: Path) -> SyncConfig:
    return SyncConfig(
        primaryhost=primary_host,
        secondaryHosts=secondary_hosts,
        updateGravity=True,
        runOnce=True,
        intervalMinutes=0,
        backupPath=str(tmp_path / "backup.gz"),
    )
