"""Tests for error formatting."""

from __future__ import annotations

from getpi.exceptions import (
    BODY_SNIPPET_LIMIT,
    GetPiError,
    HostError,
    UploadFailed,
)


def test_host_error_carries_details() -> None:
    exc = UploadFailed("failed to upload backup", host="http://h/admin", status=500, body="boom\n")
    assert exc.host == "http://h/admin"
    assert exc.status == 500
    assert str(exc) == "failed to upload backup | host=http://h/admin | status=500 | body='boom'"
    assert isinstance(exc, HostError)
    assert isinstance(exc, GetPiError)


def test_snippet_is_truncated() -> None:
    exc = HostError("x", body="a" * (BODY_SNIPPET_LIMIT + 50))
    assert len(exc.snippet) == BODY_SNIPPET_LIMIT + 3
    assert exc.snippet.endswith("...")


def test_no_status_when_transport_failed() -> None:
    assert "status=" not in str(HostError("connection refused", host="http://h/admin"))
