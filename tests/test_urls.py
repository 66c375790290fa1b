"""Tests for admin URL normalization."""

from __future__ import annotations

import pytest

from getpi.urls import (
    determine_path,
    extract_included_path,
    normalize_url,
    trim_trailing_slash,
)


class TestNormalizeUrl:

    @pytest.mark.parametrize(
        "base, path, expected",
        [
            ("http://10.0.0.5", None, "http://10.0.0.5/admin"),
            ("http://10.0.0.5", "", "http://10.0.0.5/admin"),
            ("http://10.0.0.5/", None, "http://10.0.0.5/admin"),
            ("http://10.0.0.5/pi/", "/admin/", "http://10.0.0.5/pi/admin"),
            ("https://dns.example.com/sub/", "", "https://dns.example.com/sub/admin"),
            ("https://dns.example.com:8443", "/custom/", "https://dns.example.com:8443/custom"),
            ("http://10.0.0.5", "admin", "http://10.0.0.5/admin"),
            ("http://10.0.0.5/admin/", None, "http://10.0.0.5/admin"),
        ],
    )
    def test_normalize(self, base: str, path, expected: str) -> None:
        assert normalize_url(base, path) == expected

    def test_no_trailing_slash(self) -> None:
        assert not normalize_url("http://h///", "/x///").endswith("/")

    def test_no_double_slash_after_scheme(self) -> None:
        url = normalize_url("http://h/a/", "/b/")
        assert "//" not in url.split("://", 1)[1]


class TestHelpers:

    def test_determine_path_default(self) -> None:
        assert determine_path(None) == "/admin/"
        assert determine_path("") == "/admin/"

    def test_determine_path_explicit(self) -> None:
        assert determine_path("/pihole/") == "/pihole/"

    def test_extract_included_path(self) -> None:
        assert extract_included_path("http://h/pi/", "/admin/") == ("http://h", "/pi/admin/")

    def test_extract_without_embedded_path(self) -> None:
        assert extract_included_path("http://h", "/admin/") == ("http://h", "/admin/")

    def test_trim_trailing_slash(self) -> None:
        assert trim_trailing_slash("/admin/") == "/admin"
        assert trim_trailing_slash("/admin") == "/admin"
