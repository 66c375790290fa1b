"""Admin URL normalization for appliance hosts."""

from __future__ import annotations

import logging
import re
from typing import Optional

from . import DEFAULT_ADMIN_PATH

logger = logging.getLogger("getpi.urls")

# scheme://host[:port] followed by an optional path (query and fragment excluded)
_BASE_WITH_PATH = re.compile(r"^(https?://[^/\s?#]+)(/[^?#\s]*)?")


def trim_trailing_slash(value: str) -> str:
    """Strip every trailing slash from a URL or path."""
    return value.rstrip("/")


def determine_path(path: Optional[str] = None) -> str:
    """Return the configured admin path, or the default when none is given.

    None and "" are treated the same.
    """
    if path:
        return path
    return DEFAULT_ADMIN_PATH


def extract_included_path(base_url: str, path: str) -> tuple[str, str]:
    """Fold a path embedded in the base URL into the admin path.

    ``("http://host/pi/", "/admin/")`` becomes ``("http://host", "/pi/admin/")``.
    A base URL with no path (or only "/") is returned unchanged.

    Args:
        base_url: Base URL as written in the config.
        path: Admin path after defaulting.

    Returns:
        Tuple of (scheme+host, combined path).
    """
    match = _BASE_WITH_PATH.match(base_url.strip())
    if not match:
        return base_url, path

    origin, embedded = match.group(1), match.group(2)
    embedded = trim_trailing_slash(embedded or "")
    if not embedded:
        return origin, path

    if not path.startswith("/"):
        path = "/" + path
    # "http://host/admin" with the default path must not become /admin/admin
    if trim_trailing_slash(path) and embedded.endswith(trim_trailing_slash(path)):
        return origin, embedded
    return origin, embedded + path


def normalize_url(base_url: str, path: Optional[str] = None) -> str:
    """Build the canonical admin URL for a host.

    Examples:
        >>> normalize_url("http://10.0.0.5")
        'http://10.0.0.5/admin'
        >>> normalize_url("http://10.0.0.5/pi/", "/admin/")
        'http://10.0.0.5/pi/admin'

    Args:
        base_url: Appliance URL, optionally with a sub-path.
        path: Admin path. Defaults to /admin/.

    Returns:
        Absolute URL with no trailing slash.
    """
    admin_path = determine_path(path)
    origin, admin_path = extract_included_path(base_url, admin_path)

    admin_path = trim_trailing_slash(admin_path)
    if admin_path and not admin_path.startswith("/"):
        admin_path = "/" + admin_path

    full_url = trim_trailing_slash(origin) + admin_path
    logger.debug("Normalized %s + %s -> %s", base_url, path, full_url)
    return full_url
