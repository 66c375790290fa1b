"""
Error hierarchy for getpi.

Everything raised on purpose derives from GetPiError so the run loop can
tell an expected failure (bad host, bad key, bad config) from a bug.

    GetPiError
    ├── ConfigError
    ├── CipherError
    │   ├── InvalidKey
    │   └── AuthenticationFailure
    ├── HostError
    │   ├── LoginFailed
    │   ├── TokenNotFound
    │   ├── DownloadFailed
    │   ├── UploadFailed
    │   └── GravityUpdateFailed
    ├── NotAuthenticated
    ├── BackupUnavailable
    └── SyncCancelled
"""

from __future__ import annotations

from typing import Optional

# Longest slice of a response body carried in an error message
BODY_SNIPPET_LIMIT = 500


class GetPiError(Exception):
    """Base class for all getpi errors."""


class ConfigError(GetPiError):
    """Configuration file is missing, unreadable, or invalid."""


class CipherError(GetPiError):
    """Token encryption or decryption failed."""


class InvalidKey(CipherError):
    """The encryption key is missing or does not decode to 32 bytes."""


class AuthenticationFailure(CipherError):
    """Ciphertext was tampered with, truncated, or encrypted under another key."""


class HostError(GetPiError):
    """An appliance answered an operation with something other than success.

    Args:
        message: What went wrong.
        host: Full admin URL of the appliance.
        status: HTTP status code, or None when no response was received.
        body: Response body (trimmed to a snippet for display).
    """

    operation = "request"

    def __init__(
        self,
        message: str,
        host: str = "",
        status: Optional[int] = None,
        body: str = "",
    ) -> None:
        self.host = host
        self.status = status
        self.body = body or ""
        super().__init__(message)

    @property
    def snippet(self) -> str:
        """Response body cut down to BODY_SNIPPET_LIMIT characters."""
        text = self.body.strip()
        if len(text) > BODY_SNIPPET_LIMIT:
            return text[:BODY_SNIPPET_LIMIT] + "..."
        return text

    def __str__(self) -> str:
        parts = [self.args[0] if self.args else self.operation]
        if self.host:
            parts.append(f"host={self.host}")
        if self.status is not None:
            parts.append(f"status={self.status}")
        if self.snippet:
            parts.append(f"body={self.snippet!r}")
        return " | ".join(parts)


class LoginFailed(HostError):
    operation = "login"


class TokenNotFound(HostError):
    operation = "login"


class DownloadFailed(HostError):
    operation = "download"


class UploadFailed(HostError):
    operation = "upload"


class GravityUpdateFailed(HostError):
    operation = "gravity"


class NotAuthenticated(GetPiError):
    """A session operation was attempted without a usable login."""


class BackupUnavailable(GetPiError):
    """The primary produced no backup bytes to distribute."""


class SyncCancelled(GetPiError):
    """The pass was stopped before its next host operation."""
