"""
Host session — one authenticated conversation with one Pi-hole.

A HostSession owns a requests.Session (and so the appliance's session
cookie), the TLS verification policy for that host, and the encrypted
token scraped from the login page. It drives four endpoints:

    POST {admin}/index.php?login                      -> login
    POST {admin}/scripts/pi-hole/php/teleporter.php   -> download / upload
    GET  {admin}/scripts/pi-hole/php/gravity.sh.php   -> gravity update

Lifecycle:
    UNAUTHENTICATED --login()--> AUTHENTICATED --token decrypt fails--> FAILED

There is no way back to UNAUTHENTICATED and no internal retrying; every
call makes exactly one request.
"""

from __future__ import annotations

import logging
import warnings
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Type

import requests
from bs4 import BeautifulSoup

from . import DEFAULT_BACKUP_FILE
from .crypto import TokenCipher
from .exceptions import (
    CipherError,
    DownloadFailed,
    GravityUpdateFailed,
    HostError,
    LoginFailed,
    NotAuthenticated,
    TokenNotFound,
    UploadFailed,
)
from .models import Host

logger = logging.getLogger("getpi.session")

LOGIN_ENDPOINT = "index.php?login"
TELEPORTER_ENDPOINT = "scripts/pi-hole/php/teleporter.php"
GRAVITY_ENDPOINT = "scripts/pi-hole/php/gravity.sh.php"

BACKUP_CONTENT_TYPE = "application/gzip"
UPLOAD_FIELD = "zip_file"
UPLOAD_FILENAME = "backup.tar.gz"
UPLOAD_SUCCESS_MARKERS = ("OK", "Done importing")

GRAVITY_STREAM_PREFIX = "\ndata:"
GRAVITY_SUCCESS_MARKER = "Pi-hole blocking is enabled"

DEFAULT_TIMEOUT = 30.0


class SessionState(str, Enum):
    """Where a HostSession is in its lifecycle."""

    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"
    FAILED = "failed"


def parse_token(html: str) -> str:
    """Pull the CSRF token out of the admin page's ``<div id="token">``.

    Returns:
        The token text, or "" when the element is missing or empty.
    """
    soup = BeautifulSoup(html, "html.parser")
    element = soup.select_one("div#token")
    if element is None:
        return ""
    return element.get_text(strip=True)


def clean_gravity_output(body: str) -> str:
    """Strip the server-sent-event framing from gravity.sh.php output."""
    return body.replace(GRAVITY_STREAM_PREFIX, "").strip()


def _silence_insecure_warnings() -> None:
    from urllib3.exceptions import InsecureRequestWarning

    warnings.filterwarnings("ignore", category=InsecureRequestWarning)


class HostSession:
    """Authenticated HTTP context for a single appliance.

    Args:
        host: The appliance to talk to.
        cipher: Seals the session token while it is held.
        backup_path: Where download_backup() writes the archive.
        timeout: Per-request timeout in seconds.
        http: Pre-built requests.Session (mainly for tests).
    """

    def __init__(
        self,
        host: Host,
        cipher: TokenCipher,
        backup_path: str | Path = DEFAULT_BACKUP_FILE,
        timeout: float = DEFAULT_TIMEOUT,
        http: Optional[requests.Session] = None,
    ) -> None:
        self.host = host
        self._cipher = cipher
        self._backup_path = Path(backup_path)
        self._timeout = timeout
        self._http = http if http is not None else requests.Session()
        self._http.verify = host.ssl_secure
        if not host.ssl_secure:
            _silence_insecure_warnings()
        self._token: Optional[str] = None
        self.state = SessionState.UNAUTHENTICATED

    @property
    def token(self) -> Optional[str]:
        """The encrypted session token, or None before login."""
        return self._token

    @property
    def is_authenticated(self) -> bool:
        return self.state is SessionState.AUTHENTICATED

    @property
    def url(self) -> str:
        return self.host.full_url

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "HostSession":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"HostSession({self.url!r}, state={self.state.value})"

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def login(self, insecure: bool = False) -> str:
        """Log in with the host password and capture the session token.

        Args:
            insecure: Skip TLS verification for this session even when
                the host is configured with sslSecure.

        Returns:
            The encrypted token.

        Raises:
            LoginFailed: Non-200 response or transport error.
            TokenNotFound: The response has no token element.
            InvalidKey: The cipher has no usable key.
        """
        if self.state is SessionState.FAILED:
            raise NotAuthenticated(f"session for {self.url} is no longer usable")

        if insecure and self._http.verify:
            self._http.verify = False
            _silence_insecure_warnings()

        login_url = self._endpoint(LOGIN_ENDPOINT)
        logger.info("Logging in to %s", login_url)

        resp = self._send(
            LoginFailed,
            "POST",
            login_url,
            data={"pw": self.host.password, "persistentlogin": "off"},
        )
        if resp.status_code != 200:
            raise LoginFailed(
                f"failed to log in: {resp.status_code} {resp.reason or ''}".strip(),
                host=self.url,
                status=resp.status_code,
                body=resp.text,
            )

        token = parse_token(resp.text)
        if not token:
            raise TokenNotFound(
                "token not found in login response",
                host=self.url,
                status=resp.status_code,
                body=resp.text,
            )

        self._token = self._cipher.encrypt(token)
        self.state = SessionState.AUTHENTICATED

        logger.info("Logged in to %s, token captured and encrypted", self.url)
        logger.debug("Cookies after login: %s", sorted(self._http.cookies.keys()))
        return self._token

    def download_backup(self) -> bytes:
        """Download the teleporter archive and save it to backup_path.

        Returns:
            The raw gzip bytes.

        Raises:
            NotAuthenticated: login() has not succeeded.
            DownloadFailed: Non-200, wrong content type, transport error,
                or the archive could not be written locally.
        """
        token = self._plain_token()
        backup_url = self._endpoint(TELEPORTER_ENDPOINT)
        logger.info("Downloading backup from %s", backup_url)

        resp = self._send(
            DownloadFailed,
            "POST",
            backup_url,
            data={"pw": self.host.password, "persistentlogin": "off", "token": token},
        )
        content_type = resp.headers.get("Content-Type", "")
        if resp.status_code != 200 or content_type != BACKUP_CONTENT_TYPE:
            raise DownloadFailed(
                f"failed to download backup (content type {content_type!r})",
                host=self.url,
                status=resp.status_code,
                body=resp.text,
            )

        data = resp.content
        if data:
            self._save_backup(data)
        else:
            logger.warning("Backup from %s is empty, keeping %s as is", self.url, self._backup_path)

        logger.info("Backup downloaded from %s (%d bytes)", self.url, len(data))
        return data

    def upload_backup(self, data: bytes) -> bool:
        """Upload a teleporter archive for import.

        Args:
            data: The archive bytes, sent verbatim.

        Returns:
            True on success.

        Raises:
            NotAuthenticated: login() has not succeeded.
            UploadFailed: Non-200, unexpected response text, or transport error.
        """
        token = self._plain_token()
        upload_url = self._endpoint(TELEPORTER_ENDPOINT)
        logger.info("Uploading backup to %s (%d bytes)", upload_url, len(data))
        logger.debug("Cookies before upload: %s", sorted(self._http.cookies.keys()))

        resp = self._send(
            UploadFailed,
            "POST",
            upload_url,
            data={"action": "in", "token": token},
            files={UPLOAD_FIELD: (UPLOAD_FILENAME, data, "application/octet-stream")},
        )
        text = resp.text
        if resp.status_code != 200 or not text.endswith(UPLOAD_SUCCESS_MARKERS):
            raise UploadFailed(
                "failed to upload backup",
                host=self.url,
                status=resp.status_code,
                body=text,
            )

        logger.info("Backup imported on %s", self.url)
        logger.debug("Import output from %s:\n%s", self.url, text)
        return True

    def update_gravity(self) -> bool:
        """Ask the appliance to rebuild its gravity database.

        Returns:
            True on success.

        Raises:
            NotAuthenticated: login() has not succeeded.
            GravityUpdateFailed: Non-200, missing confirmation, or transport error.
        """
        token = self._plain_token()
        update_url = self._endpoint(GRAVITY_ENDPOINT)
        logger.info("Updating gravity on %s", update_url)

        resp = self._send(GravityUpdateFailed, "GET", update_url, headers={"token": token})
        text = clean_gravity_output(resp.text)
        if resp.status_code != 200 or not text.endswith(GRAVITY_SUCCESS_MARKER):
            raise GravityUpdateFailed(
                "failed updating gravity",
                host=self.url,
                status=resp.status_code,
                body=text,
            )

        logger.info("Gravity updated on %s", self.url)
        logger.debug("Gravity output from %s:\n%s", self.url, text)
        return True

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _endpoint(self, endpoint: str) -> str:
        return f"{self.url}/{endpoint}"

    def _plain_token(self) -> str:
        """Decrypt the stored token for a single request.

        A decryption failure leaves the session FAILED for good.
        """
        if self.state is SessionState.FAILED:
            raise NotAuthenticated(f"session for {self.url} is no longer usable")
        if self.state is not SessionState.AUTHENTICATED or self._token is None:
            raise NotAuthenticated(f"not authenticated with {self.url}, login() first")
        try:
            return self._cipher.decrypt(self._token)
        except CipherError:
            self.state = SessionState.FAILED
            logger.error("Could not decrypt the session token for %s", self.url)
            raise

    def _send(
        self,
        error_cls: Type[HostError],
        method: str,
        url: str,
        **kwargs: Any,
    ) -> requests.Response:
        """Make one request, turning transport and encoding errors into error_cls.

        ValueError covers UnicodeEncodeError from header values that are
        not latin-1, such as a non-ASCII token.
        """
        try:
            return self._http.request(method, url, timeout=self._timeout, **kwargs)
        except (requests.RequestException, ValueError) as exc:
            raise error_cls(
                f"{error_cls.operation} request to {url} failed: {exc}",
                host=self.url,
            ) from exc

    def _save_backup(self, data: bytes) -> None:
        try:
            self._backup_path.parent.mkdir(parents=True, exist_ok=True)
            self._backup_path.write_bytes(data)
        except OSError as exc:
            raise DownloadFailed(
                f"error saving backup file {self._backup_path}: {exc}",
                host=self.url,
            ) from exc
        logger.info("Backup saved to %s", self._backup_path)
