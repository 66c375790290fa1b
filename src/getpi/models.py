"""
Pydantic models for hosts, the sync configuration, and pass results.

Config keys keep the camelCase spelling of the JSON file
(``primaryhost``, ``secondaryHosts``, ``sslSecure`` ...) as aliases;
Python code uses the snake_case field names.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator

from . import DEFAULT_ADMIN_PATH, DEFAULT_BACKUP_FILE, DEFAULT_LOG_FILE
from .urls import normalize_url


class Host(BaseModel):
    """One Pi-hole appliance.

    ``full_url`` is computed once, when the model is built, from
    ``base_url`` and ``path``. Hosts are frozen so it cannot go stale.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    base_url: str = Field(alias="baseurl", min_length=1)
    password: str = Field(default="", repr=False)
    path: Optional[str] = DEFAULT_ADMIN_PATH
    ssl_secure: bool = Field(default=True, alias="sslSecure")

    _full_url: str = PrivateAttr(default="")

    @field_validator("base_url")
    @classmethod
    def _absolute_url(cls, value: str) -> str:
        value = value.strip()
        if not value.startswith(("http://", "https://")):
            raise ValueError(f"baseurl must be an absolute http(s) URL: {value!r}")
        return value

    def model_post_init(self, __context: Any) -> None:
        self._full_url = normalize_url(self.base_url, self.path)

    @property
    def full_url(self) -> str:
        return self._full_url


class SyncConfig(BaseModel):
    """Everything one run needs: the primary, the secondaries, and the schedule."""

    model_config = ConfigDict(populate_by_name=True)

    primary_host: Host = Field(alias="primaryhost")
    secondary_hosts: list[Host] = Field(default_factory=list, alias="secondaryHosts")
    update_gravity: bool = Field(default=False, alias="updateGravity")
    run_once: bool = Field(default=False, alias="runOnce")
    interval_minutes: int = Field(default=0, ge=0, alias="intervalMinutes")
    backup_path: str = Field(default=DEFAULT_BACKUP_FILE, alias="backupPath")
    timeout_seconds: float = Field(default=30.0, gt=0, alias="timeoutSeconds")
    log_file: str = Field(default=DEFAULT_LOG_FILE, alias="logFile")


class HostRole(str, Enum):
    """Which side of the sync a host is on."""

    PRIMARY = "primary"
    SECONDARY = "secondary"


class Operation(str, Enum):
    """Host operations recorded in a SyncReport."""

    LOGIN = "login"
    DOWNLOAD = "download"
    UPLOAD = "upload"
    GRAVITY = "gravity"


class HostOutcome(BaseModel):
    """Result of one operation against one host."""

    host: str
    role: HostRole
    operation: Operation
    success: bool
    error: Optional[str] = None
    at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class SyncReport(BaseModel):
    """Collected outcomes of a single synchronization pass."""

    started_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: Optional[datetime] = None
    backup_size: int = 0
    outcomes: list[HostOutcome] = Field(default_factory=list)

    def record(
        self,
        host: Host,
        role: HostRole,
        operation: Operation,
        error: Optional[BaseException] = None,
    ) -> HostOutcome:
        """Append an outcome; a None error means success."""
        outcome = HostOutcome(
            host=host.full_url,
            role=role,
            operation=operation,
            success=error is None,
            error=str(error) if error is not None else None,
        )
        self.outcomes.append(outcome)
        return outcome

    def attempts(self, operation: Operation, role: Optional[HostRole] = None) -> list[HostOutcome]:
        """Outcomes for one operation, optionally filtered by role."""
        return [
            o for o in self.outcomes
            if o.operation == operation and (role is None or o.role == role)
        ]

    def failures(self) -> list[HostOutcome]:
        return [o for o in self.outcomes if not o.success]

    @property
    def ok(self) -> bool:
        return not self.failures()
