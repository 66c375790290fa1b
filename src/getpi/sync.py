"""
Sync orchestrator — one pass of primary -> secondaries replication.

    primary:    login -> download backup
    secondary:  login -> upload backup          (each host on its own)
    gravity:    primary, then every secondary   (only if updateGravity)

Primary failures end the pass and propagate. Secondary failures of any
kind are logged, recorded in the SyncReport, and never stop the next host.
Everything runs sequentially; hosts are never contacted in parallel.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Callable, Optional

from .crypto import TokenCipher
from .exceptions import BackupUnavailable, SyncCancelled
from .models import Host, HostRole, Operation, SyncConfig, SyncReport
from .session import HostSession

logger = logging.getLogger("getpi.sync")

SessionFactory = Callable[..., HostSession]


class SyncOrchestrator:
    """Runs synchronization passes for one configuration.

    Args:
        config: Hosts and options for the pass.
        cipher: Token cipher shared by every session.
        session_factory: Builds a HostSession; called as
            ``factory(host, cipher, backup_path=..., timeout=...)``.
            Defaults to HostSession.
        stop_event: When set, the pass stops before its next host operation.
    """

    def __init__(
        self,
        config: SyncConfig,
        cipher: TokenCipher,
        session_factory: Optional[SessionFactory] = None,
        stop_event: Optional[threading.Event] = None,
    ) -> None:
        self.config = config
        self._cipher = cipher
        self._session_factory = session_factory or HostSession
        self._stop_event = stop_event or threading.Event()
        self.last_report: Optional[SyncReport] = None

    def sync_once(self) -> SyncReport:
        """Run one full pass.

        Returns:
            The report of every host operation attempted.

        Raises:
            GetPiError: Primary login, download, or gravity failure,
                BackupUnavailable, or SyncCancelled. The partial report
                is still available as ``last_report``.
        """
        report = SyncReport()
        self.last_report = report
        primary = self.config.primary_host

        logger.info(
            "Starting sync pass: primary=%s secondaries=%d",
            primary.full_url,
            len(self.config.secondary_hosts),
        )

        try:
            primary_session = self._login(primary, HostRole.PRIMARY, report)
            try:
                backup = self._download(primary_session, report)

                if not backup:
                    logger.error("No backup data from %s, skipping upload to secondaries", primary.full_url)
                    raise BackupUnavailable(f"primary {primary.full_url} returned an empty backup")

                self._distribute(backup, report)

                if self.config.update_gravity:
                    self._gravity_everywhere(primary_session, report)
                else:
                    logger.info("Gravity update disabled, skipping")
            finally:
                primary_session.close()
        finally:
            report.finished_at = datetime.now(timezone.utc)

        logger.info(
            "Sync pass finished: %d operation(s), %d failure(s)",
            len(report.outcomes),
            len(report.failures()),
        )
        return report

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------

    def _download(self, session: HostSession, report: SyncReport) -> bytes:
        self._check_stop()
        try:
            backup = session.download_backup()
        except Exception as exc:
            report.record(session.host, HostRole.PRIMARY, Operation.DOWNLOAD, exc)
            logger.error("Failed to download backup from %s: %s", session.url, exc)
            raise
        report.record(session.host, HostRole.PRIMARY, Operation.DOWNLOAD)
        report.backup_size = len(backup)
        return backup

    def _distribute(self, backup: bytes, report: SyncReport) -> None:
        """Upload the backup to every secondary, one at a time."""
        self._on_secondaries(Operation.UPLOAD, lambda session: session.upload_backup(backup), report)

    def _gravity_everywhere(self, primary_session: HostSession, report: SyncReport) -> None:
        """Rebuild gravity on the primary, then on each secondary.

        A primary failure does not stop the secondaries; it is raised
        after they have all been attempted.
        """
        self._check_stop()
        primary_error: Optional[Exception] = None
        try:
            primary_session.update_gravity()
        except Exception as exc:
            report.record(primary_session.host, HostRole.PRIMARY, Operation.GRAVITY, exc)
            logger.error("Failed to update gravity on primary host %s: %s", primary_session.url, exc)
            primary_error = exc
        else:
            report.record(primary_session.host, HostRole.PRIMARY, Operation.GRAVITY)
            logger.info("Gravity updated on primary host %s", primary_session.url)

        self._on_secondaries(Operation.GRAVITY, lambda session: session.update_gravity(), report)

        if primary_error is not None:
            raise primary_error

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _login(self, host: Host, role: HostRole, report: SyncReport) -> HostSession:
        """Build a session for host and log in, recording the outcome."""
        self._check_stop()
        session = self._session_factory(
            host,
            self._cipher,
            backup_path=self.config.backup_path,
            timeout=self.config.timeout_seconds,
        )
        logger.info("Logging in to %s host %s", role.value, host.full_url)
        try:
            session.login()
        except Exception as exc:
            session.close()
            report.record(host, role, Operation.LOGIN, exc)
            logger.error("Failed to log in to %s host %s: %s", role.value, host.full_url, exc)
            raise
        report.record(host, role, Operation.LOGIN)
        return session

    def _on_secondaries(
        self,
        operation: Operation,
        action: Callable[[HostSession], object],
        report: SyncReport,
    ) -> None:
        """Log in to each secondary in turn and run action on it.

        Any error is recorded and logged per host; only SyncCancelled
        escapes the loop.
        """
        for host in self.config.secondary_hosts:
            try:
                with self._login(host, HostRole.SECONDARY, report) as session:
                    self._check_stop()
                    try:
                        action(session)
                    except Exception as exc:
                        report.record(host, HostRole.SECONDARY, operation, exc)
                        raise
                    report.record(host, HostRole.SECONDARY, operation)
            except SyncCancelled:
                raise
            except Exception as exc:
                logger.error(
                    "Failed %s on secondary host %s, moving on: %s",
                    operation.value,
                    host.full_url,
                    exc,
                )
                continue
            logger.info("Finished %s on secondary host %s", operation.value, host.full_url)

    def _check_stop(self) -> None:
        if self._stop_event.is_set():
            raise SyncCancelled("sync pass cancelled")


def sync_once(
    config: SyncConfig,
    cipher: TokenCipher,
    stop_event: Optional[threading.Event] = None,
) -> SyncReport:
    """Run a single pass with the default HostSession."""
    return SyncOrchestrator(config, cipher, stop_event=stop_event).sync_once()
