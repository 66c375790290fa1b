"""
Run loop — one pass, or a pass every intervalMinutes until stopped.

In single-pass mode the pass error propagates so the caller can exit
non-zero. In repeating mode a failed pass is logged and the loop sleeps
until the next one; SIGTERM/SIGINT set the stop event, which also
interrupts the sleep and any pass in progress between host operations.
"""

from __future__ import annotations

import logging
import signal
import threading
from pathlib import Path
from typing import Callable, Optional

from . import __version__
from .crypto import TokenCipher
from .exceptions import SyncCancelled
from .models import SyncConfig, SyncReport
from .sync import SyncOrchestrator

logger = logging.getLogger("getpi.runner")

LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"

ReportCallback = Callable[[SyncReport], None]


def setup_logging(log_file: Optional[str | Path] = None, verbose: bool = False) -> None:
    """Send log records to a file.

    Args:
        log_file: Log file path; None leaves handlers untouched.
        verbose: Log at DEBUG instead of INFO.
    """
    root = logging.getLogger()
    root.setLevel(logging.DEBUG if verbose else logging.INFO)
    if log_file is None:
        return

    path = Path(log_file).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)


def install_signal_handlers(stop_event: threading.Event) -> None:
    """Stop the loop on SIGTERM or SIGINT."""

    def _handle_signal(signum, frame):
        logger.info("Received signal %s, stopping", signal.Signals(signum).name)
        stop_event.set()

    for sig in (signal.SIGTERM, signal.SIGINT):
        signal.signal(sig, _handle_signal)


def run(
    config: SyncConfig,
    cipher: TokenCipher,
    stop_event: Optional[threading.Event] = None,
    on_report: Optional[ReportCallback] = None,
) -> int:
    """Run passes according to config.run_once / config.interval_minutes.

    Args:
        config: Validated configuration.
        cipher: Token cipher for every session.
        stop_event: Ends the repeating loop when set.
        on_report: Called with each pass's report, failed passes included.

    Returns:
        Number of passes started.

    Raises:
        GetPiError: In single-pass mode, whatever the pass raised.
    """
    stop = stop_event or threading.Event()
    orchestrator = SyncOrchestrator(config, cipher, stop_event=stop)
    logger.info("getpi %s starting (run_once=%s)", __version__, config.run_once)

    if config.run_once:
        try:
            orchestrator.sync_once()
        finally:
            _emit(orchestrator, on_report)
        return 1

    interval = config.interval_minutes * 60
    if interval == 0:
        logger.warning("intervalMinutes is 0, passes will run back to back")

    passes = 0
    while not stop.is_set():
        passes += 1
        try:
            orchestrator.sync_once()
        except SyncCancelled:
            logger.info("Pass %d cancelled", passes)
            _emit(orchestrator, on_report)
            break
        except Exception as exc:
            logger.exception("Error during sync: %s", exc)
        _emit(orchestrator, on_report)

        if stop.wait(timeout=interval):
            break
        logger.info("Waited %d minute(s), starting the next pass", config.interval_minutes)

    logger.info("Run loop stopped after %d pass(es)", passes)
    return passes


def _emit(orchestrator: SyncOrchestrator, on_report: Optional[ReportCallback]) -> None:
    if on_report is not None and orchestrator.last_report is not None:
        on_report(orchestrator.last_report)
