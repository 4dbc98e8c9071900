"""
Bounded wait for a source's duration.

A freshly loaded source often reports no duration until its metadata
has been read. LOAD polls the duration oracle for a short while and
gives up after a timeout.

Between polls the wait runs a nested Qt event loop, so timers, signals
and position feeds on the calling thread keep being delivered. Any of
them, or another thread, can abort the wait through a
``threading.Event``.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

from PySide6.QtCore import QCoreApplication, QEventLoop, QTimer

logger = logging.getLogger("ScriptCut.Duration")

DurationOracle = Callable[[str], Optional[float]]


@dataclass
class DurationLookup:
    """Outcome of a duration wait."""
    duration: Optional[float] = None
    attempts: int = 0
    timed_out: bool = False
    cancelled: bool = False

    @property
    def resolved(self) -> bool:
        return self.duration is not None


def _query_once(query: DurationOracle, file_path: str) -> Optional[float]:
    try:
        value = query(file_path)
        if value is None:
            return None
        value = float(value)
    except Exception as e:
        logger.warning(f"Duration query failed for {file_path}: {e}")
        return None
    # Zero, negative and NaN all mean "not known yet"
    return value if value > 0 else None


def _pause(seconds: float, cancel_event: threading.Event) -> bool:
    """
    Yields to the Qt event loop for up to ``seconds``.

    Without an application instance there is no loop to serve, so this
    just waits on the event.

    Returns:
        True if the wait was cancelled
    """
    if QCoreApplication.instance() is None:
        return cancel_event.wait(seconds)

    loop = QEventLoop()
    timer = QTimer()
    timer.setSingleShot(True)
    timer.timeout.connect(loop.quit)
    timer.start(max(0, int(seconds * 1000)))
    loop.exec()
    timer.stop()
    return cancel_event.is_set()


def wait_for_duration(
    query: DurationOracle,
    file_path: str,
    timeout: float,
    poll_interval: float,
    cancel_event: Optional[threading.Event] = None
) -> DurationLookup:
    """
    Polls ``query(file_path)`` until it reports a positive duration.

    The oracle is asked at least once, even with a zero timeout or an
    event that was set before the call.

    Args:
        query: Duration oracle; may return None or 0 while unknown
        file_path: Source to ask about
        timeout: Maximum time to wait in seconds
        poll_interval: Delay between attempts in seconds
        cancel_event: Setting this event aborts the wait

    Returns:
        DurationLookup; ``duration`` is None when unresolved
    """
    if query is None:
        raise ValueError("A duration oracle is required")

    event = cancel_event if cancel_event is not None else threading.Event()
    deadline = time.monotonic() + max(0.0, timeout)
    attempts = 0

    while True:
        attempts += 1
        duration = _query_once(query, file_path)
        if duration is not None:
            return DurationLookup(duration=duration, attempts=attempts)

        if event.is_set():
            logger.info(f"Duration wait for {file_path} cancelled")
            return DurationLookup(attempts=attempts, cancelled=True)

        remaining = deadline - time.monotonic()
        if remaining <= 0:
            logger.warning(f"No duration for {file_path} after {attempts} attempt(s)")
            return DurationLookup(attempts=attempts, timed_out=True)

        if _pause(min(poll_interval, remaining), event):
            logger.info(f"Duration wait for {file_path} cancelled")
            return DurationLookup(attempts=attempts, cancelled=True)
