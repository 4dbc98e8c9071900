"""Timer-driven coalescing of text edits into discrete commits."""

import logging
from typing import Optional

from PySide6.QtCore import QObject, QTimer, Signal

import config

logger = logging.getLogger("ScriptCut.Debounce")


class TextCommitQueue(QObject):
    """
    Buffers the latest submitted text and emits it once edits pause.

    Every ``submit`` restarts a single-shot timer; only the text present
    when the timer fires is committed. ``flush`` commits immediately.

    Signals:
        committed(str)
    """

    committed = Signal(str)

    def __init__(self, delay_ms: int = config.TEXT_DEBOUNCE_MS, parent: Optional[QObject] = None):
        super().__init__(parent)
        self._pending: Optional[str] = None
        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.setInterval(max(0, int(delay_ms)))
        self._timer.timeout.connect(self.flush)

    @property
    def delay_ms(self) -> int:
        return self._timer.interval()

    @property
    def pending(self) -> Optional[str]:
        return self._pending

    def submit(self, text: str) -> None:
        self._pending = text
        self._timer.start()

    def flush(self) -> bool:
        """Commits the pending text now. Returns False if nothing was pending."""
        self._timer.stop()
        if self._pending is None:
            return False
        text, self._pending = self._pending, None
        logger.debug(f"Committing {len(text)} characters")
        self.committed.emit(text)
        return True

    def cancel(self) -> None:
        self._timer.stop()
        self._pending = None
