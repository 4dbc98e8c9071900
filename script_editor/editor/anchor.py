"""
Anchor Recorder

Two-click range capture. The first trigger pins the current playback
position as the pivot; while recording, position updates stretch a
preview range from the pivot; the second trigger confirms the range and
returns to idle. The confirmed range is then rendered as script text and
inserted at the editor cursor.

States:
    Idle ──trigger──> Recording ──trigger/confirm──> Idle
                          └──────────cancel─────────┘
"""

import logging
from typing import Optional, Tuple

from PySide6.QtCore import QObject, Signal

from script_editor.models.commands import CommandType, EditCommand
from script_editor.parsing.scene_parser import build_scene_separator
from script_editor.parsing.timecode import format_timecode, format_short_time

logger = logging.getLogger("ScriptCut.Anchor")

IDLE_STATUS = "Set anchor"


class AnchorRecorder(QObject):
    """
    Signals:
        recording_changed(bool)
        preview_range_changed(object): (start, end) tuple, or None when idle
        range_confirmed(float, float)
    """

    recording_changed = Signal(bool)
    preview_range_changed = Signal(object)
    range_confirmed = Signal(float, float)

    def __init__(self, parent: Optional[QObject] = None):
        super().__init__(parent)
        self._pivot: Optional[float] = None
        self._preview: Optional[Tuple[float, float]] = None
        self._feed = None

    @property
    def is_recording(self) -> bool:
        return self._pivot is not None

    @property
    def pivot_time(self) -> Optional[float]:
        return self._pivot

    @property
    def preview_range(self) -> Optional[Tuple[float, float]]:
        return self._preview

    @property
    def status_text(self) -> str:
        if self._pivot is None:
            return IDLE_STATUS
        return f"Recording... pivot {format_short_time(self._pivot)}"

    def trigger(self, position: float) -> Optional[Tuple[float, float]]:
        """
        Handles an anchor click.

        Returns:
            None on the first click; the confirmed (start, end) on the second
        """
        if self._pivot is None:
            self._pivot = position
            logger.debug(f"Anchor pivot set at {format_timecode(position)}")
            self._set_preview((position, position))
            self.recording_changed.emit(True)
            return None
        return self.confirm(position)

    def update_position(self, position: float) -> Optional[Tuple[float, float]]:
        """Recomputes the preview range while recording; ignored when idle."""
        if self._pivot is None:
            return None
        self._set_preview(self._ordered(position))
        return self._preview

    def confirm(self, position: float) -> Tuple[float, float]:
        """
        Finishes recording and returns the normalized range.

        When idle there is nothing to confirm; the zero-length range at
        ``position`` is returned and the state is left alone.
        """
        if self._pivot is None:
            return position, position

        start, end = self._ordered(position)
        self._reset()
        logger.info(f"Anchor range confirmed: {format_timecode(start)} -> {format_timecode(end)}")
        self.range_confirmed.emit(start, end)
        return start, end

    def cancel(self) -> None:
        if self._pivot is not None:
            self._reset()

    def attach_position_feed(self, signal) -> None:
        """Follows a Qt signal that carries the current position in seconds."""
        self.detach_position_feed()
        signal.connect(self.update_position)
        self._feed = signal

    def detach_position_feed(self) -> None:
        if self._feed is not None:
            self._feed.disconnect(self.update_position)
            self._feed = None

    def _ordered(self, position: float) -> Tuple[float, float]:
        return min(self._pivot, position), max(self._pivot, position)

    def _set_preview(self, preview: Optional[Tuple[float, float]]) -> None:
        if preview != self._preview:
            self._preview = preview
            self.preview_range_changed.emit(preview)

    def _reset(self) -> None:
        self._pivot = None
        self._set_preview(None)
        self.recording_changed.emit(False)


def build_range_command(start: float, end: float, kind: str = "scene") -> str:
    """
    Renders a confirmed range as script text.

    Args:
        start: Range start in seconds
        end: Range end in seconds
        kind: "scene" for a scene separator, "CUT" for a pair of cuts, or
            one of HIDE/SHOW/DELETE/MERGE

    Returns:
        One or more lines, without a trailing newline
    """
    name = kind.strip().upper()
    if name == "SCENE":
        return build_scene_separator(start, end)
    if name == CommandType.CUT.value:
        return f"{EditCommand.cut(start).to_script()}\n{EditCommand.cut(end).to_script()}"
    try:
        command_type = CommandType(name)
    except ValueError:
        raise ValueError(f"Unknown range command kind: {kind}")
    return EditCommand.ranged(command_type, start, end).to_script()


def insert_at_cursor(text: str, cursor: int, snippet: str) -> Tuple[str, int]:
    """
    Inserts a snippet on its own line at a cursor offset.

    The offset is clamped to the text. A newline is added before the
    snippet when the cursor is mid-line and after it when text follows.

    Returns:
        (new_text, cursor offset just past the inserted snippet)
    """
    cursor = max(0, min(cursor, len(text)))
    prefix = "\n" if cursor > 0 and text[cursor - 1] != "\n" else ""
    suffix = "\n" if cursor < len(text) and text[cursor] != "\n" else ""
    inserted = prefix + snippet + suffix
    return text[:cursor] + inserted + text[cursor:], cursor + len(prefix) + len(snippet)
