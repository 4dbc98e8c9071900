"""
Command Executor

Applies parsed EditCommands to a VideoSegmentStore.

Each command either succeeds and reports the segment ids it touched, or
fails with a readable reason. Failures are local: a batch always runs
every command and collects the outcomes in a CommandExecutionReport.

Usage:
    store = VideoSegmentStore()
    executor = CommandExecutor(store, base_dir="/videos")
    report = executor.execute_all(parse_commands(body))
    for message in report.error_messages:
        print(message)
"""

import logging
import os
import threading
from dataclasses import replace
from typing import Callable, List, Optional, Iterable

import config
from script_editor.models.commands import (
    CommandType, EditCommand, CommandResult, CommandExecutionReport
)
from script_editor.models.project import VideoSegment, SegmentState
from script_editor.parsing.timecode import format_timecode
from script_editor.timeline.duration import DurationOracle, wait_for_duration
from script_editor.timeline.segment_store import VideoSegmentStore
from shared.ffmpeg_utils import probe_duration

logger = logging.getLogger("ScriptCut.Executor")

# Absorbs float noise in the cut margin comparison
_EPSILON = 1e-9


class CommandError(Exception):
    """A command could not be applied. The message is shown to the user."""
    pass


def default_file_exists(path: str) -> bool:
    return os.path.isfile(path) and os.access(path, os.R_OK)


class CommandExecutor:
    """
    Interprets edit commands against a segment store.

    Collaborators are plain callables so tests and hosts can swap them:

    Args:
        store: Segment store to mutate
        duration_oracle: ``f(path) -> seconds or None``; defaults to FFprobe
        file_exists: ``f(path) -> bool``; defaults to an isfile/readable check
        base_dir: Directory relative LOAD paths are resolved against
        fallback_duration: Length used when the oracle never answers
        wait_timeout: Maximum seconds to wait for a duration
        poll_interval: Seconds between duration queries
        cut_margin: Minimum distance of a cut from either segment edge
    """

    def __init__(
        self,
        store: VideoSegmentStore,
        duration_oracle: Optional[DurationOracle] = None,
        file_exists: Optional[Callable[[str], bool]] = None,
        base_dir: Optional[str] = None,
        fallback_duration: float = config.LOAD_FALLBACK_DURATION,
        wait_timeout: float = config.DURATION_WAIT_TIMEOUT,
        poll_interval: float = config.DURATION_POLL_INTERVAL,
        cut_margin: float = config.CUT_MARGIN
    ):
        if store is None:
            raise ValueError("CommandExecutor requires a segment store")
        if fallback_duration <= 0:
            raise ValueError("fallback_duration must be positive")

        self.store = store
        self.duration_oracle = duration_oracle or probe_duration
        self.file_exists = file_exists or default_file_exists
        self.base_dir = base_dir
        self.fallback_duration = fallback_duration
        self.wait_timeout = wait_timeout
        self.poll_interval = poll_interval
        self.cut_margin = cut_margin

        self._cancel_event = threading.Event()
        self._handlers = {
            CommandType.LOAD: self._load,
            CommandType.CUT: self._cut,
            CommandType.HIDE: self._hide,
            CommandType.SHOW: self._show,
            CommandType.DELETE: self._delete,
            CommandType.MERGE: self._merge,
            CommandType.SPEED: self._speed,
        }

    # --- Public API ---

    def execute(self, command: EditCommand) -> CommandResult:
        """Runs one command and converts a CommandError into a failed result."""
        if command is None:
            raise ValueError("command must not be None")

        handler = self._handlers[command.type]
        try:
            affected = handler(command)
        except CommandError as e:
            where = f" (line {command.line_number})" if command.line_number else ""
            logger.warning(f"{command.type.value} failed{where}: {e}")
            return CommandResult.fail(command, str(e))

        logger.debug(f"{command.to_script()} -> segments {affected}")
        return CommandResult.ok(command, *affected)

    def execute_all(self, commands: Iterable[EditCommand]) -> CommandExecutionReport:
        """Runs every command in order. A failure never stops the batch."""
        report = CommandExecutionReport()
        for command in commands:
            report.add(self.execute(command))

        logger.info(
            f"Executed {report.total_commands} command(s): "
            f"{report.success_count} ok, {report.failure_count} failed"
        )
        return report

    def cancel_wait(self) -> None:
        """
        Aborts a LOAD that is waiting for its duration.

        Callable from a timer or signal handler on the waiting thread, which
        keeps running its event loop during the wait, or from another thread.
        The segment is still created, with the fallback duration.
        """
        self._cancel_event.set()

    def reconcile_duration(self, file_path: str, duration: float) -> List[int]:
        """
        Applies a late-arriving duration to provisional LOAD segments.

        A provisional segment ends where the source ran out under the
        fallback length, so its end moves by ``duration - fallback_duration``.
        This also holds for the tail piece of a cut provisional segment.
        Segments that start at or after its old end are shifted by the same
        difference so the timeline stays contiguous. A cut tail that lies
        entirely past the real end of the source is removed.

        Returns:
            Ids of the segments whose length was corrected or removed
        """
        if duration is None or duration <= 0:
            raise ValueError("duration must be positive")

        path = self.resolve_path(file_path)
        pending = [s.id for s in self.store.segments
                   if s.duration_provisional and s.video_file_path == path]

        for segment_id in pending:
            segment = self.store.get_by_id(segment_id)
            old_end = segment.end_time
            delta = duration - self.fallback_duration
            past_source_end = old_end + delta <= segment.start_time + _EPSILON
            if past_source_end:
                delta = segment.start_time - old_end

            for later in self.store.segments:
                if later.id != segment_id and later.start_time >= old_end - _EPSILON:
                    self.store.update(replace(
                        later,
                        start_time=later.start_time + delta,
                        end_time=later.end_time + delta
                    ))

            if past_source_end:
                self.store.remove(segment_id)
                logger.warning(f"Segment {segment_id} removed: source ends before it starts")
            else:
                self.store.update(replace(segment, end_time=old_end + delta, duration_provisional=False))
                logger.info(f"Segment {segment_id} end corrected to {format_timecode(old_end + delta)}")

        return pending

    def resolve_path(self, file_path: str) -> str:
        path = os.path.expanduser(file_path)
        if self.base_dir and not os.path.isabs(path):
            path = os.path.normpath(os.path.join(self.base_dir, path))
        return path

    # --- Command handlers ---

    def _load(self, command: EditCommand) -> List[int]:
        path = self.resolve_path(command.file_path)
        if not self.file_exists(path):
            raise CommandError(f"File not found: {path}")

        try:
            lookup = wait_for_duration(
                self.duration_oracle, path,
                timeout=self.wait_timeout,
                poll_interval=self.poll_interval,
                cancel_event=self._cancel_event
            )
        finally:
            self._cancel_event.clear()

        if lookup.resolved:
            duration, provisional = lookup.duration, False
        else:
            duration, provisional = self.fallback_duration, True
            logger.warning(f"Using fallback duration {duration:.1f}s for {path}")

        start = self.store.max_end_time()
        segment = VideoSegment(
            start_time=start,
            end_time=start + duration,
            video_file_path=path,
            duration_provisional=provisional
        )
        return [self.store.add(segment)]

    def _cut(self, command: EditCommand) -> List[int]:
        at = command.time
        segment = self.store.get_at_time(at)
        if segment is None:
            raise CommandError(f"No segment at {format_timecode(at)}")

        margin = self.cut_margin - _EPSILON
        if at - segment.start_time < margin or segment.end_time - at < margin:
            raise CommandError(
                f"Cut at {format_timecode(at)} is within {self.cut_margin:g}s of a segment boundary"
            )

        self.store.remove(segment.id)
        shared = dict(
            video_file_path=segment.video_file_path,
            visible=segment.visible,
            state=SegmentState.STOPPED,
            speed_rate=segment.speed_rate
        )
        first = VideoSegment(start_time=segment.start_time, end_time=at,
                             thumbnail=segment.thumbnail, **shared)
        # The tail still ends where the source ends
        second = VideoSegment(start_time=at, end_time=segment.end_time,
                              duration_provisional=segment.duration_provisional, **shared)
        return [self.store.add(first), self.store.add(second)]

    def _overlapping(self, command: EditCommand) -> List[VideoSegment]:
        start, end = command.start_time, command.end_time
        span = f"{format_timecode(start)} {format_timecode(end)}"
        if end <= start:
            raise CommandError(f"Invalid range {span}: end must be after start")
        segments = self.store.get_by_time_range(start, end)
        if not segments:
            raise CommandError(f"No segments in range {span}")
        return segments

    def _hide(self, command: EditCommand) -> List[int]:
        affected = []
        for segment in self._overlapping(command):
            self.store.update(replace(segment, visible=False, state=SegmentState.HIDDEN))
            affected.append(segment.id)
        return affected

    def _show(self, command: EditCommand) -> List[int]:
        affected = []
        for segment in self._overlapping(command):
            self.store.update(replace(segment, visible=True, state=SegmentState.STOPPED))
            affected.append(segment.id)
        return affected

    def _delete(self, command: EditCommand) -> List[int]:
        affected = []
        for segment in self._overlapping(command):
            self.store.remove(segment.id)
            affected.append(segment.id)
        return affected

    def _merge(self, command: EditCommand) -> List[int]:
        inputs = sorted(self._overlapping(command), key=lambda s: s.start_time)
        if len(inputs) < 2:
            raise CommandError("Merge needs at least two segments in range")

        files = {s.video_file_path for s in inputs}
        if len(files) > 1:
            raise CommandError("Cannot merge segments from different files")

        visible = all(s.visible for s in inputs)
        merged = VideoSegment(
            start_time=inputs[0].start_time,
            end_time=max(s.end_time for s in inputs),
            video_file_path=inputs[0].video_file_path,
            visible=visible,
            state=SegmentState.STOPPED if visible else SegmentState.HIDDEN,
            thumbnail=inputs[0].thumbnail,
            speed_rate=inputs[0].speed_rate,
            duration_provisional=max(inputs, key=lambda s: s.end_time).duration_provisional
        )
        for segment in inputs:
            self.store.remove(segment.id)
        return [self.store.add(merged)]

    def _speed(self, command: EditCommand) -> List[int]:
        rate = command.rate
        if not (config.MIN_SPEED_RATE <= rate <= config.MAX_SPEED_RATE):
            raise CommandError(
                f"Speed {rate:g} is outside {config.MIN_SPEED_RATE:g}-{config.MAX_SPEED_RATE:g}"
            )
        affected = []
        for segment in self._overlapping(command):
            self.store.update(replace(segment, speed_rate=rate))
            affected.append(segment.id)
        return affected
