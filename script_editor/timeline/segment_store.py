"""
Video Segment Store

Ordered collection of VideoSegments with point and range queries. The
list is re-sorted by start time after every mutation and each change is
published through a Qt signal so views can follow along.

The store is not locked. It expects a single writer; readers that need
a stable view should take the ``segments`` snapshot.
"""

import logging
from typing import List, Optional, Tuple, Iterator

from PySide6.QtCore import QObject, Signal

from script_editor.models.project import VideoSegment

logger = logging.getLogger("ScriptCut.SegmentStore")


class VideoSegmentStore(QObject):
    """
    Holds the segments produced by the command executor.

    Signals:
        segment_added(VideoSegment)
        segment_removed(int): id of the removed segment
        segment_updated(VideoSegment)
        cleared()
    """

    segment_added = Signal(object)
    segment_removed = Signal(int)
    segment_updated = Signal(object)
    cleared = Signal()

    def __init__(self, parent: Optional[QObject] = None):
        super().__init__(parent)
        self._segments: List[VideoSegment] = []
        self._next_id = 1

    # --- Mutation ---

    def add(self, segment: VideoSegment) -> int:
        """
        Inserts a segment, assigning the next id when it has none.

        Returns:
            The segment's id

        Raises:
            ValueError: If a segment with the same id is already stored
        """
        if segment.id == 0:
            segment.id = self._next_id
        elif self.get_by_id(segment.id) is not None:
            raise ValueError(f"Segment id {segment.id} is already in the store")
        self._next_id = max(self._next_id, segment.id + 1)

        self._segments.append(segment)
        self._sort()
        logger.debug(f"Added segment {segment.id} [{segment.start_time:.3f}, {segment.end_time:.3f})")
        self.segment_added.emit(segment)
        return segment.id

    def remove(self, segment_id: int) -> Optional[VideoSegment]:
        """Removes a segment by id. Returns it, or None if it was not stored."""
        for index, segment in enumerate(self._segments):
            if segment.id == segment_id:
                del self._segments[index]
                logger.debug(f"Removed segment {segment_id}")
                self.segment_removed.emit(segment_id)
                return segment
        return None

    def update(self, segment: VideoSegment) -> bool:
        """Replaces the stored segment with the same id."""
        for index, existing in enumerate(self._segments):
            if existing.id == segment.id:
                self._segments[index] = segment
                self._sort()
                self.segment_updated.emit(segment)
                return True
        logger.warning(f"Update for unknown segment {segment.id} ignored")
        return False

    def clear(self) -> None:
        """Removes every segment and restarts ids at 1."""
        self._segments.clear()
        self._next_id = 1
        logger.debug("Segment store cleared")
        self.cleared.emit()

    def _sort(self) -> None:
        # list.sort is stable, so equal start times keep insertion order
        self._segments.sort(key=lambda s: s.start_time)

    # --- Queries ---

    @property
    def segments(self) -> Tuple[VideoSegment, ...]:
        """Snapshot of the segments in start-time order."""
        return tuple(self._segments)

    @property
    def next_id(self) -> int:
        return self._next_id

    def get_by_id(self, segment_id: int) -> Optional[VideoSegment]:
        for segment in self._segments:
            if segment.id == segment_id:
                return segment
        return None

    def get_at_time(self, time: float) -> Optional[VideoSegment]:
        """First segment with start <= time < end."""
        for segment in self._segments:
            if segment.contains_time(time):
                return segment
        return None

    def get_by_time_range(self, start_time: float, end_time: float) -> List[VideoSegment]:
        """All segments overlapping the half-open range [start_time, end_time)."""
        return [s for s in self._segments if s.start_time < end_time and s.end_time > start_time]

    def max_end_time(self) -> float:
        """End of the last segment, or 0.0 when empty."""
        return max((s.end_time for s in self._segments), default=0.0)

    def total_effective_duration(self) -> float:
        """Playback length of the visible segments once speed is applied."""
        return sum(s.effective_duration for s in self._segments if s.visible)

    def __len__(self) -> int:
        return len(self._segments)

    def __iter__(self) -> Iterator[VideoSegment]:
        return iter(tuple(self._segments))
