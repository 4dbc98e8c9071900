"""
Project Data Model

This module defines the core data structures produced by compiling an
edit script. Nothing here knows about text; the parsers build these
objects and the timeline/editor layers mutate and publish them.

The data model follows a time-based approach where:
- Segments reference a source file and a time range in seconds
- Scene blocks carry caption content for a time range
- The actual video files are never modified

Architecture:
    ProjectConfig           (from the script header)
    SceneBlock
    └── free_text_items: List[FreeTextItem]
    VideoSegment            (owned by VideoSegmentStore)
"""

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import List, Dict, Optional, Any
import re
import uuid


_COLOR_PATTERN = re.compile(r"^#(?:[0-9A-Fa-f]{6}|[0-9A-Fa-f]{8})$")

DEFAULT_PROJECT_NAME = "Untitled Project"
DEFAULT_FONT = "Arial"
DEFAULT_COLOR = "#FFFFFF"


@dataclass
class ProjectConfig:
    """
    Project-wide settings parsed from the script header.

    Attributes:
        project_name: Display name of the project
        resolution_width: Output video width in pixels
        resolution_height: Output video height in pixels
        frame_rate: Output frame rate
        default_font: Font family used for captions
        default_font_size: Fallback caption font size
        default_title_color: Title color (#RRGGBB or #AARRGGBB)
        default_subtitle_color: Subtitle color
        default_background_alpha: Caption background opacity (0.0 to 1.0)
        title_position_x: Title left edge as a fraction of the width
        title_position_y: Title top edge as a fraction of the height
        subtitle_position_y: Subtitle baseline as a fraction of the height
        title_font_size: Title font size
        subtitle_font_size: Subtitle font size
        default_freetext_color: Free text color
    """
    project_name: str = DEFAULT_PROJECT_NAME
    resolution_width: int = 1920
    resolution_height: int = 1080
    frame_rate: int = 30
    default_font: str = DEFAULT_FONT
    default_font_size: int = 24
    default_title_color: str = DEFAULT_COLOR
    default_subtitle_color: str = DEFAULT_COLOR
    default_background_alpha: float = 0.8
    title_position_x: float = 0.05
    title_position_y: float = 0.05
    subtitle_position_y: float = 0.85
    title_font_size: int = 32
    subtitle_font_size: int = 24
    default_freetext_color: str = DEFAULT_COLOR

    def __post_init__(self):
        self.default_title_color = self.default_title_color.upper()
        self.default_subtitle_color = self.default_subtitle_color.upper()
        self.default_freetext_color = self.default_freetext_color.upper()

    @property
    def resolution(self) -> str:
        """Resolution as text, e.g. "1920x1080"."""
        return f"{self.resolution_width}x{self.resolution_height}"

    @staticmethod
    def is_valid_color(color: Optional[str]) -> bool:
        """Check for #RRGGBB or #AARRGGBB."""
        return bool(color) and bool(_COLOR_PATTERN.match(color))

    def copy(self) -> "ProjectConfig":
        return ProjectConfig(**self.to_dict())

    def reset(self) -> None:
        """Restore every field to its default value."""
        defaults = ProjectConfig()
        for f in fields(self):
            setattr(self, f.name, getattr(defaults, f.name))

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dictionary for JSON storage."""
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProjectConfig":
        """Deserialize from dictionary, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})


@dataclass
class FreeTextItem:
    """
    A free-floating caption inside a scene, like a text box in a slide.

    Attributes:
        text: The caption text (may span several lines)
        line_number: 1-based document line where the text starts
        x: Left edge as a fraction of the frame width
        y: Top edge as a fraction of the frame height (None until placed)
        font_size: Overrides the default font size when set
        text_color: Overrides the default free text color when set
        background_color: Overrides the semi-transparent black background
        max_width: Wrap width in pixels (None means unlimited)
    """
    text: str
    line_number: int = 0
    x: float = 0.1
    y: Optional[float] = None
    font_size: Optional[int] = None
    text_color: Optional[str] = None
    background_color: Optional[str] = None
    max_width: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "line_number": self.line_number,
            "x": self.x,
            "y": self.y,
            "font_size": self.font_size,
            "text_color": self.text_color,
            "background_color": self.background_color,
            "max_width": self.max_width
        }


@dataclass
class SceneBlock:
    """
    Caption content attached to a time range of the edit.

    Scene blocks are independent of segment boundaries: a scene can span
    several segments or sit inside one.

    Attributes:
        id: Unique identifier (regenerated on every parse)
        start_time: Scene start (seconds)
        end_time: Scene end (seconds)
        line_number: 1-based document line of the separator
        content_text: Raw text between the separator and the next boundary
        title: Text of the first "# " line
        subtitle: Text of the "> " lines, newline-joined
        free_text_items: Remaining caption paragraphs
    """
    id: str
    start_time: float
    end_time: float
    line_number: int = 0
    content_text: str = ""
    title: Optional[str] = None
    subtitle: Optional[str] = None
    free_text_items: List[FreeTextItem] = field(default_factory=list)

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time

    @property
    def is_degenerate(self) -> bool:
        """True when the end time does not exceed the start time."""
        return self.end_time <= self.start_time

    def contains_time(self, time: float) -> bool:
        return self.start_time <= time <= self.end_time

    def overlaps_with(self, other: "SceneBlock") -> bool:
        return self.start_time < other.end_time and self.end_time > other.start_time

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "line_number": self.line_number,
            "content_text": self.content_text,
            "title": self.title,
            "subtitle": self.subtitle,
            "free_text_items": [item.to_dict() for item in self.free_text_items]
        }

    @staticmethod
    def create_new(start_time: float, end_time: float, **kwargs) -> "SceneBlock":
        """Factory method to create a new scene with a generated ID."""
        return SceneBlock(id=str(uuid.uuid4()), start_time=start_time, end_time=end_time, **kwargs)


class SegmentState(Enum):
    """Playback state of a segment."""
    STOPPED = "stopped"   # showing its first frame
    PLAYING = "playing"
    HIDDEN = "hidden"     # greyed out, skipped on playback


@dataclass
class VideoSegment:
    """
    A contiguous stretch of one source video placed on the edit timeline.

    Attributes:
        id: Sequential identifier assigned by the store (0 = unassigned)
        start_time: Start on the edit timeline (seconds)
        end_time: End on the edit timeline (seconds)
        visible: Whether the segment is included in playback/export
        state: Current playback state
        video_file_path: Path to the source video file
        thumbnail: Opaque thumbnail reference supplied by the host
        speed_rate: Playback speed multiplier (1.0 = normal)
        duration_provisional: True while the length is the LOAD fallback
    """
    start_time: float
    end_time: float
    video_file_path: str = ""
    id: int = 0
    visible: bool = True
    state: SegmentState = SegmentState.STOPPED
    thumbnail: Optional[Any] = None
    speed_rate: float = 1.0
    duration_provisional: bool = False

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time

    @property
    def effective_duration(self) -> float:
        """Duration on the output timeline once speed is applied."""
        return self.duration / self.speed_rate

    def contains_time(self, time: float) -> bool:
        """Check if a time falls within this segment (end exclusive)."""
        return self.start_time <= time < self.end_time

    def overlaps_with(self, other: "VideoSegment") -> bool:
        return self.start_time < other.end_time and self.end_time > other.start_time

    def is_adjacent_to(self, other: "VideoSegment", tolerance: float = 0.001) -> bool:
        return (abs(self.end_time - other.start_time) < tolerance or
                abs(other.end_time - self.start_time) < tolerance)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dictionary for JSON storage. Thumbnails are not persisted."""
        return {
            "id": self.id,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "video_file_path": self.video_file_path,
            "visible": self.visible,
            "state": self.state.value,
            "speed_rate": self.speed_rate,
            "duration_provisional": self.duration_provisional
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VideoSegment":
        """Deserialize from dictionary."""
        return cls(
            id=data.get("id", 0),
            start_time=data["start_time"],
            end_time=data["end_time"],
            video_file_path=data.get("video_file_path", ""),
            visible=data.get("visible", True),
            state=SegmentState(data.get("state", SegmentState.STOPPED.value)),
            speed_rate=data.get("speed_rate", 1.0),
            duration_provisional=data.get("duration_provisional", False)
        )
