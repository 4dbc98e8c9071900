"""
Scene Parser

Finds time-range separator lines in a body and turns the text under each
one into a SceneBlock with a title, a subtitle and free-text captions.

Format:
    --- [00:00:01.000 -> 00:00:04.500] ---
    # Title line
    > Subtitle line
    > Second subtitle line

    Any other paragraph becomes a free-text caption.

A block's content runs until the next separator or the next command line.
The generator writes the separator, title and subtitle back; free text is
never generated.
"""

import logging
import re
from typing import List, Optional, Iterable

from script_editor.models.project import SceneBlock, FreeTextItem
from script_editor.parsing.command_parser import is_command_line
from script_editor.parsing.lines import split_lines
from script_editor.parsing.timecode import TIMECODE_PATTERN, timecode_from_parts, format_timecode

logger = logging.getLogger("ScriptCut.SceneParser")

SEPARATOR_PATTERN = re.compile(
    rf"^-{{3,}}\s*\[\s*{TIMECODE_PATTERN}\s*->\s*{TIMECODE_PATTERN}\s*\]\s*-{{3,}}$"
)

TITLE_PREFIX = "# "
SUBTITLE_PREFIX = "> "

# Vertical placement for free text without an explicit position
FREE_TEXT_BASE_Y = 0.3
FREE_TEXT_STEP_Y = 0.15
# Placement for extra title lines demoted to free text
DEMOTED_TITLE_BASE_Y = 0.1
DEMOTED_TITLE_STEP_Y = 0.1


def build_scene_separator(start_time: float, end_time: float) -> str:
    """Renders ``--- [start -> end] ---``."""
    return f"--- [{format_timecode(start_time)} -> {format_timecode(end_time)}] ---"


def match_separator(line: str) -> Optional[tuple]:
    """Returns (start, end) in seconds if the line is a scene separator."""
    match = SEPARATOR_PATTERN.match(line.strip())
    if not match:
        return None
    groups = match.groups()
    return timecode_from_parts(*groups[0:4]), timecode_from_parts(*groups[4:8])


def parse_scenes(text: str, line_offset: int = 0) -> List[SceneBlock]:
    """
    Parses every scene block in a body.

    Args:
        text: Body text
        line_offset: Document lines preceding ``text``; added to every
            reported line number

    Returns:
        Scene blocks in document order
    """
    lines = split_lines(text)
    scenes = []

    for index, line in enumerate(lines):
        times = match_separator(line)
        if times is None:
            continue
        start_time, end_time = times

        content = []
        for offset in range(index + 1, len(lines)):
            candidate = lines[offset]
            if match_separator(candidate) is not None or is_command_line(candidate):
                break
            content.append((line_offset + offset + 1, candidate))

        title, subtitle, items = _extract_content(content)
        scene = SceneBlock.create_new(
            start_time,
            end_time,
            line_number=line_offset + index + 1,
            content_text="\n".join(text_line for _, text_line in content).strip(),
            title=title,
            subtitle=subtitle,
            free_text_items=items
        )
        if scene.is_degenerate:
            logger.warning(
                f"Scene on line {scene.line_number} ends at or before its start "
                f"({format_timecode(start_time)} -> {format_timecode(end_time)})"
            )
        scenes.append(scene)

    logger.debug(f"Parsed {len(scenes)} scene(s)")
    return scenes


def _extract_content(content):
    """
    Classifies a block's lines into title, subtitle and free text.

    Args:
        content: List of (document line number, line text) pairs

    Returns:
        (title, subtitle, free_text_items)
    """
    title = None
    subtitle_lines = []
    items = []
    paragraph = []
    paragraph_line = 0

    def flush():
        nonlocal paragraph
        if paragraph:
            items.append(FreeTextItem(text="\n".join(paragraph).strip(), line_number=paragraph_line))
            paragraph = []

    for line_number, raw in content:
        line = raw.lstrip()

        if not line.strip():
            flush()
            continue

        if line.startswith(TITLE_PREFIX):
            flush()
            heading = line[len(TITLE_PREFIX):].strip()
            if title is None:
                title = heading
            else:
                items.append(FreeTextItem(
                    text=heading,
                    line_number=line_number,
                    y=DEMOTED_TITLE_BASE_Y + len(items) * DEMOTED_TITLE_STEP_Y
                ))
            continue

        if line.startswith(SUBTITLE_PREFIX):
            flush()
            subtitle_lines.append(line[len(SUBTITLE_PREFIX):].strip())
            continue

        if not paragraph:
            paragraph_line = line_number
        paragraph.append(line.rstrip())

    flush()

    for i, item in enumerate(items):
        if item.y is None:
            item.y = FREE_TEXT_BASE_Y + i * FREE_TEXT_STEP_Y

    subtitle = "\n".join(subtitle_lines) if subtitle_lines else None
    return title, subtitle, items


def generate_scene_text(scene: SceneBlock) -> str:
    """
    Renders a scene's separator, title and subtitle lines.

    Multi-line subtitles become one ``> `` line each.
    """
    out = [build_scene_separator(scene.start_time, scene.end_time)]
    if scene.title:
        out.append(f"{TITLE_PREFIX}{scene.title}")
    if scene.subtitle:
        for line in scene.subtitle.split("\n"):
            out.append(f"{SUBTITLE_PREFIX}{line}")
    return "\n".join(out) + "\n"


def generate_scenes_text(scenes: Iterable[SceneBlock]) -> str:
    """Renders several scenes in start-time order, separated by blank lines."""
    ordered = sorted(scenes, key=lambda s: s.start_time)
    return "\n".join(generate_scene_text(scene) for scene in ordered)
