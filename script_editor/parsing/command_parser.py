"""
Command Parser

Classifies body lines into EditCommands. Each command kind has its own
line grammar; a line is tried against them in order and the first match
wins.

    LOAD   <path>
    CUT    HH:MM:SS.mmm
    HIDE   HH:MM:SS.mmm HH:MM:SS.mmm
    SHOW   HH:MM:SS.mmm HH:MM:SS.mmm
    DELETE HH:MM:SS.mmm HH:MM:SS.mmm
    MERGE  HH:MM:SS.mmm HH:MM:SS.mmm
    SPEED  <rate>[x] HH:MM:SS.mmm HH:MM:SS.mmm
"""

import logging
import re
from typing import List, Optional

from script_editor.models.commands import CommandType, EditCommand
from script_editor.parsing.lines import split_lines
from script_editor.parsing.timecode import TIMECODE_PATTERN, timecode_from_parts

logger = logging.getLogger("ScriptCut.CommandParser")

_FLAGS = re.IGNORECASE

LOAD_PATTERN = re.compile(r"^\s*LOAD\s+(.+?)\s*$", _FLAGS)
CUT_PATTERN = re.compile(rf"^\s*CUT\s+{TIMECODE_PATTERN}\s*$", _FLAGS)
SPEED_PATTERN = re.compile(
    rf"^\s*SPEED\s+(\d+(?:\.\d+)?|\.\d+)x?\s+{TIMECODE_PATTERN}\s+{TIMECODE_PATTERN}\s*$", _FLAGS)


def _range_pattern(keyword: str) -> "re.Pattern":
    return re.compile(rf"^\s*{keyword}\s+{TIMECODE_PATTERN}\s+{TIMECODE_PATTERN}\s*$", _FLAGS)


RANGE_PATTERNS = [
    (CommandType.HIDE, _range_pattern("HIDE")),
    (CommandType.SHOW, _range_pattern("SHOW")),
    (CommandType.DELETE, _range_pattern("DELETE")),
    (CommandType.MERGE, _range_pattern("MERGE")),
]


def _strip_quotes(path: str) -> str:
    if len(path) >= 2 and path[0] == path[-1] and path[0] in "\"'":
        return path[1:-1].strip()
    return path


def parse_line(line: str, line_number: int = 0) -> Optional[EditCommand]:
    """
    Parses one line into a command.

    Args:
        line: A single body line
        line_number: 1-based line number to attach for diagnostics

    Returns:
        The EditCommand, or None if the line is not a command
    """
    match = LOAD_PATTERN.match(line)
    if match:
        path = _strip_quotes(match.group(1))
        if not path:
            return None
        return EditCommand.load(path, line_number=line_number)

    match = CUT_PATTERN.match(line)
    if match:
        return EditCommand.cut(timecode_from_parts(*match.groups()), line_number=line_number)

    for command_type, pattern in RANGE_PATTERNS:
        match = pattern.match(line)
        if match:
            groups = match.groups()
            return EditCommand.ranged(
                command_type,
                timecode_from_parts(*groups[0:4]),
                timecode_from_parts(*groups[4:8]),
                line_number=line_number
            )

    match = SPEED_PATTERN.match(line)
    if match:
        groups = match.groups()
        return EditCommand.speed(
            float(groups[0]),
            timecode_from_parts(*groups[1:5]),
            timecode_from_parts(*groups[5:9]),
            line_number=line_number
        )

    return None


def is_command_line(line: str) -> bool:
    """True when the line parses as a complete command."""
    return parse_line(line) is not None


def parse_commands(text: str, line_offset: int = 0) -> List[EditCommand]:
    """
    Parses every command in a body, in document order.

    Args:
        text: Body text
        line_offset: Number of document lines preceding ``text``; added to
            the 1-based line numbers so they refer to the whole document

    Returns:
        List of EditCommands
    """
    commands = []
    for index, line in enumerate(split_lines(text)):
        command = parse_line(line, line_offset + index + 1)
        if command is not None:
            commands.append(command)

    logger.debug(f"Parsed {len(commands)} command(s)")
    return commands
