"""
Header Parser

Reads the directive block at the top of a script and builds a
ProjectConfig from it; the generator writes a config back as text.

Format:
    PROJECT "My Trip"
    RESOLUTION 1920x1080
    FRAMERATE 30
    DEFAULT_FONT "Arial"
    ...
    ===

Lines before the first ``===`` line are directives. Blank lines and lines
starting with ``#`` are comments. Anything unrecognized, or a value
outside its domain, is skipped without complaint.
"""

import logging
import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple, Any

from script_editor.models.project import ProjectConfig
from script_editor.parsing.lines import split_lines

logger = logging.getLogger("ScriptCut.HeaderParser")

SEPARATOR_PATTERN = re.compile(r"^={3,}$")
HEADER_SEPARATOR = "==="

_INT = r"(\d+)"
_FLOAT = r"(\d+(?:\.\d*)?(?:[eE][-+]?\d+)?|\.\d+(?:[eE][-+]?\d+)?)"
_COLOR = r"(#(?:[0-9A-Fa-f]{8}|[0-9A-Fa-f]{6}))"


@dataclass
class HeaderParseResult:
    """
    Attributes:
        config: Configuration built from the directives
        body_start_line: 0-based index of the first body line (0 when
            there is no separator)
        has_separator: Whether a ``===`` line was found
    """
    config: ProjectConfig
    body_start_line: int = 0
    has_separator: bool = False


def _positive_int(value: str) -> Optional[int]:
    number = int(value)
    return number if number > 0 else None


def _unit_float(value: str) -> Optional[float]:
    try:
        number = float(value)
    except ValueError:
        return None
    return number if 0.0 <= number <= 1.0 else None


def _color(value: str) -> Optional[str]:
    return value.upper()


def _font_name(value: str) -> Optional[str]:
    return value if value.strip() else None


def _quoted(value: Any) -> str:
    return f'"{value}"'


def _number(value: Any) -> str:
    return repr(value) if isinstance(value, float) else str(value)


def _directive(keyword: str, argument: str) -> "re.Pattern":
    return re.compile(rf"^{keyword}\s+{argument}$", re.IGNORECASE)


# (keyword, pattern, config field, converter, writer) in canonical order.
# RESOLUTION spans two fields and is handled separately.
_SIMPLE_DIRECTIVES: List[Tuple[str, "re.Pattern", str, Callable, Callable]] = [
    ("PROJECT", _directive("PROJECT", r'"(.*)"'), "project_name", str, _quoted),
    ("FRAMERATE", _directive("FRAMERATE", _INT), "frame_rate", _positive_int, _number),
    ("DEFAULT_FONT", _directive("DEFAULT_FONT", r'"(.*)"'), "default_font", _font_name, _quoted),
    ("DEFAULT_FONT_SIZE", _directive("DEFAULT_FONT_SIZE", _INT), "default_font_size", _positive_int, _number),
    ("DEFAULT_TITLE_COLOR", _directive("DEFAULT_TITLE_COLOR", _COLOR), "default_title_color", _color, str),
    ("DEFAULT_SUBTITLE_COLOR", _directive("DEFAULT_SUBTITLE_COLOR", _COLOR), "default_subtitle_color", _color, str),
    ("DEFAULT_FREETEXT_COLOR", _directive("DEFAULT_FREETEXT_COLOR", _COLOR), "default_freetext_color", _color, str),
    ("DEFAULT_BACKGROUND_ALPHA", _directive("DEFAULT_BACKGROUND_ALPHA", _FLOAT), "default_background_alpha", _unit_float, _number),
    ("TITLE_POSITION_X", _directive("TITLE_POSITION_X", _FLOAT), "title_position_x", _unit_float, _number),
    ("TITLE_POSITION_Y", _directive("TITLE_POSITION_Y", _FLOAT), "title_position_y", _unit_float, _number),
    ("SUBTITLE_POSITION_Y", _directive("SUBTITLE_POSITION_Y", _FLOAT), "subtitle_position_y", _unit_float, _number),
    ("TITLE_FONT_SIZE", _directive("TITLE_FONT_SIZE", _INT), "title_font_size", _positive_int, _number),
    ("SUBTITLE_FONT_SIZE", _directive("SUBTITLE_FONT_SIZE", _INT), "subtitle_font_size", _positive_int, _number),
]

_RESOLUTION_PATTERN = _directive("RESOLUTION", r"(\d+)\s*[xX]\s*(\d+)")


def is_separator_line(line: str) -> bool:
    return bool(SEPARATOR_PATTERN.match(line.strip()))


def parse_header(text: str) -> HeaderParseResult:
    """
    Parses the header section of a script.

    Args:
        text: The whole document

    Returns:
        HeaderParseResult with the configuration and where the body starts
    """
    config = ProjectConfig()
    lines = split_lines(text)

    for index, line in enumerate(lines):
        if is_separator_line(line):
            logger.debug(f"Header separator on line {index + 1}")
            return HeaderParseResult(config=config, body_start_line=index + 1, has_separator=True)
        _apply_directive(line, config)

    logger.debug("No header separator found; document has no body")
    return HeaderParseResult(config=config, body_start_line=0, has_separator=False)


def _apply_directive(line: str, config: ProjectConfig) -> bool:
    """Applies one header line to the config. Returns False if it was ignored."""
    stripped = line.strip()
    if not stripped or stripped.startswith("#"):
        return False

    match = _RESOLUTION_PATTERN.match(stripped)
    if match:
        width, height = int(match.group(1)), int(match.group(2))
        if width > 0 and height > 0:
            config.resolution_width = width
            config.resolution_height = height
            return True
        logger.debug(f"Ignoring non-positive resolution: {stripped}")
        return False

    for keyword, pattern, field_name, convert, _ in _SIMPLE_DIRECTIVES:
        match = pattern.match(stripped)
        if not match:
            continue
        value = convert(match.group(1))
        if value is None:
            logger.debug(f"Ignoring out-of-range {keyword}: {stripped}")
            return False
        setattr(config, field_name, value)
        return True

    logger.debug(f"Ignoring unrecognized header line: {stripped}")
    return False


def generate_header(config: ProjectConfig) -> str:
    """
    Renders a config as header text, ending with the ``===`` separator.

    Directives always come out in the same order regardless of how the
    source header was written.
    """
    out = []
    for keyword, _, field_name, _, write in _SIMPLE_DIRECTIVES:
        out.append(f"{keyword} {write(getattr(config, field_name))}")
        if keyword == "PROJECT":
            out.append(f"RESOLUTION {config.resolution_width}x{config.resolution_height}")
    out.append(HEADER_SEPARATOR)
    return "\n".join(out) + "\n"


def split_document(text: str) -> Tuple[HeaderParseResult, str]:
    """Parses the header and returns it with the body text."""
    result = parse_header(text)
    if not result.has_separator:
        return result, ""
    lines = split_lines(text)
    return result, "\n".join(lines[result.body_start_line:])
