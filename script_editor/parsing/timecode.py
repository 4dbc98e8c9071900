"""
Timecode conversion between ``HH:MM:SS.mmm`` text and seconds.

Every parser and generator in the script format goes through here, so the
text form is strictly fixed-width ASCII with no locale handling.
"""

import re

# Four capture groups: hours, minutes, seconds, milliseconds
TIMECODE_PATTERN = r"(\d{2}):(\d{2}):(\d{2})\.(\d{3})"

_TIMECODE_RE = re.compile(r"^" + TIMECODE_PATTERN + r"$")


def timecode_from_parts(hours, minutes, seconds, milliseconds) -> float:
    """
    Combines captured timecode groups into seconds.

    Accepts ints or digit strings, as produced by a regex match.
    """
    return int(hours) * 3600 + int(minutes) * 60 + int(seconds) + int(milliseconds) / 1000.0


def parse_timecode(text: str) -> float:
    """
    Parses ``HH:MM:SS.mmm`` into seconds.

    Raises:
        ValueError: If the text is not exactly in the fixed-width form
    """
    match = _TIMECODE_RE.match(text.strip())
    if not match:
        raise ValueError(f"Invalid timecode: {text!r}")
    return timecode_from_parts(*match.groups())


def format_timecode(seconds: float) -> str:
    """
    Formats seconds as zero-padded ``HH:MM:SS.mmm``.

    Rounds to the nearest millisecond. Negative input is clamped to zero;
    hours keep growing past 99 instead of wrapping.
    """
    total_ms = int(round(max(0.0, seconds) * 1000))
    hours, rest = divmod(total_ms, 3_600_000)
    minutes, rest = divmod(rest, 60_000)
    secs, millis = divmod(rest, 1000)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}.{millis:03d}"


def format_short_time(seconds: float) -> str:
    """Compact display form: MM:SS, or HH:MM:SS past the first hour."""
    total = int(max(0.0, seconds))
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours:02d}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"
