"""
Project I/O Module

Reads and writes edit scripts (.scut, plain UTF-8 text) and exports what
a compiled script produced: an SRT file of the scene captions and a JSON
snapshot of the config, segments and scenes.
"""

import json
import logging
import os
from typing import TYPE_CHECKING, Iterable, Optional, Dict, Any
from datetime import datetime

from config import PROJECT_EXTENSION
from script_editor.parsing.timecode import format_timecode

if TYPE_CHECKING:
    from script_editor.models.project import ProjectConfig, SceneBlock, VideoSegment

logger = logging.getLogger("ScriptCut.ProjectIO")

# Snapshot file version
SNAPSHOT_VERSION = "1.0.0"


def ensure_extension(file_path: str) -> str:
    """Appends .scut when the path has no extension."""
    root, ext = os.path.splitext(file_path)
    return file_path if ext else root + PROJECT_EXTENSION


def save_script(text: str, file_path: str) -> bool:
    """
    Saves script text to disk.

    Args:
        text: The whole document
        file_path: Destination; .scut is appended when no extension is given

    Returns:
        True if successful, False otherwise
    """
    file_path = ensure_extension(file_path)
    try:
        os.makedirs(os.path.dirname(file_path) or ".", exist_ok=True)
        # newline="" keeps the document's own line endings
        with open(file_path, 'w', encoding='utf-8', newline='') as f:
            f.write(text)
    except OSError as e:
        logger.error(f"Failed to save script: {e}")
        return False

    logger.info(f"Saved script to {file_path}")
    return True


def load_script(file_path: str) -> str:
    """
    Loads script text from disk.

    Raises:
        FileNotFoundError: If file doesn't exist
        ValueError: If the file is not valid UTF-8
    """
    if not os.path.exists(file_path):
        raise FileNotFoundError(f"Script file not found: {file_path}")

    try:
        with open(file_path, 'r', encoding='utf-8-sig', newline='') as f:
            return f.read()
    except UnicodeDecodeError as e:
        raise ValueError(f"Script file is not UTF-8 text: {e}")


def export_srt(scenes: Iterable["SceneBlock"], output_path: str) -> bool:
    """
    Exports scene captions to SRT format.

    Each scene contributes its subtitle, or its title when it has no
    subtitle. Scenes with neither, and scenes that end at or before their
    start, are skipped.

    Args:
        scenes: Scene blocks, in any order
        output_path: Destination .srt file path

    Returns:
        True if successful, False otherwise
    """
    entries = []
    for scene in sorted(scenes, key=lambda s: s.start_time):
        text = scene.subtitle or scene.title
        if text and not scene.is_degenerate:
            entries.append((scene.start_time, scene.end_time, text))

    try:
        with open(output_path, 'w', encoding='utf-8') as f:
            for i, (start, end, text) in enumerate(entries, start=1):
                # 1
                # 00:00:01,000 --> 00:00:04,000
                # Caption text
                f.write(f"{i}\n")
                f.write(f"{_seconds_to_srt_time(start)} --> {_seconds_to_srt_time(end)}\n")
                f.write(f"{text}\n")
                f.write("\n")
    except OSError as e:
        logger.error(f"Failed to export SRT: {e}")
        return False

    logger.info(f"Exported {len(entries)} caption(s) to {output_path}")
    return True


def save_snapshot(
    output_path: str,
    config: "ProjectConfig",
    segments: Iterable["VideoSegment"],
    scenes: Iterable["SceneBlock"],
    command_hash: Optional[str] = None
) -> bool:
    """
    Writes a JSON dump of a compiled script.

    Returns:
        True if successful, False otherwise
    """
    data = {
        "version": SNAPSHOT_VERSION,
        "saved_at": datetime.now().isoformat(),
        "command_hash": command_hash,
        "config": config.to_dict(),
        "segments": [segment.to_dict() for segment in segments],
        "scenes": [scene.to_dict() for scene in scenes]
    }

    try:
        os.makedirs(os.path.dirname(output_path) or ".", exist_ok=True)
        with open(output_path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
    except (OSError, TypeError, ValueError) as e:
        logger.error(f"Failed to save snapshot: {e}")
        return False

    return True


def load_snapshot(file_path: str) -> Dict[str, Any]:
    """
    Reads a snapshot written by ``save_snapshot``.

    Returns:
        Dict with ``config`` (ProjectConfig), ``segments`` (VideoSegments),
        ``scenes`` (raw dicts) and ``command_hash``

    Raises:
        FileNotFoundError: If file doesn't exist
        ValueError: If file format is invalid
    """
    # Import here to avoid circular imports
    from script_editor.models.project import ProjectConfig, VideoSegment

    if not os.path.exists(file_path):
        raise FileNotFoundError(f"Snapshot file not found: {file_path}")

    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid snapshot file format: {e}")

    if data.get("version") != SNAPSHOT_VERSION:
        raise ValueError(f"Unsupported snapshot version: {data.get('version')}")
    if "config" not in data:
        raise ValueError("Config not found in snapshot")

    return {
        "config": ProjectConfig.from_dict(data["config"]),
        "segments": [VideoSegment.from_dict(s) for s in data.get("segments", [])],
        "scenes": data.get("scenes", []),
        "command_hash": data.get("command_hash")
    }


def _seconds_to_srt_time(seconds: float) -> str:
    """
    Converts seconds to SRT timestamp format (HH:MM:SS,mmm).

    Args:
        seconds: Time in seconds

    Returns:
        Formatted timestamp string
    """
    return format_timecode(seconds).replace(".", ",")
