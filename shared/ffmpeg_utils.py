"""
FFprobe Utilities Module

Answers "how long is this file?" for LOAD. Everything else the script
editor knows about media comes from the text, so this module only probes
and never decodes.

The binary is looked up in this order:
    1. SCRIPTCUT_FFPROBE environment variable
    2. ffprobe next to the working directory
    3. ffprobe on PATH
"""

import json
import logging
import os
import shutil
import subprocess
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from config import ENV_PREFIX

logger = logging.getLogger("ScriptCut.FFprobe")

_PROBE_ARGS = ["-v", "error", "-print_format", "json", "-show_format", "-show_streams"]


@dataclass
class VideoMetadata:
    """What FFprobe reports about a source clip's first video stream."""
    duration: float          # seconds, 0 when unknown
    width: int
    height: int
    fps: float
    codec: str
    bitrate: Optional[int]   # bits/second when the container states it
    rotation: int            # display rotation, normalized to 0-359


def get_ffprobe_path() -> str:
    """
    Locates the FFprobe executable.

    Raises:
        FileNotFoundError: If no candidate exists
    """
    override = os.getenv(ENV_PREFIX + "FFPROBE")
    if override and os.path.exists(override):
        return override

    binary = "ffprobe.exe" if os.name == "nt" else "ffprobe"
    beside = os.path.join(os.getcwd(), binary)
    if os.path.exists(beside):
        return beside

    on_path = shutil.which("ffprobe")
    if on_path:
        return on_path

    raise FileNotFoundError(
        f"FFprobe is not installed. Install FFmpeg or set {ENV_PREFIX}FFPROBE to the binary."
    )


def _run_ffprobe(file_path: str) -> Dict[str, Any]:
    cmd = [get_ffprobe_path(), *_PROBE_ARGS, file_path]
    logger.debug(f"Probing {file_path}")
    try:
        completed = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            check=True,
            creationflags=subprocess.CREATE_NO_WINDOW if os.name == "nt" else 0
        )
    except subprocess.CalledProcessError as e:
        raise RuntimeError(f"FFprobe exited with {e.returncode}: {(e.stderr or '').strip()}")

    try:
        return json.loads(completed.stdout)
    except json.JSONDecodeError:
        raise RuntimeError(f"FFprobe returned unreadable output for {file_path}")


def _parse_frame_rate(value: str) -> float:
    # "30000/1001" or "29.97"
    num, _, den = value.partition("/")
    if not den:
        return float(num)
    return float(num) / float(den) if float(den) else 30.0


def _first_video_stream(streams: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    for stream in streams:
        if stream.get("codec_type") == "video":
            return stream
    return None


def _rotation_of(stream: Dict[str, Any]) -> int:
    # Older muxers write a rotate tag, newer ones a display matrix
    tag = stream.get("tags", {}).get("rotate")
    if tag is not None:
        return abs(int(tag)) % 360
    for side_data in stream.get("side_data_list", []):
        if "rotation" in side_data:
            return abs(int(side_data["rotation"])) % 360
    return 0


def _duration_of(fmt: Dict[str, Any], stream: Dict[str, Any]) -> float:
    """Container duration, or the stream's when the container has none."""
    duration = float(fmt.get("duration") or 0)
    if duration <= 0:
        duration = float(stream.get("duration") or 0)
    return duration


def get_video_metadata(file_path: str) -> VideoMetadata:
    """
    Probes a media file.

    Args:
        file_path: Path to the video file

    Returns:
        VideoMetadata for the first video stream

    Raises:
        FileNotFoundError: If the file or FFprobe is missing
        RuntimeError: If FFprobe fails or finds no video stream
    """
    if not os.path.exists(file_path):
        raise FileNotFoundError(f"No such media file: {file_path}")

    data = _run_ffprobe(file_path)
    stream = _first_video_stream(data.get("streams", []))
    if stream is None:
        raise RuntimeError(f"{file_path} has no video stream")

    fmt = data.get("format", {})
    return VideoMetadata(
        duration=_duration_of(fmt, stream),
        width=int(stream.get("width", 0)),
        height=int(stream.get("height", 0)),
        fps=_parse_frame_rate(stream.get("r_frame_rate", "30/1")),
        codec=stream.get("codec_name", "unknown"),
        bitrate=int(fmt.get("bit_rate") or 0) or None,
        rotation=_rotation_of(stream)
    )


def probe_duration(file_path: str) -> Optional[float]:
    """
    Duration oracle for LOAD.

    Returns:
        Length in seconds, or None while it cannot be determined
    """
    try:
        duration = get_video_metadata(file_path).duration
    except (FileNotFoundError, RuntimeError, ValueError) as e:
        logger.warning(f"Could not probe {file_path}: {e}")
        return None
    return duration if duration > 0 else None
