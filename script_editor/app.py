"""
Script Editor - Command Line Entry Point

Compiles an edit script without a window and reports what it produced.

Usage:
    python -m script_editor.app trip.scut
    python -m script_editor.app trip.scut --json trip.json --srt trip.srt
    python -m script_editor.app trip.scut --no-probe -v

Exit status is 0 when every command applied, 1 when any command failed
and 2 when the script could not be read.
"""

import argparse
import logging
import os
import sys
from typing import List, Optional

from PySide6.QtCore import QCoreApplication

import config
from script_editor.editor.session import EditSession
from script_editor.parsing.timecode import format_timecode
from script_editor.timeline.executor import CommandExecutor
from script_editor.timeline.segment_store import VideoSegmentStore
from shared.project_io import export_srt, save_snapshot

logger = logging.getLogger("ScriptCut.App")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="scriptcut",
        description="Compile a text edit script into video segments and scene captions."
    )
    parser.add_argument("script", help="Path to the .scut script")
    parser.add_argument("--json", metavar="OUT", help="Write a JSON snapshot of the result")
    parser.add_argument("--srt", metavar="OUT", help="Export scene captions as SRT")
    parser.add_argument("--no-probe", action="store_true",
                        help="Do not run FFprobe; LOAD uses the fallback duration")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def _no_duration(_path: str) -> Optional[float]:
    return None


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    config.setup_logging(logging.DEBUG if args.verbose else logging.INFO)

    # Signals and timers need an application instance
    app = QCoreApplication.instance() or QCoreApplication(sys.argv[:1])
    app.setApplicationName(config.APP_NAME)
    app.setApplicationVersion(config.VERSION)

    store = VideoSegmentStore()
    executor = CommandExecutor(
        store,
        duration_oracle=_no_duration if args.no_probe else None,
        base_dir=os.path.dirname(os.path.abspath(args.script)),
        wait_timeout=0.0 if args.no_probe else config.DURATION_WAIT_TIMEOUT
    )
    session = EditSession(executor=executor)

    try:
        result = session.load_file(args.script)
    except (FileNotFoundError, ValueError) as e:
        logger.error(str(e))
        return 2

    logger.info(f"Project: {result.config.project_name} ({result.config.resolution} @ {result.config.frame_rate}fps)")
    for segment in store:
        flags = "" if segment.visible else " hidden"
        if segment.speed_rate != 1.0:
            flags += f" x{segment.speed_rate:g}"
        if segment.duration_provisional:
            flags += " provisional"
        logger.info(
            f"  #{segment.id} {format_timecode(segment.start_time)} -> "
            f"{format_timecode(segment.end_time)} {os.path.basename(segment.video_file_path)}{flags}"
        )
    logger.info(f"{len(result.scenes)} scene(s), {len(store)} segment(s)")

    report = result.report
    for message in report.error_messages:
        logger.error(message)

    if args.json and not save_snapshot(args.json, result.config, store.segments,
                                       result.scenes, result.command_hash):
        return 2
    if args.srt and not export_srt(result.scenes, args.srt):
        return 2

    return 0 if report.all_succeeded else 1


if __name__ == "__main__":
    sys.exit(main())
