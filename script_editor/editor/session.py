"""
Edit Session

Owns the script text and recompiles it into a config, scene blocks and
video segments whenever an edit is committed.

Commit pipeline:
    text
    ├── parse_header        -> ProjectConfig, body start line
    ├── parse_commands      -> EditCommands -> content hash
    │     └── (hash changed) store.clear() + executor.execute_all()
    └── parse_scenes        -> SceneBlocks -> SceneCollection.replace_all()

Keystrokes go through ``set_text``, which is debounced by a
TextCommitQueue. ``commit`` runs the pipeline immediately and supersedes
any pending debounced text. A commit that starts while another is in
progress (for example a listener that writes back into the text) does
not compile; its text becomes the document and is queued for the next
pass.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional

from PySide6.QtCore import QObject, Signal

import config
from script_editor.editor.anchor import build_range_command, insert_at_cursor
from script_editor.editor.debounce import TextCommitQueue
from script_editor.editor.scenes import SceneCollection
from script_editor.models.commands import EditCommand, CommandExecutionReport, command_list_hash
from script_editor.models.project import ProjectConfig, SceneBlock
from script_editor.parsing.command_parser import parse_commands
from script_editor.parsing.header_parser import generate_header, split_document
from script_editor.parsing.scene_parser import parse_scenes
from script_editor.timeline.executor import CommandExecutor
from script_editor.timeline.segment_store import VideoSegmentStore
from shared.project_io import ensure_extension, load_script, save_script

logger = logging.getLogger("ScriptCut.Session")


@dataclass
class CompileResult:
    """Everything one commit produced."""
    config: ProjectConfig
    body_start_line: int
    scenes: List[SceneBlock] = field(default_factory=list)
    commands: List[EditCommand] = field(default_factory=list)
    command_hash: str = ""
    executed: bool = False
    report: Optional[CommandExecutionReport] = None


class EditSession(QObject):
    """
    Signals:
        config_changed(ProjectConfig): the header produced a different config
        scenes_changed(list): the freshly parsed scene blocks
        commands_executed(CommandExecutionReport): the executor re-ran
        text_changed(str): the document text was replaced
    """

    config_changed = Signal(object)
    scenes_changed = Signal(object)
    commands_executed = Signal(object)
    text_changed = Signal(str)

    def __init__(
        self,
        store: Optional[VideoSegmentStore] = None,
        executor: Optional[CommandExecutor] = None,
        scene_collection: Optional[SceneCollection] = None,
        debounce_ms: int = config.TEXT_DEBOUNCE_MS,
        parent: Optional[QObject] = None
    ):
        super().__init__(parent)

        if executor is not None and store is not None and executor.store is not store:
            raise ValueError("executor must operate on the session's store")
        if executor is None:
            executor = CommandExecutor(store if store is not None else VideoSegmentStore())

        self.executor = executor
        self.store = executor.store
        self.scene_collection = scene_collection if scene_collection is not None else SceneCollection(self)

        self.commit_queue = TextCommitQueue(debounce_ms, self)
        self.commit_queue.committed.connect(self.commit)

        self._text = ""
        self._config = ProjectConfig()
        self._command_hash: Optional[str] = None
        self._processing = False
        self.file_path: Optional[str] = None
        self.last_result: Optional[CompileResult] = None

    # --- State ---

    @property
    def text(self) -> str:
        return self._text

    @property
    def config(self) -> ProjectConfig:
        return self._config

    @property
    def command_hash(self) -> Optional[str]:
        return self._command_hash

    @property
    def is_processing(self) -> bool:
        return self._processing

    # --- Editing ---

    def set_text(self, text: str) -> None:
        """Replaces the document and schedules a debounced commit."""
        if text == self._text and self.commit_queue.pending is None:
            return
        self._text = text
        self.text_changed.emit(text)
        self.commit_queue.submit(text)

    def flush(self) -> Optional[CompileResult]:
        """Commits any pending edit now."""
        if self.commit_queue.flush():
            return self.last_result
        return None

    def insert_text(self, cursor: int, snippet: str) -> int:
        """
        Inserts a snippet on its own line and schedules a commit.

        Returns:
            Cursor offset just past the inserted text
        """
        new_text, new_cursor = insert_at_cursor(self._text, cursor, snippet)
        self.set_text(new_text)
        return new_cursor

    def insert_anchor_range(self, start: float, end: float, cursor: int, kind: str = "scene") -> int:
        """Renders a confirmed anchor range and inserts it at the cursor."""
        return self.insert_text(cursor, build_range_command(start, end, kind))

    def invalidate(self) -> None:
        """Forces the next commit to re-run the executor, e.g. after a LOAD file appears."""
        self._command_hash = None

    def reconcile_duration(self, file_path: str, duration: float) -> List[int]:
        return self.executor.reconcile_duration(file_path, duration)

    # --- Compilation ---

    def commit(self, text: Optional[str] = None) -> Optional[CompileResult]:
        """
        Recompiles the document immediately.

        Args:
            text: New document text; the current text when omitted

        Returns:
            CompileResult, or None when a commit is already running and the
            text was queued instead
        """
        if self._processing:
            if text is not None and text != self._text:
                self._text = text
                self.text_changed.emit(text)
            logger.debug("Commit requested while processing; queued")
            self.commit_queue.submit(self._text)
            return None

        self.commit_queue.cancel()
        self._processing = True
        try:
            if text is not None and text != self._text:
                self._text = text
                self.text_changed.emit(text)
            result = self._compile(self._text)
        finally:
            self._processing = False

        self.last_result = result
        return result

    def _compile(self, text: str) -> CompileResult:
        header, body = split_document(text)
        offset = header.body_start_line

        commands = parse_commands(body, line_offset=offset)
        digest = command_list_hash(commands)

        report = None
        if digest != self._command_hash:
            logger.info(f"Command list changed ({len(commands)} command(s)); re-executing")
            self.store.clear()
            report = self.executor.execute_all(commands)
            self._command_hash = digest
            self.commands_executed.emit(report)
        else:
            logger.debug("Command list unchanged; skipping execution")

        scenes = parse_scenes(body, line_offset=offset)
        self.scene_collection.replace_all(scenes)
        self.scenes_changed.emit(scenes)

        if header.config != self._config:
            self._config = header.config
            self.config_changed.emit(self._config)

        return CompileResult(
            config=self._config,
            body_start_line=offset,
            scenes=scenes,
            commands=commands,
            command_hash=digest,
            executed=report is not None,
            report=report
        )

    def generate_text(self) -> str:
        """Current body under a canonical header built from the current config."""
        _, body = split_document(self._text)
        return generate_header(self._config) + body

    # --- Files ---

    def load_file(self, file_path: str) -> CompileResult:
        """
        Opens a script and compiles it.

        Relative LOAD paths resolve against the script's directory unless
        the executor already has a base directory.

        Raises:
            FileNotFoundError: If file doesn't exist
            ValueError: If the file is not UTF-8 text
        """
        text = load_script(file_path)
        self.commit_queue.cancel()
        self.file_path = file_path
        if self.executor.base_dir is None:
            self.executor.base_dir = os.path.dirname(os.path.abspath(file_path))
        self.invalidate()
        logger.info(f"Loaded script {file_path}")
        return self.commit(text)

    def save_file(self, file_path: Optional[str] = None) -> bool:
        """Commits pending edits and writes the text. Returns False on failure."""
        path = file_path or self.file_path
        if not path:
            raise ValueError("No file path given and the session has none")

        self.flush()
        if not save_script(self._text, path):
            return False
        self.file_path = ensure_extension(path)
        return True
