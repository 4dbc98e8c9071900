# tests/conftest.py
from pathlib import Path
import pytest

from PySide6.QtCore import QCoreApplication

from script_editor.models.project import VideoSegment
from script_editor.timeline.executor import CommandExecutor
from script_editor.timeline.segment_store import VideoSegmentStore
from tests.fakes import ScriptedOracle


@pytest.fixture(scope="session")
def qapp():
    """One QCoreApplication for the whole run; Qt allows only one."""
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app


@pytest.fixture
def store(qapp):
    return VideoSegmentStore()


@pytest.fixture
def make_segment():
    """Builds detached segments; the store assigns ids on add."""
    def _make(start: float, end: float, path: str = "/videos/a.mp4", **kwargs) -> VideoSegment:
        return VideoSegment(start_time=start, end_time=end, video_file_path=path, **kwargs)
    return _make


@pytest.fixture
def media_dir(tmp_path: Path):
    """Workspace with empty placeholder clips (filenames only; no media needed)."""
    (tmp_path / "clip.mp4").write_bytes(b"")
    (tmp_path / "other.mp4").write_bytes(b"")
    return tmp_path


@pytest.fixture
def video_file(media_dir: Path) -> str:
    return str(media_dir / "clip.mp4")


@pytest.fixture
def oracle():
    return ScriptedOracle({"clip.mp4": 10.0, "other.mp4": 6.0})


@pytest.fixture
def executor(store, oracle, media_dir):
    return CommandExecutor(
        store,
        duration_oracle=oracle,
        base_dir=str(media_dir),
        fallback_duration=60.0,
        wait_timeout=0.05,
        poll_interval=0.01
    )
