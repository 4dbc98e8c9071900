# tests/test_app.py
import json

import config
from script_editor.app import main


def _write_script(tmp_path, body):
    (tmp_path / "clip.mp4").write_bytes(b"")
    script = tmp_path / "trip.scut"
    script.write_text('PROJECT "CLI"\n===\n' + body, encoding="utf-8")
    return script


def test_compiles_script_and_writes_outputs(qapp, tmp_path):
    script = _write_script(tmp_path, "\n".join([
        "LOAD clip.mp4",
        "CUT 00:00:30.000",
        "--- [00:00:00.000 -> 00:00:02.000] ---",
        "> Hello",
    ]))
    snapshot = tmp_path / "out.json"
    srt = tmp_path / "out.srt"

    code = main([str(script), "--no-probe", "--json", str(snapshot), "--srt", str(srt)])

    assert code == 0
    data = json.loads(snapshot.read_text(encoding="utf-8"))
    assert data["config"]["project_name"] == "CLI"
    assert [(s["start_time"], s["end_time"]) for s in data["segments"]] == [
        (0.0, 30.0), (30.0, config.LOAD_FALLBACK_DURATION)
    ]
    assert data["command_hash"]
    assert "Hello" in srt.read_text(encoding="utf-8")


def test_failed_command_sets_exit_code(qapp, tmp_path):
    script = _write_script(tmp_path, "LOAD missing.mp4\n")
    assert main([str(script), "--no-probe"]) == 1


def test_missing_script(qapp, tmp_path):
    assert main([str(tmp_path / "absent.scut"), "--no-probe"]) == 2
