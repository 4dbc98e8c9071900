# tests/test_executor.py
import os
import threading
import time

import pytest

from script_editor.models.commands import CommandType, EditCommand
from script_editor.models.project import SegmentState
from script_editor.timeline.executor import CommandExecutor
from tests.fakes import ScriptedOracle


def _ranged(kind, start, end):
    return EditCommand.ranged(kind, start, end)


def _bounds(store):
    return [(s.start_time, s.end_time) for s in store.segments]


def _dump(store):
    return [s.to_dict() for s in store.segments]


# --- LOAD ---

def test_load_appends_segment_with_oracle_duration(executor, store, video_file):
    result = executor.execute(EditCommand.load(video_file))

    assert result.success
    segment = store.get_by_id(result.affected_segment_ids[0])
    assert (segment.start_time, segment.end_time) == (0.0, 10.0)
    assert segment.video_file_path == video_file
    assert segment.visible and segment.state is SegmentState.STOPPED
    assert not segment.duration_provisional


def test_load_resolves_relative_paths_against_base_dir(executor, store, media_dir):
    result = executor.execute(EditCommand.load("clip.mp4"))
    assert result.success
    assert store.segments[0].video_file_path == os.path.join(str(media_dir), "clip.mp4")


def test_second_load_starts_at_end_of_timeline(executor, store):
    executor.execute(EditCommand.load("clip.mp4"))
    executor.execute(EditCommand.load("other.mp4"))
    assert _bounds(store) == [(0.0, 10.0), (10.0, 16.0)]


def test_load_missing_file_fails_without_creating_segment(executor, store):
    result = executor.execute(EditCommand.load("nope.mp4", line_number=4))
    assert not result.success
    assert "File not found" in result.error_message
    assert len(store) == 0


def test_load_falls_back_when_duration_never_arrives(store, media_dir):
    executor = CommandExecutor(store, duration_oracle=ScriptedOracle(), base_dir=str(media_dir),
                               fallback_duration=60.0, wait_timeout=0.03, poll_interval=0.01)
    result = executor.execute(EditCommand.load("clip.mp4"))

    assert result.success
    segment = store.segments[0]
    assert (segment.start_time, segment.end_time) == (0.0, 60.0)
    assert segment.duration_provisional


def test_cancel_wait_uses_fallback_and_does_not_stick(store, media_dir):
    oracle = ScriptedOracle({"other.mp4": 6.0})
    executor = CommandExecutor(store, duration_oracle=oracle, base_dir=str(media_dir),
                               fallback_duration=60.0, wait_timeout=5.0, poll_interval=0.01)

    timer = threading.Timer(0.05, executor.cancel_wait)
    timer.start()
    started = time.monotonic()
    try:
        result = executor.execute(EditCommand.load("clip.mp4"))
    finally:
        timer.cancel()

    assert time.monotonic() - started < 2.0
    assert result.success
    assert store.segments[0].duration_provisional
    assert store.segments[0].end_time == 60.0

    # The cancellation applied to that wait only
    executor.execute(EditCommand.load("other.mp4"))
    assert _bounds(store)[-1] == (60.0, 66.0)
    assert not store.segments[-1].duration_provisional


def test_reconcile_duration_corrects_provisional_segment_and_shifts_later_ones(store, media_dir):
    oracle = ScriptedOracle({"other.mp4": 6.0})
    executor = CommandExecutor(store, duration_oracle=oracle, base_dir=str(media_dir),
                               fallback_duration=60.0, wait_timeout=0.0, poll_interval=0.01)
    executor.execute(EditCommand.load("clip.mp4"))
    executor.execute(EditCommand.load("other.mp4"))
    assert _bounds(store) == [(0.0, 60.0), (60.0, 66.0)]

    updated = executor.reconcile_duration("clip.mp4", 20.0)

    assert updated == [1]
    assert _bounds(store) == [(0.0, 20.0), (20.0, 26.0)]
    assert not any(s.duration_provisional for s in store.segments)
    assert executor.reconcile_duration("clip.mp4", 20.0) == []


def test_cut_tail_stays_provisional_and_is_reconciled(store, media_dir):
    executor = CommandExecutor(store, duration_oracle=ScriptedOracle({"other.mp4": 6.0}),
                               base_dir=str(media_dir), fallback_duration=60.0,
                               wait_timeout=0.0, poll_interval=0.01)
    executor.execute(EditCommand.load("clip.mp4"))
    executor.execute(EditCommand.load("other.mp4"))
    executor.execute(EditCommand.cut(10.0))

    head, tail = store.segments[0], store.segments[1]
    assert not head.duration_provisional
    assert tail.duration_provisional

    assert executor.reconcile_duration("clip.mp4", 25.0) == [tail.id]
    assert _bounds(store) == [(0.0, 10.0), (10.0, 25.0), (25.0, 31.0)]
    assert not any(s.duration_provisional for s in store.segments)


def test_reconcile_removes_cut_tail_past_source_end(store, media_dir):
    executor = CommandExecutor(store, duration_oracle=ScriptedOracle({"other.mp4": 6.0}),
                               base_dir=str(media_dir), fallback_duration=60.0,
                               wait_timeout=0.0, poll_interval=0.01)
    executor.execute(EditCommand.load("clip.mp4"))
    executor.execute(EditCommand.load("other.mp4"))
    executor.execute(EditCommand.cut(10.0))
    tail_id = store.segments[1].id

    assert executor.reconcile_duration("clip.mp4", 8.0) == [tail_id]
    assert store.get_by_id(tail_id) is None
    assert _bounds(store) == [(0.0, 10.0), (10.0, 16.0)]


def test_reconcile_rejects_non_positive_duration(executor):
    with pytest.raises(ValueError):
        executor.reconcile_duration("clip.mp4", 0)


# --- CUT ---

def test_cut_splits_segment_in_two(executor, store, make_segment):
    original = store.add(make_segment(0, 10))

    result = executor.execute(EditCommand.cut(5.0))

    assert result.success
    assert _bounds(store) == [(0.0, 5.0), (5.0, 10.0)]
    assert store.get_by_id(original) is None
    assert all(s.video_file_path == "/videos/a.mp4" for s in store.segments)
    assert all(s.state is SegmentState.STOPPED for s in store.segments)
    assert result.affected_segment_ids == [s.id for s in store.segments]


def test_cut_inside_guard_band_fails_and_leaves_store_unchanged(executor, store, make_segment):
    store.add(make_segment(0, 10))
    before = _dump(store)

    result = executor.execute(EditCommand.cut(0.05))

    assert not result.success
    assert "boundary" in result.error_message
    assert _dump(store) == before
    assert not executor.execute(EditCommand.cut(9.95)).success


def test_cut_exactly_at_margin_is_allowed(executor, store, make_segment):
    store.add(make_segment(5, 10))
    assert executor.execute(EditCommand.cut(5.1)).success


def test_cut_outside_any_segment_fails(executor, store, make_segment):
    store.add(make_segment(0, 10))
    result = executor.execute(EditCommand.cut(12.0))
    assert not result.success
    assert "No segment" in result.error_message


def test_cut_children_keep_visibility_speed_and_first_thumbnail(executor, store, make_segment):
    store.add(make_segment(0, 10, visible=False, state=SegmentState.HIDDEN,
                           speed_rate=2.0, thumbnail="thumb"))

    executor.execute(EditCommand.cut(4.0))

    first, second = store.segments
    assert not first.visible and not second.visible
    assert first.state is SegmentState.STOPPED
    assert first.speed_rate == second.speed_rate == 2.0
    assert (first.thumbnail, second.thumbnail) == ("thumb", None)


# --- HIDE / SHOW / DELETE ---

def test_hide_then_show_restores_visibility_without_moving_bounds(executor, store, make_segment):
    store.add(make_segment(0, 10))

    hidden = executor.execute(_ranged(CommandType.HIDE, 2.0, 4.0))
    segment = store.segments[0]
    assert hidden.success
    assert (segment.visible, segment.state) == (False, SegmentState.HIDDEN)

    shown = executor.execute(_ranged(CommandType.SHOW, 2.0, 4.0))
    segment = store.segments[0]
    assert shown.success
    assert (segment.visible, segment.state) == (True, SegmentState.STOPPED)
    assert _bounds(store) == [(0.0, 10.0)]


def test_hide_affects_only_overlapping_segments(executor, store, make_segment):
    store.add(make_segment(0, 5))
    store.add(make_segment(5, 10))
    store.add(make_segment(10, 15))

    result = executor.execute(_ranged(CommandType.HIDE, 4.0, 6.0))

    assert result.affected_segment_ids == [1, 2]
    assert [s.visible for s in store.segments] == [False, False, True]


@pytest.mark.parametrize("kind", [CommandType.HIDE, CommandType.SHOW, CommandType.DELETE, CommandType.MERGE])
def test_range_commands_fail_without_overlap(executor, store, make_segment, kind):
    store.add(make_segment(0, 5))
    result = executor.execute(_ranged(kind, 6.0, 8.0))
    assert not result.success
    assert "No segments" in result.error_message


@pytest.mark.parametrize("kind", [CommandType.HIDE, CommandType.DELETE])
def test_range_commands_fail_on_inverted_range(executor, store, make_segment, kind):
    store.add(make_segment(0, 5))
    result = executor.execute(_ranged(kind, 4.0, 1.0))
    assert not result.success
    assert "Invalid range" in result.error_message
    assert len(store) == 1


def test_delete_removes_overlapping(executor, store, make_segment):
    store.add(make_segment(0, 5))
    store.add(make_segment(5, 10))
    store.add(make_segment(10, 15))

    result = executor.execute(_ranged(CommandType.DELETE, 5.0, 10.0))

    assert result.affected_segment_ids == [2]
    assert _bounds(store) == [(0.0, 5.0), (10.0, 15.0)]


# --- MERGE ---

def test_merge_contiguous_same_file_segments(executor, store, make_segment):
    store.add(make_segment(0, 5, thumbnail="first"))
    store.add(make_segment(5, 8))

    result = executor.execute(_ranged(CommandType.MERGE, 0.0, 8.0))

    assert result.success
    assert _bounds(store) == [(0.0, 8.0)]
    merged = store.segments[0]
    assert merged.id == result.affected_segment_ids[0] == 3
    assert merged.thumbnail == "first"
    assert merged.visible and merged.state is SegmentState.STOPPED


def test_merge_across_files_fails_and_keeps_inputs(executor, store, make_segment):
    store.add(make_segment(0, 5, path="/videos/a.mp4"))
    store.add(make_segment(5, 8, path="/videos/b.mp4"))
    before = _dump(store)

    result = executor.execute(_ranged(CommandType.MERGE, 0.0, 8.0))

    assert not result.success
    assert "different files" in result.error_message
    assert _dump(store) == before


def test_merge_needs_two_segments(executor, store, make_segment):
    store.add(make_segment(0, 5))
    result = executor.execute(_ranged(CommandType.MERGE, 0.0, 5.0))
    assert not result.success
    assert len(store) == 1


def test_merge_with_hidden_input_is_hidden(executor, store, make_segment):
    store.add(make_segment(0, 5))
    store.add(make_segment(5, 8, visible=False, state=SegmentState.HIDDEN))

    executor.execute(_ranged(CommandType.MERGE, 0.0, 8.0))

    merged = store.segments[0]
    assert (merged.visible, merged.state) == (False, SegmentState.HIDDEN)


def test_merge_keeps_provisional_tail(executor, store, make_segment):
    store.add(make_segment(0, 5))
    store.add(make_segment(5, 60, duration_provisional=True))

    executor.execute(_ranged(CommandType.MERGE, 0.0, 60.0))

    assert store.segments[0].duration_provisional


# --- SPEED ---

def test_speed_sets_rate_on_overlapping_segments(executor, store, make_segment):
    store.add(make_segment(0, 5))
    store.add(make_segment(5, 10))

    result = executor.execute(EditCommand.speed(2.0, 6.0, 7.0))

    assert result.affected_segment_ids == [2]
    assert [s.speed_rate for s in store.segments] == [1.0, 2.0]
    assert store.segments[1].effective_duration == 2.5


@pytest.mark.parametrize("rate, ok", [(0.05, False), (0.1, True), (10.0, True), (10.5, False)])
def test_speed_rate_bounds(executor, store, make_segment, rate, ok):
    store.add(make_segment(0, 5))
    result = executor.execute(EditCommand.speed(rate, 0.0, 5.0))
    assert result.success is ok
    assert store.segments[0].speed_rate == (rate if ok else 1.0)


# --- Batches and contracts ---

def test_batch_runs_every_command_and_reports(executor, store):
    commands = [
        EditCommand.load("clip.mp4", line_number=1),
        EditCommand.cut(0.05, line_number=2),
        EditCommand.cut(5.0, line_number=3),
        EditCommand.ranged(CommandType.HIDE, 20.0, 30.0, line_number=4),
        EditCommand.ranged(CommandType.HIDE, 0.0, 1.0, line_number=5),
    ]

    report = executor.execute_all(commands)

    assert (report.total_commands, report.success_count, report.failure_count) == (5, 3, 2)
    assert [r.success for r in report.results] == [True, False, True, False, True]
    assert report.error_messages[0].startswith("line 2: ")
    assert report.error_messages[1].startswith("line 4: ")
    assert [s.visible for s in store.segments] == [False, True]


def test_requires_store():
    with pytest.raises(ValueError):
        CommandExecutor(None)


def test_execute_rejects_none(executor):
    with pytest.raises(ValueError):
        executor.execute(None)
