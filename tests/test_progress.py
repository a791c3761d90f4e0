"""Tests for the progress and result sinks."""

from progress import ListResultSink, NullProgress, ProgressTracker


def test_tracker_position():
    with ProgressTracker(resolution=100, disable=True) as tracker:
        tracker.update(0.45, 0.45, 0.85, "start")
        assert tracker.position == 0
        tracker.update(0.65, 0.45, 0.85, "half way")
        assert tracker.position == 50
        assert tracker.last_label == "half way"
        # never moves backwards
        tracker.update(0.50, 0.45, 0.85)
        assert tracker.position == 50
        tracker.update(2.0, 0.45, 0.85)
        assert tracker.position == 100


def test_tracker_single_point_range():
    with ProgressTracker(resolution=10, disable=True) as tracker:
        tracker.update(0.6, 0.6, 0.6)
        assert tracker.position == 10


def test_null_progress_and_list_sink():
    NullProgress().update(1.0, 0.0, 2.0, "ignored")
    sink = ListResultSink()
    sink.accept(("a", "b"))
    assert sink.candidates == ["a", "b"]
