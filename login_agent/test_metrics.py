import pytest
from metrics import StageTracker


def test_tracker_records_stage():
    tracker = StageTracker()
    tracker.start_stage("open login page")
    tracker.end_stage("open login page", success=True)

    summary = tracker.get_summary()
    assert summary["total_stages"] == 1
    assert summary["completed"] == 1
    assert summary["failed_stage"] is None


def test_tracker_reports_failed_stage():
    tracker = StageTracker()
    tracker.start_stage("open login page")
    tracker.end_stage("open login page", success=True)
    tracker.start_stage("resolve challenge")
    tracker.end_stage("resolve challenge", success=False, error="token timeout")

    summary = tracker.get_summary()
    assert summary["total_stages"] == 2
    assert summary["completed"] == 1
    assert summary["failed_stage"] == "resolve challenge"
    assert summary["per_stage"][1]["error"] == "token timeout"


def test_end_unknown_stage_is_ignored():
    tracker = StageTracker()
    tracker.end_stage("never started", success=True)
    assert tracker.get_summary()["total_stages"] == 0
