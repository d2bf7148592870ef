from __future__ import annotations

import time

import pytest


class RecordingAnalytics:
    def __init__(self, fail_first: bool = False):
        self.calls = []
        self.fail_first = fail_first

    def track(self, event, properties=None):  # noqa: ANN001
        if self.fail_first and not self.calls:
            self.calls.append(None)
            raise RuntimeError("sink down")
        self.calls.append((event, properties))


def test_tracks_in_progress_events_on_interval():
    from perfanalytics.core.analytics.progress import ProgressTracker

    a = RecordingAnalytics()
    state = {"modal_showing": False}
    t = ProgressTracker(a, "CPU Tab - In Progress", interval_seconds=0.2, properties=lambda: {"tab_active": True, **state})
    t.start()
    try:
        time.sleep(0.1)
        assert a.calls == []  # first event waits one full interval
        state["modal_showing"] = True
        time.sleep(0.45)
    finally:
        t.stop()
    assert len(a.calls) >= 1
    assert a.calls[0] == ("CPU Tab - In Progress", {"tab_active": True, "modal_showing": True})
    n = len(a.calls)
    time.sleep(0.3)
    assert len(a.calls) == n


def test_static_properties_and_context_manager():
    from perfanalytics.core.analytics.progress import ProgressTracker

    a = RecordingAnalytics()
    with ProgressTracker(a, "Camera - In Progress", interval_seconds=0.2, properties={"camera_active": True}) as t:
        time.sleep(0.3)
        assert t.running()
    assert not t.running()
    assert a.calls[0] == ("Camera - In Progress", {"camera_active": True})


def test_errors_do_not_stop_tracking():
    from perfanalytics.core.analytics.progress import ProgressTracker

    a = RecordingAnalytics(fail_first=True)
    t = ProgressTracker(a, "Forms Tab - In Progress", interval_seconds=0.2)
    t.start()
    try:
        time.sleep(0.55)
    finally:
        t.stop()
    assert len(a.calls) >= 2
    assert a.calls[1] == ("Forms Tab - In Progress", None)
    assert t.ticks >= 1


def test_restart_after_stop():
    from perfanalytics.core.analytics.progress import ProgressTracker

    a = RecordingAnalytics()
    t = ProgressTracker(a, "Animation Tab - In Progress", interval_seconds=0.2)
    t.start()
    t.stop()
    t.start()
    try:
        time.sleep(0.3)
    finally:
        t.stop()
    assert len(a.calls) >= 1


def test_rejects_non_positive_interval():
    from perfanalytics.core.analytics.progress import ProgressTracker

    with pytest.raises(ValueError):
        ProgressTracker(RecordingAnalytics(), "x", interval_seconds=0)
