from __future__ import annotations

from modules.client_workflow.sync.dirty import DirtySectionTracker


def test_mark_reports_growth_only_once():
    tracker = DirtySectionTracker()
    assert tracker.mark("dates")
    assert not tracker.mark("dates")
    assert tracker.sections() == frozenset({"dates"})
    assert tracker.revision("dates") == 2


def test_clear_requires_matching_revision():
    tracker = DirtySectionTracker()
    tracker.mark("dates")
    captured = tracker.capture(["dates"])
    tracker.mark("dates")

    assert not tracker.clear_if_unchanged("dates", captured["dates"])
    assert "dates" in tracker
    assert tracker.clear_if_unchanged("dates", tracker.revision("dates"))
    assert not tracker


def test_discard_invalidates_captured_revision():
    tracker = DirtySectionTracker()
    tracker.mark("pricing")
    captured = tracker.capture(["pricing"])

    assert tracker.discard("pricing")
    assert not tracker.discard("pricing")
    assert tracker.revision("pricing") != captured["pricing"]
    assert len(tracker) == 0


def test_reset_forgets_revisions():
    tracker = DirtySectionTracker()
    tracker.mark("dates")
    tracker.reset()
    assert tracker.revision("dates") == 0
    assert tracker.sections() == frozenset()
