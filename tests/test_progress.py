"""
Tests for progress event reporting.
"""

from __future__ import annotations

from spritedelta.progress import ProgressReporter, should_report


class TestProgressReporter:
    def test_no_callback(self):
        reporter = ProgressReporter()
        reporter.report("Stage", 40)
        assert reporter.percent == 40

    def test_never_moves_backwards(self):
        events = []
        reporter = ProgressReporter(events.append)
        reporter.report("Analyzing tiles", 72)
        reporter.report("Generating images", 55, "late")
        assert [e.percent for e in events] == [72, 72]
        assert events[1].stage == "Generating images"
        assert events[1].detail == "late"

    def test_clamped(self):
        events = []
        reporter = ProgressReporter(events.append)
        reporter.report("a", -5)
        reporter.report("b", 250)
        assert [e.percent for e in events] == [0, 100]

    def test_span(self):
        events = []
        reporter = ProgressReporter(events.append)
        reporter.span("Analyzing frames", 20, 55, 1, 2)
        reporter.span("Analyzing frames", 20, 55, 2, 2)
        assert [e.percent for e in events] == [37.5, 55]

    def test_span_empty_total(self):
        events = []
        ProgressReporter(events.append).span("x", 10, 20, 0, 0)
        assert events[0].percent == 10


class TestShouldReport:
    def test_every_fourth_and_last(self):
        assert [i for i in range(10) if should_report(i, 10)] == [0, 4, 8, 9]

    def test_custom_interval(self):
        assert [i for i in range(10) if should_report(i, 10, every=8)] == [0, 8, 9]
