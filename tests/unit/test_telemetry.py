import logging

import pytest

from recipe_extract.telemetry import InMemoryReporter, TelemetryContext

pytestmark = pytest.mark.unit


def test_disabled_context_is_shared_noop():
    reporter = InMemoryReporter()
    ctx = TelemetryContext(reporter, enabled=False)

    with ctx("scope") as tele:
        tele.count("calls")

    assert ctx is TelemetryContext()
    assert reporter.metrics == {}
    assert reporter.timings == {}


def test_env_flag_enables_reporting(monkeypatch):
    monkeypatch.setenv("RECIPE_EXTRACT_TELEMETRY", "1")
    reporter = InMemoryReporter()

    with TelemetryContext(reporter)("outer") as tele:
        tele.gauge("size", 3)

    assert reporter.values("size") == [3]


def test_nested_scopes_build_paths():
    reporter = InMemoryReporter()
    ctx = TelemetryContext(reporter, enabled=True)

    with ctx("video.extract"):
        with ctx("video.query") as tele:
            tele.count("video.retry_count", 2)

    assert "video.extract.video.query.video.retry_count" in reporter.metrics
    assert reporter.values("video.retry_count") == [2]
    assert set(reporter.timings) == {"video.extract", "video.extract.video.query"}
    assert "video.extract" in reporter.get_report()


def test_invalid_scope_name():
    ctx = TelemetryContext(InMemoryReporter(), enabled=True)

    with pytest.raises(ValueError), ctx(""):
        pass


def test_failing_reporter_is_logged_not_raised(caplog):
    class Broken:
        def record_timing(self, scope, duration, **metadata):
            raise RuntimeError("disk full")

        def record_metric(self, scope, value, **metadata):
            raise RuntimeError("disk full")

    good = InMemoryReporter()
    ctx = TelemetryContext(Broken(), good, enabled=True)

    with caplog.at_level(logging.ERROR), ctx("scope") as tele:
        tele.count("n")

    assert good.values("n") == [1]
    assert "Telemetry reporter 'Broken' failed" in caplog.text
