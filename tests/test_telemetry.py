import logging

from app.models.session import SessionAction
from app.services.telemetry import SessionTracker


class ListSink:
    def __init__(self):
        self.events = []

    def record(self, event):
        self.events.append(event)


class BrokenSink:
    def record(self, event):
        raise ConnectionError("sink offline")


class FakeClock:
    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now


def test_events_carry_elapsed_seconds():
    sink, clock = ListSink(), FakeClock()
    tracker = SessionTracker(sink, survey_id=3, respondent_id="r-1", clock=clock)

    clock.now += 12.5
    tracker.answered("q1", "Yes", question_index=0)
    clock.now += 3
    tracker.section_completed(0)

    first, second = sink.events
    assert first.action == SessionAction.ANSWERED
    assert first.time_spent == 12
    assert first.answer == "Yes"
    assert second.time_spent == 3
    assert second.answer == "Completed section 1"


def test_completed_event_uses_sentinel_step():
    sink = ListSink()
    event = SessionTracker(sink, 3, "r-1").completed()

    assert event.step_question_id == "survey-completed"
    assert event.step_question_index == -1


def test_broken_sink_is_logged_not_raised(caplog):
    tracker = SessionTracker(BrokenSink(), 3, "r-1")

    with caplog.at_level(logging.ERROR, logger="app.services.telemetry"):
        assert tracker.abandoned("q2", 1) is None

    assert "Telemetry sink failed" in caplog.text
