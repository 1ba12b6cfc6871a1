"""Fill-in session telemetry.

A ``SessionTracker`` emits discrete events tagged with the seconds elapsed
since the previous event. Delivery is the sink's business: a failing sink is
logged and never interrupts answer recording, navigation or submission.
"""
import logging
import time
from typing import Callable, Optional, Protocol

from app.models.session import SessionAction
from app.schemas.session import SessionEvent

logger = logging.getLogger(__name__)


class TelemetrySink(Protocol):
    def record(self, event: SessionEvent) -> None:
        ...


class SessionTracker:
    """Emits events for one respondent filling one survey."""

    def __init__(
        self,
        sink: TelemetrySink,
        survey_id: int,
        respondent_id: str,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._sink = sink
        self._clock = clock
        self._last = clock()
        self.survey_id = survey_id
        self.respondent_id = respondent_id

    def emit(
        self,
        action: SessionAction,
        question_id: Optional[str] = None,
        question_index: Optional[int] = None,
        answer: Optional[str] = None,
    ) -> Optional[SessionEvent]:
        """Send an event; returns it, or None if the sink failed."""
        now = self._clock()
        elapsed = max(int(now - self._last), 0)
        self._last = now

        event = SessionEvent(
            survey_id=self.survey_id,
            respondent_id=self.respondent_id,
            action=action,
            question_id=question_id,
            question_index=question_index,
            time_spent=elapsed,
            answer=answer,
        )
        try:
            self._sink.record(event)
        except Exception:
            logger.exception(
                "Telemetry sink failed for %s event (survey %s, respondent %s)",
                action.value, self.survey_id, self.respondent_id,
            )
            return None
        return event

    def answered(self, question_id: str, answer: str, question_index: int = 0) -> Optional[SessionEvent]:
        return self.emit(SessionAction.ANSWERED, question_id, question_index, answer)

    def section_completed(self, section_index: int) -> Optional[SessionEvent]:
        return self.emit(
            SessionAction.SECTION_COMPLETED,
            answer=f"Completed section {section_index + 1}",
        )

    def abandoned(self, question_id: Optional[str] = None, question_index: int = 0) -> Optional[SessionEvent]:
        return self.emit(SessionAction.ABANDONED, question_id, question_index)

    def completed(self) -> Optional[SessionEvent]:
        return self.emit(SessionAction.COMPLETED)
