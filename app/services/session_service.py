"""Fill-in session telemetry persistence and analytics."""
import logging
from typing import Optional
from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.repositories.session_repository import SessionRepository
from app.repositories.survey_repository import SurveyRepository
from app.models.session import SurveySession
from app.schemas.analytics import AbandonmentPoint, QuestionTiming, SessionAnalytics
from app.schemas.session import SessionEvent

logger = logging.getLogger(__name__)


def _rate(part: int, total: int) -> float:
    return round(part / total * 100, 1) if total > 0 else 0.0


class SessionService:
    """Stores session events; usable as a ``TelemetrySink``."""

    def __init__(self, db: Session):
        self.db = db
        self.session_repo = SessionRepository(db)
        self.survey_repo = SurveyRepository(db)

    def record(self, event: SessionEvent, user_agent: Optional[str] = None, language: Optional[str] = None) -> SurveySession:
        """
        Append ``event`` to the respondent's session, creating it on first contact.

        Raises:
            HTTPException: If the survey does not exist
        """
        if not self.survey_repo.get_by_id(event.survey_id):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Survey not found"
            )

        session = self.session_repo.get_by_respondent(event.survey_id, event.respondent_id)
        if session is None:
            session = self.session_repo.create(
                survey_id=event.survey_id,
                respondent_id=event.respondent_id,
                current_question_index=max(event.question_index or 0, 0),
                user_agent=user_agent,
                language=language,
            )
            logger.debug("Started session %s for survey %s", session.id, event.survey_id)

        self.session_repo.add_step(
            session,
            question_id=event.step_question_id,
            question_index=event.step_question_index,
            action=event.action,
            time_spent=event.time_spent,
            answer=event.answer,
        )
        return session

    def get_analytics(self, survey_id: int) -> SessionAnalytics:
        """Completion/abandonment rates, drop-off points and time per question."""
        total = self.session_repo.count(survey_id)
        completed = self.session_repo.count(survey_id, is_completed=True)
        abandoned = self.session_repo.count(survey_id, is_abandoned=True)

        return SessionAnalytics(
            survey_id=survey_id,
            total_sessions=total,
            completed_sessions=completed,
            abandoned_sessions=abandoned,
            completion_rate=_rate(completed, total),
            abandonment_rate=_rate(abandoned, total),
            abandonment_points=[
                AbandonmentPoint(question_id=qid, question_index=index, count=count)
                for qid, index, count in self.session_repo.abandonment_points(survey_id)
            ],
            avg_time_per_question=[
                QuestionTiming(
                    question_id=qid,
                    question_index=index,
                    avg_time=round(float(avg_time or 0), 1),
                    count=count,
                )
                for qid, index, avg_time, count in self.session_repo.average_time_per_question(survey_id)
            ],
        )
