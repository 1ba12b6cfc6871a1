"""Fill-in session repository."""
from typing import Optional, List
from sqlalchemy.orm import Session
from sqlalchemy import func
from sqlalchemy.sql import func as sql_func

from app.models.session import SurveySession, SessionStep, SessionAction


class SessionRepository:
    """Session telemetry data access layer."""

    def __init__(self, db: Session):
        self.db = db

    def get_by_respondent(self, survey_id: int, respondent_id: str) -> Optional[SurveySession]:
        return self.db.query(SurveySession)\
            .filter(SurveySession.survey_id == survey_id,
                    SurveySession.respondent_id == respondent_id)\
            .first()

    def create(self, survey_id: int, respondent_id: str, current_question_index: int = 0,
               user_agent: Optional[str] = None, language: Optional[str] = None) -> SurveySession:
        session = SurveySession(
            survey_id=survey_id,
            respondent_id=respondent_id,
            current_question_index=current_question_index,
            user_agent=user_agent,
            language=language,
        )
        self.db.add(session)
        self.db.flush()
        return session

    def add_step(self, session: SurveySession, question_id: str, question_index: int,
                 action: SessionAction, time_spent: int = 0,
                 answer: Optional[str] = None) -> SessionStep:
        """Append a step and bump the session's activity markers."""
        step = SessionStep(
            question_id=question_id,
            question_index=question_index,
            action=action,
            time_spent=time_spent,
            answer=answer,
        )
        session.steps.append(step)
        session.last_activity = sql_func.now()
        if question_index > 0:
            session.current_question_index = question_index

        if action == SessionAction.ABANDONED:
            session.is_abandoned = True
        elif action == SessionAction.COMPLETED:
            session.is_completed = True

        self.db.commit()
        self.db.refresh(session)
        return step

    def count(self, survey_id: int, is_completed: Optional[bool] = None,
              is_abandoned: Optional[bool] = None) -> int:
        query = self.db.query(SurveySession).filter(SurveySession.survey_id == survey_id)
        if is_completed is not None:
            query = query.filter(SurveySession.is_completed == is_completed)
        if is_abandoned is not None:
            query = query.filter(SurveySession.is_abandoned == is_abandoned)
        return query.count()

    def abandonment_points(self, survey_id: int) -> List[tuple]:
        """(question_id, question_index, count) of abandon steps, most frequent first."""
        return self.db.query(
                SessionStep.question_id,
                SessionStep.question_index,
                func.count(SessionStep.id).label("count"),
            )\
            .join(SurveySession, SurveySession.id == SessionStep.session_id)\
            .filter(SurveySession.survey_id == survey_id,
                    SurveySession.is_abandoned == True,  # noqa: E712
                    SessionStep.action == SessionAction.ABANDONED)\
            .group_by(SessionStep.question_id, SessionStep.question_index)\
            .order_by(func.count(SessionStep.id).desc())\
            .all()

    def average_time_per_question(self, survey_id: int) -> List[tuple]:
        """(question_id, question_index, avg_time, count) over answered/skipped steps."""
        return self.db.query(
                SessionStep.question_id,
                SessionStep.question_index,
                func.avg(SessionStep.time_spent).label("avg_time"),
                func.count(SessionStep.id).label("count"),
            )\
            .join(SurveySession, SurveySession.id == SessionStep.session_id)\
            .filter(SurveySession.survey_id == survey_id,
                    SessionStep.action.in_([SessionAction.ANSWERED, SessionAction.SKIPPED]))\
            .group_by(SessionStep.question_id, SessionStep.question_index)\
            .order_by(SessionStep.question_index.asc())\
            .all()
