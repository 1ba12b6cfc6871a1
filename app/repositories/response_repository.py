"""Response repository."""
from typing import Optional, List
from sqlalchemy.orm import Session, joinedload
from sqlalchemy import func

from app.models.response import SurveyResponse, QuestionAnswer
from app.services.assembly import ResponseRecord


class ResponseRepository:
    """Survey response data access layer."""

    def __init__(self, db: Session):
        self.db = db

    def create_from_record(self, record: ResponseRecord) -> SurveyResponse:
        """Persist an assembled response and its answers in one transaction."""
        response = SurveyResponse(
            survey_id=record.survey_id,
            respondent_id=record.respondent_id,
        )
        for position, answer in enumerate(record.answers):
            response.answers.append(
                QuestionAnswer(
                    question_id=answer.question_id,
                    position=position,
                    answer=answer.answer,
                    audio_path=answer.audio_path,
                    file_path=answer.file_path,
                )
            )
        self.db.add(response)
        self.db.commit()
        self.db.refresh(response)
        return response

    def get_by_id(self, response_id: int) -> Optional[SurveyResponse]:
        """Get response by ID with answers."""
        return self.db.query(SurveyResponse)\
            .options(joinedload(SurveyResponse.answers))\
            .filter(SurveyResponse.id == response_id)\
            .first()

    def get_by_respondent(self, survey_id: int, respondent_id: str) -> Optional[SurveyResponse]:
        """Get the response of one respondent to one survey (for deduplication)."""
        return self.db.query(SurveyResponse)\
            .filter(SurveyResponse.survey_id == survey_id,
                    SurveyResponse.respondent_id == respondent_id)\
            .first()

    def get_by_survey(self, survey_id: int, skip: int = 0, limit: Optional[int] = 100) -> List[SurveyResponse]:
        """Get responses for a survey, newest first."""
        query = self.db.query(SurveyResponse)\
            .options(joinedload(SurveyResponse.answers))\
            .filter(SurveyResponse.survey_id == survey_id)\
            .order_by(SurveyResponse.submitted_at.desc(), SurveyResponse.id.desc())\
            .offset(skip)
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def count_by_survey(self, survey_id: int) -> int:
        return self.db.query(SurveyResponse)\
            .filter(SurveyResponse.survey_id == survey_id)\
            .count()

    def count_all(self) -> int:
        return self.db.query(func.count(SurveyResponse.id)).scalar() or 0
