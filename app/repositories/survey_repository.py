"""Survey repository."""
from datetime import datetime
from typing import Optional, List, Tuple
from sqlalchemy.orm import Session
from sqlalchemy import func, or_

from app.models.survey import Survey
from app.models.response import SurveyResponse


class SurveyRepository:
    """Survey data access layer."""

    def __init__(self, db: Session):
        self.db = db

    def create(self, title: str, description: str, shareable_id: str,
               definition: dict, created_by: Optional[int], is_active: bool = True,
               scheduled_date=None, expiration_date=None) -> Survey:
        """Create a new survey."""
        survey = Survey(
            title=title,
            description=description,
            shareable_id=shareable_id,
            definition=definition,
            created_by=created_by,
            is_active=is_active,
            scheduled_date=scheduled_date,
            expiration_date=expiration_date,
        )
        self.db.add(survey)
        self.db.commit()
        self.db.refresh(survey)
        return survey

    def get_by_id(self, survey_id: int) -> Optional[Survey]:
        """Get survey by ID."""
        return self.db.query(Survey).filter(Survey.id == survey_id).first()

    def get_by_shareable_id(self, shareable_id: str) -> Optional[Survey]:
        """Get survey by its public shareable ID."""
        return self.db.query(Survey).filter(Survey.shareable_id == shareable_id).first()

    def exists_by_shareable_id(self, shareable_id: str) -> bool:
        return self.db.query(Survey.id).filter(Survey.shareable_id == shareable_id).first() is not None

    def get_all(self, skip: int = 0, limit: int = 100,
                is_active: Optional[bool] = None,
                created_by: Optional[int] = None,
                search: Optional[str] = None,
                open_at: Optional[datetime] = None) -> List[Tuple[Survey, int]]:
        """
        Get surveys newest first, each paired with its response count.

        ``open_at`` keeps only surveys whose schedule window contains that moment.
        """
        response_count = (
            self.db.query(
                SurveyResponse.survey_id.label("survey_id"),
                func.count(SurveyResponse.id).label("count"),
            )
            .group_by(SurveyResponse.survey_id)
            .subquery()
        )
        query = (
            self.db.query(Survey, func.coalesce(response_count.c.count, 0))
            .outerjoin(response_count, response_count.c.survey_id == Survey.id)
        )

        if is_active is not None:
            query = query.filter(Survey.is_active == is_active)

        if open_at is not None:
            query = query.filter(
                or_(Survey.scheduled_date.is_(None), Survey.scheduled_date <= open_at),
                or_(Survey.expiration_date.is_(None), Survey.expiration_date >= open_at),
            )

        if created_by is not None:
            query = query.filter(Survey.created_by == created_by)

        if search:
            pattern = f"%{search}%"
            query = query.filter(
                or_(
                    Survey.title.ilike(pattern),
                    Survey.description.ilike(pattern),
                )
            )

        rows = query.order_by(Survey.created_at.desc(), Survey.id.desc()).offset(skip).limit(limit).all()
        return [(survey, count) for survey, count in rows]

    def update(self, survey_id: int, clear: Tuple[str, ...] = (), **kwargs) -> Optional[Survey]:
        """Update survey fields; None values are skipped unless named in ``clear``."""
        survey = self.get_by_id(survey_id)
        if not survey:
            return None

        for key, value in kwargs.items():
            if value is not None and hasattr(survey, key):
                setattr(survey, key, value)
        for key in clear:
            setattr(survey, key, None)

        self.db.commit()
        self.db.refresh(survey)
        return survey

    def delete(self, survey_id: int) -> bool:
        """Delete survey with its responses and sessions."""
        survey = self.get_by_id(survey_id)
        if not survey:
            return False

        self.db.delete(survey)
        self.db.commit()
        return True

    def count_active(self) -> int:
        return self.db.query(func.count(Survey.id)).filter(Survey.is_active == True).scalar() or 0  # noqa: E712
