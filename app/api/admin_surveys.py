"""Survey router (author control plane)."""
from typing import Annotated, List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.services.survey_service import SurveyService
from app.services.response_service import ResponseService
from app.services.session_service import SessionService
from app.schemas.survey import SurveyCreate, SurveyUpdate, SurveyDetail, SurveyListItem
from app.schemas.response import SurveyResponseDetail
from app.schemas.analytics import SurveyAnalytics, SessionAnalytics
from app.api.dependencies import AuthorUser

router = APIRouter(prefix="/admin/surveys", tags=["Admin - Surveys"])


@router.post("", response_model=SurveyDetail, status_code=201)
def create_survey(
    survey_data: SurveyCreate,
    db: Annotated[Session, Depends(get_db)],
    current_user: AuthorUser
):
    """
    Create a new survey with sections (or a legacy flat question list).

    A shareable id is generated for the public link.
    """
    service = SurveyService(db)
    return service.create_survey(survey_data, current_user)


@router.get("", response_model=List[SurveyListItem])
def list_surveys(
    db: Annotated[Session, Depends(get_db)],
    current_user: AuthorUser,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    is_active: Optional[bool] = None,
    search: Optional[str] = Query(None, max_length=255)
):
    """
    List surveys with response counts.

    Admins see every survey, researchers only their own.
    """
    service = SurveyService(db)
    return service.get_surveys(
        current_user, skip=skip, limit=limit, is_active=is_active, search=search
    )


@router.get("/{survey_id}", response_model=SurveyDetail)
def get_survey(
    survey_id: int,
    db: Annotated[Session, Depends(get_db)],
    current_user: AuthorUser
):
    """Get survey details with its definition."""
    service = SurveyService(db)
    return service.get_owned_survey(survey_id, current_user)


@router.put("/{survey_id}", response_model=SurveyDetail)
def update_survey(
    survey_id: int,
    survey_data: SurveyUpdate,
    db: Annotated[Session, Depends(get_db)],
    current_user: AuthorUser
):
    """Update survey metadata; sections/questions replace the definition."""
    service = SurveyService(db)
    return service.update_survey(survey_id, survey_data, current_user)


@router.delete("/{survey_id}", status_code=204)
def delete_survey(
    survey_id: int,
    db: Annotated[Session, Depends(get_db)],
    current_user: AuthorUser
):
    """Delete survey with its responses and sessions."""
    service = SurveyService(db)
    service.delete_survey(survey_id, current_user)


@router.get("/{survey_id}/responses", response_model=List[SurveyResponseDetail])
def list_survey_responses(
    survey_id: int,
    db: Annotated[Session, Depends(get_db)],
    current_user: AuthorUser,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000)
):
    """Stored responses, newest first, answers in survey order."""
    service = ResponseService(db)
    return service.get_survey_responses(survey_id, current_user, skip=skip, limit=limit)


@router.get("/{survey_id}/analytics", response_model=SurveyAnalytics)
def get_survey_analytics(
    survey_id: int,
    db: Annotated[Session, Depends(get_db)],
    current_user: AuthorUser
):
    """Per-question charts data and the daily submission trend."""
    service = ResponseService(db)
    return service.get_analytics(survey_id, current_user)


@router.get("/{survey_id}/sessions/analytics", response_model=SessionAnalytics)
def get_session_analytics(
    survey_id: int,
    db: Annotated[Session, Depends(get_db)],
    current_user: AuthorUser
):
    """Completion and abandonment of fill-in sessions."""
    SurveyService(db).get_owned_survey(survey_id, current_user)
    return SessionService(db).get_analytics(survey_id)
