"""Admin statistics endpoint."""
from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session
from sqlalchemy import func
from typing import Annotated

from app.core.database import get_db
from app.core.ops_metrics import get_public_ops_metrics
from app.api.dependencies import AdminUser
from app.models.user import User, UserRole
from app.models.survey import Survey
from app.models.response import SurveyResponse
from app.models.session import SurveySession

router = APIRouter(prefix="/admin/stats", tags=["admin-stats"])


@router.get("")
def get_admin_stats(
    db: Annotated[Session, Depends(get_db)],
    current_user: AdminUser,
    response: Response,
):
    """Return system-wide statistics for the admin dashboard."""
    # "private" ensures proxies don't share it across users.
    response.headers["Cache-Control"] = "private, max-age=60"

    researchers = db.query(User).filter(User.role == UserRole.RESEARCHER)

    total_users = db.query(func.count(User.id)).scalar() or 0
    approved_researchers = researchers.filter(User.is_approved == True).count()  # noqa: E712
    pending_researchers = (
        researchers
        .filter(User.is_approved == False, User.is_active == True, User.is_email_verified == True)  # noqa: E712
        .count()
    )

    total_surveys = db.query(func.count(Survey.id)).scalar() or 0
    active_surveys = (
        db.query(func.count(Survey.id))
        .filter(Survey.is_active == True)  # noqa: E712
        .scalar()
        or 0
    )

    total_responses = db.query(func.count(SurveyResponse.id)).scalar() or 0

    total_sessions = db.query(func.count(SurveySession.id)).scalar() or 0
    completed_sessions = (
        db.query(func.count(SurveySession.id))
        .filter(SurveySession.is_completed == True)  # noqa: E712
        .scalar()
        or 0
    )

    completion_rate = (
        round((completed_sessions / total_sessions) * 100, 1)
        if total_sessions > 0
        else 0.0
    )

    return {
        "totalUsers": total_users,
        "approvedResearchers": approved_researchers,
        "pendingResearchers": pending_researchers,
        "totalSurveys": total_surveys,
        "activeSurveys": active_surveys,
        "totalResponses": total_responses,
        "totalSessions": total_sessions,
        "completionRate": completion_rate,
    }


@router.get("/ops")
def get_ops_metrics(current_user: AdminUser):
    """In-memory latency and submission counters of the public API."""
    return get_public_ops_metrics()
