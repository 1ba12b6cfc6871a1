"""Database models."""
from app.models.user import User, UserRole
from app.models.survey import Survey
from app.models.response import SurveyResponse, QuestionAnswer
from app.models.session import SurveySession, SessionStep, SessionAction

__all__ = [
    "User",
    "UserRole",
    "Survey",
    "SurveyResponse",
    "QuestionAnswer",
    "SurveySession",
    "SessionStep",
    "SessionAction",
]
