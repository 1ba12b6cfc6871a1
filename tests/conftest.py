"""Shared fixtures: in-memory sqlite, TestClient and seeded users."""
import os
import tempfile

# Settings are read at import time, so the environment must be ready first.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-pytest-only-0123456789")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("RESEND_API_KEY", "")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="survey-flow-uploads-"))

import pytest
from fastapi.testclient import TestClient

from app.core.database import Base, SessionLocal, engine
from app.core.ops_metrics import reset_ops_metrics
from app.core.security import create_access_token, get_password_hash
from app.main import app
from app.models.user import User, UserRole
from app.schemas.survey import SurveyCreate
from app.services.survey_service import SurveyService

PASSWORD = "correct-horse-battery"


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def _reset_metrics():
    reset_ops_metrics()
    yield
    reset_ops_metrics()


@pytest.fixture
def client(db):
    with TestClient(app) as test_client:
        yield test_client


def make_user(db, email, role=UserRole.RESEARCHER, **fields):
    values = dict(
        is_active=True,
        is_email_verified=True,
        is_approved=True,
    )
    values.update(fields)
    user = User(
        email=email,
        hashed_password=get_password_hash(PASSWORD),
        full_name=email.split("@")[0].title(),
        role=role,
        **values,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def auth_headers(user):
    token = create_access_token({"sub": str(user.id), "role": user.role.value})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin(db):
    return make_user(db, "admin@surveyflow.org", role=UserRole.ADMIN)


@pytest.fixture
def researcher(db):
    return make_user(db, "researcher@surveyflow.org", organization="Uni Lab")


@pytest.fixture
def sectioned_payload():
    """Two sections; the second holds a question conditional on the first."""
    return {
        "title": "Student life",
        "description": "Habits of students",
        "sections": [
            {
                "id": "s1",
                "title": "About you",
                "questions": [
                    {
                        "id": "q1",
                        "type": "multiple-choice",
                        "question": "Are you a student?",
                        "required": True,
                        "options": ["Yes", "No"],
                    },
                ],
            },
            {
                "id": "s2",
                "title": "Studies",
                "questions": [
                    {
                        "id": "q2",
                        "type": "short-answer",
                        "question": "Which university?",
                        "required": True,
                        "conditional_logic": {"depends_on": "q1", "show_when": "Yes", "operator": "equals"},
                    },
                    {
                        "id": "q3",
                        "type": "likert-scale",
                        "question": "I enjoy studying",
                        "likert_settings": {"scale_size": 5},
                    },
                ],
            },
        ],
    }


@pytest.fixture
def survey(db, researcher, sectioned_payload):
    return SurveyService(db).create_survey(SurveyCreate.model_validate(sectioned_payload), researcher)


@pytest.fixture
def user_factory(db):
    def _make(email, role=UserRole.RESEARCHER, **fields):
        return make_user(db, email, role=role, **fields)
    return _make


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)


@pytest.fixture
def researcher_headers(researcher):
    return auth_headers(researcher)


@pytest.fixture
def headers_for():
    return auth_headers
