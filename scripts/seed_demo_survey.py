"""
Seed a demo survey that covers every question kind, sections and conditional logic.
Safe to run multiple times: skips creation if the survey title already exists.

Usage:
    python scripts/seed_demo_survey.py [author_email]
"""
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from app.core.database import SessionLocal
from app.models.survey import Survey
from app.models.user import User, UserRole
from app.schemas.survey import SurveyCreate
from app.services.survey_service import SurveyService

SURVEY_TITLE = "[DEMO] Every question kind"

DEMO_SURVEY = {
    "title": SURVEY_TITLE,
    "description": "Demonstrates sections, conditional questions and attachments.",
    "sections": [
        {
            "id": "s-about",
            "title": "About you",
            "questions": [
                {"id": "name", "type": "short-answer", "question": "What is your name?", "required": True},
                {
                    "id": "student",
                    "type": "multiple-choice",
                    "question": "Are you currently a student?",
                    "required": True,
                    "options": ["Yes", "No"],
                },
                {
                    "id": "university",
                    "type": "short-answer",
                    "question": "Which university do you attend?",
                    "required": True,
                    "conditional_logic": {"depends_on": "student", "show_when": "Yes", "operator": "equals"},
                },
            ],
        },
        {
            "id": "s-habits",
            "title": "Study habits",
            "questions": [
                {
                    "id": "tools",
                    "type": "multiple-choice",
                    "question": "Which tools do you use?",
                    "options": ["Notebook", "Laptop", "Tablet", "Phone"],
                    "multiple_choice_settings": {"allow_multiple_answers": True},
                },
                {
                    "id": "laptop-os",
                    "type": "short-answer",
                    "question": "Which operating system does your laptop run?",
                    "conditional_logic": {"depends_on": "tools", "show_when": "Laptop", "operator": "contains"},
                },
                {
                    "id": "focus",
                    "type": "likert-scale",
                    "question": "I find it easy to stay focused.",
                    "likert_settings": {"scale_type": "agreement", "scale_size": 5},
                },
                {
                    "id": "schedule",
                    "type": "date-time",
                    "question": "When do you usually start studying?",
                    "date_time_settings": {"include_date": False, "include_time": True},
                },
            ],
        },
        {
            "id": "s-extra",
            "title": "Anything else",
            "questions": [
                {"id": "comments", "type": "long-answer", "question": "Other comments"},
                {
                    "id": "voice-note",
                    "type": "audio",
                    "question": "Record a short message (optional)",
                    "audio_settings": {"max_duration_minutes": 2},
                },
                {
                    "id": "timetable",
                    "type": "file-upload",
                    "question": "Upload your timetable",
                    "file_settings": {"allowed_extensions": ["pdf", "png", "jpg"], "max_file_size_mb": 5},
                },
            ],
        },
    ],
}


def seed(author_email: str):
    db = SessionLocal()
    try:
        if db.query(Survey).filter(Survey.title == SURVEY_TITLE).first():
            print(f"Survey '{SURVEY_TITLE}' already exists, nothing to do.")
            return

        author = db.query(User).filter(User.email == author_email).first()
        if not author:
            author = db.query(User).filter(User.role == UserRole.ADMIN).first()
        if not author:
            sys.exit("No author found. Run scripts/create_admin.py first.")

        survey = SurveyService(db).create_survey(SurveyCreate.model_validate(DEMO_SURVEY), author)
        print(f"Created survey {survey.id}; public link id: {survey.shareable_id}")
    finally:
        db.close()


if __name__ == "__main__":
    seed(sys.argv[1] if len(sys.argv) > 1 else "admin@surveyflow.org")
