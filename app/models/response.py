"""Survey response models."""
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.core.database import Base


class SurveyResponse(Base):
    """One submitted response per (survey, anonymous respondent)."""

    __tablename__ = "survey_responses"
    __table_args__ = (
        UniqueConstraint("survey_id", "respondent_id", name="uq_survey_responses_survey_respondent"),
    )

    id = Column(Integer, primary_key=True, index=True)
    survey_id = Column(Integer, ForeignKey("surveys.id", ondelete="CASCADE"), nullable=False, index=True)
    respondent_id = Column(String(64), nullable=False, index=True)  # client-generated UUID
    submitted_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Relationships
    survey = relationship("Survey", back_populates="responses")
    answers = relationship(
        "QuestionAnswer",
        back_populates="response",
        cascade="all, delete-orphan",
        order_by="QuestionAnswer.position",
    )

    def __repr__(self):
        return f"<SurveyResponse(id={self.id}, survey_id={self.survey_id}, respondent={self.respondent_id})>"


class QuestionAnswer(Base):
    """A single answer; ``answer`` holds the comma-joined wire form for multi-select."""

    __tablename__ = "question_answers"

    id = Column(Integer, primary_key=True, index=True)
    response_id = Column(Integer, ForeignKey("survey_responses.id", ondelete="CASCADE"), nullable=False, index=True)
    question_id = Column(String(64), nullable=False)
    position = Column(Integer, nullable=False, default=0)
    answer = Column(Text, nullable=False, default="")
    audio_path = Column(String, nullable=True)
    file_path = Column(String, nullable=True)

    # Relationships
    response = relationship("SurveyResponse", back_populates="answers")

    def __repr__(self):
        return f"<QuestionAnswer(id={self.id}, question_id={self.question_id})>"
