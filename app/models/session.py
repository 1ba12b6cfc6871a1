"""Fill-in session telemetry models."""
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, Index, Enum as SQLEnum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from enum import Enum

from app.core.database import Base


class SessionAction(str, Enum):
    """Discrete events a fill-in session can emit."""
    VIEWED = "viewed"
    ANSWERED = "answered"
    SKIPPED = "skipped"
    SECTION_COMPLETED = "section_completed"
    ABANDONED = "abandoned"
    COMPLETED = "completed"


class SurveySession(Base):
    """One fill-in session per (survey, respondent)."""

    __tablename__ = "survey_sessions"
    __table_args__ = (
        Index("ix_survey_sessions_survey_respondent", "survey_id", "respondent_id"),
        Index("ix_survey_sessions_survey_abandoned", "survey_id", "is_abandoned"),
    )

    id = Column(Integer, primary_key=True, index=True)
    survey_id = Column(Integer, ForeignKey("surveys.id", ondelete="CASCADE"), nullable=False)
    respondent_id = Column(String(64), nullable=False)
    start_time = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    last_activity = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    current_question_index = Column(Integer, default=0, nullable=False)
    is_completed = Column(Boolean, default=False, nullable=False)
    is_abandoned = Column(Boolean, default=False, nullable=False)
    user_agent = Column(String, nullable=True)
    language = Column(String, nullable=True)

    # Relationships
    survey = relationship("Survey", back_populates="sessions")
    steps = relationship(
        "SessionStep",
        back_populates="session",
        cascade="all, delete-orphan",
        order_by="SessionStep.id",
    )

    def __repr__(self):
        return f"<SurveySession(id={self.id}, survey_id={self.survey_id}, respondent={self.respondent_id})>"


class SessionStep(Base):
    """A single telemetry event inside a session."""

    __tablename__ = "session_steps"

    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(Integer, ForeignKey("survey_sessions.id", ondelete="CASCADE"), nullable=False, index=True)
    question_id = Column(String(64), nullable=False)
    question_index = Column(Integer, nullable=False, default=0)
    action = Column(SQLEnum(SessionAction), nullable=False)
    time_spent = Column(Integer, nullable=False, default=0)  # seconds since previous event
    answer = Column(Text, nullable=True)
    timestamp = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Relationships
    session = relationship("SurveySession", back_populates="steps")
