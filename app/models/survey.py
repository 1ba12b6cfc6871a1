"""Survey model."""
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.core.database import Base


class Survey(Base):
    """
    Survey model - a published questionnaire addressed by its shareable id.

    The question structure (sections, or a legacy flat question list) is
    stored as a JSON document in ``definition`` and validated through
    ``app.schemas.survey.SurveyDefinition`` on the way in and out.
    """

    __tablename__ = "surveys"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False, index=True)
    description = Column(Text, nullable=False, default="")
    shareable_id = Column(String(64), unique=True, index=True, nullable=False)
    definition = Column(JSON, nullable=False, default=dict)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    scheduled_date = Column(DateTime(timezone=True), nullable=True)   # not open before
    expiration_date = Column(DateTime(timezone=True), nullable=True)  # not open after
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    creator = relationship("User", back_populates="surveys")
    responses = relationship("SurveyResponse", back_populates="survey", cascade="all, delete-orphan")
    sessions = relationship("SurveySession", back_populates="survey", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Survey(id={self.id}, title={self.title})>"
