"""User model."""
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, Enum as SQLEnum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from enum import Enum

from app.core.database import Base


class UserRole(str, Enum):
    """User roles in the system."""
    ADMIN = "admin"
    RESEARCHER = "researcher"


class User(Base):
    """
    Survey author.

    Researchers self-register, verify their email and wait for an admin to
    approve them before they can log in. Admins are created by script.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    full_name = Column(String, nullable=False)
    organization = Column(String, nullable=True)
    research_area = Column(String, nullable=True)
    purpose = Column(Text, nullable=True)
    role = Column(SQLEnum(UserRole), nullable=False, default=UserRole.RESEARCHER)
    is_active = Column(Boolean, default=True, nullable=False)
    token_version = Column(Integer, default=1, nullable=False, server_default="1")  # Incremented on logout/refresh to invalidate old tokens

    # Email verification
    is_email_verified = Column(Boolean, default=False, nullable=False)
    email_verification_code = Column(String, nullable=True)
    email_verification_expires = Column(DateTime(timezone=True), nullable=True)

    # Moderation
    is_approved = Column(Boolean, default=False, nullable=False)
    approved_by = Column(Integer, nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    is_banned = Column(Boolean, default=False, nullable=False)
    ban_reason = Column(Text, nullable=True)
    banned_at = Column(DateTime(timezone=True), nullable=True)
    ban_expires_at = Column(DateTime(timezone=True), nullable=True)  # None = permanent

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    surveys = relationship("Survey", back_populates="creator")

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"
