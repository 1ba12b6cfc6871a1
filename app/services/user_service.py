"""User service."""
import logging
from datetime import timedelta
from typing import List, Optional
from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.core.timeutils import utcnow
from app.repositories.user_repository import UserRepository
from app.models.user import User, UserRole
from app.schemas.user import UserModerationRequest
from app.services import email_service

logger = logging.getLogger(__name__)


class UserService:
    """User listing and researcher moderation."""

    def __init__(self, db: Session):
        self.db = db
        self.user_repo = UserRepository(db)

    def get_user(self, user_id: int) -> User:
        """
        Get user by ID.

        Raises:
            HTTPException: If user not found
        """
        user = self.user_repo.get_by_id(user_id)

        if not user:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="User not found"
            )

        return user

    def get_users(self, skip: int = 0, limit: int = 100,
                  role: Optional[UserRole] = None,
                  is_approved: Optional[bool] = None,
                  is_banned: Optional[bool] = None,
                  search: Optional[str] = None) -> List[User]:
        """Get list of users with optional filters."""
        return self.user_repo.get_all(
            skip=skip,
            limit=limit,
            role=role,
            is_approved=is_approved,
            is_banned=is_banned,
            search=search
        )

    def count_users(self, role: Optional[UserRole] = None,
                    is_approved: Optional[bool] = None,
                    is_banned: Optional[bool] = None,
                    search: Optional[str] = None) -> int:
        """Count users with optional filters."""
        return self.user_repo.count_all(
            role=role, is_approved=is_approved, is_banned=is_banned, search=search
        )

    def moderate(self, user_id: int, request: UserModerationRequest, admin: User) -> User:
        """
        Approve, reject, ban or unban a researcher.

        Raises:
            HTTPException: 404 for unknown users, 400 when targeting an admin
                or yourself
        """
        user = self.get_user(user_id)

        if user.id == admin.id or user.role == UserRole.ADMIN:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Admin accounts cannot be moderated"
            )

        if request.action == "approve":
            user.is_approved = True
            user.is_active = True
            user.approved_by = admin.id
            user.approved_at = utcnow()
            self.user_repo.save(user)
            email_service.send_approval_email(user.email, user.full_name, approved=True)

        elif request.action == "reject":
            user.is_approved = False
            user.is_active = False
            user.approved_by = None
            user.approved_at = None
            user.token_version = (user.token_version or 1) + 1
            self.user_repo.save(user)
            email_service.send_approval_email(user.email, user.full_name, approved=False)

        elif request.action == "ban":
            now = utcnow()
            user.is_banned = True
            user.ban_reason = request.ban_reason
            user.banned_at = now
            user.ban_expires_at = (
                now + timedelta(days=request.ban_duration_days)
                if request.ban_duration_days else None
            )
            user.token_version = (user.token_version or 1) + 1
            self.user_repo.save(user)

        elif request.action == "unban":
            user.is_banned = False
            user.ban_reason = None
            user.banned_at = None
            user.ban_expires_at = None
            self.user_repo.save(user)

        logger.info("Admin %s applied '%s' to user %s", admin.id, request.action, user.id)
        return user
