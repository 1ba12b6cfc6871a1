"""User repository."""
from typing import Optional, List
from sqlalchemy.orm import Session
from sqlalchemy import or_

from app.models.user import User, UserRole


class UserRepository:
    """User data access layer."""

    def __init__(self, db: Session):
        self.db = db

    def create(self, email: str, hashed_password: str, full_name: str,
               role: UserRole, **fields) -> User:
        """Create a new user."""
        user = User(
            email=email,
            hashed_password=hashed_password,
            full_name=full_name,
            role=role,
            **fields
        )
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user

    def get_by_id(self, user_id: int) -> Optional[User]:
        """Get user by ID."""
        return self.db.query(User).filter(User.id == user_id).first()

    def get_by_email(self, email: str) -> Optional[User]:
        """Get user by email."""
        return self.db.query(User).filter(User.email == email).first()

    def _filtered(self, role: Optional[UserRole] = None,
                  is_approved: Optional[bool] = None,
                  is_banned: Optional[bool] = None,
                  search: Optional[str] = None):
        query = self.db.query(User)

        if role is not None:
            query = query.filter(User.role == role)

        if is_approved is not None:
            query = query.filter(User.is_approved == is_approved)

        if is_banned is not None:
            query = query.filter(User.is_banned == is_banned)

        if search:
            pattern = f"%{search}%"
            query = query.filter(
                or_(
                    User.email.ilike(pattern),
                    User.full_name.ilike(pattern),
                    User.organization.ilike(pattern)
                )
            )
        return query

    def get_all(self, skip: int = 0, limit: int = 100, **filters) -> List[User]:
        """Get users newest first with optional filtering."""
        return self._filtered(**filters)\
            .order_by(User.created_at.desc(), User.id.desc())\
            .offset(skip).limit(limit).all()

    def count_all(self, **filters) -> int:
        """Count users with optional filtering."""
        return self._filtered(**filters).count()

    def update(self, user_id: int, **kwargs) -> Optional[User]:
        """Update user fields. None values are skipped."""
        user = self.get_by_id(user_id)
        if not user:
            return None

        for key, value in kwargs.items():
            if value is not None and hasattr(user, key):
                setattr(user, key, value)

        self.db.commit()
        self.db.refresh(user)
        return user

    def save(self, user: User) -> User:
        """Commit direct attribute changes, including ones set back to None."""
        self.db.commit()
        self.db.refresh(user)
        return user

    def exists_by_email(self, email: str) -> bool:
        """Check if a user exists with this email."""
        return self.db.query(User.id).filter(User.email == email).first() is not None
