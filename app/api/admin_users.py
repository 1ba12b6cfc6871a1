"""User moderation router (Admin)."""
from typing import Annotated, List, Optional
from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.services.user_service import UserService
from app.schemas.user import UserResponse, UserModerationRequest
from app.models.user import UserRole
from app.api.dependencies import AdminUser

router = APIRouter(prefix="/admin/users", tags=["Admin - Users"])


@router.get("", response_model=List[UserResponse])
def list_users(
    db: Annotated[Session, Depends(get_db)],
    current_user: AdminUser,
    response: Response,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=100),
    role: Optional[UserRole] = None,
    is_approved: Optional[bool] = None,
    is_banned: Optional[bool] = None,
    search: Optional[str] = Query(None, max_length=255)
):
    """
    List users with optional filters (Admin only).

    The unpaginated total is returned in ``X-Total-Count``.
    """
    service = UserService(db)
    filters = dict(role=role, is_approved=is_approved, is_banned=is_banned, search=search)
    response.headers["X-Total-Count"] = str(service.count_users(**filters))
    return service.get_users(skip=skip, limit=limit, **filters)


@router.get("/{user_id}", response_model=UserResponse)
def get_user(
    user_id: int,
    db: Annotated[Session, Depends(get_db)],
    current_user: AdminUser
):
    """Get user by ID (Admin only)."""
    service = UserService(db)
    return service.get_user(user_id)


@router.patch("/{user_id}", response_model=UserResponse)
def moderate_user(
    user_id: int,
    payload: UserModerationRequest,
    db: Annotated[Session, Depends(get_db)],
    current_user: AdminUser
):
    """Approve, reject, ban or unban a researcher (Admin only)."""
    service = UserService(db)
    return service.moderate(user_id, payload, current_user)
