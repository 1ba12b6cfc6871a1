"""Authentication router."""
from typing import Annotated
from fastapi import APIRouter, Depends, Body, Request, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.limiter import limiter
from app.services.auth_service import AuthService
from app.schemas.user import (
    LoginResponse,
    UserResponse,
    ResearcherRegister,
    RegistrationResponse,
    EmailVerificationRequest,
)
from app.api.dependencies import AnyUser

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/login", response_model=LoginResponse)
@limiter.limit("10/minute")
def login(
    request: Request,
    form_data: Annotated[OAuth2PasswordRequestForm, Depends()],
    db: Annotated[Session, Depends(get_db)]
):
    """
    Login with email and password.

    Accepts FormData with:
    - username: user email
    - password: user password

    Returns JWT access and refresh tokens with user data.
    """
    auth_service = AuthService(db)
    # OAuth2PasswordRequestForm uses "username" field for email
    return auth_service.login(form_data.username, form_data.password)


@router.post("/register", response_model=RegistrationResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("5/minute")
def register(
    request: Request,
    payload: ResearcherRegister,
    db: Annotated[Session, Depends(get_db)]
):
    """
    Self-registration for researchers.

    The account needs a verified email and admin approval before login.
    """
    return AuthService(db).register_researcher(payload)


@router.post("/verify-email", response_model=UserResponse)
@limiter.limit("10/minute")
def verify_email(
    request: Request,
    payload: EmailVerificationRequest,
    db: Annotated[Session, Depends(get_db)]
):
    """Confirm the six-digit code emailed at registration."""
    return AuthService(db).verify_email(payload.email, payload.verification_code)


@router.post("/logout")
def logout(
    db: Annotated[Session, Depends(get_db)],
    current_user: AnyUser
):
    """
    Logout current user.
    Increments token_version to invalidate all current refresh tokens.
    """
    AuthService(db).logout(current_user)
    return {"message": "Successfully logged out"}


@router.get("/me", response_model=UserResponse)
def get_current_user_info(current_user: AnyUser):
    """Current authenticated user's information."""
    return current_user


@router.post("/refresh")
def refresh_token(
    db: Annotated[Session, Depends(get_db)],
    refresh_token: str = Body(..., embed=True)
):
    """
    Refresh access token using refresh token (with token rotation).

    The old refresh token is invalidated after use and a new one is returned.
    """
    return AuthService(db).refresh(refresh_token)
