"""Authentication service."""
import logging
from datetime import timedelta
from typing import Optional
from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.core.security import (
    verify_password,
    get_password_hash,
    create_access_token,
    create_refresh_token,
    decode_refresh_token,
    generate_verification_code,
)
from app.core.config import settings
from app.core.timeutils import utcnow, as_utc
from app.repositories.user_repository import UserRepository
from app.models.user import User, UserRole
from app.schemas.user import (
    LoginResponse,
    UserLoginResponse,
    ResearcherRegister,
    RegistrationResponse,
    UserResponse,
)
from app.services import email_service

logger = logging.getLogger(__name__)


def _forbidden(code: str, message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail={"code": code, "message": message, "retriable": False},
    )


class AuthService:
    """Authentication business logic."""

    def __init__(self, db: Session):
        self.db = db
        self.user_repo = UserRepository(db)

    def authenticate_user(self, email: str, password: str) -> Optional[User]:
        """
        Authenticate user by email and password.

        Returns:
            User if credentials match an active account, None otherwise
        """
        user = self.user_repo.get_by_email(email)

        if not user:
            return None

        if not user.is_active:
            return None

        if not verify_password(password, user.hashed_password):
            return None

        return user

    def _lift_expired_ban(self, user: User) -> None:
        expires = as_utc(user.ban_expires_at)
        if user.is_banned and expires is not None and expires <= utcnow():
            logger.info("Ban on user %s expired; lifting it", user.id)
            user.is_banned = False
            user.ban_reason = None
            user.banned_at = None
            user.ban_expires_at = None
            self.user_repo.save(user)

    def check_can_login(self, user: User) -> None:
        """
        Raise 403 when the account may not log in yet.

        Admins are exempt from email verification and approval.
        """
        self._lift_expired_ban(user)

        if user.is_banned:
            message = "Your account has been suspended"
            if user.ban_reason:
                message = f"{message}: {user.ban_reason}"
            raise _forbidden("account_banned", message)

        if user.role == UserRole.ADMIN:
            return

        if not user.is_email_verified:
            raise _forbidden("email_not_verified", "Please verify your email before logging in")

        if not user.is_approved:
            raise _forbidden("pending_approval", "Your account is pending admin approval")

    def _issue_tokens(self, user: User) -> tuple:
        claims = {"sub": str(user.id), "role": user.role.value}
        access_token = create_access_token(
            data=claims,
            expires_delta=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        )
        refresh_token = create_refresh_token(
            data={**claims, "ver": user.token_version},
            expires_delta=timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
        )
        return access_token, refresh_token

    def login(self, email: str, password: str) -> LoginResponse:
        """
        Login user and return JWT tokens with user data.

        Raises:
            HTTPException: 401 on bad credentials, 403 when the account is
                unverified, unapproved or banned
        """
        user = self.authenticate_user(email, password)

        if not user:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Incorrect email or password",
                headers={"WWW-Authenticate": "Bearer"},
            )

        self.check_can_login(user)

        access_token, refresh_token = self._issue_tokens(user)
        logger.info("User %s logged in", user.id)

        return LoginResponse(
            access_token=access_token,
            refresh_token=refresh_token,
            token_type="bearer",
            user=UserLoginResponse(
                id=user.id,
                email=user.email,
                full_name=user.full_name,
                role=user.role,
                organization=user.organization,
                created_at=user.created_at,
            )
        )

    def register_researcher(self, data: ResearcherRegister) -> RegistrationResponse:
        """
        Create an unverified, unapproved researcher and email a verification code.

        Raises:
            HTTPException: If the email is already registered
        """
        if self.user_repo.exists_by_email(data.email):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Email already registered"
            )

        code = generate_verification_code()
        user = self.user_repo.create(
            email=data.email,
            hashed_password=get_password_hash(data.password),
            full_name=data.full_name,
            role=UserRole.RESEARCHER,
            organization=data.organization,
            research_area=data.research_area,
            purpose=data.purpose,
            email_verification_code=code,
            email_verification_expires=utcnow() + timedelta(
                minutes=settings.EMAIL_VERIFICATION_EXPIRE_MINUTES
            ),
        )
        logger.info("Researcher %s registered", user.id)

        email_service.send_verification_email(user.email, user.full_name, code)

        return RegistrationResponse(
            message="Registration successful. Check your email for the verification code.",
            user=UserResponse.model_validate(user),
        )

    def verify_email(self, email: str, code: str) -> User:
        """
        Mark the account's email as verified.

        Raises:
            HTTPException: 404 for unknown email, 400 for a wrong or expired code
        """
        user = self.user_repo.get_by_email(email)
        if not user:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="User not found"
            )

        if user.is_email_verified:
            return user

        if not user.email_verification_code or user.email_verification_code != code:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={"code": "invalid_verification_code", "message": "Invalid verification code", "retriable": False},
            )

        expires = as_utc(user.email_verification_expires)
        if expires is not None and expires < utcnow():
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={"code": "verification_code_expired", "message": "Verification code has expired", "retriable": False},
            )

        user.is_email_verified = True
        user.email_verification_code = None
        user.email_verification_expires = None
        return self.user_repo.save(user)

    def refresh(self, refresh_token: str) -> dict:
        """
        Exchange a refresh token for a new token pair (with rotation).

        The old refresh token is invalidated after use.
        """
        payload = decode_refresh_token(refresh_token)
        user_id = payload.get("sub")
        token_ver = payload.get("ver")
        if not user_id:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid refresh token",
            )

        user = self.user_repo.get_by_id(int(user_id))
        if not user or not user.is_active:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="User not found or inactive",
            )

        if token_ver is not None and token_ver != user.token_version:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Refresh token has been revoked",
            )

        self.check_can_login(user)

        user.token_version = (user.token_version or 1) + 1
        self.user_repo.save(user)

        access_token, new_refresh_token = self._issue_tokens(user)
        return {"access_token": access_token, "refresh_token": new_refresh_token, "token_type": "bearer"}

    def logout(self, user: User) -> None:
        """Invalidate every outstanding refresh token of ``user``."""
        user.token_version = (user.token_version or 1) + 1
        self.user_repo.save(user)
