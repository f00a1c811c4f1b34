"""Authentication and profile API endpoints."""

import logging
from datetime import UTC, datetime
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from recipehub.api.dependencies import get_current_user, get_service_gateway
from recipehub.api.responses import send_success
from recipehub.config import get_settings
from recipehub.database import get_db
from recipehub.gateway import DataGateway
from recipehub.models.user import User
from recipehub.schemas.auth import (
    PasswordUpdate,
    ProfileUpdate,
    RefreshRequest,
    SessionResponse,
    UserLogin,
    UserRegister,
    UserResponse,
    VerifyEmailRequest,
)
from recipehub.services.auth import (
    REFRESH_TOKEN,
    VERIFY_TOKEN,
    authenticate_user,
    create_session,
    create_verification_token,
    decode_token,
    get_password_hash,
    get_user_by_email,
    get_user_by_id,
)
from recipehub.services.validation import ensure_valid, validate_email, validate_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(
    user_data: UserRegister,
    gateway: Annotated[DataGateway, Depends(get_service_gateway)],
):
    """Register a new user.

    The session is null while the email address awaits confirmation.
    """
    ensure_valid(validate_email(user_data.email), validate_password(user_data.password))
    email = user_data.email.strip().lower()

    if get_user_by_email(gateway.db, email):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already registered",
        )

    settings = get_settings()
    user = gateway.create_profile(
        email,
        get_password_hash(user_data.password),
        user_data.full_name,
        confirmed=not settings.require_email_verification,
    )

    session = None
    if settings.require_email_verification:
        token = create_verification_token(user.id, user.email)
        logger.info(f"Verification token for user {user.id}: {token}")
    else:
        session = SessionResponse(**create_session(user))

    return send_success(
        {"user": UserResponse.model_validate(user), "session": session},
        "Registration successful",
        status.HTTP_201_CREATED,
    )


@router.post("/login")
def login(
    credentials: UserLogin,
    db: Annotated[Session, Depends(get_db)],
):
    """Login with email and password."""
    ensure_valid(validate_email(credentials.email), validate_password(credentials.password))

    user = authenticate_user(db, credentials.email.strip(), credentials.password)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if get_settings().require_email_verification and not user.is_email_confirmed:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Email not confirmed",
        )

    return send_success(
        {"user": UserResponse.model_validate(user), "session": create_session(user)},
        "Login successful",
    )


@router.post("/verify-email")
def verify_email(
    data: VerifyEmailRequest,
    db: Annotated[Session, Depends(get_db)],
):
    """Confirm an email address and start a session."""
    payload = decode_token(data.token, VERIFY_TOKEN)
    user = get_user_by_id(db, int(payload["sub"])) if payload else None
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid or expired verification token",
        )

    if not user.is_email_confirmed:
        user.email_confirmed_at = datetime.now(UTC)
        db.commit()
        db.refresh(user)

    return send_success(
        {"user": UserResponse.model_validate(user), "session": create_session(user)},
        "Email confirmed",
    )


@router.post("/refresh")
def refresh(
    data: RefreshRequest,
    db: Annotated[Session, Depends(get_db)],
):
    """Exchange a refresh token for a new token pair."""
    if not data.refresh_token:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Refresh token is required",
        )

    payload = decode_token(data.refresh_token, REFRESH_TOKEN)
    user = get_user_by_id(db, int(payload["sub"])) if payload else None
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid refresh token",
        )

    return send_success({"session": create_session(user)}, "Token refreshed successfully")


@router.post("/logout")
def logout(
    current_user: Annotated[User, Depends(get_current_user)],
):
    """Logout (client should discard token)."""
    return send_success(message="Logout successful")


@router.get("/profile")
def get_profile(
    current_user: Annotated[User, Depends(get_current_user)],
):
    """Get current user profile."""
    return send_success({"user": UserResponse.model_validate(current_user)})


@router.put("/profile")
def update_profile(
    profile_data: ProfileUpdate,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
):
    """Update the current user's profile. Omitted fields are left unchanged."""
    updates = profile_data.model_dump(exclude_unset=True)
    if "full_name" in updates:
        current_user.full_name = updates["full_name"]
    if "avatar_url" in updates:
        current_user.avatar_url = updates["avatar_url"]
    if updates.get("show_author_name") is not None:
        current_user.show_author_name = updates["show_author_name"]

    db.commit()
    db.refresh(current_user)
    return send_success(
        {"user": UserResponse.model_validate(current_user)}, "Profile updated successfully"
    )


@router.post("/update-password")
def update_password(
    data: PasswordUpdate,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
):
    """Change the current user's password."""
    ensure_valid(validate_password(data.password))
    current_user.password_hash = get_password_hash(data.password)
    db.commit()
    return send_success(message="Password updated successfully")
