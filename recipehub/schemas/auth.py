"""Authentication and profile schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class UserRegister(BaseModel):
    """User registration request. Field rules are checked by the validation helpers."""

    email: str | None = Field(None, max_length=255)
    password: str | None = Field(None, max_length=128)
    full_name: str | None = Field(None, max_length=255)


class UserLogin(BaseModel):
    """User login request."""

    email: str | None = Field(None, max_length=255)
    password: str | None = Field(None, max_length=128)


class VerifyEmailRequest(BaseModel):
    """Email confirmation request."""

    token: str


class RefreshRequest(BaseModel):
    """Access token refresh request."""

    refresh_token: str | None = None


class PasswordUpdate(BaseModel):
    """Password change request."""

    password: str | None = Field(None, max_length=128)


class ProfileUpdate(BaseModel):
    """Profile update request. Omitted fields are left unchanged."""

    full_name: str | None = Field(None, max_length=255)
    avatar_url: str | None = Field(None, max_length=500)
    show_author_name: bool | None = None


class SessionResponse(BaseModel):
    """Token pair issued after a successful sign-in."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"  # noqa: S105
    expires_in: int


class UserResponse(BaseModel):
    """User profile response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    full_name: str | None
    avatar_url: str | None
    show_author_name: bool
    email_confirmed: bool = Field(validation_alias="is_email_confirmed")
    created_at: datetime
    updated_at: datetime


class AuthorResponse(BaseModel):
    """Recipe author as seen by the viewer. Name and avatar are null when hidden."""

    id: int
    full_name: str | None
    avatar_url: str | None
