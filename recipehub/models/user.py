"""User model."""

from sqlalchemy import Boolean, Column, DateTime, Integer, String, true

from recipehub.database import Base
from recipehub.models.mixins import TimestampMixin


class User(Base, TimestampMixin):
    """User model for authentication, profile data and ownership."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    full_name = Column(String(255), nullable=True)
    avatar_url = Column(String(500), nullable=True)
    show_author_name = Column(Boolean, nullable=False, default=True, server_default=true())
    email_confirmed_at = Column(DateTime(timezone=True), nullable=True)

    @property
    def is_email_confirmed(self) -> bool:
        """Check if the user has confirmed their email address."""
        return self.email_confirmed_at is not None
