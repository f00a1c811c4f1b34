"""Authentication service for JWT and password handling."""

from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from recipehub.config import get_settings
from recipehub.models.user import User

settings = get_settings()

ACCESS_TOKEN = "access"  # noqa: S105
REFRESH_TOKEN = "refresh"  # noqa: S105
VERIFY_TOKEN = "verify"  # noqa: S105

VERIFY_TOKEN_EXPIRATION_MINUTES = 60 * 24

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password."""
    return pwd_context.hash(password)


def _encode_token(user_id: int, email: str, token_type: str, expires_minutes: int) -> str:
    expire = datetime.now(UTC) + timedelta(minutes=expires_minutes)
    to_encode = {
        "sub": str(user_id),
        "email": email,
        "type": token_type,
        "exp": expire,
    }
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def create_access_token(user_id: int, email: str) -> str:
    """Create a JWT access token."""
    return _encode_token(user_id, email, ACCESS_TOKEN, settings.jwt_expiration_minutes)


def create_refresh_token(user_id: int, email: str) -> str:
    """Create a long-lived JWT used only to obtain new access tokens."""
    return _encode_token(
        user_id, email, REFRESH_TOKEN, settings.refresh_token_expiration_minutes
    )


def create_verification_token(user_id: int, email: str) -> str:
    """Create a JWT that confirms ownership of an email address."""
    return _encode_token(user_id, email, VERIFY_TOKEN, VERIFY_TOKEN_EXPIRATION_MINUTES)


def decode_token(token: str, expected_type: str = ACCESS_TOKEN) -> dict | None:
    """Decode and validate a JWT token of the expected type."""
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None
    if payload.get("type") != expected_type:
        return None
    return payload


def decode_access_token(token: str) -> dict | None:
    """Decode and validate a JWT access token."""
    return decode_token(token, ACCESS_TOKEN)


def create_session(user: User) -> dict:
    """Issue the access/refresh token pair handed to clients after login."""
    return {
        "access_token": create_access_token(user.id, user.email),
        "refresh_token": create_refresh_token(user.id, user.email),
        "token_type": "bearer",
        "expires_in": settings.jwt_expiration_minutes * 60,
    }


def authenticate_user(db: Session, email: str, password: str) -> User | None:
    """Authenticate a user by email and password."""
    user = get_user_by_email(db, email)
    if not user:
        return None
    if not verify_password(password, user.password_hash):
        return None
    return user


def get_user_by_email(db: Session, email: str) -> User | None:
    """Get a user by email."""
    return db.query(User).filter(User.email == email.lower()).first()


def get_user_by_id(db: Session, user_id: int) -> User | None:
    """Get a user by id."""
    return db.query(User).filter(User.id == user_id).first()
