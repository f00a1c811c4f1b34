"""FastAPI dependencies for authentication, database and scoped data access."""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from recipehub.database import get_db
from recipehub.gateway import DataGateway, Scope
from recipehub.models.user import User
from recipehub.services.auth import decode_access_token, get_user_by_id
from recipehub.services.recipe_query import RecipeQueryBuilder
from recipehub.services.recipe_service import RecipeService

security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _user_from_token(db: Session, token: str) -> User:
    payload = decode_access_token(token)
    if payload is None:
        raise _unauthorized("Invalid or expired token")

    user_id = payload.get("sub")
    if user_id is None:
        raise _unauthorized("Invalid or expired token")

    user = get_user_by_id(db, int(user_id))
    if user is None:
        raise _unauthorized("User not found")

    return user


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[Session, Depends(get_db)],
) -> User:
    """Get the current authenticated user from JWT token."""
    if credentials is None:
        raise _unauthorized("No token provided")
    return _user_from_token(db, credentials.credentials)


def get_optional_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[Session, Depends(get_db)],
) -> User | None:
    """Get the user when a bearer token is sent. A token that is sent must be valid."""
    if credentials is None:
        return None
    return _user_from_token(db, credentials.credentials)


def get_anonymous_gateway(db: Annotated[Session, Depends(get_db)]) -> DataGateway:
    """Gateway for public reads."""
    return DataGateway(db, scope=Scope.ANONYMOUS)


def get_optional_gateway(
    db: Annotated[Session, Depends(get_db)],
    user: Annotated[User | None, Depends(get_optional_user)],
) -> DataGateway:
    """Gateway acting as the caller when authenticated, anonymously otherwise."""
    return DataGateway(db, user)


def get_user_gateway(
    db: Annotated[Session, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
) -> DataGateway:
    """Gateway acting as the authenticated caller."""
    return DataGateway(db, user, Scope.USER)


def get_service_gateway(db: Annotated[Session, Depends(get_db)]) -> DataGateway:
    """Elevated gateway. Only for writes that happen before the caller has a session."""
    return DataGateway(db, scope=Scope.SERVICE)


def get_recipe_service(
    gateway: Annotated[DataGateway, Depends(get_user_gateway)],
) -> RecipeService:
    """Get recipe service bound to the authenticated caller."""
    return RecipeService(gateway)


def get_query_builder(
    gateway: Annotated[DataGateway, Depends(get_optional_gateway)],
) -> RecipeQueryBuilder:
    """Get a recipe listing builder for the caller (or an anonymous viewer)."""
    return RecipeQueryBuilder(gateway)
