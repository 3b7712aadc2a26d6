"""FastAPI dependency injection for database sessions, auth, and access control.

Provides get_async_session, get_current_user and role-based access control
for administrators, and get_current_voter for the voter session token issued
after a voting login.
"""

import uuid
from collections.abc import AsyncGenerator, Callable
from typing import Annotated, Any

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer, OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from ballot_api.core.config import Settings, get_settings
from ballot_api.core.database import get_session_factory
from ballot_api.core.security import VOTER_TOKEN_TYPE, decode_token
from ballot_api.models.user import User
from ballot_api.models.voter import Voter
from ballot_api.services.auth_service import get_user_by_username

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/v1/auth/login")
voter_scheme = HTTPBearer(auto_error=False, scheme_name="VoterSession")


async def get_async_session() -> AsyncGenerator[AsyncSession]:
    """Yield an async database session with per-request lifecycle."""
    factory = get_session_factory()
    async with factory() as session:
        yield session


def _unauthorized(detail: str = "Could not validate credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    token: Annotated[str, Depends(oauth2_scheme)],
    session: Annotated[AsyncSession, Depends(get_async_session)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> User:
    """Decode an admin access token and return the authenticated user.

    Raises:
        HTTPException: If the token is invalid, not an access token, or the user is unknown.
    """
    credentials_exception = _unauthorized()
    try:
        payload = decode_token(token, settings.jwt_secret_key, settings.jwt_algorithm)
    except Exception as exc:
        raise credentials_exception from exc
    username: str | None = payload.get("sub")
    if username is None or payload.get("type") != "access":
        raise credentials_exception

    user = await get_user_by_username(session, username)
    if user is None or not user.is_active:
        raise credentials_exception
    return user


def require_role(*roles: str) -> Callable[..., Any]:
    """Factory that creates a dependency requiring specific user roles.

    Args:
        *roles: Allowed role names (e.g., "admin", "viewer").

    Returns:
        A FastAPI dependency function that validates the user's role.
    """

    async def role_checker(
        current_user: Annotated[User, Depends(get_current_user)],
    ) -> User:
        if current_user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Role '{current_user.role}' does not have access to this resource",
            )
        return current_user

    return role_checker


async def get_current_voter(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(voter_scheme)],
    session: Annotated[AsyncSession, Depends(get_async_session)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> Voter:
    """Resolve the voter session token to its voter.

    Raises:
        HTTPException: 401 if the token is missing, expired, of the wrong type,
            or names an unknown voter.
    """
    if credentials is None:
        raise _unauthorized("Voter session required. Please log in with your access code.")
    try:
        payload = decode_token(credentials.credentials, settings.jwt_secret_key, settings.jwt_algorithm)
        voter_id = uuid.UUID(str(payload.get("sub")))
    except Exception as exc:
        raise _unauthorized("Voter session expired or invalid. Please log in again.") from exc
    if payload.get("type") != VOTER_TOKEN_TYPE:
        raise _unauthorized("Voter session expired or invalid. Please log in again.")

    voter = await session.get(Voter, voter_id)
    if voter is None:
        raise _unauthorized("Voter session expired or invalid. Please log in again.")
    return voter
