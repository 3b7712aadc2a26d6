"""Election operator accounts: sign-in, token issue, and account administration.

Operators are the admins who run the election and the viewers who watch
turnout and results. Account changes are written to the audit log together
with the change itself.
"""

import uuid

import jwt
from loguru import logger
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ballot_api.core.clock import utc_now
from ballot_api.core.config import Settings
from ballot_api.core.errors import UserExists, UserNotFound
from ballot_api.core.security import (
    create_access_token,
    create_refresh_token,
    decode_token,
    hash_password,
    verify_password,
)
from ballot_api.models.user import User
from ballot_api.schemas.auth import TokenResponse, UserCreateRequest
from ballot_api.services.audit_service import record_action


async def get_user_by_username(session: AsyncSession, username: str) -> User | None:
    result = await session.execute(select(User).where(User.username == username))
    return result.scalar_one_or_none()


async def authenticate_user(session: AsyncSession, username: str, password: str) -> User | None:
    """Check an operator's credentials and stamp the sign-in.

    Returns:
        The User on success; None for an unknown name, a wrong password or a
        deactivated account. The caller cannot tell these apart.
    """
    user = await get_user_by_username(session, username)
    if user is None or not verify_password(password, user.hashed_password):
        logger.warning("Failed sign-in for operator {!r}", username)
        return None
    if not user.is_active:
        logger.warning("Sign-in refused for deactivated operator {!r}", username)
        return None
    user.last_login_at = utc_now()
    record_action(session, actor=user, action="login", resource_type="user", resource_ids=[str(user.id)])
    await session.commit()
    return user


async def create_user(session: AsyncSession, request: UserCreateRequest, *, actor: User | None = None) -> User:
    """Add an operator account.

    Raises:
        UserExists: If the username or email is taken.
    """
    existing = await session.execute(
        select(User.id).where((User.username == request.username) | (User.email == request.email))
    )
    if existing.first() is not None:
        raise UserExists()

    user = User(
        id=uuid.uuid4(),
        username=request.username,
        email=request.email,
        hashed_password=hash_password(request.password),
        role=request.role,
    )
    session.add(user)
    record_action(
        session,
        actor=actor,
        action="user_create",
        resource_type="user",
        resource_ids=[str(user.id)],
        request_metadata={"username": user.username, "role": user.role},
    )
    await session.commit()
    await session.refresh(user)
    logger.info("Operator {!r} created with role {}", user.username, user.role)
    return user


async def list_users(session: AsyncSession, page: int = 1, page_size: int = 20) -> tuple[list[User], int]:
    total = (await session.execute(select(func.count(User.id)))).scalar_one()

    offset = (page - 1) * page_size
    query = select(User).order_by(User.created_at, User.username).offset(offset).limit(page_size)
    result = await session.execute(query)
    return list(result.scalars().all()), total


async def set_user_active(
    session: AsyncSession,
    username: str,
    active: bool,
    *,
    actor: User | None = None,
) -> User:
    """Enable or disable an operator account.

    The last active admin cannot be disabled.

    Raises:
        UserNotFound: If there is no such operator.
        ValueError: If this would disable the last active admin.
    """
    user = await get_user_by_username(session, username)
    if user is None:
        raise UserNotFound(f"No operator named {username!r}.")
    if user.is_active == active:
        return user

    if not active and user.role == "admin":
        active_admins = (
            await session.execute(
                select(func.count(User.id)).where(User.role == "admin", User.is_active.is_(True))
            )
        ).scalar_one()
        if active_admins <= 1:
            msg = "Cannot deactivate the last active admin"
            raise ValueError(msg)

    user.is_active = active
    record_action(
        session,
        actor=actor,
        action="user_activate" if active else "user_deactivate",
        resource_type="user",
        resource_ids=[str(user.id)],
    )
    await session.commit()
    logger.info("Operator {!r} {}", username, "activated" if active else "deactivated")
    return user


def generate_tokens(user: User, settings: Settings) -> TokenResponse:
    """Issue an access/refresh token pair for an operator."""
    access_token = create_access_token(
        subject=user.username,
        role=user.role,
        secret_key=settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
        expires_minutes=settings.jwt_access_token_expire_minutes,
    )
    refresh_token = create_refresh_token(
        subject=user.username,
        secret_key=settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
        expires_days=settings.jwt_refresh_token_expire_days,
    )
    return TokenResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        expires_in=settings.jwt_access_token_expire_minutes * 60,
    )


async def refresh_access_token(session: AsyncSession, refresh_token_str: str, settings: Settings) -> TokenResponse:
    """Exchange a refresh token for a new pair.

    The account is looked up again, so a deactivated operator cannot refresh.

    Raises:
        ValueError: If the token is invalid, of the wrong type, or names an
            unknown or deactivated operator.
    """
    try:
        payload = decode_token(refresh_token_str, settings.jwt_secret_key, settings.jwt_algorithm)
    except jwt.InvalidTokenError as e:
        msg = "Invalid refresh token"
        raise ValueError(msg) from e

    if payload.get("type") != "refresh":
        msg = "Token is not a refresh token"
        raise ValueError(msg)

    user = await get_user_by_username(session, payload.get("sub") or "")
    if user is None or not user.is_active:
        msg = "Operator not found or deactivated"
        raise ValueError(msg)

    return generate_tokens(user, settings)
