"""FastAPI dependency injection for database sessions, services, and the session gate.

The session gate has two guards: ``get_current_user`` (any authenticated
session, otherwise 401) and ``require_admin`` (authenticated and admin,
otherwise 403).  A session is a signed token carried in an HttpOnly cookie,
with a bearer ``Authorization`` header accepted as a fallback carrier.
"""

from collections.abc import AsyncGenerator, Callable
from dataclasses import dataclass
from typing import Annotated, Any

import jwt
from fastapi import Depends, HTTPException, Request, Response, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from worktrack_api.core.config import Settings, get_settings
from worktrack_api.core.database import get_session_factory
from worktrack_api.core.security import SESSION_TOKEN_TYPE, create_session_token, decode_token
from worktrack_api.models.user import ROLE_ADMIN, User
from worktrack_api.services.auth_service import Authenticator
from worktrack_api.services.email_service import InvitationMailer
from worktrack_api.services.invitation_service import InvitationManager
from worktrack_api.services.user_directory import UserDirectory

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class SessionContext:
    """The authenticated user behind a request and its session-level flags."""

    user: User
    needs_password_change: bool


async def get_async_session() -> AsyncGenerator[AsyncSession]:
    """Yield an async database session with per-request lifecycle."""
    factory = get_session_factory()
    async with factory() as session:
        yield session


def get_user_directory(
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> UserDirectory:
    return UserDirectory(session)


def get_authenticator(
    directory: Annotated[UserDirectory, Depends(get_user_directory)],
) -> Authenticator:
    return Authenticator(directory)


def get_invitation_manager(
    directory: Annotated[UserDirectory, Depends(get_user_directory)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> InvitationManager:
    return InvitationManager(directory, validity_hours=settings.invitation_validity_hours)


def get_invitation_mailer(
    settings: Annotated[Settings, Depends(get_settings)],
) -> InvitationMailer:
    return InvitationMailer(settings)


async def get_current_session(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    directory: Annotated[UserDirectory, Depends(get_user_directory)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> SessionContext:
    """Decode the session token and load its user.

    Raises:
        HTTPException: 401 if the session is missing, invalid, expired, or
            its user no longer exists.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Authentication required",
    )
    token = request.cookies.get(settings.session_cookie_name)
    if not token and credentials is not None:
        token = credentials.credentials
    if not token:
        raise credentials_exception

    try:
        payload = decode_token(token, settings.session_secret_key, settings.session_algorithm)
        if payload.get("type") != SESSION_TOKEN_TYPE:
            raise credentials_exception
        user_id = int(payload["sub"])
    except (jwt.InvalidTokenError, KeyError, TypeError, ValueError) as exc:
        raise credentials_exception from exc

    user = await directory.get_by_id(user_id)
    if user is None:
        raise credentials_exception
    return SessionContext(
        user=user,
        needs_password_change=bool(payload.get("npc")) or bool(user.needs_password_change),
    )


async def get_current_user(
    context: Annotated[SessionContext, Depends(get_current_session)],
) -> User:
    """Require an authenticated session and return its user."""
    return context.user


def require_role(*roles: str) -> Callable[..., Any]:
    """Factory that creates a dependency requiring specific user roles.

    Args:
        *roles: Allowed role names (e.g., "admin").

    Returns:
        A FastAPI dependency function that validates the user's role.
    """

    async def role_checker(
        current_user: Annotated[User, Depends(get_current_user)],
    ) -> User:
        if current_user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Administrator access required",
            )
        return current_user

    return role_checker


require_admin = require_role(ROLE_ADMIN)


def start_session(response: Response, user: User, settings: Settings, *, needs_password_change: bool) -> None:
    """Issue a session token for ``user`` and set it as an HttpOnly cookie."""
    token = create_session_token(
        user.id,
        user.role,
        settings.session_secret_key,
        needs_password_change=needs_password_change,
        algorithm=settings.session_algorithm,
        expires_minutes=settings.session_expire_minutes,
    )
    response.set_cookie(
        settings.session_cookie_name,
        token,
        max_age=settings.session_expire_minutes * 60,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
    )


def end_session(response: Response, settings: Settings) -> None:
    """Delete the session cookie."""
    response.delete_cookie(
        settings.session_cookie_name,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
    )
