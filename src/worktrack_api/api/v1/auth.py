"""Authentication API endpoints.

POST /login, POST /logout, GET /user, POST /change-password, GET /health.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Response, status

from worktrack_api.core.config import Settings, get_settings
from worktrack_api.core.dependencies import (
    SessionContext,
    end_session,
    get_authenticator,
    get_current_session,
    get_current_user,
    start_session,
)
from worktrack_api.models.user import User
from worktrack_api.schemas.auth import ChangePasswordRequest, LoginRequest, MessageResponse, UserResponse
from worktrack_api.services.auth_service import Authenticator
from worktrack_api.services.errors import InvalidCredentialsError, UserNotFoundError

router = APIRouter(tags=["auth"])


def session_user_response(user: User, needs_password_change: bool) -> UserResponse:
    """Serialize ``user`` with the session-level password-change flag."""
    return UserResponse.model_validate(user).model_copy(update={"needs_password_change": needs_password_change})


@router.get("/health", status_code=200)
async def health_check() -> dict:
    """Health check endpoint (no authentication required)."""
    return {"status": "healthy"}


@router.post("/login", response_model=UserResponse)
async def login(
    request: LoginRequest,
    response: Response,
    authenticator: Annotated[Authenticator, Depends(get_authenticator)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> UserResponse:
    """Authenticate with username/email and password or invitation token."""
    try:
        result = await authenticator.authenticate(request.identifier, request.secret)
    except InvalidCredentialsError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e)) from e

    start_session(response, result.user, settings, needs_password_change=result.needs_password_change)
    return session_user_response(result.user, result.needs_password_change)


@router.post("/logout", response_model=MessageResponse)
async def logout(
    response: Response,
    _current_user: Annotated[User, Depends(get_current_user)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> MessageResponse:
    """End the current session."""
    end_session(response, settings)
    return MessageResponse(message="Logged out")


@router.get("/user", response_model=UserResponse)
async def get_me(
    context: Annotated[SessionContext, Depends(get_current_session)],
) -> UserResponse:
    """Get the currently authenticated user's profile."""
    return session_user_response(context.user, context.needs_password_change)


@router.post("/change-password", response_model=MessageResponse)
async def change_password(
    request: ChangePasswordRequest,
    response: Response,
    current_user: Annotated[User, Depends(get_current_user)],
    authenticator: Annotated[Authenticator, Depends(get_authenticator)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> MessageResponse:
    """Change the current user's password after re-verifying the current one."""
    try:
        user = await authenticator.change_password(current_user.id, request.current_password, request.new_password)
    except InvalidCredentialsError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except UserNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e

    start_session(response, user, settings, needs_password_change=False)
    return MessageResponse(message="Password updated")
