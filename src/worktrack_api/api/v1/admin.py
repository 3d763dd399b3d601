"""Administrator user-management endpoints.

GET/POST /admin/users, POST /admin/users/{id}/invite,
PATCH /admin/users/{id}/role, POST /admin/users/{id}/reset-password.
Temporary passwords and invitation tokens appear in these responses once
and nowhere else.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from loguru import logger

from worktrack_api.core.dependencies import (
    get_authenticator,
    get_invitation_mailer,
    get_invitation_manager,
    require_admin,
)
from worktrack_api.models.user import User
from worktrack_api.schemas.auth import (
    CreatedUserResponse,
    InvitationIssuedResponse,
    PasswordResetResponse,
    RoleUpdateRequest,
    UserCreateRequest,
    UserResponse,
)
from worktrack_api.services.auth_service import Authenticator
from worktrack_api.services.email_service import InvitationMailer
from worktrack_api.services.errors import DeliveryFailureError, DuplicateUserError, UserNotFoundError
from worktrack_api.services.invitation_service import InvitationManager

admin_router = APIRouter(prefix="/admin/users", tags=["admin"])


def _not_found(e: UserNotFoundError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@admin_router.get("", response_model=list[UserResponse])
async def list_users(
    _admin: Annotated[User, Depends(require_admin)],
    authenticator: Annotated[Authenticator, Depends(get_authenticator)],
) -> list[User]:
    """List all users (admin only)."""
    return await authenticator.list_users()


@admin_router.post("", response_model=CreatedUserResponse, status_code=201)
async def create_user(
    request: UserCreateRequest,
    admin: Annotated[User, Depends(require_admin)],
    authenticator: Annotated[Authenticator, Depends(get_authenticator)],
) -> CreatedUserResponse:
    """Create a user with a one-time temporary password (admin only)."""
    try:
        created = await authenticator.create_user(request)
    except DuplicateUserError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

    logger.info(f"Admin {admin.id} created user {created.user.id}")
    return CreatedUserResponse(
        **UserResponse.model_validate(created.user).model_dump(),
        temporary_password=created.temporary_password,
    )


@admin_router.post("/{user_id}/invite", response_model=InvitationIssuedResponse)
async def invite_user(
    user_id: int,
    admin: Annotated[User, Depends(require_admin)],
    manager: Annotated[InvitationManager, Depends(get_invitation_manager)],
    mailer: Annotated[InvitationMailer, Depends(get_invitation_mailer)],
) -> InvitationIssuedResponse | JSONResponse:
    """Issue an invitation and email it to the user (admin only).

    If the email cannot be delivered the invitation stays issued and the
    response is a 500 that still carries the credentials for manual relay.
    """
    try:
        issued = await manager.issue_invitation(user_id)
    except UserNotFoundError as e:
        raise _not_found(e) from e

    logger.info(f"Admin {admin.id} invited user {user_id}")
    body = InvitationIssuedResponse(
        temporary_password=issued.temporary_password,
        invitation_token=issued.invitation_token,
        invitation_expires=issued.expires_at,
    )
    try:
        await mailer.send_invitation(issued.user, issued.temporary_password, issued.invitation_token)
    except DeliveryFailureError as e:
        failure = body.model_copy(update={"email_sent": False})
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": e.message, **failure.model_dump(mode="json", by_alias=True)},
        )
    return body


@admin_router.patch("/{user_id}/role", response_model=UserResponse)
async def change_role(
    user_id: int,
    request: RoleUpdateRequest,
    admin: Annotated[User, Depends(require_admin)],
    authenticator: Annotated[Authenticator, Depends(get_authenticator)],
) -> User:
    """Change a user's role (admin only)."""
    try:
        user = await authenticator.change_role(user_id, request.role)
    except UserNotFoundError as e:
        raise _not_found(e) from e
    logger.info(f"Admin {admin.id} changed role of user {user_id}")
    return user


@admin_router.post("/{user_id}/reset-password", response_model=PasswordResetResponse)
async def reset_password(
    user_id: int,
    admin: Annotated[User, Depends(require_admin)],
    authenticator: Annotated[Authenticator, Depends(get_authenticator)],
) -> PasswordResetResponse:
    """Replace a user's password with a temporary one (admin only)."""
    try:
        reset = await authenticator.reset_password(user_id)
    except UserNotFoundError as e:
        raise _not_found(e) from e
    logger.info(f"Admin {admin.id} reset password of user {user_id}")
    return PasswordResetResponse(temporary_password=reset.temporary_password)
