"""Invitation API endpoints.

GET /invitation/{token} previews the invitee; POST /invitation/{token}
sets the invitee's password and logs them in.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Response, status

from worktrack_api.api.v1.auth import session_user_response
from worktrack_api.core.config import Settings, get_settings
from worktrack_api.core.dependencies import get_invitation_manager, start_session
from worktrack_api.schemas.auth import (
    InvitationPreviewResponse,
    InvitationUser,
    RedeemInvitationRequest,
    UserResponse,
)
from worktrack_api.services.errors import InvalidOrExpiredTokenError
from worktrack_api.services.invitation_service import InvitationManager

invitations_router = APIRouter(prefix="/invitation", tags=["invitations"])


@invitations_router.get("/{token}", response_model=InvitationPreviewResponse)
async def preview_invitation(
    token: str,
    manager: Annotated[InvitationManager, Depends(get_invitation_manager)],
) -> InvitationPreviewResponse:
    """Check an invitation link and show who it belongs to."""
    try:
        user = await manager.validate_token(token)
    except InvalidOrExpiredTokenError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    return InvitationPreviewResponse(valid=True, user=InvitationUser.model_validate(user))


@invitations_router.post("/{token}", response_model=UserResponse)
async def redeem_invitation(
    token: str,
    request: RedeemInvitationRequest,
    response: Response,
    manager: Annotated[InvitationManager, Depends(get_invitation_manager)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> UserResponse:
    """Set the invitee's password, consume the token, and start a session."""
    try:
        user = await manager.redeem_invitation(token, request.new_password)
    except InvalidOrExpiredTokenError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

    start_session(response, user, settings, needs_password_change=False)
    return session_user_response(user, False)
