"""Invitation lifecycle: issue, validate, and redeem onboarding tokens.

Per user the invitation moves between four states::

    NoInvitation --issue--> Pending --redeem--> Consumed
                               |
                               +--(expires_at passes)--> Expired

Expiry is detected lazily when a token is validated; nothing sweeps
expired tokens.  Issuing is always allowed and overwrites whatever token
the user held before, which also replaces the temporary password.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta

from loguru import logger

from worktrack_api.core.clock import Clock, ensure_utc, utc_now
from worktrack_api.core.security import hash_password
from worktrack_api.core.tokens import generate_invitation_token, generate_temporary_password
from worktrack_api.models.user import User
from worktrack_api.services.errors import InvalidOrExpiredTokenError, UserNotFoundError
from worktrack_api.services.user_directory import UserDirectory

DEFAULT_VALIDITY_HOURS = 24


@dataclass(frozen=True)
class IssuedInvitation:
    """Result of issuing an invitation; both secrets are disclosed once."""

    user: User
    invitation_token: str
    temporary_password: str
    expires_at: datetime


def invitation_is_live(user: User, now: datetime) -> bool:
    """Return True if ``user`` holds a non-empty token that has not expired."""
    if not user.invitation_token or user.invitation_expires is None:
        return False
    return ensure_utc(user.invitation_expires) > now


class InvitationManager:
    """Drives the issue → deliver → redeem cycle for one user directory."""

    def __init__(
        self,
        directory: UserDirectory,
        *,
        validity_hours: int = DEFAULT_VALIDITY_HOURS,
        clock: Clock = utc_now,
    ) -> None:
        self.directory = directory
        self.validity = timedelta(hours=validity_hours)
        self.clock = clock

    async def issue_invitation(self, user_id: int) -> IssuedInvitation:
        """Issue a fresh invitation token and temporary password.

        Any previous token and temporary password stop working as soon as
        this commits.

        Args:
            user_id: The invitee.

        Returns:
            The issued invitation, including the plaintext secrets.

        Raises:
            UserNotFoundError: If no user has ``user_id``.
        """
        token = generate_invitation_token()
        temporary_password = generate_temporary_password()
        expires_at = self.clock() + self.validity

        user = await self.directory.update(
            user_id,
            password=hash_password(temporary_password),
            needs_password_change=True,
            invitation_token=token,
            invitation_expires=expires_at,
            invitation_sent=True,
        )
        if user is None:
            raise UserNotFoundError(user_id)

        logger.info(f"Invitation issued for user {user.id} ({user.username}), expires {expires_at.isoformat()}")
        return IssuedInvitation(
            user=user,
            invitation_token=token,
            temporary_password=temporary_password,
            expires_at=expires_at,
        )

    async def validate_token(self, token: str) -> User:
        """Return the invitee for a live token.

        Expired and unknown tokens are indistinguishable to the caller.

        Raises:
            InvalidOrExpiredTokenError: If the token is absent, unknown, or expired.
        """
        user = await self.directory.get_by_invitation_token(token)
        if user is None or not invitation_is_live(user, self.clock()):
            raise InvalidOrExpiredTokenError
        return user

    async def redeem_invitation(self, token: str, new_password: str) -> User:
        """Consume a live token by setting the invitee's own password.

        The token is cleared by a conditional write that only succeeds while
        the token is still live, so of two redemptions racing on the same
        string only one wins.

        Returns:
            The updated user, ready for a session to be established.

        Raises:
            InvalidOrExpiredTokenError: If the token is absent, unknown, or expired.
        """
        user = await self.validate_token(token)
        updated = await self.directory.consume_invitation(
            user.id,
            token,
            self.clock(),
            password=hash_password(new_password),
            needs_password_change=False,
        )
        if updated is None:
            raise InvalidOrExpiredTokenError
        logger.info(f"Invitation redeemed by user {updated.id} ({updated.username})")
        return updated
