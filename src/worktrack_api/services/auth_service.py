"""Authentication and user management service.

Resolves login attempts into sessions, and implements the password and
role operations available to users and administrators.
"""

import hmac
from dataclasses import dataclass
from functools import lru_cache

from loguru import logger

from worktrack_api.core.clock import Clock, utc_now
from worktrack_api.core.security import hash_password, verify_password
from worktrack_api.core.tokens import generate_temporary_password
from worktrack_api.models.user import ROLES, User
from worktrack_api.schemas.auth import UserCreateRequest
from worktrack_api.services.errors import DuplicateUserError, InvalidCredentialsError, UserNotFoundError
from worktrack_api.services.invitation_service import invitation_is_live
from worktrack_api.services.user_directory import UserDirectory


@dataclass(frozen=True)
class LoginResult:
    """Outcome of a successful login.

    ``needs_password_change`` is the session-level flag: it is forced on for
    any login made while an invitation is pending.
    """

    user: User
    needs_password_change: bool


@dataclass(frozen=True)
class CreatedUser:
    """A new user and the temporary password it was created with."""

    user: User
    temporary_password: str | None


@dataclass(frozen=True)
class PasswordReset:
    """A reset user and its new temporary password."""

    user: User
    temporary_password: str


def _secrets_match(supplied: str, expected: str) -> bool:
    return hmac.compare_digest(supplied.encode("utf-8"), expected.encode("utf-8"))


@lru_cache(maxsize=1)
def _unknown_user_hash() -> str:
    """Throwaway hash checked against when the identifier matches no user."""
    return hash_password(generate_temporary_password())


class Authenticator:
    """Authentication state machine over a user directory."""

    def __init__(self, directory: UserDirectory, *, clock: Clock = utc_now) -> None:
        self.directory = directory
        self.clock = clock

    async def authenticate(self, identifier: str, secret: str) -> LoginResult:
        """Resolve a login attempt.

        The identifier is matched against usernames first and emails second.
        While an invitation is pending, the invitation token is accepted as a
        stand-in password alongside the real password, and the session is
        forced into the password-change flow.

        Args:
            identifier: Username or email.
            secret: Password, or invitation token during an open invitation.

        Returns:
            The login result.

        Raises:
            InvalidCredentialsError: For an unknown identifier or a wrong
                secret, reported identically.
        """
        user = await self.directory.get_by_username(identifier)
        if user is None:
            user = await self.directory.get_by_email(identifier)
        if user is None:
            verify_password(secret, _unknown_user_hash())
            logger.info("Login rejected: unknown identifier")
            raise InvalidCredentialsError

        now = self.clock()
        if invitation_is_live(user, now):
            accepted = _secrets_match(secret, user.invitation_token or "") or verify_password(secret, user.password)
            forced = True
        else:
            accepted = verify_password(secret, user.password)
            forced = bool(user.needs_password_change)

        if not accepted:
            logger.info(f"Login rejected for user {user.id}")
            raise InvalidCredentialsError

        await self.directory.update(user.id, last_login_at=now)
        logger.info(f"Login succeeded for user {user.id} ({user.username})")
        return LoginResult(user=user, needs_password_change=forced)

    async def change_password(self, user_id: int, current_password: str, new_password: str) -> User:
        """Change a logged-in user's own password.

        Raises:
            UserNotFoundError: If the user no longer exists.
            InvalidCredentialsError: If ``current_password`` is wrong.
        """
        user = await self.directory.get_by_id(user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        if not verify_password(current_password, user.password):
            raise InvalidCredentialsError("Current password is incorrect")

        updated = await self.directory.update(
            user_id,
            password=hash_password(new_password),
            needs_password_change=False,
        )
        if updated is None:
            raise UserNotFoundError(user_id)
        logger.info(f"Password changed for user {user_id}")
        return updated

    async def reset_password(self, user_id: int) -> PasswordReset:
        """Replace a user's password with a new temporary one (admin action).

        The plaintext temporary password is returned once and is not kept
        anywhere else.

        Raises:
            UserNotFoundError: If no user has ``user_id``.
        """
        temporary_password = generate_temporary_password()
        user = await self.directory.update(
            user_id,
            password=hash_password(temporary_password),
            needs_password_change=True,
        )
        if user is None:
            raise UserNotFoundError(user_id)
        logger.info(f"Password reset for user {user_id}")
        return PasswordReset(user=user, temporary_password=temporary_password)

    async def create_user(self, request: UserCreateRequest, *, password: str | None = None) -> CreatedUser:
        """Create a user (admin action).

        Without an explicit ``password`` a temporary one is generated and
        returned once; either way the user must change it at first login.

        Raises:
            DuplicateUserError: If the username or email is already taken.
        """
        if await self.directory.get_by_username(request.username) is not None:
            msg = "Username already exists"
            raise DuplicateUserError(msg)
        if await self.directory.get_by_email(request.email) is not None:
            msg = "Email already in use"
            raise DuplicateUserError(msg)

        temporary_password = None
        if password is None:
            temporary_password = generate_temporary_password()
            password = temporary_password

        user = await self.directory.create(
            username=request.username,
            email=request.email,
            full_name=request.full_name,
            role=request.role,
            password=hash_password(password),
            needs_password_change=True,
        )
        logger.info(f"User {user.id} ({user.username}) created with role '{user.role}'")
        return CreatedUser(user=user, temporary_password=temporary_password)

    async def change_role(self, user_id: int, role: str) -> User:
        """Set a user's role (admin action).

        Raises:
            ValueError: If ``role`` is not a known role.
            UserNotFoundError: If no user has ``user_id``.
        """
        if role not in ROLES:
            msg = f"Invalid role: {role}"
            raise ValueError(msg)
        user = await self.directory.update(user_id, role=role)
        if user is None:
            raise UserNotFoundError(user_id)
        logger.info(f"Role of user {user_id} set to '{role}'")
        return user

    async def list_users(self) -> list[User]:
        return await self.directory.list_users()
