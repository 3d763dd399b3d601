"""Typed service-layer errors for authentication and invitations.

Routers translate these into HTTP responses.  Messages are deliberately
generic where they guard credentials so responses never reveal which
part of a credential was wrong or whether a token ever existed.
"""

from typing import Any


class InvalidCredentialsError(Exception):
    """Identifier/secret combination rejected."""

    def __init__(self, message: str = "Invalid username or password") -> None:
        super().__init__(message)


class InvalidOrExpiredTokenError(Exception):
    """Invitation token absent, unknown, or past its expiry."""

    def __init__(self, message: str = "Invalid or expired invitation") -> None:
        super().__init__(message)


class UserNotFoundError(Exception):
    """Referenced user id does not exist."""

    def __init__(self, user_id: int) -> None:
        self.user_id = user_id
        super().__init__("User not found")


class DuplicateUserError(ValueError):
    """Username or email already belongs to another user."""


class DeliveryFailureError(Exception):
    """Outbound invitation email could not be delivered.

    Raised after the invitation has been committed; ``payload`` carries the
    credentials the administrator must relay by hand.
    """

    def __init__(self, message: str, payload: dict[str, Any] | None = None) -> None:
        self.message = message
        self.payload = payload or {}
        super().__init__(message)
