"""Authentication, invitation, and user management Pydantic v2 schemas.

Payloads use camelCase on the wire (``needsPasswordChange``, ``fullName``)
and snake_case in Python.  No schema exposes the stored password hash.
"""

from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

PASSWORD_MIN_LENGTH = 8
ROLE_PATTERN = "^(employee|admin)$"

# A password chosen by a user or an administrator
NewPassword = Annotated[str, Field(min_length=PASSWORD_MIN_LENGTH)]


class CamelModel(BaseModel):
    """Base schema serializing field names as camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LoginRequest(CamelModel):
    """Login with a username or email plus a password or invitation token."""

    identifier: str = Field(min_length=1, max_length=255)
    secret: str = Field(min_length=1, max_length=255)


class ChangePasswordRequest(CamelModel):
    """Self-service password change with step-up verification."""

    current_password: str = Field(min_length=1)
    new_password: NewPassword


class RedeemInvitationRequest(CamelModel):
    """New password chosen by an invitee."""

    new_password: NewPassword


class UserCreateRequest(CamelModel):
    """Admin request to create a user; the server issues the temporary password."""

    username: str = Field(min_length=3, max_length=100)
    email: EmailStr
    full_name: str = Field(min_length=1, max_length=200)
    role: str = Field(default="employee", pattern=ROLE_PATTERN)


class RoleUpdateRequest(CamelModel):
    """Admin request to change a user's role."""

    role: str = Field(pattern=ROLE_PATTERN)


class UserResponse(CamelModel):
    """User information response."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: int
    username: str
    email: str
    full_name: str
    role: str
    needs_password_change: bool
    invitation_sent: bool = False
    invitation_expires: datetime | None = None
    created_at: datetime | None = None
    last_login_at: datetime | None = None


class CreatedUserResponse(UserResponse):
    """Newly created user plus its one-time temporary password."""

    temporary_password: str


class InvitationUser(CamelModel):
    """Invitee details shown before a password is chosen."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: int
    username: str
    email: str
    full_name: str


class InvitationPreviewResponse(CamelModel):
    """Result of checking an invitation link."""

    valid: bool = True
    user: InvitationUser


class InvitationIssuedResponse(CamelModel):
    """Credentials produced by issuing an invitation, disclosed once."""

    temporary_password: str
    invitation_token: str
    invitation_expires: datetime
    email_sent: bool = True


class PasswordResetResponse(CamelModel):
    """Temporary password produced by an admin reset, disclosed once."""

    temporary_password: str


class MessageResponse(BaseModel):
    """Plain acknowledgement."""

    message: str
