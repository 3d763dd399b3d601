"""Random invitation tokens and temporary passwords."""

import secrets

INVITATION_TOKEN_BYTES = 32
TEMPORARY_PASSWORD_BYTES = 6


def generate_invitation_token() -> str:
    """Return a 256-bit random token as 64 hex characters (URL-path safe)."""
    return secrets.token_hex(INVITATION_TOKEN_BYTES)


def generate_temporary_password() -> str:
    """Return a random 12-character hex temporary password."""
    return secrets.token_hex(TEMPORARY_PASSWORD_BYTES)
