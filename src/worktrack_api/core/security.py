"""Password hashing and session token creation/validation.

Uses passlib with scrypt for password hashing and PyJWT for the signed
session token carried in the session cookie.
"""

from datetime import UTC, datetime, timedelta

import jwt
from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["scrypt"], deprecated="auto")

SESSION_TOKEN_TYPE = "session"


def hash_password(password: str) -> str:
    """Hash a plaintext password using salted scrypt.

    Every call draws a fresh random salt, so hashing the same password
    twice yields two different stored forms.

    Args:
        password: The plaintext password to hash.

    Returns:
        The stored form carrying the scrypt parameters, salt, and digest.
    """
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str | None) -> bool:
    """Verify a plaintext password against a stored scrypt hash.

    The digest comparison is constant-time.  A missing or malformed stored
    value fails closed.

    Args:
        plain_password: The plaintext password to verify.
        hashed_password: The stored hash to verify against.

    Returns:
        True if the password matches, False otherwise.
    """
    if not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError):
        return False


def create_session_token(
    user_id: int,
    role: str,
    secret_key: str,
    *,
    needs_password_change: bool = False,
    algorithm: str = "HS256",
    expires_minutes: int = 1440,
) -> str:
    """Create a signed session token.

    Args:
        user_id: The authenticated user's id.
        role: The user's role.
        secret_key: Secret key for signing.
        needs_password_change: Whether the session must be routed to a
            password change before normal use.
        algorithm: JWT signing algorithm.
        expires_minutes: Session lifetime in minutes.

    Returns:
        The encoded JWT string.
    """
    expire = datetime.now(UTC) + timedelta(minutes=expires_minutes)
    payload = {
        "sub": str(user_id),
        "role": role,
        "npc": needs_password_change,
        "exp": expire,
        "type": SESSION_TOKEN_TYPE,
    }
    return jwt.encode(payload, secret_key, algorithm=algorithm)


def decode_token(
    token: str,
    secret_key: str,
    algorithm: str = "HS256",
) -> dict:
    """Decode and validate a session token.

    Args:
        token: The JWT string to decode.
        secret_key: Secret key used for signing.
        algorithm: JWT signing algorithm.

    Returns:
        The decoded token payload.

    Raises:
        jwt.ExpiredSignatureError: If the token has expired.
        jwt.InvalidTokenError: If the token is invalid.
    """
    return jwt.decode(token, secret_key, algorithms=[algorithm])
