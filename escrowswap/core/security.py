"""Password hashing and signed session cookie tokens."""

import secrets
from datetime import datetime
from typing import TYPE_CHECKING, Any

import bcrypt
import jwt

if TYPE_CHECKING:
    from escrowswap.core.config import Settings

# Bcrypt cost (rounds); 12 is a good default for security vs speed.
BCRYPT_ROUNDS = 12

EMAIL_MAX_LEN = 255
PASSWORD_MIN_LEN = 8
PASSWORD_MAX_LEN = 128

# Bytes of randomness behind each opaque session id.
SESSION_ID_BYTES = 32


def hash_password(plain_password: str) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    # bcrypt has a 72-byte limit; truncate to avoid errors (validation already limits length).
    pw_bytes = plain_password.encode("utf-8")[:72]
    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(plain_password: str, hashed: str) -> bool:
    """Verify a plain password against a stored hash."""
    pw_bytes = plain_password.encode("utf-8")[:72]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def new_session_id() -> str:
    """Return a fresh opaque session identifier."""
    return secrets.token_urlsafe(SESSION_ID_BYTES)


def encode_session_cookie(
    session_id: str,
    issued_at: datetime,
    expires_at: datetime,
    settings: "Settings",
) -> str:
    """Sign the session id into the cookie value; the token expires with the session."""
    payload: dict[str, Any] = {
        "sid": session_id,
        "iat": issued_at,
        "exp": expires_at,
    }
    return jwt.encode(
        payload,
        settings.SESSION_SECRET.get_secret_value(),
        algorithm=settings.SESSION_ALGORITHM,
    )


def decode_session_cookie(token: str, settings: "Settings") -> str:
    """
    Verify the cookie signature and expiry and return the session id.
    Raises jwt.PyJWTError on an invalid, expired or malformed token.
    """
    payload = jwt.decode(
        token,
        settings.SESSION_SECRET.get_secret_value(),
        algorithms=[settings.SESSION_ALGORITHM],
        options={"require": ["sid", "exp"]},
    )
    sid = payload.get("sid")
    if not isinstance(sid, str) or not sid:
        raise jwt.InvalidTokenError("Session token has no session id")
    return sid
