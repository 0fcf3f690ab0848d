"""Password hashing and JWT helpers for the site owner."""
from __future__ import annotations

from datetime import UTC, datetime, timedelta

import bcrypt
from jose import JWTError, jwt

from mx_space.core.settings import settings

MASTER_SUBJECT = "master"
# bcrypt only reads the first 72 bytes of a secret.
_BCRYPT_MAX_BYTES = 72


def _secret(password: str) -> bytes:
    return password.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    hashed = bcrypt.hashpw(_secret(password), bcrypt.gensalt())
    # Stored as a UTF-8 string like "$2b$12$..."
    return hashed.decode("utf-8")


def verify_password(password: str, hashed: str | None) -> bool:
    """Check ``password`` against a bcrypt hash; malformed hashes never match."""
    if not hashed:
        return False
    try:
        return bcrypt.checkpw(_secret(password), hashed.encode("utf-8"))
    except ValueError:
        return False


def create_access_token(subject: str = MASTER_SUBJECT, extra_claims: dict[str, str] | None = None) -> str:
    """Create a JWT access token for the authenticated master."""
    to_encode: dict[str, object] = {"sub": subject}
    if extra_claims:
        to_encode.update(extra_claims)
    expire = datetime.now(UTC) + timedelta(minutes=settings.access_token_expire_minutes)
    to_encode["exp"] = expire
    encoded_jwt: str = jwt.encode(
        to_encode,
        settings.secret_key,
        algorithm=settings.jwt_algorithm,
    )
    return encoded_jwt


def is_master_token(token: str | None) -> bool:
    """Return True if ``token`` is a valid, unexpired master token."""
    if not token:
        return False
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError:
        return False
    return payload.get("sub") == MASTER_SUBJECT
