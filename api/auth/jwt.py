"""JWT token utilities for authentication.

The sub claim carries the owner (user) id every record is scoped to.
"""

import os
from datetime import timedelta
from uuid import uuid4

from jose import JWTError, jwt

from newsletter.models import utc_now

# JWT_SECRET is REQUIRED in all environments
JWT_SECRET = os.getenv("JWT_SECRET")
if not JWT_SECRET:
    raise RuntimeError(
        "JWT_SECRET environment variable is required. "
        "Set it to a secure random string (e.g., openssl rand -hex 32)"
    )
JWT_ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))

# Valid token types for API access
VALID_ACCESS_TOKEN_TYPES = ("access",)


def create_access_token(data: dict, expires_minutes: int = ACCESS_TOKEN_EXPIRE_MINUTES) -> str:
    """Create a JWT access token.

    Args:
        data: Payload data (must include 'sub' for user_id)
        expires_minutes: Lifetime of the token

    Returns:
        Encoded JWT token string
    """
    to_encode = data.copy()
    now = utc_now()
    to_encode.update(
        {
            "exp": now + timedelta(minutes=expires_minutes),
            "iat": now,
            "type": "access",
            "jti": str(uuid4()),
        }
    )
    return jwt.encode(to_encode, JWT_SECRET, algorithm=JWT_ALGORITHM)


def verify_token(token: str) -> dict | None:
    """Verify and decode a JWT token.

    Returns:
        Decoded payload dict if valid, None if invalid/expired
    """
    try:
        return jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except JWTError:
        return None
