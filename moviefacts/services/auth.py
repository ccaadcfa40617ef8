"""
JWT Session Token Service

After a successful OAuth sign-in the user receives a signed JWT in an
HTTP-only cookie. Every authenticated request carries it back, and the
token alone identifies the user:

- "sub": the user's id
- "email": the user's email at sign-in time
- "exp": expiration (SESSION_MAX_AGE seconds after sign-in)

Tokens are signed with HMAC-SHA256 using SECRET_KEY, so verifying one
needs no database lookup.
"""

from datetime import datetime, timedelta

from jose import jwt

from moviefacts.config import settings


# HMAC-SHA256 algorithm for signing JWT tokens
# This is a symmetric signing method (same key for sign/verify)
ALGORITHM = "HS256"

# Name of the cookie holding "Bearer <jwt>"
SESSION_COOKIE = "access_token"


def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    """
    Create a JWT access token with the given payload data.

    Args:
        data: Payload to encode in the token (typically {"sub": user_id, "email": email})
        expires_delta: Optional custom expiration time delta
                      If not provided, defaults to SESSION_MAX_AGE

    Returns:
        Encoded JWT string that can be sent to the client
    """
    # Copy the data to avoid mutating the original dict
    to_encode = data.copy()

    if expires_delta is None:
        expires_delta = timedelta(seconds=settings.SESSION_MAX_AGE)
    expire = datetime.utcnow() + expires_delta

    # "exp" is a JWT standard claim that the library checks automatically
    to_encode.update({"exp": expire})

    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=ALGORITHM)


def verify_token(token: str) -> dict | None:
    """
    Verify and decode a JWT token.

    This checks:
    1. Signature is valid (token hasn't been tampered with)
    2. Token hasn't expired

    Returns:
        Decoded payload dictionary if valid, None if invalid/expired
    """
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM])
    except jwt.JWTError:
        # Don't expose the specific error to prevent information leakage
        return None


def session_cookie_value(token: str) -> str:
    # Stored as "Bearer <jwt>" (OAuth 2.0 style)
    return f"Bearer {token}"


def token_from_cookie(value: str | None) -> str | None:
    """Extract the JWT from a "Bearer <jwt>" cookie value."""
    if not value:
        return None
    scheme, _, param = value.partition(" ")
    if scheme.lower() != "bearer" or not param:
        return None
    return param
