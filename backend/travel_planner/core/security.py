"""
Security module for authentication.

Provides JWT token handling and password hashing using industry-standard
libraries (bcrypt, python-jose). The FastAPI dependencies that consume these
helpers live in ``travel_planner.api.dependencies``.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
from jose import ExpiredSignatureError, JWTError, jwt
from pydantic import BaseModel

from travel_planner.core.config import settings

# JWT Algorithm
ALGORITHM = "HS256"

# bcrypt only looks at the first 72 bytes of a password
BCRYPT_MAX_BYTES = 72
BCRYPT_ROUNDS = 12


class TokenExpiredError(Exception):
    """Raised when a JWT signature is valid but the token has expired"""


class InvalidTokenError(Exception):
    """Raised when a JWT is malformed, forged, or missing required claims"""


class TokenData(BaseModel):
    """
    JWT token payload data model.

    Contains the claims stored in the JWT token.
    """
    user_id: str
    exp: Optional[datetime] = None


def _password_bytes(password: str) -> bytes:
    password_bytes = password.encode("utf-8")
    # Truncate to 72 bytes if needed (bcrypt limit)
    if len(password_bytes) > BCRYPT_MAX_BYTES:
        password_bytes = password_bytes[:BCRYPT_MAX_BYTES]
    return password_bytes


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a plain password against a hashed password.

    Args:
        plain_password: The plain text password to verify
        hashed_password: The hashed password to compare against

    Returns:
        True if password matches, False otherwise
    """
    if isinstance(hashed_password, str):
        hashed_bytes = hashed_password.encode("utf-8")
    else:
        hashed_bytes = hashed_password

    try:
        return bcrypt.checkpw(_password_bytes(plain_password), hashed_bytes)
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


def get_password_hash(password: str) -> str:
    """
    Hash a password using bcrypt.

    Args:
        password: Plain text password to hash

    Returns:
        Hashed password string
    """
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    hashed = bcrypt.hashpw(_password_bytes(password), salt)
    return hashed.decode("utf-8")


def create_access_token(user_id: str, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token for a user.

    Args:
        user_id: ID of the user the token is issued to (stored as ``sub``)
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token string

    Example:
        >>> token = create_access_token(user.id)
        >>> # Use token in Authorization header: Bearer <token>
    """
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.access_token_expire_minutes)

    expire = datetime.now(timezone.utc) + expires_delta
    to_encode = {"sub": user_id, "exp": expire}

    return jwt.encode(to_encode, settings.secret_key, algorithm=ALGORITHM)


def decode_access_token(token: str) -> TokenData:
    """
    Decode and validate a JWT access token.

    Args:
        token: JWT token string to decode

    Returns:
        TokenData with the user ID and expiry

    Raises:
        TokenExpiredError: If the token signature is valid but it has expired
        InvalidTokenError: If the token is malformed, forged, or has no subject
    """
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
    except ExpiredSignatureError as e:
        raise TokenExpiredError("Token has expired") from e
    except JWTError as e:
        raise InvalidTokenError("Invalid token") from e

    user_id = payload.get("sub")
    if not user_id:
        raise InvalidTokenError("Token has no subject")

    exp = payload.get("exp")
    return TokenData(
        user_id=str(user_id),
        exp=datetime.fromtimestamp(exp, tz=timezone.utc) if exp else None,
    )
