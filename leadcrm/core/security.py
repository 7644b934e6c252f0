"""
Security utilities for the Lead CRM API.
Password hashing and signed session tokens.
"""
from datetime import timedelta
from typing import Optional
import uuid

import jwt
import bcrypt

from leadcrm.config import settings
from leadcrm.core.timestamps import utcnow


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return bcrypt.checkpw(
        plain_password.encode('utf-8'),
        hashed_password.encode('utf-8')
    )


def get_password_hash(password: str) -> str:
    """Hash a password."""
    salt = bcrypt.gensalt()
    return bcrypt.hashpw(password.encode('utf-8'), salt).decode('utf-8')


def create_session_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create the signed token stored in the session cookie.

    Args:
        data: Payload data (user_id, name, email, role)
        expires_delta: Custom expiration time

    Returns:
        Encoded JWT string
    """
    to_encode = data.copy()

    if expires_delta:
        expire = utcnow() + expires_delta
    else:
        expire = utcnow() + timedelta(hours=settings.SESSION_EXPIRE_HOURS)

    to_encode.update({
        "exp": expire,
        "iat": utcnow(),
        "type": "session",
        "jti": str(uuid.uuid4())
    })

    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_token(token: str) -> Optional[dict]:
    """
    Decode and validate a JWT token.

    Returns:
        Decoded payload dict or None if invalid
    """
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        return payload
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None


def verify_session_token(token: str) -> Optional[dict]:
    """
    Verify a session token.

    Returns:
        Decoded payload if valid and of session type, None otherwise
    """
    payload = decode_token(token)
    if payload and payload.get("type") == "session":
        return payload
    return None
