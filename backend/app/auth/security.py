"""Password hashing and JWT helpers."""
import hashlib
from datetime import datetime, timedelta
from typing import Optional

import bcrypt
import jwt

from app.config import settings


def hash_password(password: str) -> str:
    """Hash a plain-text password with bcrypt."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Check a plain-text password against a stored bcrypt hash."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def _encode(data: dict, expires_delta: timedelta, token_type: str) -> str:
    to_encode = data.copy()
    to_encode.update({"exp": datetime.utcnow() + expires_delta, "type": token_type})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a short-lived access token. ``data["sub"]`` is the user uuid."""
    return _encode(
        data,
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
        "access",
    )


def create_refresh_token(data: dict) -> str:
    """Create a long-lived refresh token."""
    return _encode(data, timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS), "refresh")


def decode_token(token: str, token_type: Optional[str] = None) -> Optional[dict]:
    """Decode and verify a token. Returns None when invalid, expired or of the wrong type."""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except jwt.PyJWTError:
        return None
    if token_type and payload.get("type") != token_type:
        return None
    return payload


def password_fingerprint(password_hash: str) -> str:
    """Short digest of the stored hash; it changes whenever the password does."""
    return hashlib.sha256(password_hash.encode("utf-8")).hexdigest()[:16]


def create_password_reset_token(user_id: str, password_hash: str) -> str:
    """Create a short-lived reset token, void once the password changes."""
    return _encode(
        {"sub": user_id, "pwd": password_fingerprint(password_hash)},
        timedelta(minutes=settings.PASSWORD_RESET_EXPIRE_MINUTES),
        "password_reset",
    )
