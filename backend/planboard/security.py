from __future__ import annotations

import re
import secrets
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID

import bcrypt
import jwt

from planboard.config import AppConfig

JWT_ALGORITHM = "HS256"
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class TokenError(ValueError):
    """Raised when a JWT cannot be verified."""


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_PATTERN.match(email))


def password_problems(password: str) -> list[str]:
    problems: list[str] = []
    if len(password) < 8:
        problems.append("Password must be at least 8 characters long")
    has_upper = any(ch.isupper() for ch in password)
    has_lower = any(ch.islower() for ch in password)
    has_digit = any(ch.isdigit() for ch in password)
    if not (has_upper and has_lower and has_digit):
        problems.append(
            "Password must contain at least one uppercase letter, "
            "one lowercase letter, and one number"
        )
    return problems


def create_access_token(
    config: AppConfig, *, user_id: UUID, email: str, now: datetime | None = None
) -> str:
    issued_at = now or datetime.now(UTC)
    payload = {
        "sub": str(user_id),
        "email": email,
        "type": "access",
        "iat": issued_at,
        "exp": issued_at + timedelta(minutes=config.access_token_ttl_minutes),
    }
    return jwt.encode(payload, config.jwt_secret, algorithm=JWT_ALGORITHM)


def create_refresh_token(
    config: AppConfig, *, user_id: UUID, now: datetime | None = None
) -> tuple[str, str, datetime]:
    issued_at = now or datetime.now(UTC)
    jti = secrets.token_hex(32)
    expires_at = issued_at + timedelta(days=config.refresh_token_ttl_days)
    payload = {
        "sub": str(user_id),
        "jti": jti,
        "type": "refresh",
        "iat": issued_at,
        "exp": expires_at,
    }
    token = jwt.encode(payload, config.jwt_refresh_secret, algorithm=JWT_ALGORITHM)
    return token, jti, expires_at


def decode_access_token(config: AppConfig, token: str) -> dict[str, Any]:
    return _decode(token, config.jwt_secret, expected_type="access")


def decode_refresh_token(config: AppConfig, token: str) -> dict[str, Any]:
    return _decode(token, config.jwt_refresh_secret, expected_type="refresh")


def _decode(token: str, secret: str, *, expected_type: str) -> dict[str, Any]:
    try:
        payload = jwt.decode(token, secret, algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError as exc:
        raise TokenError("Token expired") from exc
    except jwt.InvalidTokenError as exc:
        raise TokenError("Invalid token") from exc

    if payload.get("type") != expected_type or not isinstance(payload.get("sub"), str):
        raise TokenError("Invalid token")
    return payload
