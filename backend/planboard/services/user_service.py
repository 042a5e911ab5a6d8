from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from planboard.config import AppConfig, load_app_config
from planboard.db.models import RefreshToken, User
from planboard.security import (
    TokenError,
    create_access_token,
    create_refresh_token,
    decode_refresh_token,
    hash_password,
    is_valid_email,
    password_problems,
    verify_password,
)
from planboard.services.errors import (
    ConflictError,
    InvalidArgumentError,
    NotFoundError,
    PersistenceError,
    UnauthorizedError,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IssuedTokens:
    access_token: str
    refresh_token: str | None = None


class UserService:
    def __init__(self, config: AppConfig | None = None) -> None:
        self.config = config or load_app_config()

    def register(
        self,
        session: Session,
        *,
        email: str,
        password: str,
        first_name: str,
        last_name: str | None = None,
    ) -> User:
        email = email.strip().lower()
        if not email or not password or not first_name:
            raise InvalidArgumentError("Email, password, and first name are required")
        if not is_valid_email(email):
            raise InvalidArgumentError("Invalid email format")
        problems = password_problems(password)
        if problems:
            raise InvalidArgumentError(", ".join(problems))
        if len(first_name.strip()) < 2:
            raise InvalidArgumentError("First name must be at least 2 characters")

        user = User(
            email=email,
            password_hash=hash_password(password),
            first_name=first_name.strip(),
            last_name=last_name,
        )
        try:
            session.add(user)
            session.commit()
        except IntegrityError as exc:
            session.rollback()
            raise ConflictError("Email already exists", code="EMAIL_EXISTS") from exc
        except SQLAlchemyError as exc:
            session.rollback()
            logger.exception("user_register_failed")
            raise PersistenceError("Error creating user") from exc

        logger.info("user_registered", extra={"user_id": str(user.id)})
        return user

    def login(self, session: Session, *, email: str, password: str) -> IssuedTokens:
        user = session.scalar(select(User).where(User.email == email.strip().lower()))
        if user is None or not verify_password(password, user.password_hash):
            raise UnauthorizedError(
                "Invalid email or password", code="INVALID_CREDENTIALS"
            )

        now = datetime.now(UTC)
        access_token = create_access_token(
            self.config, user_id=user.id, email=user.email, now=now
        )
        refresh_token, jti, expires_at = create_refresh_token(
            self.config, user_id=user.id, now=now
        )
        try:
            session.add(
                RefreshToken(user_id=user.id, jti=jti, expires_at=expires_at)
            )
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            logger.exception("user_login_failed", extra={"user_id": str(user.id)})
            raise PersistenceError("Error storing refresh token") from exc
        return IssuedTokens(access_token=access_token, refresh_token=refresh_token)

    def refresh(self, session: Session, *, refresh_token: str) -> IssuedTokens:
        record, user_id = self._load_refresh_record(session, refresh_token)
        now = datetime.now(UTC)
        if record is None or record.is_revoked or _as_aware(record.expires_at) < now:
            raise UnauthorizedError(
                "Refresh token is invalid or has been revoked",
                code="INVALID_REFRESH_TOKEN",
            )

        user = session.get(User, user_id)
        if user is None:
            raise UnauthorizedError(
                "Invalid refresh token", code="INVALID_REFRESH_TOKEN"
            )
        return IssuedTokens(
            access_token=create_access_token(
                self.config, user_id=user.id, email=user.email, now=now
            )
        )

    def logout(self, session: Session, *, refresh_token: str) -> None:
        record, _ = self._load_refresh_record(session, refresh_token)
        if record is None or record.is_revoked:
            return
        record.is_revoked = True
        try:
            session.add(record)
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            logger.exception("user_logout_failed", extra={"jti": record.jti})
            raise PersistenceError("Error revoking refresh token") from exc

    def revoke_all_refresh_tokens(self, session: Session, *, user_id: UUID) -> int:
        records = session.scalars(
            select(RefreshToken).where(
                RefreshToken.user_id == user_id,
                RefreshToken.is_revoked.is_(False),
            )
        ).all()
        for record in records:
            record.is_revoked = True
        try:
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            logger.exception(
                "user_revoke_tokens_failed", extra={"user_id": str(user_id)}
            )
            raise PersistenceError("Error revoking refresh tokens") from exc

        logger.info(
            "user_refresh_tokens_revoked",
            extra={"user_id": str(user_id), "count": len(records)},
        )
        return len(records)

    def get_user(self, session: Session, user_id: UUID) -> User:
        user = session.get(User, user_id)
        if user is None:
            raise NotFoundError(f"User '{user_id}' not found", code="USER_NOT_FOUND")
        return user

    def _load_refresh_record(
        self, session: Session, refresh_token: str
    ) -> tuple[RefreshToken | None, UUID]:
        try:
            payload = decode_refresh_token(self.config, refresh_token)
            user_id = UUID(payload["sub"])
        except (TokenError, ValueError) as exc:
            raise UnauthorizedError(
                "Invalid refresh token", code="INVALID_REFRESH_TOKEN"
            ) from exc

        record = session.scalar(
            select(RefreshToken).where(
                RefreshToken.jti == payload.get("jti"),
                RefreshToken.user_id == user_id,
            )
        )
        return record, user_id


def _as_aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value
