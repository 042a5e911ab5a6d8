from __future__ import annotations

from uuid import UUID

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from planboard.config import load_app_config
from planboard.db.models import User
from planboard.db.session import get_db_session
from planboard.security import TokenError, decode_access_token
from planboard.services.errors import UnauthorizedError

bearer_scheme = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    session: Session = Depends(get_db_session),
) -> User:
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError("Access token required", code="TOKEN_MISSING")

    try:
        payload = decode_access_token(load_app_config(), credentials.credentials)
        user_id = UUID(payload["sub"])
    except (TokenError, ValueError) as exc:
        raise UnauthorizedError(str(exc), code="TOKEN_INVALID") from exc

    user = session.get(User, user_id)
    if user is None:
        raise UnauthorizedError("Invalid token", code="TOKEN_INVALID")
    return user
