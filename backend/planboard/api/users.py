from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from planboard.api.deps import get_current_user
from planboard.api.schemas import (
    LoginRequest,
    MessageResponse,
    RefreshTokenRequest,
    RegisterRequest,
    TokenResponse,
    UserResponse,
)
from planboard.db.models import User
from planboard.db.session import get_db_session
from planboard.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["users"])


@router.post("/register", response_model=UserResponse, status_code=201)
def register(
    payload: RegisterRequest,
    session: Session = Depends(get_db_session),
) -> UserResponse:
    user = UserService().register(
        session,
        email=payload.email,
        password=payload.password,
        first_name=payload.first_name,
        last_name=payload.last_name,
    )
    return UserResponse.model_validate(user)


@router.post("/login", response_model=TokenResponse)
def login(
    payload: LoginRequest,
    session: Session = Depends(get_db_session),
) -> TokenResponse:
    tokens = UserService().login(
        session, email=payload.email, password=payload.password
    )
    return TokenResponse(
        access_token=tokens.access_token, refresh_token=tokens.refresh_token
    )


@router.post("/refresh-token", response_model=TokenResponse)
def refresh_token(
    payload: RefreshTokenRequest,
    session: Session = Depends(get_db_session),
) -> TokenResponse:
    tokens = UserService().refresh(session, refresh_token=payload.refresh_token)
    return TokenResponse(access_token=tokens.access_token)


@router.post("/logout", response_model=MessageResponse)
def logout(
    payload: RefreshTokenRequest,
    session: Session = Depends(get_db_session),
) -> MessageResponse:
    UserService().logout(session, refresh_token=payload.refresh_token)
    return MessageResponse(message="Logged out")


@router.get("/me", response_model=UserResponse)
def me(current_user: User = Depends(get_current_user)) -> UserResponse:
    return UserResponse.model_validate(current_user)


@router.post("/logout-all", response_model=MessageResponse)
def logout_all(
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_db_session),
) -> MessageResponse:
    revoked = UserService().revoke_all_refresh_tokens(session, user_id=current_user.id)
    return MessageResponse(message=f"Revoked {revoked} refresh token(s)")
