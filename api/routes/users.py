"""User account and login session endpoints."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.auth import (
    ERRORS,
    SessionContext,
    hash_password,
    optional_session,
    require_user,
    verify_password,
)
from api.schemas import LoginRequest, RegisterRequest, UserResponse
from api.session import SESSION_KEY_USER_ID, create_session, delete_session
from config import config
from db.crud import UserCrud, UsernameTakenError
from db.engine import get_db

logger = logging.getLogger(__name__)

router = APIRouter()


def _set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=config.session.cookie_name,
        value=token,
        max_age=config.session.ttl,
        httponly=True,
        samesite="lax",
        secure=config.session.cookie_secure,
    )


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    request: RegisterRequest,
    response: Response,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> UserResponse:
    """Create an account and log it in."""
    password_hash, salt = hash_password(request.password)
    try:
        user = await UserCrud.create_user(db, request.username, password_hash, salt)
    except UsernameTakenError:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=ERRORS["USERNAME_TAKEN"])

    token = await create_session({SESSION_KEY_USER_ID: user.id})
    _set_session_cookie(response, token)
    logger.info("Registered user %s (id=%d)", user.username, user.id)
    return UserResponse.model_validate(user)


@router.post("/login")
async def login(
    request: LoginRequest,
    response: Response,
    db: Annotated[AsyncSession, Depends(get_db)],
    current: Annotated[SessionContext | None, Depends(optional_session)],
) -> UserResponse:
    """Verify credentials and open a session."""
    if current is not None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=ERRORS["ALREADY_SIGNED_IN"])

    user = await UserCrud.get_user_by_username(db, request.username)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=ERRORS["USER_NOT_FOUND"])
    if not verify_password(request.password, user.password_hash, user.salt):
        logger.warning("Failed login for %s", request.username)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=ERRORS["INCORRECT_PASSWORD"])

    token = await create_session({SESSION_KEY_USER_ID: user.id})
    _set_session_cookie(response, token)
    return UserResponse.model_validate(user)


@router.post("/logout")
async def logout(
    response: Response,
    current: Annotated[SessionContext, Depends(require_user)],
) -> bool:
    """End the caller's session."""
    await delete_session(current.token)
    response.delete_cookie(config.session.cookie_name)
    return True


@router.get("/me")
async def me(
    current: Annotated[SessionContext, Depends(require_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> UserResponse:
    """Return the logged-in user."""
    user = await UserCrud.get_user(db, current.user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=ERRORS["INVALID_SESSION"])
    return UserResponse.model_validate(user)
