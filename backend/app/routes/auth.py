"""
PinDrop Backend — Auth Route Handlers
=======================================

What:  POST /api/auth/register, POST /api/auth/login, GET/PATCH /api/auth/me
Why:   Issues the bearer tokens every authenticated endpoint expects, and
       exposes the account settings (including is_private) to their owner.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.dependencies import require_viewer_id
from app.exceptions import AuthenticationError
from app.schemas.common import ErrorResponse
from app.schemas.user import (
    LoginRequest,
    ProfileUpdate,
    TokenResponse,
    UserPrivate,
    UserRegister,
)
from app.security import create_access_token
from app.services.user_service import user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post(
    "/register",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"description": "E-mail or username taken", "model": ErrorResponse}},
    summary="Create an account",
)
async def register(
    payload: UserRegister,
    db: AsyncSession = Depends(get_db_session),
) -> TokenResponse:
    """New accounts start private: followers must be approved."""
    user = await user_service.register(db, payload)
    return TokenResponse(user=user, token=create_access_token(user.id, user.username))


@router.post(
    "/login",
    response_model=TokenResponse,
    responses={401: {"description": "Bad credentials", "model": ErrorResponse}},
    summary="Exchange e-mail and password for a bearer token",
)
async def login(
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
) -> TokenResponse:
    user = await user_service.authenticate(db, payload.email, payload.password)
    if user is None:
        # Same message for unknown e-mail and wrong password
        raise AuthenticationError(message="Invalid email or password")

    logger.info("User %s logged in", user.id)
    return TokenResponse(
        user=UserPrivate.model_validate(user),
        token=create_access_token(user.id, user.username),
    )


@router.get("/me", response_model=UserPrivate, summary="Current account")
async def get_me(
    viewer_id: UUID = Depends(require_viewer_id),
    db: AsyncSession = Depends(get_db_session),
) -> UserPrivate:
    return await user_service.get_me(db, viewer_id)


@router.patch("/me", response_model=UserPrivate, summary="Update profile and privacy settings")
async def update_me(
    changes: ProfileUpdate,
    viewer_id: UUID = Depends(require_viewer_id),
    db: AsyncSession = Depends(get_db_session),
) -> UserPrivate:
    return await user_service.update_profile(db, viewer_id, changes)
