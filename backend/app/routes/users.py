"""
PinDrop Backend — User & Follow Route Handlers
================================================

What:  User listing/search/profile plus every follow-graph mutation that is
       addressed by the other user's id.
Why:   The follow state machine lives in FollowService; these handlers only
       resolve the caller's identity and translate results to HTTP.

Route Inventory:
    GET    /api/users                         list users (optional auth)
    GET    /api/users/search?q=               search users (optional auth)
    GET    /api/users/{username}              profile (optional auth)
    GET    /api/users/{user_id}/followers     followers of a user
    GET    /api/users/{user_id}/following     users a user follows
    POST   /api/users/{user_id}/follow        follow, or request to follow
    DELETE /api/users/{user_id}/follow        unfollow
    DELETE /api/users/{user_id}/follower      remove a follower
    DELETE /api/users/{user_id}/follow-request  cancel a sent request

Error responses for the follow family come from FollowGraphError subclasses
(see exceptions.py), so every handler below is free of status-code logic.
"""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_db_session
from app.dependencies import get_viewer_id, require_viewer_id
from app.schemas.common import ErrorResponse, MessageResponse
from app.schemas.follow import FollowersResponse, FollowingResponse, FollowResult
from app.schemas.user import ProfileResponse, UserListResponse
from app.services.follow_service import follow_service
from app.services.user_service import user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["Users"])

_FOLLOW_ERRORS = {
    400: {"description": "Self-follow or not following", "model": ErrorResponse},
    401: {"description": "Missing or invalid token", "model": ErrorResponse},
    404: {"description": "User or request not found", "model": ErrorResponse},
    409: {"description": "Already following, or state conflict", "model": ErrorResponse},
}


# ── Listing & profiles ────────────────────────────────────────────────────

@router.get("", response_model=UserListResponse, summary="List users, newest first")
async def list_users(
    response: Response,
    limit: int = Query(default=settings.default_page_size, ge=1, le=settings.max_page_size),
    offset: int = Query(default=0, ge=0),
    viewer_id: Optional[UUID] = Depends(get_viewer_id),
    db: AsyncSession = Depends(get_db_session),
) -> UserListResponse:
    result = await user_service.list_users(db, viewer_id, limit=limit, offset=offset)
    response.headers["X-Total-Count"] = str(result.total)
    return result


@router.get("/search", response_model=UserListResponse, summary="Search users by name")
async def search_users(
    response: Response,
    q: str = Query(default="", max_length=100, description="Substring of username or full name"),
    limit: int = Query(default=20, ge=1, le=settings.max_page_size),
    offset: int = Query(default=0, ge=0),
    viewer_id: Optional[UUID] = Depends(get_viewer_id),
    db: AsyncSession = Depends(get_db_session),
) -> UserListResponse:
    result = await user_service.search_users(db, q, viewer_id, limit=limit, offset=offset)
    response.headers["X-Total-Count"] = str(result.total)
    return result


@router.get(
    "/{username}",
    response_model=ProfileResponse,
    responses={404: {"description": "No such user", "model": ErrorResponse}},
    summary="Profile with follow counts and the caller's follow state",
)
async def get_profile(
    username: str,
    viewer_id: Optional[UUID] = Depends(get_viewer_id),
    db: AsyncSession = Depends(get_db_session),
) -> ProfileResponse:
    return await user_service.get_profile(db, username, viewer_id)


@router.get("/{user_id}/followers", response_model=FollowersResponse)
async def get_followers(
    user_id: UUID,
    limit: int = Query(default=settings.default_page_size, ge=1, le=settings.max_page_size),
    offset: int = Query(default=0, ge=0),
    db: AsyncSession = Depends(get_db_session),
) -> FollowersResponse:
    users, total = await follow_service.get_followers(db, user_id, limit=limit, offset=offset)
    return FollowersResponse(followers=users, total=total)


@router.get("/{user_id}/following", response_model=FollowingResponse)
async def get_following(
    user_id: UUID,
    limit: int = Query(default=settings.default_page_size, ge=1, le=settings.max_page_size),
    offset: int = Query(default=0, ge=0),
    db: AsyncSession = Depends(get_db_session),
) -> FollowingResponse:
    users, total = await follow_service.get_following(db, user_id, limit=limit, offset=offset)
    return FollowingResponse(following=users, total=total)


# ── Follow graph mutations ────────────────────────────────────────────────

@router.post(
    "/{user_id}/follow",
    response_model=FollowResult,
    status_code=status.HTTP_201_CREATED,
    responses=_FOLLOW_ERRORS,
    summary="Follow a user (public) or send a follow request (private)",
)
async def follow_user(
    user_id: UUID,
    viewer_id: UUID = Depends(require_viewer_id),
    db: AsyncSession = Depends(get_db_session),
) -> FollowResult:
    """
    Outcome depends on the target's privacy setting:
        type="follow"   the edge now exists
        type="request"  a PENDING request awaits the target's decision
    """
    return await follow_service.request_follow(db, viewer_id, user_id)


@router.delete("/{user_id}/follow", response_model=MessageResponse, responses=_FOLLOW_ERRORS)
async def unfollow_user(
    user_id: UUID,
    viewer_id: UUID = Depends(require_viewer_id),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await follow_service.unfollow(db, viewer_id, user_id)
    return MessageResponse(message="Successfully unfollowed user")


@router.delete("/{user_id}/follower", response_model=MessageResponse, responses=_FOLLOW_ERRORS)
async def remove_follower(
    user_id: UUID,
    viewer_id: UUID = Depends(require_viewer_id),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await follow_service.remove_follower(db, viewer_id, user_id)
    return MessageResponse(message="Follower removed")


@router.delete(
    "/{user_id}/follow-request", response_model=MessageResponse, responses=_FOLLOW_ERRORS
)
async def cancel_follow_request(
    user_id: UUID,
    viewer_id: UUID = Depends(require_viewer_id),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await follow_service.cancel_request(db, viewer_id, user_id)
    return MessageResponse(message="Follow request cancelled")
