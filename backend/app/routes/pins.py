"""
PinDrop Backend — Pin Route Handlers
======================================

What:  Pins, likes and comments.
Why:   Every read passes the caller's (optional) identity down to PinService,
       which applies the visibility rules. Hidden pins answer 404, the same
       as missing ones.

Pagination:
    limit/offset query parameters; the matching row count is returned in
    the body and in the X-Total-Count header. With lat/lng/radius the page
    is distance-filtered after retrieval and can be shorter than `limit`.
"""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_db_session
from app.dependencies import get_viewer_id, require_viewer_id
from app.exceptions import NotFoundError
from app.schemas.common import ErrorResponse, MessageResponse
from app.schemas.pin import (
    CommentCreate,
    CommentListResponse,
    CommentResponse,
    LikeListResponse,
    LikeResponse,
    PinCreate,
    PinListResponse,
    PinResponse,
    PinUpdate,
)
from app.services.pin_service import pin_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/pins", tags=["Pins"])
comments_router = APIRouter(prefix="/api/comments", tags=["Pins"])

_NOT_FOUND = {404: {"description": "Pin missing or not visible", "model": ErrorResponse}}


# ── Pins ──────────────────────────────────────────────────────────────────

@router.post(
    "",
    response_model=PinResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Drop a pin",
    responses={404: {"description": "event_id does not exist", "model": ErrorResponse}},
)
async def create_pin(
    payload: PinCreate,
    viewer_id: UUID = Depends(require_viewer_id),
    db: AsyncSession = Depends(get_db_session),
) -> PinResponse:
    return await pin_service.create_pin(db, viewer_id, payload)


@router.get("", response_model=PinListResponse, summary="List visible pins, newest first")
async def list_pins(
    response: Response,
    author_id: Optional[UUID] = Query(default=None, description="Only pins by this user"),
    lat: Optional[float] = Query(default=None, ge=-90, le=90),
    lng: Optional[float] = Query(default=None, ge=-180, le=180),
    radius: Optional[float] = Query(default=None, gt=0, description="Kilometres from lat/lng"),
    is_public: Optional[bool] = Query(default=None),
    limit: int = Query(default=settings.default_page_size, ge=1, le=settings.max_page_size),
    offset: int = Query(default=0, ge=0),
    viewer_id: Optional[UUID] = Depends(get_viewer_id),
    db: AsyncSession = Depends(get_db_session),
) -> PinListResponse:
    """
    Anonymous callers see public pins only. Listing a private author's pins
    without following them returns an empty page rather than an error.
    """
    pins, total = await pin_service.list_pins(
        db,
        viewer_id,
        author_id=author_id,
        lat=lat,
        lng=lng,
        radius=radius,
        is_public=is_public,
        limit=limit,
        offset=offset,
    )
    response.headers["X-Total-Count"] = str(total)
    return PinListResponse(pins=pins, total=total)


@router.get("/{pin_id}", response_model=PinResponse, responses=_NOT_FOUND)
async def get_pin(
    pin_id: UUID,
    viewer_id: Optional[UUID] = Depends(get_viewer_id),
    db: AsyncSession = Depends(get_db_session),
) -> PinResponse:
    pin = await pin_service.get_pin(db, pin_id, viewer_id)
    if pin is None:
        raise NotFoundError(resource="pin", resource_id=str(pin_id))
    return pin


@router.put("/{pin_id}", response_model=PinResponse, responses=_NOT_FOUND)
async def update_pin(
    pin_id: UUID,
    changes: PinUpdate,
    viewer_id: UUID = Depends(require_viewer_id),
    db: AsyncSession = Depends(get_db_session),
) -> PinResponse:
    return await pin_service.update_pin(db, pin_id, viewer_id, changes)


@router.delete("/{pin_id}", response_model=MessageResponse, responses=_NOT_FOUND)
async def delete_pin(
    pin_id: UUID,
    viewer_id: UUID = Depends(require_viewer_id),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await pin_service.delete_pin(db, pin_id, viewer_id)
    return MessageResponse(message="Pin deleted successfully")


# ── Likes ─────────────────────────────────────────────────────────────────

@router.post(
    "/{pin_id}/like",
    response_model=LikeResponse,
    status_code=status.HTTP_201_CREATED,
    responses={**_NOT_FOUND, 409: {"description": "Already liked", "model": ErrorResponse}},
)
async def like_pin(
    pin_id: UUID,
    viewer_id: UUID = Depends(require_viewer_id),
    db: AsyncSession = Depends(get_db_session),
) -> LikeResponse:
    return await pin_service.like_pin(db, pin_id, viewer_id)


@router.delete("/{pin_id}/like", response_model=MessageResponse, responses=_NOT_FOUND)
async def unlike_pin(
    pin_id: UUID,
    viewer_id: UUID = Depends(require_viewer_id),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await pin_service.unlike_pin(db, pin_id, viewer_id)
    return MessageResponse(message="Pin unliked successfully")


@router.get("/{pin_id}/likes", response_model=LikeListResponse, responses=_NOT_FOUND)
async def get_likes(
    pin_id: UUID,
    limit: int = Query(default=settings.default_page_size, ge=1, le=settings.max_page_size),
    offset: int = Query(default=0, ge=0),
    viewer_id: Optional[UUID] = Depends(get_viewer_id),
    db: AsyncSession = Depends(get_db_session),
) -> LikeListResponse:
    likes, total = await pin_service.get_likes(db, pin_id, viewer_id, limit=limit, offset=offset)
    return LikeListResponse(likes=likes, total=total)


# ── Comments ──────────────────────────────────────────────────────────────

@router.post(
    "/{pin_id}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
    responses=_NOT_FOUND,
)
async def add_comment(
    pin_id: UUID,
    payload: CommentCreate,
    viewer_id: UUID = Depends(require_viewer_id),
    db: AsyncSession = Depends(get_db_session),
) -> CommentResponse:
    return await pin_service.add_comment(db, pin_id, viewer_id, payload)


@router.get("/{pin_id}/comments", response_model=CommentListResponse, responses=_NOT_FOUND)
async def get_comments(
    pin_id: UUID,
    limit: int = Query(default=settings.default_page_size, ge=1, le=settings.max_page_size),
    offset: int = Query(default=0, ge=0),
    viewer_id: Optional[UUID] = Depends(get_viewer_id),
    db: AsyncSession = Depends(get_db_session),
) -> CommentListResponse:
    comments, total = await pin_service.get_comments(
        db, pin_id, viewer_id, limit=limit, offset=offset
    )
    return CommentListResponse(comments=comments, total=total)


@comments_router.delete(
    "/{comment_id}",
    response_model=MessageResponse,
    responses={404: {"description": "Comment missing or not yours", "model": ErrorResponse}},
)
async def delete_comment(
    comment_id: UUID,
    viewer_id: UUID = Depends(require_viewer_id),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    """Allowed for the comment's author and for the author of the pin."""
    await pin_service.delete_comment(db, comment_id, viewer_id)
    return MessageResponse(message="Comment deleted successfully")
