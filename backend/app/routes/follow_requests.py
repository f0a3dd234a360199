"""
PinDrop Backend — Follow Request Route Handlers
=================================================

What:  The receiver's side of the follow request lifecycle (accept/reject)
       and both inboxes (pending received, pending sent).
Who:   Only the authenticated receiver may resolve a request; anyone else
       gets 403 from UnauthorizedError.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_db_session
from app.dependencies import require_viewer_id
from app.schemas.common import ErrorResponse
from app.schemas.follow import AcceptResponse, FollowRequestListResponse, FollowRequestResponse
from app.services.follow_service import follow_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/follow-requests", tags=["Follow Requests"])

_RESOLVE_ERRORS = {
    403: {"description": "Request addressed to someone else", "model": ErrorResponse},
    404: {"description": "No such request", "model": ErrorResponse},
    409: {"description": "Request is not pending", "model": ErrorResponse},
}


@router.get("/pending", response_model=FollowRequestListResponse, summary="Requests I received")
async def get_pending_requests(
    limit: int = Query(default=settings.default_page_size, ge=1, le=settings.max_page_size),
    offset: int = Query(default=0, ge=0),
    viewer_id: UUID = Depends(require_viewer_id),
    db: AsyncSession = Depends(get_db_session),
) -> FollowRequestListResponse:
    requests, total = await follow_service.get_pending_requests(
        db, viewer_id, limit=limit, offset=offset
    )
    return FollowRequestListResponse(requests=requests, total=total)


@router.get("/sent", response_model=FollowRequestListResponse, summary="Requests I sent")
async def get_sent_requests(
    limit: int = Query(default=settings.default_page_size, ge=1, le=settings.max_page_size),
    offset: int = Query(default=0, ge=0),
    viewer_id: UUID = Depends(require_viewer_id),
    db: AsyncSession = Depends(get_db_session),
) -> FollowRequestListResponse:
    requests, total = await follow_service.get_sent_requests(
        db, viewer_id, limit=limit, offset=offset
    )
    return FollowRequestListResponse(requests=requests, total=total)


@router.post("/{request_id}/accept", response_model=AcceptResponse, responses=_RESOLVE_ERRORS)
async def accept_request(
    request_id: UUID,
    viewer_id: UUID = Depends(require_viewer_id),
    db: AsyncSession = Depends(get_db_session),
) -> AcceptResponse:
    """Creates the follow edge and marks the request ACCEPTED in one transaction."""
    follow = await follow_service.accept_request(db, viewer_id, request_id)
    return AcceptResponse(follow=follow)


@router.post(
    "/{request_id}/reject", response_model=FollowRequestResponse, responses=_RESOLVE_ERRORS
)
async def reject_request(
    request_id: UUID,
    viewer_id: UUID = Depends(require_viewer_id),
    db: AsyncSession = Depends(get_db_session),
) -> FollowRequestResponse:
    return await follow_service.reject_request(db, viewer_id, request_id)
