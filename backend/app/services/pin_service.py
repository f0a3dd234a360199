"""
PinDrop Backend — Pin Service (Pins, Likes, Comments)
=======================================================

What:  Create/read/update/delete pins and the likes and comments on them.
Why:   This is the query layer that sits on top of the visibility rules:
       every read that can expose a pin goes through can_view_pin (detail)
       or visible_pins_clause (lists).
How:   Stateless service over an explicitly passed AsyncSession. Like and
       comment counts for a page of pins are fetched with grouped queries.

Distance filtering:
    list_pins paginates in the database first and then drops pins outside
    the requested radius in Python (haversine, Earth radius 6371 km).
    A page can therefore hold fewer than `limit` pins while `total` still
    counts every row that matched the database-side filters.
"""

import logging
import math
from typing import Dict, List, Optional, Set, Tuple
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.exceptions import ConflictError, NotFoundError, ValidationError
from app.models.event import Event
from app.models.pin import Comment, Like, Media, Pin
from app.models.user import User
from app.schemas.pin import (
    CommentCreate,
    CommentResponse,
    LikeListItem,
    LikeResponse,
    MediaResponse,
    PinCreate,
    PinResponse,
    PinUpdate,
)
from app.schemas.user import UserSummary
from app.services.visibility import (
    can_view_pin,
    can_view_profile_content,
    visible_pins_clause,
)

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance between two coordinates, in kilometres."""
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


class PinService:

    # ── Loading & serialization helpers ───────────────────────────────────

    async def _load_pin(self, db: AsyncSession, pin_id: UUID) -> Optional[Pin]:
        # populate_existing: a pin created or edited in this session must
        # come back with its author and media freshly attached
        result = await db.execute(
            select(Pin)
            .where(Pin.id == pin_id)
            .options(selectinload(Pin.author), selectinload(Pin.media))
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def _interaction_counts(
        self, db: AsyncSession, pin_ids: List[UUID], viewer_id: Optional[UUID]
    ) -> Tuple[Dict[UUID, int], Dict[UUID, int], Set[UUID]]:
        """(likes per pin, comments per pin, pins the viewer liked)."""
        if not pin_ids:
            return {}, {}, set()

        likes = await db.execute(
            select(Like.pin_id, func.count()).where(Like.pin_id.in_(pin_ids)).group_by(Like.pin_id)
        )
        comments = await db.execute(
            select(Comment.pin_id, func.count())
            .where(Comment.pin_id.in_(pin_ids))
            .group_by(Comment.pin_id)
        )
        liked: Set[UUID] = set()
        if viewer_id is not None:
            result = await db.execute(
                select(Like.pin_id).where(Like.pin_id.in_(pin_ids), Like.user_id == viewer_id)
            )
            liked = set(result.scalars().all())

        return dict(likes.all()), dict(comments.all()), liked

    async def _to_responses(
        self, db: AsyncSession, pins: List[Pin], viewer_id: Optional[UUID]
    ) -> List[PinResponse]:
        like_counts, comment_counts, liked = await self._interaction_counts(
            db, [p.id for p in pins], viewer_id
        )
        return [
            PinResponse(
                id=p.id,
                author_id=p.author_id,
                lat=p.lat,
                lng=p.lng,
                content=p.content,
                mood_scale=p.mood_scale,
                feeling=p.feeling,
                is_public=p.is_public,
                event_id=p.event_id,
                created_at=p.created_at,
                updated_at=p.updated_at,
                author=UserSummary.model_validate(p.author),
                media=[MediaResponse.model_validate(m) for m in p.media],
                likes_count=like_counts.get(p.id, 0),
                comments_count=comment_counts.get(p.id, 0),
                is_liked=p.id in liked,
            )
            for p in pins
        ]

    async def _get_visible_pin(
        self, db: AsyncSession, pin_id: UUID, viewer_id: Optional[UUID]
    ) -> Pin:
        """A pin the viewer may see. Hidden and missing pins both raise NotFoundError."""
        pin = await db.get(Pin, pin_id)
        if pin is None or not await can_view_pin(db, viewer_id, pin):
            raise NotFoundError(resource="pin", resource_id=str(pin_id))
        return pin

    async def _get_own_pin(self, db: AsyncSession, pin_id: UUID, user_id: UUID) -> Pin:
        pin = await self._load_pin(db, pin_id)
        if pin is None or pin.author_id != user_id:
            raise NotFoundError(resource="pin", resource_id=str(pin_id))
        return pin

    # ══════════════════════════════════════════════════════════════════════
    # Pins
    # ══════════════════════════════════════════════════════════════════════

    async def create_pin(self, db: AsyncSession, author_id: UUID, payload: PinCreate) -> PinResponse:
        """
        Raises:
            NotFoundError: event_id given but no such event
        """
        if payload.event_id is not None and await db.get(Event, payload.event_id) is None:
            raise NotFoundError(resource="event", resource_id=str(payload.event_id))

        pin = Pin(
            author_id=author_id,
            lat=payload.lat,
            lng=payload.lng,
            content=payload.content,
            mood_scale=payload.mood_scale,
            feeling=payload.feeling,
            is_public=payload.is_public,
            event_id=payload.event_id,
            media=[
                Media(url=m.url, type=m.type, order=index)
                for index, m in enumerate(payload.media_urls)
            ],
        )
        db.add(pin)
        await db.flush()
        logger.info("User %s created pin %s (public=%s)", author_id, pin.id, pin.is_public)

        pin = await self._load_pin(db, pin.id)
        return (await self._to_responses(db, [pin], author_id))[0]

    async def get_pin(
        self, db: AsyncSession, pin_id: UUID, viewer_id: Optional[UUID]
    ) -> Optional[PinResponse]:
        """
        Pin detail, or None when the pin is missing or hidden from the viewer.

        Callers cannot tell the two apart, so private content can't be
        discovered by id.
        """
        pin = await self._load_pin(db, pin_id)
        if pin is None or not await can_view_pin(db, viewer_id, pin):
            return None
        return (await self._to_responses(db, [pin], viewer_id))[0]

    async def list_pins(
        self,
        db: AsyncSession,
        viewer_id: Optional[UUID],
        author_id: Optional[UUID] = None,
        lat: Optional[float] = None,
        lng: Optional[float] = None,
        radius: Optional[float] = None,
        is_public: Optional[bool] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Tuple[List[PinResponse], int]:
        """
        Visible pins, newest first.

        With `author_id`, a private author's pins are only listed for the
        author and their followers; anyone else gets ([], 0) before any pin
        is read. Every row is additionally filtered by visible_pins_clause.

        This is stricter than the author-level check alone: a public
        author's non-public pins stay out of their listing for
        non-followers, matching can_view_pin.

        Returns:
            (pins on this page after the distance filter, store-side total)
        """
        if author_id is not None and author_id != viewer_id:
            author = await db.get(User, author_id)
            if author is None or not await can_view_profile_content(db, viewer_id, author):
                return [], 0

        conditions = [visible_pins_clause(viewer_id)]
        if author_id is not None:
            conditions.append(Pin.author_id == author_id)
        if is_public is not None:
            conditions.append(Pin.is_public.is_(is_public))

        total = (
            await db.execute(select(func.count()).select_from(Pin).where(*conditions))
        ).scalar_one()

        result = await db.execute(
            select(Pin)
            .where(*conditions)
            .options(selectinload(Pin.author), selectinload(Pin.media))
            .order_by(Pin.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        pins = list(result.scalars().all())

        if lat is not None and lng is not None and radius is not None:
            pins = [p for p in pins if haversine_km(lat, lng, p.lat, p.lng) <= radius]

        return await self._to_responses(db, pins, viewer_id), total

    async def update_pin(
        self, db: AsyncSession, pin_id: UUID, user_id: UUID, changes: PinUpdate
    ) -> PinResponse:
        """Partial update by the author. Anyone else sees NotFoundError."""
        pin = await self._get_own_pin(db, pin_id, user_id)

        data = changes.model_dump(exclude_unset=True)
        if "content" in data and not data["content"].strip():
            raise ValidationError(message="content must not be blank", field="content")

        for field, value in data.items():
            setattr(pin, field, value)
        await db.flush()

        pin = await self._load_pin(db, pin_id)
        return (await self._to_responses(db, [pin], user_id))[0]

    async def delete_pin(self, db: AsyncSession, pin_id: UUID, user_id: UUID) -> None:
        pin = await self._get_own_pin(db, pin_id, user_id)
        await db.delete(pin)
        await db.flush()
        logger.info("User %s deleted pin %s", user_id, pin_id)

    # ══════════════════════════════════════════════════════════════════════
    # Likes
    # ══════════════════════════════════════════════════════════════════════

    async def like_pin(self, db: AsyncSession, pin_id: UUID, user_id: UUID) -> LikeResponse:
        """
        Raises:
            NotFoundError: pin missing or not visible to the user
            ConflictError: the user already liked this pin
        """
        await self._get_visible_pin(db, pin_id, user_id)

        like = Like(pin_id=pin_id, user_id=user_id)
        db.add(like)
        try:
            await db.flush()
        except IntegrityError:
            await db.rollback()
            raise ConflictError(message="Pin already liked")
        return LikeResponse.model_validate(like)

    async def unlike_pin(self, db: AsyncSession, pin_id: UUID, user_id: UUID) -> None:
        result = await db.execute(
            select(Like).where(Like.pin_id == pin_id, Like.user_id == user_id)
        )
        like = result.scalar_one_or_none()
        if like is None:
            raise NotFoundError(resource="like")
        await db.delete(like)
        await db.flush()

    async def get_likes(
        self,
        db: AsyncSession,
        pin_id: UUID,
        viewer_id: Optional[UUID],
        limit: int = 50,
        offset: int = 0,
    ) -> Tuple[List[LikeListItem], int]:
        await self._get_visible_pin(db, pin_id, viewer_id)

        result = await db.execute(
            select(Like)
            .where(Like.pin_id == pin_id)
            .options(selectinload(Like.user))
            .order_by(Like.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        total = (
            await db.execute(select(func.count()).select_from(Like).where(Like.pin_id == pin_id))
        ).scalar_one()

        likes = [
            LikeListItem(
                id=like.id,
                pin_id=like.pin_id,
                user_id=like.user_id,
                created_at=like.created_at,
                user=UserSummary.model_validate(like.user),
            )
            for like in result.scalars().all()
        ]
        return likes, total

    # ══════════════════════════════════════════════════════════════════════
    # Comments
    # ══════════════════════════════════════════════════════════════════════

    async def add_comment(
        self, db: AsyncSession, pin_id: UUID, author_id: UUID, payload: CommentCreate
    ) -> CommentResponse:
        await self._get_visible_pin(db, pin_id, author_id)

        comment = Comment(pin_id=pin_id, author_id=author_id, content=payload.content)
        db.add(comment)
        await db.flush()

        result = await db.execute(
            select(Comment)
            .where(Comment.id == comment.id)
            .options(selectinload(Comment.author))
            .execution_options(populate_existing=True)
        )
        return CommentResponse.model_validate(result.scalar_one())

    async def get_comments(
        self,
        db: AsyncSession,
        pin_id: UUID,
        viewer_id: Optional[UUID],
        limit: int = 50,
        offset: int = 0,
    ) -> Tuple[List[CommentResponse], int]:
        await self._get_visible_pin(db, pin_id, viewer_id)

        result = await db.execute(
            select(Comment)
            .where(Comment.pin_id == pin_id)
            .options(selectinload(Comment.author))
            .order_by(Comment.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        total = (
            await db.execute(
                select(func.count()).select_from(Comment).where(Comment.pin_id == pin_id)
            )
        ).scalar_one()
        return [CommentResponse.model_validate(c) for c in result.scalars().all()], total

    async def delete_comment(self, db: AsyncSession, comment_id: UUID, user_id: UUID) -> None:
        """The comment's author or the pin's author may delete a comment."""
        result = await db.execute(
            select(Comment).where(Comment.id == comment_id).options(selectinload(Comment.pin))
        )
        comment = result.scalar_one_or_none()
        if comment is None or user_id not in (comment.author_id, comment.pin.author_id):
            raise NotFoundError(resource="comment", resource_id=str(comment_id))

        await db.delete(comment)
        await db.flush()


pin_service = PinService()
