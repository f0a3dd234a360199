"""
PinDrop Backend — Visibility Evaluator
========================================

What:  Decides whether a viewer may read a profile's content or a pin.
Why:   One place owns the privacy rules; pin and profile queries consume it
       instead of re-deriving them.
How:   Pure predicates over (viewer, owner/pin) plus one Follow lookup.
       The viewer is always an explicit Optional[UUID]; None is anonymous.

Rules:
    Profile content (e.g. listing an author's pins):
        viewer == owner                     → visible
        owner.is_private is False           → visible
        Follow(viewer → owner) exists       → visible
        otherwise (incl. anonymous viewer)  → hidden

    Pin:
        pin.is_public OR viewer == author OR Follow(viewer → author)

    The author's is_private flag does not gate a single pin: a public pin
    written by a private account is readable by anyone who has its id.
    is_private only decides whether a follow needs the owner's consent
    and whether the author's pin listing is shown.
"""

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import ColumnElement, exists, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.follow import Follow
from app.models.pin import Pin
from app.models.user import User

logger = logging.getLogger(__name__)


async def follow_exists(db: AsyncSession, follower_id: UUID, following_id: UUID) -> bool:
    result = await db.execute(
        select(
            exists().where(
                Follow.follower_id == follower_id,
                Follow.following_id == following_id,
            )
        )
    )
    return bool(result.scalar_one())


async def can_view_profile_content(
    db: AsyncSession, viewer_id: Optional[UUID], owner: User
) -> bool:
    """Whether `viewer_id` may see content gated by `owner`'s account privacy."""
    if viewer_id is not None and viewer_id == owner.id:
        return True
    if not owner.is_private:
        return True
    if viewer_id is None:
        return False
    return await follow_exists(db, viewer_id, owner.id)


async def can_view_pin(db: AsyncSession, viewer_id: Optional[UUID], pin: Pin) -> bool:
    """pin.is_public OR viewer is the author OR viewer follows the author."""
    if pin.is_public:
        return True
    if viewer_id is None:
        return False
    if viewer_id == pin.author_id:
        return True
    visible = await follow_exists(db, viewer_id, pin.author_id)
    if not visible:
        logger.debug("Pin %s hidden from viewer %s", pin.id, viewer_id)
    return visible


def visible_pins_clause(viewer_id: Optional[UUID]) -> ColumnElement[bool]:
    """The can_view_pin predicate as a WHERE clause, for list queries."""
    if viewer_id is None:
        return Pin.is_public.is_(True)
    followed_authors = select(Follow.following_id).where(Follow.follower_id == viewer_id)
    return or_(
        Pin.is_public.is_(True),
        Pin.author_id == viewer_id,
        Pin.author_id.in_(followed_authors),
    )
