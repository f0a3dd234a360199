"""
PinDrop Backend — Follow Service (Follow State Machine)
=========================================================

What:  Governs follow requests and the Follow edges they settle into.
Why:   Every follow-graph mutation goes through here so the pair invariants
       (no self-follow, one edge per ordered pair, one request row per
       ordered pair) hold no matter which endpoint triggered it.
How:   Stateless service. Every call receives the request's AsyncSession;
       methods only flush, and the session dependency commits once per request.

States per ordered (sender, receiver) pair:
    NONE       no request row, no edge
    PENDING    request row waiting for the receiver
    REJECTED   request row refused by the receiver
    ACCEPTED   request row kept as history + edge exists
    FOLLOWING  edge exists (direct follow of a public account, no row)

Transitions:
    request_follow   NONE → FOLLOWING            (public target)
                     NONE → PENDING              (private target, new row)
                     REJECTED → PENDING          (same row reused)
                     ACCEPTED → PENDING          (edge since removed; same row reused)
    accept_request   PENDING → ACCEPTED + edge   (receiver only, one transaction)
    reject_request   PENDING → REJECTED          (receiver only)
    cancel_request   PENDING → NONE              (sender only, row deleted)
    unfollow / remove_follower   edge deleted    (request row untouched)

Concurrency:
    Two concurrent follows of the same public account race on the
    uq_follows_pair constraint. Exactly one insert wins; the loser's
    IntegrityError is translated into AlreadyFollowingError.
"""

import logging
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import (
    AlreadyFollowingError,
    NotFollowingError,
    NotPendingError,
    RequestAlreadyPendingError,
    RequestNotFoundError,
    SelfFollowError,
    TargetNotFoundError,
    UnauthorizedError,
)
from app.models.follow import Follow, FollowRequest, RequestStatus
from app.models.user import User
from app.schemas.follow import (
    FollowCounts,
    FollowRequestResponse,
    FollowResponse,
    FollowResult,
)
from app.schemas.user import UserSummary
from app.services.visibility import follow_exists

logger = logging.getLogger(__name__)


def _request_response(
    request: FollowRequest,
    sender: Optional[User] = None,
    receiver: Optional[User] = None,
) -> FollowRequestResponse:
    return FollowRequestResponse(
        id=request.id,
        sender_id=request.sender_id,
        receiver_id=request.receiver_id,
        status=request.status,
        created_at=request.created_at,
        updated_at=request.updated_at,
        sender=UserSummary.model_validate(sender) if sender else None,
        receiver=UserSummary.model_validate(receiver) if receiver else None,
    )


class FollowService:
    """
    Business logic for the follow graph.

    Error Handling Strategy:
        Rule violations raise the FollowGraphError family, which the global
        handler maps to 4xx responses. Unique-constraint races that a rule
        anticipates are translated; any other database failure propagates
        untouched and ends up as an opaque 500.
    """

    # ══════════════════════════════════════════════════════════════════════
    # Lookups
    # ══════════════════════════════════════════════════════════════════════

    async def _get_edge(
        self, db: AsyncSession, follower_id: UUID, following_id: UUID
    ) -> Optional[Follow]:
        result = await db.execute(
            select(Follow).where(
                Follow.follower_id == follower_id,
                Follow.following_id == following_id,
            )
        )
        return result.scalar_one_or_none()

    async def _get_request_for_pair(
        self, db: AsyncSession, sender_id: UUID, receiver_id: UUID
    ) -> Optional[FollowRequest]:
        result = await db.execute(
            select(FollowRequest).where(
                FollowRequest.sender_id == sender_id,
                FollowRequest.receiver_id == receiver_id,
            )
        )
        return result.scalar_one_or_none()

    async def _get_pending_for_receiver(
        self, db: AsyncSession, receiver_id: UUID, request_id: UUID
    ) -> FollowRequest:
        """Shared guards of accept/reject: exists → addressed to caller → PENDING."""
        request = await db.get(FollowRequest, request_id)
        if request is None:
            raise RequestNotFoundError(context={"request_id": str(request_id)})
        if request.receiver_id != receiver_id:
            raise UnauthorizedError(context={"request_id": str(request_id)})
        if request.status != RequestStatus.PENDING:
            raise NotPendingError(context={"status": request.status.value})
        return request

    # ══════════════════════════════════════════════════════════════════════
    # Transitions
    # ══════════════════════════════════════════════════════════════════════

    async def request_follow(
        self, db: AsyncSession, follower_id: UUID, target_id: UUID
    ) -> FollowResult:
        """
        Follow `target_id`, or ask to, depending on the target's privacy.

        Guard order:
            1. SelfFollowError        follower == target
            2. AlreadyFollowingError  edge already exists
            3. TargetNotFoundError    target user missing

        Returns:
            FollowResult(type="follow")  for a public target (edge created)
            FollowResult(type="request") for a private target (row PENDING)

        Raises:
            RequestAlreadyPendingError: a PENDING row already exists
        """
        if follower_id == target_id:
            raise SelfFollowError()

        if await follow_exists(db, follower_id, target_id):
            raise AlreadyFollowingError()

        target = await db.get(User, target_id)
        if target is None:
            raise TargetNotFoundError(context={"user_id": str(target_id)})

        if not target.is_private:
            return await self._create_edge(db, follower_id, target)

        return await self._open_request(db, follower_id, target)

    async def _create_edge(
        self, db: AsyncSession, follower_id: UUID, target: User
    ) -> FollowResult:
        target_id = target.id
        edge = Follow(follower_id=follower_id, following_id=target_id)
        db.add(edge)
        try:
            await db.flush()
        except IntegrityError:
            # A concurrent follow of the same pair committed first.
            # Rollback expires every loaded object; only use plain ids below.
            await db.rollback()
            logger.info("Lost follow race %s -> %s", follower_id, target_id)
            raise AlreadyFollowingError()

        logger.info("User %s now follows %s", follower_id, target_id)
        return FollowResult(
            type="follow",
            message="Successfully followed user",
            follow=FollowResponse.model_validate(edge),
        )

    async def _open_request(
        self, db: AsyncSession, sender_id: UUID, target: User
    ) -> FollowResult:
        existing = await self._get_request_for_pair(db, sender_id, target.id)

        if existing is None:
            request = FollowRequest(sender_id=sender_id, receiver_id=target.id)
            db.add(request)
            try:
                await db.flush()
            except IntegrityError:
                # A concurrent attempt for the same pair inserted the row first
                await db.rollback()
                raise RequestAlreadyPendingError()
            logger.info("Follow request %s opened: %s -> %s", request.id, sender_id, target.id)

        elif existing.status == RequestStatus.PENDING:
            raise RequestAlreadyPendingError(context={"request_id": str(existing.id)})

        else:
            if existing.status == RequestStatus.ACCEPTED:
                # Left behind by an unfollow or follower removal after an accept
                logger.warning(
                    "Reopening ACCEPTED follow request %s with no edge (%s -> %s)",
                    existing.id, sender_id, target.id,
                )
            existing.status = RequestStatus.PENDING
            await db.flush()
            request = existing
            logger.info("Follow request %s reopened", request.id)

        return FollowResult(
            type="request",
            message="Follow request sent",
            request=_request_response(request, receiver=target),
        )

    async def accept_request(
        self, db: AsyncSession, receiver_id: UUID, request_id: UUID
    ) -> FollowResponse:
        """
        Accept a PENDING request addressed to `receiver_id`.

        The edge insert and the ACCEPTED status are flushed together in the
        request's transaction: readers see both or neither.

        Raises:
            RequestNotFoundError, UnauthorizedError, NotPendingError
            AlreadyFollowingError: the edge appeared concurrently (both
                effects are rolled back)
        """
        request = await self._get_pending_for_receiver(db, receiver_id, request_id)

        edge = Follow(follower_id=request.sender_id, following_id=request.receiver_id)
        db.add(edge)
        request.status = RequestStatus.ACCEPTED
        try:
            await db.flush()
        except IntegrityError:
            await db.rollback()
            raise AlreadyFollowingError()

        logger.info(
            "Follow request %s accepted: %s now follows %s",
            request.id, request.sender_id, request.receiver_id,
        )
        return FollowResponse.model_validate(edge)

    async def reject_request(
        self, db: AsyncSession, receiver_id: UUID, request_id: UUID
    ) -> FollowRequestResponse:
        request = await self._get_pending_for_receiver(db, receiver_id, request_id)
        request.status = RequestStatus.REJECTED
        await db.flush()
        logger.info("Follow request %s rejected", request.id)
        return _request_response(request)

    async def cancel_request(
        self, db: AsyncSession, sender_id: UUID, receiver_id: UUID
    ) -> None:
        """Sender withdraws a PENDING request; the row is deleted, not re-statused."""
        request = await self._get_request_for_pair(db, sender_id, receiver_id)
        if request is None:
            raise RequestNotFoundError()
        if request.status != RequestStatus.PENDING:
            raise NotPendingError(
                message="Can only cancel pending requests",
                context={"status": request.status.value},
            )
        await db.delete(request)
        await db.flush()
        logger.info("Follow request %s cancelled by sender", request.id)

    async def unfollow(self, db: AsyncSession, follower_id: UUID, target_id: UUID) -> None:
        edge = await self._get_edge(db, follower_id, target_id)
        if edge is None:
            raise NotFollowingError()
        await db.delete(edge)
        await db.flush()
        logger.info("User %s unfollowed %s", follower_id, target_id)

    async def remove_follower(self, db: AsyncSession, user_id: UUID, follower_id: UUID) -> None:
        edge = await self._get_edge(db, follower_id, user_id)
        if edge is None:
            raise NotFollowingError(message="User is not following you")
        await db.delete(edge)
        await db.flush()
        logger.info("User %s removed follower %s", user_id, follower_id)

    # ══════════════════════════════════════════════════════════════════════
    # Queries
    # ══════════════════════════════════════════════════════════════════════

    async def is_following(self, db: AsyncSession, follower_id: UUID, following_id: UUID) -> bool:
        return await follow_exists(db, follower_id, following_id)

    async def get_follow_request_status(
        self, db: AsyncSession, sender_id: UUID, receiver_id: UUID
    ) -> Optional[RequestStatus]:
        request = await self._get_request_for_pair(db, sender_id, receiver_id)
        return request.status if request else None

    async def get_follow_counts(self, db: AsyncSession, user_id: UUID) -> FollowCounts:
        followers = await db.execute(
            select(func.count()).select_from(Follow).where(Follow.following_id == user_id)
        )
        following = await db.execute(
            select(func.count()).select_from(Follow).where(Follow.follower_id == user_id)
        )
        return FollowCounts(
            followers_count=followers.scalar_one(),
            following_count=following.scalar_one(),
        )

    async def get_followers(
        self, db: AsyncSession, user_id: UUID, limit: int = 50, offset: int = 0
    ) -> Tuple[List[UserSummary], int]:
        """Users following `user_id`, most recent follow first."""
        result = await db.execute(
            select(User)
            .join(Follow, Follow.follower_id == User.id)
            .where(Follow.following_id == user_id)
            .order_by(Follow.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        total = await db.execute(
            select(func.count()).select_from(Follow).where(Follow.following_id == user_id)
        )
        users = [UserSummary.model_validate(u) for u in result.scalars().all()]
        return users, total.scalar_one()

    async def get_following(
        self, db: AsyncSession, user_id: UUID, limit: int = 50, offset: int = 0
    ) -> Tuple[List[UserSummary], int]:
        """Users that `user_id` follows, most recent follow first."""
        result = await db.execute(
            select(User)
            .join(Follow, Follow.following_id == User.id)
            .where(Follow.follower_id == user_id)
            .order_by(Follow.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        total = await db.execute(
            select(func.count()).select_from(Follow).where(Follow.follower_id == user_id)
        )
        users = [UserSummary.model_validate(u) for u in result.scalars().all()]
        return users, total.scalar_one()

    async def get_pending_requests(
        self, db: AsyncSession, user_id: UUID, limit: int = 50, offset: int = 0
    ) -> Tuple[List[FollowRequestResponse], int]:
        """PENDING requests received by `user_id`, each with its sender."""
        where = (
            FollowRequest.receiver_id == user_id,
            FollowRequest.status == RequestStatus.PENDING,
        )
        result = await db.execute(
            select(FollowRequest, User)
            .join(User, User.id == FollowRequest.sender_id)
            .where(*where)
            .order_by(FollowRequest.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        total = await db.execute(select(func.count()).select_from(FollowRequest).where(*where))
        requests = [_request_response(req, sender=sender) for req, sender in result.all()]
        return requests, total.scalar_one()

    async def get_sent_requests(
        self, db: AsyncSession, user_id: UUID, limit: int = 50, offset: int = 0
    ) -> Tuple[List[FollowRequestResponse], int]:
        """PENDING requests sent by `user_id`, each with its receiver."""
        where = (
            FollowRequest.sender_id == user_id,
            FollowRequest.status == RequestStatus.PENDING,
        )
        result = await db.execute(
            select(FollowRequest, User)
            .join(User, User.id == FollowRequest.receiver_id)
            .where(*where)
            .order_by(FollowRequest.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        total = await db.execute(select(func.count()).select_from(FollowRequest).where(*where))
        requests = [_request_response(req, receiver=receiver) for req, receiver in result.all()]
        return requests, total.scalar_one()


# Stateless; one shared instance
follow_service = FollowService()
