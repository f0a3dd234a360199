"""
PinDrop Backend — User Service (Accounts & Profiles)
======================================================

What:  Registration, login, profile reads/updates, user listing and search.
Why:   Profiles are where the follow graph becomes visible to clients: every
       user returned to an authenticated viewer carries that viewer's follow
       state (is_following / follow_request_status) plus follow counts.
How:   Stateless service over an explicitly passed AsyncSession. Follow
       state for a page of users is computed with a fixed number of grouped
       queries, not one round-trip per user.
"""

import logging
from typing import Dict, Iterable, List, Optional
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import ConflictError, NotFoundError
from app.models.follow import Follow, FollowRequest
from app.models.user import User
from app.schemas.user import (
    FollowState,
    ProfileResponse,
    ProfileUpdate,
    UserListItem,
    UserListResponse,
    UserPrivate,
    UserRegister,
)
from app.security import hash_password, verify_password

logger = logging.getLogger(__name__)

# Empty strings for these clear the stored value
_NULLABLE_ON_EMPTY = {"profile_picture_url", "instagram_username"}


class UserService:

    # ══════════════════════════════════════════════════════════════════════
    # Accounts
    # ══════════════════════════════════════════════════════════════════════

    async def register(self, db: AsyncSession, payload: UserRegister) -> UserPrivate:
        """
        Create an account. New accounts are private by default.

        Raises:
            ConflictError: e-mail or username already taken (unique constraint)
        """
        user = User(
            email=payload.email.lower(),
            username=payload.username,
            full_name=payload.full_name,
            password_hash=hash_password(payload.password),
        )
        db.add(user)
        try:
            await db.flush()
        except IntegrityError:
            await db.rollback()
            raise ConflictError(message="Email or username already exists")

        logger.info("Registered user %s (%s)", user.id, user.username)
        return UserPrivate.model_validate(user)

    async def authenticate(self, db: AsyncSession, email: str, password: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.email == email.lower()))
        user = result.scalar_one_or_none()
        if user is None or not verify_password(password, user.password_hash):
            return None
        return user

    async def get_me(self, db: AsyncSession, user_id: UUID) -> UserPrivate:
        user = await db.get(User, user_id)
        if user is None:
            raise NotFoundError(resource="user", resource_id=str(user_id))
        return UserPrivate.model_validate(user)

    async def update_profile(
        self, db: AsyncSession, user_id: UUID, changes: ProfileUpdate
    ) -> UserPrivate:
        """
        Apply a partial profile update, including the `is_private` setting.

        Flipping is_private leaves existing edges and requests untouched;
        it only changes how later follow attempts settle.
        """
        user = await db.get(User, user_id)
        if user is None:
            raise NotFoundError(resource="user", resource_id=str(user_id))

        for field, value in changes.model_dump(exclude_unset=True).items():
            if field in _NULLABLE_ON_EMPTY and not value:
                value = None
            setattr(user, field, value)
        await db.flush()

        if "is_private" in changes.model_fields_set:
            logger.info("User %s set is_private=%s", user.id, user.is_private)
        return UserPrivate.model_validate(user)

    # ══════════════════════════════════════════════════════════════════════
    # Follow state annotation
    # ══════════════════════════════════════════════════════════════════════

    async def _follow_states(
        self, db: AsyncSession, viewer_id: Optional[UUID], user_ids: Iterable[UUID]
    ) -> Dict[UUID, FollowState]:
        """
        Follow counts for every user, plus the viewer's relation to each.

        The request status is only looked up for users the viewer does not
        already follow; self and anonymous viewers get the defaults.
        """
        ids = list(user_ids)
        states = {uid: FollowState() for uid in ids}
        if not ids:
            return states

        followers = await db.execute(
            select(Follow.following_id, func.count())
            .where(Follow.following_id.in_(ids))
            .group_by(Follow.following_id)
        )
        for uid, count in followers.all():
            states[uid].followers_count = count

        following = await db.execute(
            select(Follow.follower_id, func.count())
            .where(Follow.follower_id.in_(ids))
            .group_by(Follow.follower_id)
        )
        for uid, count in following.all():
            states[uid].following_count = count

        if viewer_id is None:
            return states

        others = [uid for uid in ids if uid != viewer_id]
        if not others:
            return states

        followed = await db.execute(
            select(Follow.following_id).where(
                Follow.follower_id == viewer_id,
                Follow.following_id.in_(others),
            )
        )
        followed_ids = set(followed.scalars().all())
        for uid in followed_ids:
            states[uid].is_following = True

        not_followed = [uid for uid in others if uid not in followed_ids]
        if not_followed:
            requests = await db.execute(
                select(FollowRequest.receiver_id, FollowRequest.status).where(
                    FollowRequest.sender_id == viewer_id,
                    FollowRequest.receiver_id.in_(not_followed),
                )
            )
            for uid, status in requests.all():
                states[uid].follow_request_status = status

        return states

    def _list_items(
        self, users: List[User], states: Dict[UUID, FollowState]
    ) -> List[UserListItem]:
        return [
            UserListItem(
                id=u.id,
                username=u.username,
                full_name=u.full_name,
                profile_picture_url=u.profile_picture_url,
                bio=u.bio,
                is_private=u.is_private,
                created_at=u.created_at,
                **states[u.id].model_dump(),
            )
            for u in users
        ]

    # ══════════════════════════════════════════════════════════════════════
    # Profiles & listings
    # ══════════════════════════════════════════════════════════════════════

    async def get_user_by_username(self, db: AsyncSession, username: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.username == username))
        return result.scalar_one_or_none()

    async def get_profile(
        self, db: AsyncSession, username: str, viewer_id: Optional[UUID]
    ) -> ProfileResponse:
        """
        Public profile with follow counts and the viewer's follow state.

        Profile fields are readable by anyone; what a private account hides
        is its pin listing (see PinService.list_pins).
        """
        user = await self.get_user_by_username(db, username)
        if user is None:
            raise NotFoundError(resource="user", resource_id=username)

        state = (await self._follow_states(db, viewer_id, [user.id]))[user.id]
        return ProfileResponse(
            id=user.id,
            username=user.username,
            full_name=user.full_name,
            profile_picture_url=user.profile_picture_url,
            bio=user.bio,
            is_private=user.is_private,
            instagram_username=user.instagram_username,
            created_at=user.created_at,
            **state.model_dump(),
        )

    async def list_users(
        self,
        db: AsyncSession,
        viewer_id: Optional[UUID],
        limit: int = 50,
        offset: int = 0,
    ) -> UserListResponse:
        result = await db.execute(
            select(User).order_by(User.created_at.desc()).limit(limit).offset(offset)
        )
        users = list(result.scalars().all())
        total = (await db.execute(select(func.count()).select_from(User))).scalar_one()

        states = await self._follow_states(db, viewer_id, [u.id for u in users])
        return UserListResponse(users=self._list_items(users, states), total=total)

    async def search_users(
        self,
        db: AsyncSession,
        query: str,
        viewer_id: Optional[UUID],
        limit: int = 20,
        offset: int = 0,
    ) -> UserListResponse:
        """Case-insensitive substring match on username or full name."""
        query = query.strip()
        if not query:
            return UserListResponse(users=[], total=0)

        pattern = f"%{query}%"
        match = or_(User.username.ilike(pattern), User.full_name.ilike(pattern))
        result = await db.execute(
            select(User).where(match).order_by(User.username.asc()).limit(limit).offset(offset)
        )
        users = list(result.scalars().all())
        total = (
            await db.execute(select(func.count()).select_from(User).where(match))
        ).scalar_one()

        states = await self._follow_states(db, viewer_id, [u.id for u in users])
        return UserListResponse(users=self._list_items(users, states), total=total)


user_service = UserService()
