"""
PinDrop Backend — Visibility Tests
====================================

What:  Tests for the profile/pin visibility rules.
How:   Pure branches are checked with a mocked session (no query may run);
       follow-dependent branches use the in-memory database.
"""

from types import SimpleNamespace
from uuid import uuid4

import pytest
from sqlalchemy import select

from app.models.follow import Follow
from app.models.pin import Pin
from app.services.follow_service import follow_service
from app.services.pin_service import pin_service
from app.services.visibility import (
    can_view_pin,
    can_view_profile_content,
    visible_pins_clause,
)


class TestCanViewPinShortCircuits:
    """Branches decided without touching the database."""

    @pytest.mark.asyncio
    async def test_public_pin_visible_to_anonymous(self, mock_db_session):
        pin = SimpleNamespace(id=uuid4(), author_id=uuid4(), is_public=True)
        assert await can_view_pin(mock_db_session, None, pin) is True
        mock_db_session.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_non_public_pin_hidden_from_anonymous(self, mock_db_session):
        pin = SimpleNamespace(id=uuid4(), author_id=uuid4(), is_public=False)
        assert await can_view_pin(mock_db_session, None, pin) is False
        mock_db_session.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_author_sees_own_non_public_pin(self, mock_db_session):
        author_id = uuid4()
        pin = SimpleNamespace(id=uuid4(), author_id=author_id, is_public=False)
        assert await can_view_pin(mock_db_session, author_id, pin) is True
        mock_db_session.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_public_profile_needs_no_lookup(self, mock_db_session):
        owner = SimpleNamespace(id=uuid4(), is_private=False)
        assert await can_view_profile_content(mock_db_session, None, owner) is True
        mock_db_session.execute.assert_not_awaited()


class TestFollowGatedVisibility:

    @pytest.mark.asyncio
    async def test_private_profile_content(self, db_session, make_user):
        owner = await make_user("owner", is_private=True)
        fan = await make_user("fan")

        assert await can_view_profile_content(db_session, None, owner) is False
        assert await can_view_profile_content(db_session, owner.id, owner) is True
        assert await can_view_profile_content(db_session, fan.id, owner) is False

        db_session.add(Follow(follower_id=fan.id, following_id=owner.id))
        await db_session.flush()
        assert await can_view_profile_content(db_session, fan.id, owner) is True

    @pytest.mark.asyncio
    async def test_non_public_pin_of_private_author(self, db_session, make_user):
        """Pin P by private U3, is_public=False: hidden from U2 until U2 follows U3."""
        u2 = await make_user("u2")
        u3 = await make_user("u3", is_private=True)
        pin = Pin(author_id=u3.id, lat=52.52, lng=13.40, content="secret spot", is_public=False)
        db_session.add(pin)
        await db_session.flush()

        assert await pin_service.get_pin(db_session, pin.id, u2.id) is None

        sent = await follow_service.request_follow(db_session, u2.id, u3.id)
        await follow_service.accept_request(db_session, u3.id, sent.request.id)

        visible = await pin_service.get_pin(db_session, pin.id, u2.id)
        assert visible is not None
        assert visible.id == pin.id
        assert visible.author.username == "u3"

    @pytest.mark.asyncio
    async def test_public_pin_of_private_author_is_visible(self, db_session, make_user):
        """The author's is_private flag does not gate a single public pin."""
        u3 = await make_user("u3", is_private=True)
        pin = Pin(author_id=u3.id, lat=0.0, lng=0.0, content="hello", is_public=True)
        db_session.add(pin)
        await db_session.flush()

        assert await pin_service.get_pin(db_session, pin.id, None) is not None

    @pytest.mark.asyncio
    async def test_visible_pins_clause_matches_can_view_pin(self, db_session, make_user):
        viewer = await make_user("viewer")
        followed = await make_user("followed")
        stranger = await make_user("stranger")
        db_session.add(Follow(follower_id=viewer.id, following_id=followed.id))
        pins = [
            Pin(author_id=viewer.id, lat=0, lng=0, content="mine"),
            Pin(author_id=followed.id, lat=0, lng=0, content="friend"),
            Pin(author_id=stranger.id, lat=0, lng=0, content="hidden"),
            Pin(author_id=stranger.id, lat=0, lng=0, content="open", is_public=True),
        ]
        db_session.add_all(pins)
        await db_session.flush()

        for viewer_id in (viewer.id, None):
            result = await db_session.execute(
                select(Pin.content).where(visible_pins_clause(viewer_id))
            )
            from_clause = set(result.scalars().all())
            from_predicate = {
                p.content for p in pins if await can_view_pin(db_session, viewer_id, p)
            }
            assert from_clause == from_predicate

        assert from_predicate == {"open"}
