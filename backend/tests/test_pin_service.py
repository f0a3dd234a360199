"""
PinDrop Backend — Pin Service Tests
=====================================

What:  Pin CRUD, visibility-filtered listing, distance filtering, likes and
       comments, against the in-memory database.
"""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest
from sqlalchemy import func, select

from app.exceptions import ConflictError, NotFoundError, ValidationError
from app.models.event import Event
from app.models.follow import Follow
from app.models.pin import Comment, Like, Media, MediaType, Pin
from app.schemas.pin import CommentCreate, MediaIn, PinCreate, PinUpdate
from app.services.pin_service import PinService, haversine_km

BERLIN = (52.5200, 13.4050)
POTSDAM = (52.3906, 13.0645)  # ~27 km from Berlin
PARIS = (48.8566, 2.3522)


def test_haversine_known_distances():
    assert haversine_km(*BERLIN, *BERLIN) == pytest.approx(0.0)
    assert haversine_km(*BERLIN, *PARIS) == pytest.approx(878, rel=0.01)
    # Symmetric
    assert haversine_km(*PARIS, *BERLIN) == pytest.approx(haversine_km(*BERLIN, *PARIS))


def test_models_package_docstring_and_timestamp_default():
    import app.models
    from app.database import utcnow

    assert app.models.__doc__.lstrip().startswith("PinDrop Backend")
    assert utcnow().tzinfo is timezone.utc


def _pin(author, content, is_public=False, lat=BERLIN[0], lng=BERLIN[1], minutes=0):
    created = datetime(2025, 1, 1, tzinfo=timezone.utc) + timedelta(minutes=minutes)
    return Pin(
        author_id=author.id,
        lat=lat,
        lng=lng,
        content=content,
        is_public=is_public,
        created_at=created,
        updated_at=created,
    )


class TestCreateAndUpdate:

    def setup_method(self):
        self.service = PinService()

    @pytest.mark.asyncio
    async def test_create_pin_defaults_to_non_public_with_ordered_media(self, db_session, make_user):
        author = await make_user("author")
        payload = PinCreate(
            lat=BERLIN[0],
            lng=BERLIN[1],
            content="Sunset at the Spree",
            mood_scale=8,
            media_urls=[
                MediaIn(url="https://cdn.example.com/a.jpg", type=MediaType.IMAGE),
                MediaIn(url="https://cdn.example.com/b.mp4", type=MediaType.VIDEO),
            ],
        )

        pin = await self.service.create_pin(db_session, author.id, payload)

        assert pin.is_public is False
        assert pin.author.username == "author"
        assert [m.order for m in pin.media] == [0, 1]
        assert pin.media[1].type == MediaType.VIDEO
        assert pin.likes_count == 0
        assert pin.is_liked is False

    @pytest.mark.asyncio
    async def test_pin_tagged_with_event(self, db_session, make_user):
        author = await make_user("author")
        start = datetime(2025, 7, 1, 18, tzinfo=timezone.utc)
        event = Event(
            creator_id=author.id,
            title="Open air at the Spree",
            lat=BERLIN[0],
            lng=BERLIN[1],
            start_date=start,
            end_date=start + timedelta(hours=4),
        )
        db_session.add(event)
        await db_session.flush()

        pin = await self.service.create_pin(
            db_session,
            author.id,
            PinCreate(lat=BERLIN[0], lng=BERLIN[1], content="front row", event_id=event.id),
        )
        assert pin.event_id == event.id

        # Deleting the event keeps the pin and clears the tag
        await db_session.delete(event)
        await db_session.flush()
        detail = await self.service.get_pin(db_session, pin.id, author.id)
        assert detail is not None
        assert detail.event_id is None

    @pytest.mark.asyncio
    async def test_pin_with_unknown_event(self, db_session, make_user):
        author = await make_user("author")
        with pytest.raises(NotFoundError):
            await self.service.create_pin(
                db_session,
                author.id,
                PinCreate(lat=0, lng=0, content="nowhere", event_id=uuid4()),
            )

    def test_update_rejects_null_for_required_fields(self):
        with pytest.raises(ValueError):
            PinUpdate(is_public=None)
        with pytest.raises(ValueError):
            PinUpdate(content=None)
        assert PinUpdate(feeling=None).model_dump(exclude_unset=True) == {"feeling": None}

    def test_coordinates_validated_by_schema(self):
        with pytest.raises(ValueError):
            PinCreate(lat=91, lng=0, content="north of north")
        with pytest.raises(ValueError):
            PinCreate(lat=0, lng=-181, content="too far west")
        with pytest.raises(ValueError):
            PinCreate(lat=0, lng=0, content="x", mood_scale=11)

    @pytest.mark.asyncio
    async def test_only_author_can_update(self, db_session, make_user):
        author = await make_user("author")
        other = await make_user("other")
        pin = _pin(author, "draft")
        db_session.add(pin)
        await db_session.flush()

        with pytest.raises(NotFoundError):
            await self.service.update_pin(db_session, pin.id, other.id, PinUpdate(content="hijack"))

        updated = await self.service.update_pin(
            db_session, pin.id, author.id, PinUpdate(content="final", is_public=True)
        )
        assert updated.content == "final"
        assert updated.is_public is True

    @pytest.mark.asyncio
    async def test_update_rejects_blank_content(self, db_session, make_user):
        author = await make_user("author")
        pin = _pin(author, "draft")
        db_session.add(pin)
        await db_session.flush()

        with pytest.raises(ValidationError):
            await self.service.update_pin(db_session, pin.id, author.id, PinUpdate(content="   "))

    @pytest.mark.asyncio
    async def test_delete_pin_removes_media(self, db_session, make_user):
        author = await make_user("author")
        pin = _pin(author, "bye")
        pin.media = [Media(url="https://cdn.example.com/x.jpg", type=MediaType.IMAGE, order=0)]
        db_session.add(pin)
        await db_session.flush()
        pin_id = pin.id

        with pytest.raises(NotFoundError):
            await self.service.delete_pin(db_session, pin_id, uuid4())

        await self.service.delete_pin(db_session, pin_id, author.id)

        assert await db_session.get(Pin, pin_id) is None
        media_left = await db_session.execute(
            select(func.count()).select_from(Media).where(Media.pin_id == pin_id)
        )
        assert media_left.scalar_one() == 0


class TestListPins:

    def setup_method(self):
        self.service = PinService()

    @pytest.mark.asyncio
    async def test_anonymous_sees_only_public_pins_newest_first(self, db_session, make_user):
        author = await make_user("author", is_private=False)
        db_session.add_all([
            _pin(author, "old public", is_public=True, minutes=1),
            _pin(author, "followers only", minutes=2),
            _pin(author, "new public", is_public=True, minutes=3),
        ])
        await db_session.flush()

        pins, total = await self.service.list_pins(db_session, None)

        assert [p.content for p in pins] == ["new public", "old public"]
        assert total == 2

    @pytest.mark.asyncio
    async def test_private_author_listing_empty_for_non_follower(self, db_session, make_user):
        author = await make_user("author", is_private=True)
        viewer = await make_user("viewer")
        db_session.add_all([
            _pin(author, "public but private account", is_public=True),
            _pin(author, "followers only", minutes=1),
        ])
        await db_session.flush()

        pins, total = await self.service.list_pins(db_session, viewer.id, author_id=author.id)
        assert (pins, total) == ([], 0)

        pins, total = await self.service.list_pins(db_session, None, author_id=author.id)
        assert (pins, total) == ([], 0)

        db_session.add(Follow(follower_id=viewer.id, following_id=author.id))
        await db_session.flush()

        pins, total = await self.service.list_pins(db_session, viewer.id, author_id=author.id)
        assert total == 2
        assert {p.content for p in pins} == {"public but private account", "followers only"}

    @pytest.mark.asyncio
    async def test_public_author_listing_hides_non_public_pins(self, db_session, make_user):
        author = await make_user("author", is_private=False)
        viewer = await make_user("viewer")
        db_session.add_all([
            _pin(author, "open", is_public=True),
            _pin(author, "followers only", minutes=1),
        ])
        await db_session.flush()

        pins, total = await self.service.list_pins(db_session, viewer.id, author_id=author.id)
        assert [p.content for p in pins] == ["open"]
        assert total == 1

        db_session.add(Follow(follower_id=viewer.id, following_id=author.id))
        await db_session.flush()

        pins, total = await self.service.list_pins(db_session, viewer.id, author_id=author.id)
        assert [p.content for p in pins] == ["followers only", "open"]
        assert total == 2

    @pytest.mark.asyncio
    async def test_author_listing_for_self_includes_everything(self, db_session, make_user):
        author = await make_user("author", is_private=True)
        db_session.add_all([_pin(author, "a"), _pin(author, "b", is_public=True, minutes=1)])
        await db_session.flush()

        pins, total = await self.service.list_pins(db_session, author.id, author_id=author.id)
        assert total == 2

        pins, total = await self.service.list_pins(
            db_session, author.id, author_id=author.id, is_public=False
        )
        assert [p.content for p in pins] == ["a"]
        assert total == 1

    @pytest.mark.asyncio
    async def test_distance_filter_applies_after_pagination(self, db_session, make_user):
        author = await make_user("author", is_private=False)
        db_session.add_all([
            _pin(author, "paris", is_public=True, lat=PARIS[0], lng=PARIS[1], minutes=3),
            _pin(author, "potsdam", is_public=True, lat=POTSDAM[0], lng=POTSDAM[1], minutes=2),
            _pin(author, "berlin", is_public=True, minutes=1),
        ])
        await db_session.flush()

        # Page of 2 newest = paris, potsdam; paris is outside 50 km
        pins, total = await self.service.list_pins(
            db_session, None, lat=BERLIN[0], lng=BERLIN[1], radius=50, limit=2
        )

        assert [p.content for p in pins] == ["potsdam"]
        assert total == 3

    @pytest.mark.asyncio
    async def test_counts_and_is_liked(self, db_session, make_user):
        author = await make_user("author", is_private=False)
        fan = await make_user("fan")
        pin = _pin(author, "popular", is_public=True)
        db_session.add(pin)
        await db_session.flush()
        db_session.add_all([
            Like(pin_id=pin.id, user_id=fan.id),
            Comment(pin_id=pin.id, author_id=fan.id, content="wow"),
        ])
        await db_session.flush()

        pins, _ = await self.service.list_pins(db_session, fan.id)
        assert pins[0].likes_count == 1
        assert pins[0].comments_count == 1
        assert pins[0].is_liked is True

        pins, _ = await self.service.list_pins(db_session, None)
        assert pins[0].is_liked is False


class TestLikesAndComments:

    def setup_method(self):
        self.service = PinService()

    @pytest.mark.asyncio
    async def test_like_twice_conflicts(self, db_session, make_user):
        author = await make_user("author")
        fan = await make_user("fan")
        pin = _pin(author, "nice", is_public=True)
        db_session.add(pin)
        await db_session.commit()
        pin_id, fan_id = pin.id, fan.id

        await self.service.like_pin(db_session, pin_id, fan_id)
        await db_session.commit()

        with pytest.raises(ConflictError):
            await self.service.like_pin(db_session, pin_id, fan_id)

        likes, total = await self.service.get_likes(db_session, pin_id, fan_id)
        assert total == 1
        assert likes[0].user.username == "fan"

    @pytest.mark.asyncio
    async def test_cannot_like_or_comment_hidden_pin(self, db_session, make_user):
        author = await make_user("author")
        stranger = await make_user("stranger")
        pin = _pin(author, "followers only")
        db_session.add(pin)
        await db_session.flush()

        with pytest.raises(NotFoundError):
            await self.service.like_pin(db_session, pin.id, stranger.id)
        with pytest.raises(NotFoundError):
            await self.service.add_comment(
                db_session, pin.id, stranger.id, CommentCreate(content="hi")
            )
        with pytest.raises(NotFoundError):
            await self.service.get_comments(db_session, pin.id, stranger.id)

    @pytest.mark.asyncio
    async def test_unlike_without_like(self, db_session, make_user):
        author = await make_user("author")
        pin = _pin(author, "x", is_public=True)
        db_session.add(pin)
        await db_session.flush()

        with pytest.raises(NotFoundError):
            await self.service.unlike_pin(db_session, pin.id, author.id)

    @pytest.mark.asyncio
    async def test_comment_deletion_rights(self, db_session, make_user):
        author = await make_user("author", is_private=False)
        commenter = await make_user("commenter")
        bystander = await make_user("bystander")
        pin = _pin(author, "discuss", is_public=True)
        db_session.add(pin)
        await db_session.flush()

        first = await self.service.add_comment(
            db_session, pin.id, commenter.id, CommentCreate(content="first!")
        )
        second = await self.service.add_comment(
            db_session, pin.id, commenter.id, CommentCreate(content="second")
        )
        assert first.author.username == "commenter"

        with pytest.raises(NotFoundError):
            await self.service.delete_comment(db_session, first.id, bystander.id)

        await self.service.delete_comment(db_session, first.id, commenter.id)
        await self.service.delete_comment(db_session, second.id, author.id)

        comments, total = await self.service.get_comments(db_session, pin.id, None)
        assert (comments, total) == ([], 0)
