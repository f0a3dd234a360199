"""
PinDrop Backend — ORM Models
==============================

Importing this package registers every table with Base.metadata, which
Alembic (--autogenerate) and the test suite (create_all) rely on.
"""

from app.models.user import User
from app.models.event import Event
from app.models.follow import Follow, FollowRequest, RequestStatus
from app.models.pin import Comment, Like, Media, MediaType, Pin

__all__ = [
    "User",
    "Follow",
    "FollowRequest",
    "RequestStatus",
    "Event",
    "Pin",
    "Media",
    "MediaType",
    "Like",
    "Comment",
]
