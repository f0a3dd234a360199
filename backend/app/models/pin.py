"""
PinDrop Backend — Pin, Media, Like and Comment Models
=======================================================

What:  ORM models for location-tagged posts and the interactions on them.

Pin visibility is NOT stored: it is derived per request from the pin's own
`is_public` flag, the author and the follow graph (see services/visibility.py).

Query Patterns:
    - Pins by author, newest first → idx_pins_author_id + idx_pins_created_at
    - Pins dropped at an event → idx_pins_event_id
    - Bounding-box prefilter (future) → idx_pins_lat_lng
    - Likes per pin / "did I like it" → uq_likes_pin_user
"""

import enum
import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base, utcnow
from app.models.user import User


class MediaType(str, enum.Enum):
    IMAGE = "IMAGE"
    VIDEO = "VIDEO"


class Pin(Base):
    __tablename__ = "pins"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    author_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    lat: Mapped[float] = mapped_column(Float, nullable=False)
    lng: Mapped[float] = mapped_column(Float, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    mood_scale: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    feeling: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    event_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("events.id", ondelete="SET NULL"), nullable=True
    )
    # Independent of the author's is_private setting
    is_public: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    # lazy="raise": async sessions can't lazy-load, so every query that needs
    # these must ask for them with selectinload()
    author: Mapped[User] = relationship(User, lazy="raise")
    media: Mapped[List["Media"]] = relationship(
        "Media",
        order_by="Media.order",
        cascade="all, delete-orphan",
        lazy="raise",
    )

    __table_args__ = (
        Index("idx_pins_author_id", "author_id"),
        Index("idx_pins_created_at", "created_at"),
        Index("idx_pins_lat_lng", "lat", "lng"),
        Index("idx_pins_event_id", "event_id"),
    )

    def __repr__(self) -> str:
        return f"<Pin(id={self.id}, author_id={self.author_id}, is_public={self.is_public})>"


class Media(Base):
    __tablename__ = "media"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    pin_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("pins.id", ondelete="CASCADE"), nullable=False, index=True
    )
    url: Mapped[str] = mapped_column(String(1000), nullable=False)
    type: Mapped[MediaType] = mapped_column(Enum(MediaType, name="media_type"), nullable=False)
    order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


class Like(Base):
    __tablename__ = "likes"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    pin_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("pins.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    user: Mapped[User] = relationship(User, lazy="raise")

    __table_args__ = (
        UniqueConstraint("pin_id", "user_id", name="uq_likes_pin_user"),
    )


class Comment(Base):
    __tablename__ = "comments"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    pin_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("pins.id", ondelete="CASCADE"), nullable=False, index=True
    )
    author_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    author: Mapped[User] = relationship(User, lazy="raise")
    pin: Mapped[Pin] = relationship(Pin, lazy="raise")
