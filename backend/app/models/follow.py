"""
PinDrop Backend — Relationship Store Models
=============================================

What:  ORM models for `follows` (edges) and `follow_requests`.
Why:   These two tables are the whole persistent state of the follow graph.

Follow (edge):
    Directed follower → following. Unique per ordered pair and never a
    self-loop; both are enforced by the database so that concurrent
    inserts for the same pair resolve to exactly one winner.

FollowRequest:
    Directed sender → receiver with status PENDING | ACCEPTED | REJECTED.
    Unique per ordered pair: a re-attempt after rejection reuses the row.
    ACCEPTED rows stay as history next to the edge they produced.

    State diagram (per ordered pair):

        NONE ──follow private──▶ PENDING ──accept──▶ ACCEPTED (+ edge)
          ▲                      │   ▲
          └──────cancel──────────┘   │
                                 reject│follow again
                                     ▼   │
                                   REJECTED
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base, utcnow


class RequestStatus(str, enum.Enum):
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"


class Follow(Base):
    __tablename__ = "follows"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    follower_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    following_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    __table_args__ = (
        UniqueConstraint("follower_id", "following_id", name="uq_follows_pair"),
        CheckConstraint("follower_id != following_id", name="ck_follows_no_self"),
        Index("idx_follows_follower_id", "follower_id"),
        Index("idx_follows_following_id", "following_id"),
    )

    def __repr__(self) -> str:
        return f"<Follow({self.follower_id} -> {self.following_id})>"


class FollowRequest(Base):
    __tablename__ = "follow_requests"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    sender_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    receiver_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    status: Mapped[RequestStatus] = mapped_column(
        Enum(RequestStatus, name="request_status"),
        nullable=False,
        default=RequestStatus.PENDING,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    __table_args__ = (
        UniqueConstraint("sender_id", "receiver_id", name="uq_follow_requests_pair"),
        Index("idx_follow_requests_receiver_id", "receiver_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<FollowRequest(id={self.id}, {self.sender_id} -> {self.receiver_id}, "
            f"status='{self.status.value}')>"
        )
