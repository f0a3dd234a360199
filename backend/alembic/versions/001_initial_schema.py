"""Initial schema: users, follow graph, pins and interactions

Revision ID: 001
Revises: None
Create Date: 2025-12-23 19:56:27.000000+00:00

What:  Creates users, follows, follow_requests, events, pins, media, likes,
       comments.
How:   UUID primary keys, TIMESTAMP WITH TIME ZONE, native enums for request
       status and media type. Every foreign key cascades on delete, so
       removing a user removes their edges, requests, events, pins and
       interactions. The one exception is pins.event_id, which is SET NULL.

Rollback: downgrade() drops everything (destructive).
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

request_status = sa.Enum("PENDING", "ACCEPTED", "REJECTED", name="request_status")
media_type = sa.Enum("IMAGE", "VIDEO", name="media_type")


def _timestamps():
    return [
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
    ]


def _user_fk(column: str) -> sa.Column:
    return sa.Column(
        column, sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )


def _pin_fk() -> sa.Column:
    return sa.Column(
        "pin_id", sa.Uuid(), sa.ForeignKey("pins.id", ondelete="CASCADE"), nullable=False
    )


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("username", sa.String(50), nullable=False, unique=True),
        sa.Column("full_name", sa.String(120), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("profile_picture_url", sa.String(500), nullable=True),
        sa.Column("instagram_username", sa.String(50), nullable=True),
        # New accounts require approval for followers
        sa.Column("is_private", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )

    # ── Follow graph ──────────────────────────────────────────────────────
    op.create_table(
        "follows",
        sa.Column("id", sa.Uuid(), nullable=False),
        _user_fk("follower_id"),
        _user_fk("following_id"),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("follower_id", "following_id", name="uq_follows_pair"),
        sa.CheckConstraint("follower_id != following_id", name="ck_follows_no_self"),
    )
    op.create_index("idx_follows_follower_id", "follows", ["follower_id"])
    op.create_index("idx_follows_following_id", "follows", ["following_id"])

    op.create_table(
        "follow_requests",
        sa.Column("id", sa.Uuid(), nullable=False),
        _user_fk("sender_id"),
        _user_fk("receiver_id"),
        sa.Column("status", request_status, nullable=False, server_default="PENDING"),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("sender_id", "receiver_id", name="uq_follow_requests_pair"),
    )
    op.create_index("idx_follow_requests_receiver_id", "follow_requests", ["receiver_id"])

    # ── Events ────────────────────────────────────────────────────────────
    op.create_table(
        "events",
        sa.Column("id", sa.Uuid(), nullable=False),
        _user_fk("creator_id"),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("lat", sa.Float(), nullable=True),
        sa.Column("lng", sa.Float(), nullable=True),
        sa.Column("start_date", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("end_date", sa.TIMESTAMP(timezone=True), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_events_creator_id", "events", ["creator_id"])
    op.create_index("idx_events_start_end", "events", ["start_date", "end_date"])

    # ── Pins & interactions ───────────────────────────────────────────────
    op.create_table(
        "pins",
        sa.Column("id", sa.Uuid(), nullable=False),
        _user_fk("author_id"),
        sa.Column("lat", sa.Float(), nullable=False),
        sa.Column("lng", sa.Float(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("mood_scale", sa.Integer(), nullable=True),
        sa.Column("feeling", sa.String(100), nullable=True),
        sa.Column(
            "event_id",
            sa.Uuid(),
            sa.ForeignKey("events.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("is_public", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_pins_author_id", "pins", ["author_id"])
    op.create_index("idx_pins_created_at", "pins", ["created_at"])
    op.create_index("idx_pins_lat_lng", "pins", ["lat", "lng"])
    op.create_index("idx_pins_event_id", "pins", ["event_id"])

    op.create_table(
        "media",
        sa.Column("id", sa.Uuid(), nullable=False),
        _pin_fk(),
        sa.Column("url", sa.String(1000), nullable=False),
        sa.Column("type", media_type, nullable=False),
        sa.Column("order", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_media_pin_id", "media", ["pin_id"])

    op.create_table(
        "likes",
        sa.Column("id", sa.Uuid(), nullable=False),
        _pin_fk(),
        _user_fk("user_id"),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("pin_id", "user_id", name="uq_likes_pin_user"),
    )
    op.create_index("ix_likes_pin_id", "likes", ["pin_id"])
    op.create_index("ix_likes_user_id", "likes", ["user_id"])

    op.create_table(
        "comments",
        sa.Column("id", sa.Uuid(), nullable=False),
        _pin_fk(),
        _user_fk("author_id"),
        sa.Column("content", sa.Text(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_comments_pin_id", "comments", ["pin_id"])
    op.create_index("ix_comments_author_id", "comments", ["author_id"])


def downgrade() -> None:
    op.drop_table("comments")
    op.drop_table("likes")
    op.drop_table("media")
    op.drop_table("pins")
    op.drop_table("events")
    op.drop_table("follow_requests")
    op.drop_table("follows")
    op.drop_table("users")
    media_type.drop(op.get_bind(), checkfirst=True)
    request_status.drop(op.get_bind(), checkfirst=True)
