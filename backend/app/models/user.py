"""
PinDrop Backend — User SQLAlchemy Model
=========================================

What:  ORM model for the `users` table.
Why:   Identity of every actor in the follow graph; `is_private` decides
       whether following requires the owner's consent.

Lifecycle:
    1. Created once at registration (is_private defaults to TRUE)
    2. Profile fields and is_private change only through update_profile
    3. Deleting a user cascades (ON DELETE CASCADE) to follows,
       follow requests, pins, likes and comments
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base, utcnow


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    username: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    full_name: Mapped[str] = mapped_column(String(120), nullable=False)
    # Hash produced by passlib; the plain password never reaches the database
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    bio: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    profile_picture_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    instagram_username: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    # Private accounts turn follow attempts into follow requests
    is_private: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username='{self.username}', is_private={self.is_private})>"
