"""
PinDrop Backend — Pin Schemas
===============================

What:  API contracts for pins, media, likes and comments.
Why:   Coordinate and mood-scale ranges are validated here, before any
       service code runs (FastAPI returns 422 on violation).
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from app.models.pin import MediaType
from app.schemas.user import UserSummary


class MediaIn(BaseModel):
    url: str = Field(min_length=1, max_length=1000)
    type: MediaType


class MediaResponse(BaseModel):
    id: uuid.UUID
    url: str
    type: MediaType
    order: int

    model_config = {"from_attributes": True}


class PinCreate(BaseModel):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)
    content: str = Field(min_length=1)
    mood_scale: Optional[int] = Field(default=None, ge=1, le=10)
    feeling: Optional[str] = Field(default=None, max_length=100)
    is_public: bool = False
    event_id: Optional[uuid.UUID] = None
    media_urls: List[MediaIn] = Field(default_factory=list)

    @field_validator("content")
    @classmethod
    def content_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("content must not be blank")
        return v


class PinUpdate(BaseModel):
    """
    Partial pin update. Omitted fields stay as they are; mood_scale and
    feeling can be cleared with null, content and is_public cannot.
    """
    content: Optional[str] = Field(default=None, min_length=1)
    mood_scale: Optional[int] = Field(default=None, ge=1, le=10)
    feeling: Optional[str] = Field(default=None, max_length=100)
    is_public: Optional[bool] = None

    @field_validator("content", "is_public")
    @classmethod
    def not_null(cls, v):
        if v is None:
            raise ValueError("may be omitted but not set to null")
        return v


class PinResponse(BaseModel):
    id: uuid.UUID
    author_id: uuid.UUID
    lat: float
    lng: float
    content: str
    mood_scale: Optional[int] = None
    feeling: Optional[str] = None
    is_public: bool
    event_id: Optional[uuid.UUID] = None
    created_at: datetime
    updated_at: datetime
    author: UserSummary
    media: List[MediaResponse] = Field(default_factory=list)
    likes_count: int = 0
    comments_count: int = 0
    is_liked: bool = False


class PinListResponse(BaseModel):
    """
    `total` counts rows matching the store-side filters. When a distance
    filter is applied, `pins` may hold fewer than `limit` items even though
    more pages exist.
    """
    pins: List[PinResponse]
    total: int


class CommentCreate(BaseModel):
    content: str = Field(min_length=1, max_length=2000)

    @field_validator("content")
    @classmethod
    def content_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Comment content is required")
        return v


class CommentResponse(BaseModel):
    id: uuid.UUID
    pin_id: uuid.UUID
    author_id: uuid.UUID
    content: str
    created_at: datetime
    author: UserSummary

    model_config = {"from_attributes": True}


class CommentListResponse(BaseModel):
    comments: List[CommentResponse]
    total: int


class LikeResponse(BaseModel):
    id: uuid.UUID
    pin_id: uuid.UUID
    user_id: uuid.UUID
    created_at: datetime

    model_config = {"from_attributes": True}


class LikeListItem(LikeResponse):
    user: UserSummary


class LikeListResponse(BaseModel):
    likes: List[LikeListItem]
    total: int
