"""
PinDrop Backend — User & Auth Schemas
=======================================

What:  API contracts for registration, login, profiles and user listings.
Why:   Keeps password hashes and e-mail addresses out of public responses:
       only UserPrivate (returned to the account owner) carries the e-mail.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from app.models.follow import RequestStatus


class UserRegister(BaseModel):
    email: EmailStr
    username: str = Field(min_length=3, max_length=50, pattern=r"^[A-Za-z0-9_.]+$")
    full_name: str = Field(min_length=1, max_length=120)
    password: str = Field(min_length=8, max_length=128)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class UserSummary(BaseModel):
    """Compact public representation used in lists and embedded objects."""
    id: uuid.UUID
    username: str
    full_name: str
    profile_picture_url: Optional[str] = None
    bio: Optional[str] = None
    is_private: bool

    model_config = {"from_attributes": True}


class UserPrivate(UserSummary):
    """What the account owner sees about themselves (GET /api/auth/me)."""
    email: str
    instagram_username: Optional[str] = None
    created_at: datetime


class TokenResponse(BaseModel):
    user: UserPrivate
    token: str
    token_type: str = "bearer"


class ProfileUpdate(BaseModel):
    """
    Partial profile update. Only fields present in the request body change.

    `is_private` is the account privacy setting: switching it does not touch
    existing follows or pending requests; it only changes how future follow
    attempts are settled.
    """
    full_name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    bio: Optional[str] = Field(default=None, max_length=500)
    profile_picture_url: Optional[str] = Field(default=None, max_length=500)
    instagram_username: Optional[str] = Field(default=None, max_length=50)
    is_private: Optional[bool] = None

    @field_validator("full_name", "is_private")
    @classmethod
    def not_null(cls, v):
        if v is None:
            raise ValueError("may be omitted but not set to null")
        return v


class FollowState(BaseModel):
    """Viewer-relative follow state attached to profiles and user lists."""
    followers_count: int = 0
    following_count: int = 0
    is_following: bool = False
    follow_request_status: Optional[RequestStatus] = None


class ProfileResponse(UserSummary, FollowState):
    instagram_username: Optional[str] = None
    created_at: datetime


class UserListItem(UserSummary, FollowState):
    created_at: datetime


class UserListResponse(BaseModel):
    users: List[UserListItem]
    total: int
