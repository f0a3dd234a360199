"""
PinDrop Backend — Follow Graph Schemas
========================================

What:  API contracts for follow edges, follow requests and follow results.

FollowResult mirrors the two ways a follow attempt settles:
    type == "follow"  → `follow` is set (public target, edge created)
    type == "request" → `request` is set (private target, request PENDING)
"""

import uuid
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from app.models.follow import RequestStatus
from app.schemas.user import UserSummary


class FollowResponse(BaseModel):
    id: uuid.UUID
    follower_id: uuid.UUID
    following_id: uuid.UUID
    created_at: datetime

    model_config = {"from_attributes": True}


class FollowRequestResponse(BaseModel):
    id: uuid.UUID
    sender_id: uuid.UUID
    receiver_id: uuid.UUID
    status: RequestStatus
    created_at: datetime
    updated_at: datetime
    sender: Optional[UserSummary] = None
    receiver: Optional[UserSummary] = None

    model_config = {"from_attributes": True}


class FollowResult(BaseModel):
    type: Literal["follow", "request"]
    message: str
    follow: Optional[FollowResponse] = None
    request: Optional[FollowRequestResponse] = None


class FollowCounts(BaseModel):
    followers_count: int = Field(ge=0)
    following_count: int = Field(ge=0)


class FollowersResponse(BaseModel):
    followers: List[UserSummary]
    total: int


class FollowingResponse(BaseModel):
    following: List[UserSummary]
    total: int


class FollowRequestListResponse(BaseModel):
    requests: List[FollowRequestResponse]
    total: int


class AcceptResponse(BaseModel):
    message: str = "Follow request accepted"
    follow: FollowResponse
