"""
PinDrop Backend — Request Identity Dependencies
=================================================

What:  FastAPI dependencies that turn the Authorization header into a viewer id.
Why:   Visibility checks take an explicit Optional[UUID] viewer. Routes ask
       for `get_viewer_id` (anonymous allowed → None) or `require_viewer_id`
       (401 when absent) instead of reading an ambient identity.
"""

from typing import Optional
from uuid import UUID

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.exceptions import AuthenticationError
from app.security import decode_access_token

http_bearer = HTTPBearer(auto_error=False)


async def get_viewer_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(http_bearer),
) -> Optional[UUID]:
    if not credentials or not credentials.credentials:
        return None
    return decode_access_token(credentials.credentials)


async def require_viewer_id(
    viewer_id: Optional[UUID] = Depends(get_viewer_id),
) -> UUID:
    if viewer_id is None:
        raise AuthenticationError()
    return viewer_id
