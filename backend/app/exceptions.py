"""
PinDrop Backend — Custom Exception Hierarchy
==============================================

What:  Application-specific exceptions for business-rule rejections and faults.
Why:   Services raise precise exceptions; global handlers in main.py turn them
       into structured JSON error responses with the right HTTP status.
How:   Each exception carries a user-safe message and an optional context dict
       (logged, never returned verbatim for server errors).
Who:   Raised by services and auth dependencies; caught by global handlers.

Exception Hierarchy:
    PinDropError (base)
    ├── ValidationError               → 400
    ├── AuthenticationError           → 401
    ├── NotFoundError                 → 404
    ├── ConflictError                 → 409
    └── FollowGraphError (follow/visibility rule rejections)
        ├── SelfFollowError           → 400
        ├── AlreadyFollowingError     → 409
        ├── TargetNotFoundError       → 404
        ├── RequestAlreadyPendingError→ 409
        ├── RequestNotFoundError      → 404
        ├── UnauthorizedError         → 403
        ├── NotPendingError           → 409
        └── NotFollowingError         → 400

Unanticipated SQLAlchemy failures are not wrapped: main.py answers them with
an opaque 500, distinct from every class below.

FollowGraphError subclasses are caller-input or state-conflict outcomes.
They are never retried: they describe a business rule, not a transient fault.
"""

from typing import Any, Dict, Optional


class PinDropError(Exception):
    """
    Base exception for all PinDrop application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(PinDropError):
    """Client input broke a business rule that schema validation cannot express."""

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class AuthenticationError(PinDropError):
    """Missing, invalid or expired credentials. HTTP 401."""

    def __init__(
        self,
        message: str = "Not authenticated",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(PinDropError):
    """
    Raised when a requested resource does not exist (or is not visible to
    the viewer, which is reported identically so hidden content can't be discovered).
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class ConflictError(PinDropError):
    """A uniqueness rule outside the follow graph was violated (duplicate username, like...)."""

    def __init__(
        self,
        message: str = "Resource already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


# ══════════════════════════════════════════════════════════════════════════
# Follow graph rule rejections
# ══════════════════════════════════════════════════════════════════════════

class FollowGraphError(PinDropError):
    """
    Base for follow/follow-request rule rejections.

    Subclasses set `status_code` and `error_code`; main.py registers a
    single handler for the whole family.
    """

    status_code: int = 400
    error_code: str = "follow_error"
    default_message: str = "Follow operation rejected"

    def __init__(
        self,
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message or self.default_message, context=context)


class SelfFollowError(FollowGraphError):
    status_code = 400
    error_code = "self_follow"
    default_message = "You cannot follow yourself"


class AlreadyFollowingError(FollowGraphError):
    status_code = 409
    error_code = "already_following"
    default_message = "Already following this user"


class TargetNotFoundError(FollowGraphError):
    status_code = 404
    error_code = "user_not_found"
    default_message = "User not found"


class RequestAlreadyPendingError(FollowGraphError):
    status_code = 409
    error_code = "request_already_pending"
    default_message = "Follow request already pending"


class RequestNotFoundError(FollowGraphError):
    status_code = 404
    error_code = "request_not_found"
    default_message = "Follow request not found"


class UnauthorizedError(FollowGraphError):
    """The caller is not the party allowed to resolve this follow request."""

    status_code = 403
    error_code = "unauthorized"
    default_message = "Unauthorized"


class NotPendingError(FollowGraphError):
    status_code = 409
    error_code = "request_not_pending"
    default_message = "Request is not pending"


class NotFollowingError(FollowGraphError):
    status_code = 400
    error_code = "not_following"
    default_message = "Not following this user"
