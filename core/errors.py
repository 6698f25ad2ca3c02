from typing import Optional


class CookFeedError(Exception):
    """Base class for every failure an operation reports to its caller.

    Each subclass carries the HTTP status it maps to; ``extra`` is merged
    into the JSON error body so the client can render specific states.
    """

    status_code = 500
    default_message = "Internal error"

    def __init__(self, message: Optional[str] = None, extra: Optional[dict] = None):
        self.message = message or self.default_message
        self.extra = extra or {}
        super().__init__(self.message)

    def to_dict(self) -> dict:
        body = {"ok": False, "error": self.message}
        body.update(self.extra)
        return body


class Unauthorized(CookFeedError):
    """No resolved identity."""
    status_code = 401
    default_message = "Not authenticated"


class Forbidden(CookFeedError):
    """Identity resolved, capability missing."""
    status_code = 403
    default_message = "Forbidden"


class NotFound(CookFeedError):
    status_code = 404
    default_message = "Not found"


class Conflict(CookFeedError):
    status_code = 409
    default_message = "Already exists"


class InvalidInput(CookFeedError):
    status_code = 400
    default_message = "Invalid input"


class PrivateResource(Forbidden):
    """A visibility denial the client renders as a dedicated private state."""

    default_message = "This content is private"

    def __init__(self, message: Optional[str] = None, profile_name: Optional[str] = None):
        super().__init__(message, extra={"private": True, "profileName": profile_name})
        self.profile_name = profile_name
