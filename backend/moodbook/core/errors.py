"""
Domain error taxonomy.

Every rejection reaches the client as {"success": false, "error": <message>}
(see the exception handlers in moodbook.main). Messages are written for humans
and never carry collaborator exception text.
"""
from typing import Optional


class MoodbookError(Exception):
    """Base class for errors that are rendered as a structured failure object."""
    status_code: int = 500
    default_message: str = "An unexpected error occurred"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class AuthenticationError(MoodbookError):
    """Missing or invalid identity. Raised before any side effect."""
    status_code = 401
    default_message = "Not authenticated"


class ValidationError(MoodbookError):
    """Bad request input (unknown emotion, limit < 1, missing field)."""
    status_code = 400
    default_message = "Invalid request"


class NotFoundError(MoodbookError):
    status_code = 404
    default_message = "Not found"


class UpstreamError(MoodbookError):
    """A required read from the corpus or selection log failed."""
    status_code = 502
    default_message = "Failed to fetch data"


class BestEffortWriteError(MoodbookError):
    """
    A best-effort write failed. Carried inside BestEffortWrite for diagnostics;
    never raised to callers.
    """
    default_message = "Best-effort write failed"
