"""
Error taxonomy shared by the service layer and the API.

Services raise these; the API renders them through the exception handlers
registered in ``teamhub.api.main``.
"""

from typing import List, Dict, Optional


class TeamHubError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict:
        return {"error": self.message}


class ValidationError(TeamHubError):
    """Malformed or missing input, reported per field before any mutation."""

    status_code = 400

    def __init__(self, errors: List[Dict], message: str = "Validation failed"):
        super().__init__(message)
        self.errors = errors

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        return cls([{"field": field, "message": message}])

    def to_dict(self) -> Dict:
        return {"errors": self.errors}


class AuthError(TeamHubError):
    """Missing or invalid credentials."""

    status_code = 401


class ForbiddenError(TeamHubError):
    """Authenticated but not allowed (wrong role, invalid or expired token)."""

    status_code = 403


class NotFoundError(TeamHubError):
    status_code = 404


class ConflictError(TeamHubError):
    status_code = 409


class InternalError(TeamHubError):
    """Unexpected store/runtime failure. The message is always generic."""

    status_code = 500

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or "Internal server error")
