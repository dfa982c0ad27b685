"""
Authentication dependencies for FastAPI routes.
"""

from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from teamhub.services import auth_service
from teamhub.services.auth_service import Identity

# auto_error=False so a missing token is reported as AuthError (401)
security = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Identity:
    """
    Dependency to get the current authenticated user from the bearer token.

    Raises:
        AuthError: If no token is provided
        ForbiddenError: If the token is invalid or expired
    """
    token = credentials.credentials if credentials else None
    return auth_service.identity_from_token(token)


def require_permission(permission: str):
    """
    Build a dependency that requires a Role predicate to hold for the caller.

    Usage:
        @router.post("/api/events")
        async def create_event(current_user: Identity = Depends(require_event_manager)):
            ...
    """

    async def dependency(user: Identity = Depends(get_current_user)) -> Identity:
        return auth_service.authorize(user, permission)

    return dependency


require_roster_manager = require_permission("can_manage_roster")
require_event_manager = require_permission("can_manage_events")
require_message_sender = require_permission("can_send_messages")
require_news_publisher = require_permission("can_publish_news")
