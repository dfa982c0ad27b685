"""Authentication route handlers."""

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from teamhub.api.routes import limiter, AUTH_RATE_LIMIT
from teamhub.api.auth_dependencies import get_current_user
from teamhub.database.db import get_db_session
from teamhub.models.schemas import AuthResponse, LoginRequest, RegisterRequest, UserResponse
from teamhub.services import auth_service, user_service
from teamhub.services.auth_service import Identity
from teamhub.services.errors import InternalError, NotFoundError

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/api/auth/register", response_model=AuthResponse)
@limiter.limit(AUTH_RATE_LIMIT)
async def register(
    request: Request, payload: RegisterRequest, session: AsyncSession = Depends(get_db_session)
):
    """
    Register a new account and return an access token.

    Request body:
        {
            "email": "coach@example.com",
            "password": "secret1",
            "name": "Coach Carter",
            "role": "trainer",        // trainer | parent | player
            "player_id": 4            // optional
        }
    """
    try:
        return await auth_service.register(
            session,
            email=payload.email,
            password=payload.password,
            name=payload.name,
            role=payload.role,
            player_id=payload.player_id,
            phone=payload.phone,
        )
    except SQLAlchemyError:
        logger.error("Error during registration", exc_info=True)
        raise InternalError("Registration failed")


@router.post("/api/auth/login", response_model=AuthResponse)
@limiter.limit(AUTH_RATE_LIMIT)
async def login(
    request: Request, payload: LoginRequest, session: AsyncSession = Depends(get_db_session)
):
    """Login with email and password."""
    try:
        return await auth_service.login(session, payload.email, payload.password)
    except SQLAlchemyError:
        logger.error("Error during login", exc_info=True)
        raise InternalError("Login failed")


@router.get("/api/auth/me", response_model=UserResponse)
async def get_me(
    current_user: Identity = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Get the profile of the authenticated user."""
    try:
        user = await user_service.get_user_by_id(session, current_user.id)
    except SQLAlchemyError:
        logger.error("Error loading current user", exc_info=True)
        raise InternalError("Failed to load user")
    if user is None:
        raise NotFoundError("User not found")
    return user
