"""Team message route handlers."""

import logging
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from teamhub.api.auth_dependencies import get_current_user, require_message_sender
from teamhub.database.db import get_db_session
from teamhub.models.schemas import CreatedResponse, MessageCreateRequest, MessageResponse
from teamhub.services import data_service
from teamhub.services.auth_service import Identity
from teamhub.services.errors import InternalError

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/api/messages", response_model=CreatedResponse)
async def send_message(
    payload: MessageCreateRequest,
    current_user: Identity = Depends(require_message_sender),
    session: AsyncSession = Depends(get_db_session),
):
    """Send a message to everyone, parents or players (trainer only)."""
    try:
        message = await data_service.create_message(session, current_user.id, payload.model_dump())
    except SQLAlchemyError:
        logger.error("Error sending message", exc_info=True)
        raise InternalError("Failed to send message")
    return {"id": message["id"], "message": "Message sent"}


@router.get("/api/messages", response_model=List[MessageResponse])
async def list_messages(
    current_user: Identity = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Get messages addressed to the caller's audience (trainers see all), newest first."""
    try:
        return await data_service.list_messages(session, current_user.role)
    except SQLAlchemyError:
        logger.error("Error loading messages", exc_info=True)
        raise InternalError("Failed to load messages")
