"""Event and attendance confirmation route handlers."""

import logging
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from teamhub.api.auth_dependencies import get_current_user, require_event_manager
from teamhub.database.db import get_db_session
from teamhub.models.schemas import (
    ConfirmationRequest,
    ConfirmationResponse,
    CreatedResponse,
    EventCreateRequest,
    EventResponse,
    EventUpdateRequest,
    MessageOnlyResponse,
)
from teamhub.services import data_service
from teamhub.services.auth_service import Identity
from teamhub.services.errors import InternalError

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/api/events", response_model=List[EventResponse])
async def list_events(
    current_user: Identity = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Get all events with confirmed/declined counts, soonest first."""
    try:
        return await data_service.list_events(session)
    except SQLAlchemyError:
        logger.error("Error loading events", exc_info=True)
        raise InternalError("Failed to load events")


@router.post("/api/events", response_model=CreatedResponse)
async def create_event(
    payload: EventCreateRequest,
    current_user: Identity = Depends(require_event_manager),
    session: AsyncSession = Depends(get_db_session),
):
    """Create an event (trainer only)."""
    try:
        event = await data_service.create_event(
            session, payload.model_dump(), created_by=current_user.id
        )
    except SQLAlchemyError:
        logger.error("Error creating event", exc_info=True)
        raise InternalError("Failed to create event")
    return {"id": event["id"], "message": "Event created"}


@router.get("/api/events/{event_id}", response_model=EventResponse)
async def get_event(
    event_id: int,
    current_user: Identity = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Get a single event with its confirmation counts."""
    try:
        return await data_service.get_event(session, event_id)
    except SQLAlchemyError:
        logger.error(f"Error loading event {event_id}", exc_info=True)
        raise InternalError("Failed to load event")


@router.put("/api/events/{event_id}", response_model=MessageOnlyResponse)
async def update_event(
    event_id: int,
    payload: EventUpdateRequest,
    current_user: Identity = Depends(require_event_manager),
    session: AsyncSession = Depends(get_db_session),
):
    """
    Update an event (trainer only).

    Only the supplied fields are changed. Unknown fields are rejected.
    """
    try:
        await data_service.update_event(session, event_id, payload.model_dump(exclude_unset=True))
    except SQLAlchemyError:
        logger.error(f"Error updating event {event_id}", exc_info=True)
        raise InternalError("Failed to update event")
    return {"message": "Event updated"}


@router.delete("/api/events/{event_id}", response_model=MessageOnlyResponse)
async def delete_event(
    event_id: int,
    current_user: Identity = Depends(require_event_manager),
    session: AsyncSession = Depends(get_db_session),
):
    """Delete an event and all of its confirmations (trainer only)."""
    try:
        await data_service.delete_event(session, event_id)
    except SQLAlchemyError:
        logger.error(f"Error deleting event {event_id}", exc_info=True)
        raise InternalError("Failed to delete event")
    return {"message": "Event deleted"}


@router.post("/api/events/{event_id}/confirmation", response_model=MessageOnlyResponse)
async def submit_confirmation(
    event_id: int,
    payload: ConfirmationRequest,
    current_user: Identity = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """
    Confirm, decline or mark "maybe" for a player.

    Request body:
        {
            "player_id": 7,
            "status": "confirmed",    // confirmed | declined | maybe
            "comment": "Arrives 10 minutes late"
        }
    """
    try:
        await data_service.submit_confirmation(
            session,
            event_id=event_id,
            player_id=payload.player_id,
            user_id=current_user.id,
            status=payload.status,
            comment=payload.comment,
        )
    except SQLAlchemyError:
        logger.error(f"Error saving confirmation for event {event_id}", exc_info=True)
        raise InternalError("Failed to save confirmation")
    return {"message": "Status updated"}


@router.get("/api/events/{event_id}/confirmations", response_model=List[ConfirmationResponse])
async def list_confirmations(
    event_id: int,
    current_user: Identity = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Get all confirmations for an event, ordered by player name."""
    try:
        return await data_service.list_confirmations(session, event_id)
    except SQLAlchemyError:
        logger.error(f"Error loading confirmations for event {event_id}", exc_info=True)
        raise InternalError("Failed to load confirmations")
