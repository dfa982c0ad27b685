"""Roster route handlers."""

import logging
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from teamhub.api.auth_dependencies import get_current_user, require_roster_manager
from teamhub.database.db import get_db_session
from teamhub.models.schemas import (
    CreatedResponse,
    MessageOnlyResponse,
    PlayerCreateRequest,
    PlayerResponse,
    PlayerUpdateRequest,
)
from teamhub.services import data_service
from teamhub.services.auth_service import Identity
from teamhub.services.errors import InternalError

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/api/players", response_model=List[PlayerResponse])
async def list_players(
    current_user: Identity = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Get active players ordered by jersey number."""
    try:
        return await data_service.list_players(session)
    except SQLAlchemyError:
        logger.error("Error loading players", exc_info=True)
        raise InternalError("Failed to load players")


@router.post("/api/players", response_model=CreatedResponse)
async def create_player(
    payload: PlayerCreateRequest,
    current_user: Identity = Depends(require_roster_manager),
    session: AsyncSession = Depends(get_db_session),
):
    """
    Add a player to the roster (trainer only).

    Request body:
        {
            "name": "Mia Keller",
            "number": 10,             // 1-99
            "birth_date": "2014-03-02",
            "position": "Midfield"
        }
    """
    try:
        player = await data_service.create_player(session, payload.model_dump())
    except SQLAlchemyError:
        logger.error("Error creating player", exc_info=True)
        raise InternalError("Failed to add player")
    return {"id": player["id"], "message": "Player added"}


@router.put("/api/players/{player_id}", response_model=MessageOnlyResponse)
async def update_player(
    player_id: int,
    payload: PlayerUpdateRequest,
    current_user: Identity = Depends(require_roster_manager),
    session: AsyncSession = Depends(get_db_session),
):
    """Update a roster entry (trainer only). Set status to "inactive" to retire a player."""
    try:
        await data_service.update_player(session, player_id, payload.model_dump(exclude_unset=True))
    except SQLAlchemyError:
        logger.error(f"Error updating player {player_id}", exc_info=True)
        raise InternalError("Failed to update player")
    return {"message": "Player updated"}
