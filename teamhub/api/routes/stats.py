"""Team statistics and health check route handlers."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from teamhub.api.auth_dependencies import get_current_user
from teamhub.database.db import get_db_session
from teamhub.models.schemas import HealthResponse, TeamStatsResponse
from teamhub.services import data_service
from teamhub.services.auth_service import Identity
from teamhub.services.errors import InternalError
from teamhub.utils.datetime_utils import utcnow

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/api/stats", response_model=TeamStatsResponse)
async def get_stats(
    current_user: Identity = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Get active player count plus the next event and its attendance."""
    try:
        return await data_service.get_team_stats(session)
    except SQLAlchemyError:
        logger.error("Error loading stats", exc_info=True)
        raise InternalError("Failed to load statistics")


@router.get("/api/health", response_model=HealthResponse)
async def health_check():
    """Liveness check."""
    return {"status": "ok", "timestamp": utcnow().isoformat()}
