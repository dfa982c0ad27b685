"""News route handlers. Reading is public; publishing requires the trainer role."""

import logging
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from teamhub.api.auth_dependencies import require_news_publisher
from teamhub.database.db import get_db_session
from teamhub.models.schemas import CreatedResponse, NewsCreateRequest, NewsResponse
from teamhub.services import data_service
from teamhub.services.auth_service import Identity
from teamhub.services.errors import InternalError

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/api/news", response_model=List[NewsResponse])
async def list_news(session: AsyncSession = Depends(get_db_session)):
    """
    Get the latest published news.

    No authentication required. Returns at most 10 articles, newest first.
    """
    try:
        return await data_service.list_news(session)
    except SQLAlchemyError:
        logger.error("Error loading news", exc_info=True)
        raise InternalError("Failed to load news")


@router.post("/api/news", response_model=CreatedResponse)
async def create_news(
    payload: NewsCreateRequest,
    current_user: Identity = Depends(require_news_publisher),
    session: AsyncSession = Depends(get_db_session),
):
    """Create a news article (trainer only). Articles are unpublished unless "published" is true."""
    try:
        news = await data_service.create_news(session, current_user.id, payload.model_dump())
    except SQLAlchemyError:
        logger.error("Error creating news", exc_info=True)
        raise InternalError("Failed to create news")
    return {"id": news["id"], "message": "News created"}
