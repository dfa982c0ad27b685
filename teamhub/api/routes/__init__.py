"""
API routes - combined router from all domain modules.

Shared infrastructure (limiter) lives here; every sub-router
imports what it needs from this package.
"""

import os

from fastapi import APIRouter
from slowapi import Limiter
from slowapi.util import get_remote_address

# ---------------------------------------------------------------------------
# Shared rate limiter
# ---------------------------------------------------------------------------
IS_TEST_ENV = os.getenv("ENV", "").lower() == "test"
API_RATE_LIMIT = os.getenv("API_RATE_LIMIT", "100/15 minutes")
AUTH_RATE_LIMIT = os.getenv("AUTH_RATE_LIMIT", "10/minute")

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[API_RATE_LIMIT],
    enabled=not IS_TEST_ENV,
)

# ---------------------------------------------------------------------------
# Import sub-routers and combine
# ---------------------------------------------------------------------------
from teamhub.api.routes.auth import router as auth_router  # noqa: E402
from teamhub.api.routes.events import router as events_router  # noqa: E402
from teamhub.api.routes.players import router as players_router  # noqa: E402
from teamhub.api.routes.messages import router as messages_router  # noqa: E402
from teamhub.api.routes.news import router as news_router  # noqa: E402
from teamhub.api.routes.stats import router as stats_router  # noqa: E402

router = APIRouter()
router.include_router(auth_router)
router.include_router(events_router)
router.include_router(players_router)
router.include_router(messages_router)
router.include_router(news_router)
router.include_router(stats_router)
