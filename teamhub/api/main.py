"""
TeamHub API Server

FastAPI server that provides REST endpoints for team management:
roster, events, attendance confirmations, messages and news.
"""

from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import HTMLResponse, JSONResponse
import logging
import os
import uvicorn
from slowapi import _rate_limit_exceeded_handler  # type: ignore
from slowapi.errors import RateLimitExceeded  # type: ignore
from slowapi.middleware import SlowAPIMiddleware  # type: ignore

from teamhub.api.routes import router, limiter as routes_limiter
from teamhub.database.db import Database
from teamhub.models.schemas import ValidationErrorResponse
from teamhub.services.errors import AuthError, InternalError, TeamHubError, ValidationError
from teamhub.utils.constants import TEAM_NAME

# Set up logging
# Allow log level to be configured via environment variable (default: INFO)
log_level = os.getenv("LOG_LEVEL", "INFO").upper()
numeric_level = getattr(logging, log_level, logging.INFO)
logging.basicConfig(
    level=numeric_level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan handler for startup and shutdown events."""
    # Startup
    logger.info(f"Starting up {TEAM_NAME} API...")
    database: Database = app.state.database

    # Create tables if they don't exist (fallback for deployments without migrations)
    try:
        await database.init_database()
        logger.info("Database initialized")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}", exc_info=True)
        # Don't raise - the health check still answers and store errors surface per request

    yield  # App is running

    # Shutdown
    logger.info(f"Shutting down {TEAM_NAME} API...")
    try:
        await database.dispose()
    except Exception as e:
        logger.error(f"Error closing database connection: {e}", exc_info=True)


def _field_name(loc) -> str:
    """Turn a pydantic error location into a field path, dropping the 'body'/'query' prefix."""
    parts = [str(part) for part in loc]
    if parts and parts[0] in ("body", "query", "path", "header"):
        parts = parts[1:]
    return ".".join(parts) or "body"


async def team_hub_error_handler(request: Request, exc: TeamHubError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthError) else None
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


async def request_validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = [
        {"field": _field_name(error.get("loc", ())), "message": error.get("msg", "Invalid value")}
        for error in exc.errors()
    ]
    return await team_hub_error_handler(request, ValidationError(errors))


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled error on {request.method} {request.url.path}", exc_info=exc)
    return await team_hub_error_handler(request, InternalError())


def create_app(database: Optional[Database] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        database: Store to serve from. Defaults to a Database built from DATABASE_URL.
    """
    app = FastAPI(
        title=f"{TEAM_NAME} API",
        description="API for team roster, events, attendance, messages and news",
        version="1.0.0",
        lifespan=lifespan,
        responses={400: {"model": ValidationErrorResponse}},
    )
    app.state.database = database or Database()

    # Setup rate limiter
    app.state.limiter = routes_limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    # Error taxonomy -> {"error": ...} / {"errors": [...]}
    app.add_exception_handler(TeamHubError, team_hub_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.add_middleware(GZipMiddleware, minimum_size=1000)

    # Add CORS middleware - origins configured via ALLOWED_ORIGINS env var
    allowed_origins = os.getenv("ALLOWED_ORIGINS", "*").split(",")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials="*" not in allowed_origins,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    # Include API routes
    app.include_router(router)

    @app.get("/", response_class=HTMLResponse)
    @routes_limiter.exempt
    async def root():
        """API root endpoint - the web client is served separately."""
        return HTMLResponse(
            content=f"""
            <!DOCTYPE html>
            <html>
                <head>
                    <title>{TEAM_NAME} API</title>
                    <style>
                        body {{ font-family: sans-serif; max-width: 800px; margin: 50px auto; padding: 20px; }}
                        h1 {{ color: #b91c1c; }}
                        a {{ color: #b91c1c; }}
                    </style>
                </head>
                <body>
                    <h1>{TEAM_NAME} API</h1>
                    <p>API is running successfully!</p>
                    <h2>Available Resources:</h2>
                    <ul>
                        <li><a href="/docs">API Documentation</a> - Interactive API docs</li>
                        <li><a href="/api/health">Health Check</a> - System status</li>
                    </ul>
                </body>
            </html>
        """
        )

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "3001")))
