"""
Season Ticket Manager API - Main Application Entry Point

Shares a block of season-ticket seats among a group of members:
- Seat inventory expanded into one ticket per seat per home game
- Member requests per game, admin allocation with conditional updates
- Schedule import from the MLB Stats API
- Structured logging with request correlation and Prometheus counters
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ticket_manager.core.config import get_settings
from ticket_manager.core.exceptions import TicketManagerError
from ticket_manager.core.logging import setup_logging, get_logger
from ticket_manager.core.metrics import metrics_endpoint
from ticket_manager.core.security import load_jwks
from ticket_manager.api.router import api_router
from ticket_manager.api.middleware import RequestLoggingMiddleware
from ticket_manager.db.session import close_db, init_db
from ticket_manager.services.cache_service import get_redis, close_redis, get_cache_stats

settings = get_settings()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle: startup and shutdown hooks."""
    setup_logging()

    logger.info(
        "application_starting",
        app=settings.APP_NAME,
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
        home_team_id=settings.HOME_TEAM_ID,
    )

    # PostgreSQL schemas are migrated with Alembic; SQLite installs bootstrap here
    if settings.is_sqlite:
        await init_db()

    if settings.AUTH0_DOMAIN:
        await load_jwks()
    else:
        logger.warning("auth_shared_secret_mode", message="AUTH0_DOMAIN not set")

    redis_client = await get_redis()
    if redis_client:
        logger.info("redis_ready")
    else:
        logger.warning("redis_unavailable", message="Running without cache")

    yield

    await close_redis()
    await close_db()
    logger.info("application_shutdown")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Season ticket inventory, member requests and admin allocation",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(RequestLoggingMiddleware)

app.include_router(api_router)


def _error_body(code: str, message: str, details: dict) -> dict:
    return {"error": {"code": code, "message": message, "details": details}}


@app.exception_handler(TicketManagerError)
async def ticket_manager_error_handler(request: Request, exc: TicketManagerError):
    if exc.status_code >= 500:
        logger.error("request_error", code=exc.code, message=exc.message, details=exc.details)
    else:
        logger.info("request_rejected", code=exc.code, message=exc.message, status_code=exc.status_code)
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.code, exc.message, exc.details),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=422,
        content=_error_body(
            "VALIDATION_ERROR",
            "Request body or parameters are invalid",
            {"errors": jsonable_encoder(exc.errors())},
        ),
    )


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint for Docker and load balancers."""
    cache_stats = await get_cache_stats()
    return {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "cache": cache_stats,
    }


@app.get("/metrics", include_in_schema=False)
def metrics():
    return metrics_endpoint()
