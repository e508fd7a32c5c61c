"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

from api.routes import game, stats, users
from api.session import get_session_store
from config import config
from db.engine import dispose_engine, init_models
from logging_utils import setup_logging

logger = logging.getLogger(__name__)

# Initialize rate limiter
limiter = Limiter(
    key_func=get_remote_address,
    enabled=config.rate_limit.enabled,
    default_limits=[f"{config.rate_limit.requests_per_minute}/minute"],
)


def _rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Handle rate limit exceeded errors."""
    return JSONResponse(
        status_code=429,
        content={"detail": f"Rate limit exceeded: {exc.detail}"},
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Configure logging, create tables and pick the session store."""
    setup_logging(config.log_level)
    await init_models()
    await get_session_store()
    logger.info("Aces API ready")
    yield
    await dispose_engine()


app = FastAPI(
    title="Aces",
    description="Session-authenticated API for the Aces solitaire card game",
    version="0.1.0",
    lifespan=lifespan,
)

# Add rate limiter to app state and exception handler
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# CORS middleware with configurable origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors.allowed_origins,
    allow_credentials=config.cors.allow_credentials,
    allow_methods=config.cors.allow_methods,
    allow_headers=config.cors.allow_headers,
)


@app.get("/api/health")
@limiter.limit(f"{config.rate_limit.requests_per_minute}/minute")
async def health_check(request: Request) -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}


# Include routers
app.include_router(users.router, prefix="/api/users", tags=["users"])
app.include_router(game.router, prefix="/api/game", tags=["game"])
app.include_router(stats.router, prefix="/api/stats", tags=["stats"])
