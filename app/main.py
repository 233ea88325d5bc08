"""
Subscription Tracker - FastAPI Application
Stores user subscriptions to external services and reports what they cost
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging
from datetime import datetime, timezone
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from app.database import init_db, dispose_engine
from app.config import settings
from app.core.logging_config import setup_logging
from app.core.middleware import RequestIdMiddleware
from app.api.errors import register_exception_handlers
from app.api.routes import health
from app.api.v1 import subscriptions

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle startup and shutdown events."""
    setup_logging(settings.log_level)
    logger.info("Starting Subscription Tracker API...")

    init_db()
    logger.info("Database initialized")
    logger.info(f"API running on {settings.app_env} environment")
    yield
    dispose_engine()
    logger.info("Shutting down Subscription Tracker API...")


app = FastAPI(
    title=settings.app_name,
    description="Backend API for tracking subscriptions and their cost",
    version="1.0.0",
    lifespan=lifespan,
)

# Respect forwarded proto/host so redirects don't downgrade to http.
app.add_middleware(ProxyHeadersMiddleware, trusted_hosts="*")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(RequestIdMiddleware)

register_exception_handlers(app)


@app.get("/")
async def root() -> dict:
    return {
        "name": settings.app_name,
        "environment": settings.app_env,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


app.include_router(health.router, tags=["Health"])
app.include_router(
    subscriptions.router,
    prefix=f"{settings.api_v1_prefix}/subscriptions",
    tags=["Subscriptions"],
)
