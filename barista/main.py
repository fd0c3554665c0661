"""Main FastAPI application."""
import logging
from fastapi import FastAPI
from contextlib import asynccontextmanager

from barista.core.config import settings
from barista.core.logging import setup_logging
from barista.db.database import AsyncSessionLocal, init_db
from barista.db.seed import seed_menu
from barista.api import conversations, health, menu, metrics, orders

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    setup_logging()
    await init_db()
    if settings.seed_menu_on_startup:
        async with AsyncSessionLocal() as db:
            await seed_menu(db)
    logger.info(f"[STARTUP] {settings.restaurant_name} ready")
    yield


app = FastAPI(
    title="Barista Agent",
    description="Conversational ordering assistant for a coffee shop",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(metrics.MetricsMiddleware)

app.include_router(health.router, tags=["health"])
app.include_router(metrics.router, tags=["metrics"])
app.include_router(conversations.router, tags=["conversations"])
app.include_router(orders.router, tags=["orders"])
app.include_router(menu.router, tags=["menu"])


@app.get("/")
async def root():
    return {
        "message": f"{settings.restaurant_name} API",
        "version": "0.1.0",
    }
