"""FastAPI application - price refresh and margin-of-safety alerts."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pricewatch.api.dependencies import (
    close_services,
    get_notifier,
    get_refresh_scheduler,
    get_refresh_service,
    init_services,
)
from pricewatch.api.routes import alerts, health, refresh, stocks
from pricewatch.api.websocket.realtime import router as ws_router, manager
from pricewatch.config import app_config
from pricewatch.db import init_schema
from pricewatch.repository.clickhouse_client import ClickHouseConnection

logging.basicConfig(
    level=getattr(logging, app_config.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown."""
    logger.info("Starting application...")

    connection = None
    if app_config.STORAGE_BACKEND == "clickhouse":
        connection = ClickHouseConnection()
        connection.connect()
        init_schema(connection)
    else:
        logger.info("Using in-memory storage")

    # Initialize services with DI
    init_services(connection)

    # Push alerts and price updates to websocket clients
    get_notifier().register_listener(manager.broadcast_alert)
    get_refresh_service().register_callback(manager.broadcast)

    # First cycle runs immediately, then every REFRESH_INTERVAL_SECONDS
    scheduler = get_refresh_scheduler()
    scheduler.start()

    logger.info("Application started")
    yield

    # Shutdown
    logger.info("Shutting down...")
    scheduler.shutdown()
    await close_services()
    if connection is not None:
        connection.disconnect()
    logger.info("Shutdown complete")


# Create app
app = FastAPI(
    title="Pricewatch API",
    description="Watchlist price refresh and margin-of-safety alerts",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routes
app.include_router(health.router)
app.include_router(stocks.router)
app.include_router(refresh.router)
app.include_router(alerts.router)
app.include_router(ws_router)
