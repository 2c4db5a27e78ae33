# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from travelfx import __version__
from travelfx.config import get_settings
from travelfx.database import init_db

logging.basicConfig(
    level=get_settings().log_level,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup and shutdown events."""
    logger.info("Creating database tables...")
    init_db()
    yield
    logger.info("Shutting down")


app = FastAPI(
    title="TravelFX",
    description="Exchange rates and currency conversion for the travel tracker",
    version=__version__,
    lifespan=lifespan,
)


@app.get("/health")
def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "healthy"}


# Import and include API router after it's created
from travelfx.api.v1.router import api_router  # noqa: E402

app.include_router(api_router, prefix="/api/v1")
