#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Main FastAPI application setup for Playlistindex.

Initializes the FastAPI application, sets up lifespan management for services,
registers CORS and includes the API routes.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from __init__ import __version__

from api import dependencies, routes
from config import config
from exceptions import APIConfigurationError
from logging_config import StructuredLogger
from services.orchestrator import EnrichmentOrchestrator
from services.youtube_api import YouTubeAPIClient

logger = StructuredLogger(__name__)


# --- Lifespan Management ---

def _log_refresh_failure(task: asyncio.Task) -> None:
    """Done-callback for the startup refresh: log errors that escaped it."""
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error(f"Initial playlist refresh failed: {exc}", exc_info=exc, error_type=type(exc).__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan context manager.

    Builds the API client and orchestrator, starts the initial refresh in the
    background and cancels it on shutdown.
    """
    logger.info("Starting Playlistindex FastAPI application lifespan...")
    initial_refresh: Optional[asyncio.Task] = None

    try:
        api_client = YouTubeAPIClient(config.API_KEY)
        dependencies.orchestrator = EnrichmentOrchestrator(
            api_client=api_client,
            channel_id=config.CHANNEL_ID,
        )
        logger.info("Playlistindex services initialized successfully.")
    except APIConfigurationError as api_err:
        logger.critical(f"API configuration error during startup: {api_err}")
        dependencies.orchestrator = None

    if dependencies.orchestrator and config.REFRESH_ON_STARTUP:
        initial_refresh = asyncio.ensure_future(dependencies.orchestrator.refresh())
        initial_refresh.add_done_callback(_log_refresh_failure)
        logger.info("Initial playlist refresh scheduled.")

    yield

    # --- Shutdown ---
    logger.info("Shutting down Playlistindex FastAPI application lifespan...")
    if dependencies.orchestrator:
        await dependencies.orchestrator.shutdown()
    if initial_refresh and not initial_refresh.done():
        initial_refresh.cancel()
        await asyncio.gather(initial_refresh, return_exceptions=True)
    dependencies.orchestrator = None
    logger.info("Lifespan cleanup finished.")


# --- FastAPI Application Instantiation ---

app = FastAPI(
    lifespan=lifespan,
    title="Playlistindex API",
    description="Enriched, sortable and filterable index of a YouTube channel's playlists.",
    version=__version__
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"]
)
logger.debug(f"CORS Middleware added. Allowed origins: {config.ALLOWED_ORIGINS}")

app.include_router(routes.router)
logger.info("FastAPI application setup complete.")
