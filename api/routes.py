#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
API Routes for the Playlistindex application using FastAPI.

Read-only views of the enriched collection, the refresh status, a refresh
trigger and a health check.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status

from config import config
from exceptions import AppBaseError, handle_exception
from models import (CollectionResponse, ErrorResponse, PlaylistResponse,
                    RefreshStatusResponse)
from services.collection_view import build_view
from services.orchestrator import EnrichmentOrchestrator
from api.dependencies import get_orchestrator
from logging_config import StructuredLogger

from __init__ import __version__ as app_version

logger = StructuredLogger(__name__)

router = APIRouter()

ERROR_RESPONSES: Dict[int | str, Dict[str, Any]] = {
    400: {"model": ErrorResponse, "description": "Invalid query parameters"},
    503: {"model": ErrorResponse, "description": "Service unavailable (initialization failed)"},
}


@router.get(
    "/playlists",
    response_model=CollectionResponse,
    responses=ERROR_RESPONSES,
    summary="List playlists",
    description="Returns the enriched playlists sorted and filtered by the given criteria, "
                "plus the distinct years/genres and the current loading/error state."
)
async def list_playlists(
    search: Optional[str] = Query(None, description="Case-insensitive title substring."),
    sort: str = Query(config.DEFAULT_SORT_MODE, description="newest, oldest, name-asc, name-desc, year-asc, year-desc"),
    year: str = Query(config.ALL_FILTER_VALUE, description="Exact release year or 'alle'."),
    genre: str = Query(config.ALL_FILTER_VALUE, description="Genre or 'alle'."),
    orchestrator: EnrichmentOrchestrator = Depends(get_orchestrator),
):
    """Project the current collection snapshot for the presentation layer."""
    state = orchestrator.state
    try:
        view = build_view(state, search=search, sort=sort, year=year, genre=genre)
    except (AppBaseError, ValueError) as e:
        logger.warning(f"Rejected /playlists query: {e}", sort=sort)
        raise handle_exception(e)

    return CollectionResponse(
        playlists=[PlaylistResponse.from_enriched(p) for p in view.playlists],
        total=view.total,
        filtered=view.filtered,
        years=list(view.years),
        genres=list(view.genres),
        loading=orchestrator.loading,
        error=orchestrator.error_message,
    )


@router.get("/status", response_model=RefreshStatusResponse, summary="Refresh status")
async def refresh_status(orchestrator: EnrichmentOrchestrator = Depends(get_orchestrator)):
    """Loading flag, user-facing error message and time of the last successful refresh."""
    state = orchestrator.state
    return RefreshStatusResponse(
        loading=orchestrator.loading,
        error=orchestrator.error_message,
        refreshed_at=state.refreshed_at,
        playlist_count=len(state),
    )


@router.post(
    "/refresh",
    response_model=RefreshStatusResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Trigger a refresh",
    description="Schedules a full rebuild of the collection. Poll /status to follow it."
)
async def trigger_refresh(
    background_tasks: BackgroundTasks,
    orchestrator: EnrichmentOrchestrator = Depends(get_orchestrator),
):
    """Start a refresh in the background and return the current status."""
    logger.info("Refresh requested via /refresh.")
    background_tasks.add_task(orchestrator.refresh)
    state = orchestrator.state
    return RefreshStatusResponse(
        loading=orchestrator.loading,
        error=orchestrator.error_message,
        refreshed_at=state.refreshed_at,
        playlist_count=len(state),
    )


@router.get("/health", summary="Health Check")
async def health_check(orchestrator: EnrichmentOrchestrator = Depends(get_orchestrator)):
    """Service version, component readiness and refresh/API statistics."""
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service_version": app_version,
        "components": {
            "api_client": "ready",
            "orchestrator": "ready",
        },
        "statistics": orchestrator.get_stats(),
    }
