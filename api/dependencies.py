#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
FastAPI dependency injection functions for Playlistindex services.

The lifespan handler in ``main`` populates the module-level instances; the
route handlers receive them through these functions.
"""

from typing import Optional

from fastapi import HTTPException, status

from services.orchestrator import EnrichmentOrchestrator
from logging_config import StructuredLogger

logger = StructuredLogger(__name__)

# --- Global Service Instances ---
orchestrator: Optional[EnrichmentOrchestrator] = None


# --- Dependency Injection Functions ---

def get_orchestrator() -> EnrichmentOrchestrator:
    """Dependency function to get the initialized EnrichmentOrchestrator instance.

    Raises:
        HTTPException: 503 Service Unavailable if the orchestrator is not initialized.
    """
    if not orchestrator:
        logger.critical("Dependency Error: Enrichment orchestrator not initialized.", exc_info=False)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service Initialization Error: Playlist index is not available.",
            headers={"X-Error-Code": "SERVICE_UNAVAILABLE_ORCHESTRATOR"}
        )
    return orchestrator
