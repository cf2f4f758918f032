#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Enrichment orchestrator for Playlistindex.

Drives one full refresh of the channel's playlists: fetch, visibility screen,
description parsing, duration and item-count resolution, and the atomic
publication of a new ``CollectionState``.
"""

import asyncio
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from config import config
from exceptions import UpstreamError
from models import CollectionState, EnrichedPlaylist, RawPlaylist
from services.description_parser import parse_description
from services.paged_fetcher import PagedFetcher
from services.resolvers import resolve_duration, resolve_item_count
from services.visibility import has_public_items
from services.youtube_api import YouTubeAPIClient
from logging_config import StructuredLogger
from utils import performance_timer, run_all

logger = StructuredLogger(__name__)


class EnrichmentOrchestrator:
    """Owns the collection state and the refresh pipeline that rebuilds it.

    The presentation layer reads ``state``, ``loading`` and ``error_message``.
    A refresh either publishes a complete new state or leaves the previous
    one untouched; any ``UpstreamError`` during a refresh aborts all of it
    and sets ``error_message``.
    """

    def __init__(self, api_client: YouTubeAPIClient, channel_id: Optional[str] = None):
        """
        Args:
            api_client: Client used for every upstream call.
            channel_id: Channel whose playlists are indexed. Defaults to ``config.CHANNEL_ID``.
        """
        self.api_client = api_client
        self.channel_id = channel_id or config.CHANNEL_ID

        self.state: CollectionState = CollectionState.empty()
        self.loading = False
        self.error_message: Optional[str] = None
        self.last_error: Optional[str] = None

        self._refresh_task: Optional[asyncio.Task] = None
        self._stats = {
            "refreshes_started": 0,
            "refreshes_succeeded": 0,
            "refreshes_failed": 0,
            "last_refresh_duration_ms": None,
        }
        logger.info("EnrichmentOrchestrator initialized.", channel_id=self.channel_id)

    # --- Public API ---

    async def refresh(self) -> CollectionState:
        """Rebuild the collection from the API.

        Concurrent callers share the refresh already in flight.

        Returns:
            CollectionState: The published state (the previous one if the refresh failed).
        """
        if self._refresh_task is None or self._refresh_task.done():
            self._refresh_task = asyncio.ensure_future(self._run_refresh())
        else:
            logger.debug("Refresh already in progress; joining it.")
        return await asyncio.shield(self._refresh_task)

    async def shutdown(self) -> None:
        """Cancel an in-flight refresh, if any."""
        task = self._refresh_task
        if task and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                logger.info("In-flight refresh cancelled on shutdown.")

    def get_stats(self) -> Dict[str, Any]:
        """Refresh counters plus upstream API usage."""
        return {
            **self._stats,
            "loading": self.loading,
            "playlist_count": len(self.state),
            "refreshed_at": self.state.refreshed_at.isoformat() if self.state.refreshed_at else None,
            "last_error": self.last_error,
            "api_client": self.api_client.get_api_stats(),
        }

    # --- Refresh pipeline ---

    async def _run_refresh(self) -> CollectionState:
        self.loading = True
        self.error_message = None
        self._stats["refreshes_started"] += 1
        start = time.monotonic()
        log = logger.bind(channel_id=self.channel_id)
        log.info("Starting playlist refresh.")

        try:
            with performance_timer("playlist_refresh", threshold_ms=5000, channel_id=self.channel_id):
                playlists = await self.enrich_all()
        except UpstreamError as e:
            # One failure anywhere fails the whole refresh; the old state stays published
            self._stats["refreshes_failed"] += 1
            self.last_error = type(e).__name__
            self.error_message = config.QUOTA_EXHAUSTED_MESSAGE
            log.error(f"Playlist refresh failed, keeping previous collection: {e}",
                      error_type=type(e).__name__, upstream_message=e.upstream_message)
            return self.state
        finally:
            self.loading = False
            self._stats["last_refresh_duration_ms"] = round((time.monotonic() - start) * 1000, 2)

        self.state = CollectionState.build(playlists, refreshed_at=datetime.now(timezone.utc))
        self.last_error = None
        self._stats["refreshes_succeeded"] += 1
        log.info(f"Playlist refresh complete: {len(self.state)} playlists, "
                 f"{len(self.state.years)} years, {len(self.state.genres)} genres.",
                 playlist_count=len(self.state))
        return self.state

    async def fetch_raw_playlists(self) -> List[RawPlaylist]:
        """Fetch every playlist of the channel, in upstream order."""
        fetcher = PagedFetcher(self.api_client, YouTubeAPIClient.PLAYLISTS,
                               part="snippet,contentDetails", channelId=self.channel_id)
        return [RawPlaylist.from_api_response(item) async for item in fetcher]

    async def enrich_all(self) -> List[EnrichedPlaylist]:
        """Run the full pipeline and return enriched playlists in upstream order.

        Raises:
            UpstreamError: On the first failure anywhere in the pipeline.
        """
        raw_playlists = await self.fetch_raw_playlists()
        logger.info(f"Fetched {len(raw_playlists)} playlists for channel {self.channel_id}.")

        visibility = await run_all(has_public_items(self.api_client, p.id) for p in raw_playlists)
        visible = [p for p, is_visible in zip(raw_playlists, visibility) if is_visible]
        dropped = len(raw_playlists) - len(visible)
        if dropped:
            logger.info(f"Excluded {dropped} playlist(s) without public entries.", dropped=dropped)

        return await run_all(self.enrich_playlist(p) for p in visible)

    async def enrich_playlist(self, playlist: RawPlaylist) -> EnrichedPlaylist:
        """Parse a visible playlist's description and resolve its totals."""
        metadata = parse_description(playlist.description)
        (total_duration, duration_source), (item_count, item_count_source) = await run_all([
            resolve_duration(self.api_client, playlist.id, metadata.length),
            resolve_item_count(self.api_client, playlist.id, metadata.video_count),
        ])
        logger.debug(f"Enriched playlist {playlist.id}", playlist_id=playlist.id,
                     duration_source=duration_source, item_count_source=item_count_source)
        return EnrichedPlaylist(
            playlist=playlist,
            metadata=metadata,
            total_duration=total_duration,
            duration_source=duration_source,
            item_count=item_count,
            item_count_source=item_count_source,
        )
