#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Visibility screen deciding whether a playlist belongs in the collection.
"""

from typing import Optional

from config import config
from models import PUBLIC_PRIVACY_STATUS, sub_resource
from services.paged_fetcher import PagedFetcher
from services.youtube_api import YouTubeAPIClient
from logging_config import StructuredLogger

logger = StructuredLogger(__name__)


def is_public_item(item: dict) -> bool:
    """True if a playlistItems resource reports a public privacy status."""
    return sub_resource(item, "status").get("privacyStatus") == PUBLIC_PRIVACY_STATUS


async def has_public_items(client, playlist_id: str, sample_size: Optional[int] = None) -> bool:
    """Check a small sample of a playlist for at least one public entry.

    Only the first page (``sample_size`` items, 5 by default) is inspected.
    This is a cheap include/exclude heuristic, not an exact count.

    Args:
        client: The API client.
        playlist_id: Playlist to probe.
        sample_size: Number of entries to inspect.

    Returns:
        bool: True if any sampled entry is public.
    """
    sample_size = sample_size or config.VISIBILITY_SAMPLE_SIZE
    fetcher = PagedFetcher(client, YouTubeAPIClient.PLAYLIST_ITEMS, page_size=sample_size,
                           part="status", playlistId=playlist_id)
    items, _ = await fetcher.fetch_page()
    visible = any(is_public_item(item) for item in items)
    if not visible:
        logger.info(f"Playlist {playlist_id} has no public entries in its first {sample_size}; excluding it.",
                    playlist_id=playlist_id)
    return visible
