#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Two-tier resolution of a playlist's total duration and visible item count.

An authored value from the description always wins. Only when it is absent
are the playlist's items paginated to compute the value from the API.
"""

from typing import Awaitable, Callable, List, Optional, Tuple, TypeVar

import isodate

from models import SOURCE_API, SOURCE_DESCRIPTION, sub_resource
from services.paged_fetcher import PagedFetcher
from services.visibility import is_public_item
from services.youtube_api import YouTubeAPIClient
from config import config
from logging_config import StructuredLogger
from utils import chunked

logger = StructuredLogger(__name__)

T = TypeVar("T")


async def resolve_authored(authored: Optional[T],
                           compute: Callable[[], Awaitable[T]]) -> Tuple[T, str]:
    """Prefer the authored value, else await ``compute()``.

    Returns:
        tuple: (value, source) with source ``"description"`` or ``"api"``.
    """
    if authored is not None:
        return authored, SOURCE_DESCRIPTION
    return await compute(), SOURCE_API


# --- Duration ---

def parse_duration_seconds(duration_iso: Optional[str]) -> int:
    """Convert an ISO 8601 duration such as ``PT1H2M3S`` to whole seconds.

    Missing components count as zero. Missing or unparseable values are
    logged and count as zero.
    """
    if not duration_iso:
        return 0
    try:
        duration = isodate.parse_duration(duration_iso)
    except (isodate.ISO8601Error, TypeError, ValueError) as e:
        logger.warning(f"Could not parse video duration '{duration_iso}': {e}. Counting it as 0.")
        return 0
    # Year/month durations come back as isodate.Duration; videos never use them
    if isinstance(duration, isodate.Duration):
        duration = duration.tdelta
    return int(duration.total_seconds())


def format_total_duration(total_seconds: int) -> str:
    """Format seconds as ``"{h}h {m}m"`` (or ``"{m}m"`` under an hour).

    Minutes are floored and leftover seconds dropped.
    """
    hours, remainder = divmod(int(total_seconds), 3600)
    minutes = remainder // 60
    return f"{hours}h {minutes}m" if hours > 0 else f"{minutes}m"


async def compute_playlist_duration(client, playlist_id: str) -> str:
    """Sum the durations of every video in a playlist via the API."""
    items = await PagedFetcher(client, YouTubeAPIClient.PLAYLIST_ITEMS,
                               part="contentDetails", playlistId=playlist_id).fetch_all()
    video_ids: List[str] = [
        sub_resource(item, "contentDetails").get("videoId")
        for item in items
    ]
    video_ids = [vid for vid in video_ids if isinstance(vid, str) and vid]

    total_seconds = 0
    for batch in chunked(video_ids, config.BATCH_SIZE):
        videos = await PagedFetcher(client, YouTubeAPIClient.VIDEOS, page_size=None,
                                    part="contentDetails", id=",".join(batch)).fetch_all()
        for video in videos:
            total_seconds += parse_duration_seconds(sub_resource(video, "contentDetails").get("duration"))

    logger.debug(f"Computed duration of playlist {playlist_id}: {total_seconds}s over {len(video_ids)} videos",
                 playlist_id=playlist_id)
    return format_total_duration(total_seconds)


async def resolve_duration(client, playlist_id: str,
                           authored_length: Optional[str]) -> Tuple[str, str]:
    """Resolve a playlist's total duration.

    Returns:
        tuple: (duration string, source)
    """
    return await resolve_authored(authored_length,
                                  lambda: compute_playlist_duration(client, playlist_id))


# --- Item count ---

async def count_public_items(client, playlist_id: str) -> int:
    """Count the playlist entries whose privacy status is public."""
    count = 0
    async for item in PagedFetcher(client, YouTubeAPIClient.PLAYLIST_ITEMS,
                                   part="status", playlistId=playlist_id):
        if is_public_item(item):
            count += 1
    return count


async def resolve_item_count(client, playlist_id: str,
                             authored_count: Optional[int]) -> Tuple[int, str]:
    """Resolve the number of entries visible to viewers.

    This differs from the upstream ``itemCount``, which includes private and
    deleted videos.

    Returns:
        tuple: (count, source)
    """
    return await resolve_authored(authored_count,
                                  lambda: count_public_items(client, playlist_id))
