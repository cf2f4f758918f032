#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Cursor pagination over one YouTube list endpoint.
"""

from typing import Any, AsyncIterator, Dict, List, Optional, Tuple

from config import YOUTUBE_MAX_PAGE_SIZE, config
from exceptions import MalformedDataError
from logging_config import StructuredLogger

logger = StructuredLogger(__name__)

_DEFAULT = object()


class PagedFetcher:
    """Lazy, restartable iteration over every item of a paginated endpoint.

    Each ``async for`` starts again from the first page. The first request
    carries an empty ``pageToken``; iteration ends when a response has no
    ``nextPageToken``. Any failure aborts the whole iteration.

    Example:
        fetcher = PagedFetcher(client, "playlistItems", part="status", playlistId=pid)
        async for item in fetcher:
            ...
    """

    def __init__(self, client, endpoint: str, page_size: Optional[int] = _DEFAULT, **params: Any):
        """
        Args:
            client: Object with an async ``execute(endpoint, **params)`` method.
            endpoint: Endpoint name, e.g. ``playlists``.
            page_size: ``maxResults`` per page, capped at 50. ``None`` omits the
                parameter (``videos.list`` with ``id`` does not accept it).
            **params: Remaining query parameters.
        """
        if page_size is _DEFAULT:
            page_size = config.BATCH_SIZE
        if page_size is not None:
            page_size = max(1, min(int(page_size), YOUTUBE_MAX_PAGE_SIZE))

        self.client = client
        self.endpoint = endpoint
        self.page_size = page_size
        self.params = params

    def _page_params(self, page_token: str) -> Dict[str, Any]:
        params = dict(self.params)
        if self.page_size is not None:
            params["maxResults"] = self.page_size
        params["pageToken"] = page_token
        return params

    async def fetch_page(self, page_token: str = "") -> Tuple[List[dict], Optional[str]]:
        """Fetch a single page.

        Returns:
            tuple: (items, next_page_token); the token is None on the last page.
        """
        resp = await self.client.execute(self.endpoint, **self._page_params(page_token))
        items = resp.get("items") or []
        if not isinstance(items, list):
            raise MalformedDataError(f"{self.endpoint}.list returned a non-list 'items' field")
        if not all(isinstance(item, dict) for item in items):
            raise MalformedDataError(f"{self.endpoint}.list returned an item that is not an object")
        return items, resp.get("nextPageToken") or None

    def __aiter__(self) -> AsyncIterator[dict]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[dict]:
        page_token = ""
        page_count = 0
        while True:
            page_count += 1
            items, next_page_token = await self.fetch_page(page_token)
            logger.debug(f"Fetched {self.endpoint} page {page_count} ({len(items)} items)",
                         endpoint=self.endpoint, page=page_count)
            for item in items:
                yield item
            if not next_page_token:
                break
            page_token = next_page_token

    async def fetch_all(self) -> List[dict]:
        """Collect every item of every page into a list."""
        return [item async for item in self]
