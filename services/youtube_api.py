#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
YouTube Data API v3 Client for Playlistindex.

Executes single read-only list calls against the YouTube API and maps every
failure to the ``UpstreamError`` hierarchy. Pagination lives in
``services.paged_fetcher``.
"""

import asyncio
import functools
import json
from typing import Any, Dict, Optional

import httplib2
from googleapiclient.discovery import Resource, build
from googleapiclient.errors import HttpError

from config import config
from exceptions import (APIConfigurationError, MalformedDataError,
                        UpstreamQuotaError, UpstreamTransportError)
from logging_config import StructuredLogger

logger = StructuredLogger(__name__)


class YouTubeAPIClient:
    """Client for the read endpoints of the YouTube Data API v3.

    Each call runs the blocking google-api-python-client request in the
    default executor, bounded by ``config.API_TIMEOUT_SECONDS``. At most
    ``config.API_CONCURRENCY`` requests are handed to the executor at once, so
    the timeout only runs while a worker thread is executing the request.
    Calls are never retried: any failure is reported once to the caller.
    """

    PLAYLISTS = "playlists"
    PLAYLIST_ITEMS = "playlistItems"
    VIDEOS = "videos"

    # API quota costs for the endpoint calls we make
    API_COST = {
        PLAYLISTS: 1,
        PLAYLIST_ITEMS: 1,
        VIDEOS: 1,
    }

    def __init__(self, api_key: Optional[str] = None, youtube: Optional[Resource] = None,
                 timeout: Optional[float] = None, concurrency: Optional[int] = None):
        """Initialize the YouTube API client.

        Args:
            api_key: YouTube Data API key. Falls back to ``config.API_KEY``.
            youtube: Pre-built API resource; skips discovery when given.
            timeout: Per-request timeout in seconds.
            concurrency: Maximum number of requests in flight.

        Raises:
            APIConfigurationError: If the API key is missing or the client cannot be built.
        """
        self.api_key = api_key if api_key is not None else config.API_KEY
        self.timeout = timeout if timeout is not None else config.API_TIMEOUT_SECONDS
        self.concurrency = max(1, concurrency if concurrency is not None else config.API_CONCURRENCY)
        self._semaphore = asyncio.Semaphore(self.concurrency)

        if youtube is not None:
            self.youtube = youtube
        else:
            if not self.api_key:
                logger.critical("YouTube API key is missing.", exc_info=False)
                raise APIConfigurationError("YouTube API Key is not configured.")
            try:
                # cache_discovery=False prevents issues with stale discovery documents
                self.youtube = build("youtube", "v3", developerKey=self.api_key, cache_discovery=False)
            except Exception as e:
                logger.critical(f"Error initializing YouTube API client build: {e}", error=str(e))
                raise APIConfigurationError(f"Could not initialize YouTube API service: {e}") from e

        self.api_calls_count = 0
        self.api_quota_used = 0
        self.quota_reached = False
        logger.info("YouTube API Client initialized.")

    def _new_http(self) -> httplib2.Http:
        # httplib2.Http is not thread-safe, so every executor call gets its own
        return httplib2.Http(timeout=self.timeout)

    async def execute(self, endpoint: str, **params: Any) -> Dict[str, Any]:
        """Execute one ``<endpoint>.list`` call and return its JSON body.

        Args:
            endpoint: One of ``playlists``, ``playlistItems``, ``videos``.
            **params: Query parameters passed to ``list()``.

        Returns:
            dict: The parsed response body.

        Raises:
            UpstreamQuotaError: The API answered with an error payload.
            UpstreamTransportError: Network failure or timeout.
            MalformedDataError: The response was not a JSON object with an ``items`` list.
        """
        request = getattr(self.youtube, endpoint)().list(**params)
        loop = asyncio.get_running_loop()
        call = functools.partial(request.execute, http=self._new_http(), num_retries=0)

        logger.debug(f"Calling {endpoint}.list", endpoint=endpoint,
                     page_token=params.get("pageToken") or None)
        try:
            async with self._semaphore:
                response = await asyncio.wait_for(loop.run_in_executor(None, call), timeout=self.timeout)
        except HttpError as http_err:
            raise self._quota_error_from_http_error(endpoint, http_err) from http_err
        except asyncio.TimeoutError as e:
            logger.error(f"{endpoint}.list timed out after {self.timeout}s", endpoint=endpoint, exc_info=False)
            raise UpstreamTransportError(
                f"YouTube API request {endpoint}.list timed out after {self.timeout} seconds"
            ) from e
        except (httplib2.HttpLib2Error, OSError) as e:
            logger.error(f"Transport error calling {endpoint}.list: {e}", endpoint=endpoint, error=str(e))
            raise UpstreamTransportError(
                f"Could not reach the YouTube API ({endpoint}.list): {e}", upstream_message=str(e)
            ) from e

        self.api_calls_count += 1
        self.api_quota_used += self.API_COST.get(endpoint, 1)

        if not isinstance(response, dict):
            raise MalformedDataError(f"{endpoint}.list returned {type(response).__name__}, expected an object")
        if "error" in response:
            raise self._quota_error_from_payload(endpoint, response["error"])
        if not isinstance(response.get("items", []), list):
            raise MalformedDataError(f"{endpoint}.list returned a non-list 'items' field")
        return response

    def _quota_error_from_http_error(self, endpoint: str, http_err: HttpError) -> UpstreamQuotaError:
        status_code = getattr(getattr(http_err, "resp", None), "status", None)
        try:
            status_code = int(status_code) if status_code is not None else None
        except (TypeError, ValueError):
            status_code = None

        payload: Any = None
        content = getattr(http_err, "content", b"") or b""
        try:
            payload = json.loads(content.decode("utf-8", errors="replace"))
        except ValueError:
            payload = None

        if isinstance(payload, dict) and isinstance(payload.get("error"), dict):
            return self._quota_error_from_payload(endpoint, payload["error"], status_code)

        message = str(http_err)
        logger.error(f"YouTube API error on {endpoint}.list: {message}", endpoint=endpoint,
                     status=status_code, exc_info=False)
        return UpstreamQuotaError(f"YouTube API error: {message}", upstream_message=message,
                                  status_code=status_code)

    def _quota_error_from_payload(self, endpoint: str, error: Any,
                                  status_code: Optional[int] = None) -> UpstreamQuotaError:
        if isinstance(error, dict):
            message = str(error.get("message") or "Unknown YouTube API error")
            status_code = status_code if status_code is not None else error.get("code")
            errors = error.get("errors") or []
            reason = errors[0].get("reason") if errors and isinstance(errors[0], dict) else None
        else:
            message, reason = str(error), None

        if reason in ("quotaExceeded", "dailyLimitExceeded", "rateLimitExceeded"):
            self.quota_reached = True
            logger.critical(f"YouTube API quota exceeded: {message}", endpoint=endpoint,
                            reason=reason, exc_info=False)
        else:
            logger.error(f"YouTube API error payload on {endpoint}.list: {message}", endpoint=endpoint,
                         status=status_code, reason=reason, exc_info=False)
        return UpstreamQuotaError(f"YouTube API error: {message}", upstream_message=message,
                                  status_code=status_code, reason=reason)

    def get_api_stats(self) -> Dict[str, Any]:
        """Returns current API usage statistics."""
        return {
            "api_calls_count": self.api_calls_count,
            "api_quota_used_estimated": self.api_quota_used,
            "quota_reached_flag": self.quota_reached,
        }
