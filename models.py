#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Dataclasses for playlist records and collection snapshots, plus the Pydantic
models returned by the HTTP API.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Tuple

import isodate
from pydantic import BaseModel, Field

from exceptions import MalformedDataError

SOURCE_DESCRIPTION = "description"
SOURCE_API = "api"

PUBLIC_PRIVACY_STATUS = "public"


def sub_resource(item: dict, key: str) -> dict:
    """Return the nested object ``item[key]``, or an empty dict when absent.

    Raises:
        MalformedDataError: If the value is present but not an object.
    """
    value = item.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise MalformedDataError(f"Expected '{key}' to be an object, got {type(value).__name__}")
    return value


@dataclass(frozen=True)
class RawPlaylist:
    """A playlist as returned by ``playlists.list``, before enrichment."""

    id: str
    title: str
    published_at: datetime
    description: str = ""
    thumbnail_url: str = ""
    item_count_hint: int = 0

    @classmethod
    def from_api_response(cls, item: dict) -> "RawPlaylist":
        """Create a RawPlaylist from a YouTube API playlist resource.

        Args:
            item: One entry of the ``items`` array of a playlists.list response

        Returns:
            RawPlaylist: The parsed playlist

        Raises:
            MalformedDataError: If the id is missing, a nested part is not an object
                or publishedAt cannot be parsed
        """
        if not isinstance(item, dict) or not item.get("id"):
            raise MalformedDataError(f"Playlist resource without id: {item!r:.200}")

        snippet = sub_resource(item, "snippet")
        content_details = sub_resource(item, "contentDetails")
        published_raw = snippet.get("publishedAt")
        try:
            published_at = isodate.parse_datetime(published_raw)
        except (isodate.ISO8601Error, TypeError, ValueError, AttributeError) as e:
            raise MalformedDataError(
                f"Playlist {item['id']} has an invalid publishedAt value: {published_raw!r}"
            ) from e
        if published_at.tzinfo is None:
            published_at = published_at.replace(tzinfo=timezone.utc)

        thumbnails = sub_resource(snippet, "thumbnails")
        thumbnail_url = ""
        for size in ("medium", "high", "default"):
            url = sub_resource(thumbnails, size).get("url")
            if url:
                thumbnail_url = url
                break

        try:
            item_count_hint = int(content_details.get("itemCount") or 0)
        except (TypeError, ValueError):
            item_count_hint = 0

        return cls(
            id=item["id"],
            title=snippet.get("title") or "",
            published_at=published_at,
            description=snippet.get("description") or "",
            thumbnail_url=thumbnail_url,
            item_count_hint=item_count_hint,
        )

    @property
    def url(self) -> str:
        """Get the public playlist URL."""
        return f"https://www.youtube.com/playlist?list={self.id}"

    @property
    def summary(self) -> str:
        """Get the first line of the description (card subtitle)."""
        return self.description.split("\n", 1)[0].strip()


@dataclass(frozen=True)
class ParsedMetadata:
    """Fields authored inside a playlist description.

    ``None`` means the label was not present; it is never replaced by zero or
    an empty value.
    """

    year: Optional[str] = None
    genres: Optional[Tuple[str, ...]] = None
    length: Optional[str] = None
    video_count: Optional[int] = None


@dataclass(frozen=True)
class EnrichedPlaylist:
    """A visible playlist with its parsed metadata and resolved totals."""

    playlist: RawPlaylist
    metadata: ParsedMetadata
    total_duration: str
    duration_source: str
    item_count: int
    item_count_source: str

    @property
    def id(self) -> str:
        return self.playlist.id

    @property
    def title(self) -> str:
        return self.playlist.title

    @property
    def published_at(self) -> datetime:
        return self.playlist.published_at

    @property
    def year(self) -> Optional[str]:
        return self.metadata.year

    @property
    def genres(self) -> Tuple[str, ...]:
        return self.metadata.genres or ()


def _year_sort_key(year: str):
    return (int(year), year) if year.isdigit() else (-1, year)


@dataclass(frozen=True)
class CollectionState:
    """Immutable snapshot of one successful refresh.

    Replaced wholesale by the orchestrator; readers never see a partially
    enriched collection.
    """

    playlists: Tuple[EnrichedPlaylist, ...] = ()
    years: Tuple[str, ...] = ()
    genres: Tuple[str, ...] = ()
    refreshed_at: Optional[datetime] = None

    @classmethod
    def empty(cls) -> "CollectionState":
        return cls()

    @classmethod
    def build(cls, playlists: Iterable[EnrichedPlaylist],
              refreshed_at: Optional[datetime] = None) -> "CollectionState":
        """Build a snapshot and derive the distinct year and genre sets.

        Years are sorted newest first (numerically), genres alphabetically.
        """
        playlists = tuple(playlists)
        years = {p.year for p in playlists if p.year is not None}
        genres = {g for p in playlists for g in p.genres}
        return cls(
            playlists=playlists,
            years=tuple(sorted(years, key=_year_sort_key, reverse=True)),
            genres=tuple(sorted(genres)),
            refreshed_at=refreshed_at or datetime.now(timezone.utc),
        )

    def __len__(self) -> int:
        return len(self.playlists)


# --- API response models ---

class PlaylistResponse(BaseModel):
    """Single enriched playlist as exposed to the presentation layer."""

    id: str
    title: str
    url: str
    summary: str = Field("", description="First line of the playlist description.")
    description: str = ""
    published_at: datetime
    thumbnail_url: str = ""
    year: Optional[str] = None
    genres: List[str] = Field(default_factory=list)
    total_duration: str
    duration_source: str = Field(..., description="'description' if authored, 'api' if computed.")
    item_count: int
    item_count_source: str = Field(..., description="'description' if authored, 'api' if computed.")

    @classmethod
    def from_enriched(cls, playlist: EnrichedPlaylist) -> "PlaylistResponse":
        raw = playlist.playlist
        return cls(
            id=raw.id,
            title=raw.title,
            url=raw.url,
            summary=raw.summary,
            description=raw.description,
            published_at=raw.published_at,
            thumbnail_url=raw.thumbnail_url,
            year=playlist.year,
            genres=list(playlist.genres),
            total_duration=playlist.total_duration,
            duration_source=playlist.duration_source,
            item_count=playlist.item_count,
            item_count_source=playlist.item_count_source,
        )


class CollectionResponse(BaseModel):
    """Sorted and filtered view of the collection plus loading/error state."""

    playlists: List[PlaylistResponse] = Field(default_factory=list)
    total: int = Field(..., description="Number of playlists in the full collection.")
    filtered: int = Field(..., description="Number of playlists in this view.")
    years: List[str] = Field(default_factory=list)
    genres: List[str] = Field(default_factory=list)
    loading: bool = False
    error: Optional[str] = None


class RefreshStatusResponse(BaseModel):
    """Current refresh status."""

    loading: bool
    error: Optional[str] = None
    refreshed_at: Optional[datetime] = None
    playlist_count: int = 0


class ErrorResponse(BaseModel):
    """Standard error response format."""

    detail: str
    error_code: Optional[str] = None
