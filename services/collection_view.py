#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Sorted and filtered projections of the playlist collection.

Everything here is a pure function of its arguments; the presentation layer
passes in the criteria the user selected.
"""

import unicodedata
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Sequence, Tuple

from config import config
from exceptions import InvalidInputError
from models import CollectionState, EnrichedPlaylist


class SortMode(str, Enum):
    NEWEST = "newest"
    OLDEST = "oldest"
    NAME_ASC = "name-asc"
    NAME_DESC = "name-desc"
    YEAR_ASC = "year-asc"
    YEAR_DESC = "year-desc"

    @classmethod
    def parse(cls, value) -> "SortMode":
        """Accept a SortMode or its string value.

        Raises:
            InvalidInputError: For unknown modes.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            allowed = ", ".join(m.value for m in cls)
            raise InvalidInputError(f"Unknown sort mode '{value}'. Allowed: {allowed}") from None


YEAR_SORT_MODES = (SortMode.YEAR_ASC, SortMode.YEAR_DESC)


def title_sort_key(title: str) -> Tuple[str, str, str]:
    """Collation key approximating a locale-aware comparison.

    Accents and case are ignored first ("Ärger" sorts beside "Arger"), then
    case-folded text, then the raw title break ties deterministically.
    """
    folded = title.casefold()
    decomposed = unicodedata.normalize("NFKD", folded)
    base = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return base, folded, title


def _year_value(playlist: EnrichedPlaylist) -> int:
    try:
        return int(playlist.year)
    except (TypeError, ValueError):
        return 0


def sort_playlists(playlists: Iterable[EnrichedPlaylist], mode=SortMode.NEWEST) -> List[EnrichedPlaylist]:
    """Return the playlists ordered by ``mode``.

    Year modes drop playlists without a year; the other modes keep every
    playlist. Sorting is stable.
    """
    mode = SortMode.parse(mode)
    playlists = list(playlists)

    if mode in YEAR_SORT_MODES:
        playlists = [p for p in playlists if p.year is not None]
        return sorted(playlists, key=_year_value, reverse=mode is SortMode.YEAR_DESC)
    if mode in (SortMode.NAME_ASC, SortMode.NAME_DESC):
        return sorted(playlists, key=lambda p: title_sort_key(p.title), reverse=mode is SortMode.NAME_DESC)
    return sorted(playlists, key=lambda p: p.published_at, reverse=mode is SortMode.NEWEST)


def _is_all(value: Optional[str]) -> bool:
    return value is None or value == "" or value == config.ALL_FILTER_VALUE


def matches_search(playlist: EnrichedPlaylist, search: Optional[str]) -> bool:
    return not search or search.casefold() in playlist.title.casefold()


def matches_year(playlist: EnrichedPlaylist, year: Optional[str]) -> bool:
    return _is_all(year) or playlist.year == year


def matches_genre(playlist: EnrichedPlaylist, genre: Optional[str]) -> bool:
    return _is_all(genre) or genre in playlist.genres


def filter_playlists(playlists: Iterable[EnrichedPlaylist], search: Optional[str] = None,
                     year: Optional[str] = None, genre: Optional[str] = None) -> List[EnrichedPlaylist]:
    """Keep playlists matching the title search AND the year AND the genre.

    ``None``, ``""`` and ``config.ALL_FILTER_VALUE`` ("alle") disable the
    year and genre filters; an empty search matches every title.
    """
    return [
        p for p in playlists
        if matches_search(p, search) and matches_year(p, year) and matches_genre(p, genre)
    ]


@dataclass(frozen=True)
class CollectionView:
    """What the presentation layer renders for one set of criteria."""

    playlists: Tuple[EnrichedPlaylist, ...]
    total: int
    years: Sequence[str]
    genres: Sequence[str]

    @property
    def filtered(self) -> int:
        return len(self.playlists)


def build_view(state: CollectionState, search: Optional[str] = None, sort=None,
               year: Optional[str] = None, genre: Optional[str] = None) -> CollectionView:
    """Sort then filter a collection snapshot."""
    sort = sort or config.DEFAULT_SORT_MODE
    ordered = sort_playlists(state.playlists, sort)
    visible = filter_playlists(ordered, search=search, year=year, genre=genre)
    return CollectionView(
        playlists=tuple(visible),
        total=len(state),
        years=state.years,
        genres=state.genres,
    )
