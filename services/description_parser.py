#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Extraction of authored metadata from playlist descriptions.

The channel writes labelled lines into each playlist description::

    Erscheinungsjahr: 2021
    Genre: Action, Drama
    Videos: 12
    Länge: 5h 20m

``parse_description`` never raises; lines that do not fit a label are
ignored and the field stays absent.
"""

import re
from dataclasses import replace
from typing import Callable, NamedTuple, Optional, Pattern

from models import ParsedMetadata


def _split_genres(remainder: str):
    return tuple(g.strip() for g in remainder.split(",") if g.strip())


class MetadataField(NamedTuple):
    """One labelled description line: which attribute it fills and how."""

    attribute: str
    label: str
    pattern: Pattern
    convert: Callable[[str], object]
    render: Callable[[object], str]


def _field(attribute: str, label: str, value_regex: str, convert, render=str) -> MetadataField:
    pattern = re.compile(rf"^{re.escape(label)}:\s*{value_regex}", re.IGNORECASE)
    return MetadataField(attribute, label, pattern, convert, render)


# Order is irrelevant for parsing; it only fixes the order of formatted lines.
METADATA_FIELDS = (
    _field("year", "Erscheinungsjahr", r"(\d{4})(?!\d)", str),
    _field("genres", "Genre", r"(.*)$", _split_genres, ", ".join),
    _field("video_count", "Videos", r"(\d+)", int),
    _field("length", "Länge", r"(.+)$", str.strip),
)


def parse_description(text: Optional[str]) -> ParsedMetadata:
    """Parse the labelled lines of a playlist description.

    Each trimmed line is tested against every field; when a label occurs more
    than once the last matching line wins.

    Args:
        text: The raw description, may be None or empty.

    Returns:
        ParsedMetadata: Fields without a matching line are None.
    """
    values = {}
    if not text:
        return ParsedMetadata()

    for line in str(text).split("\n"):
        line = line.strip()
        if not line:
            continue
        for metadata_field in METADATA_FIELDS:
            match = metadata_field.pattern.match(line)
            if match:
                values[metadata_field.attribute] = metadata_field.convert(match.group(1))

    return replace(ParsedMetadata(), **values)


def format_description(metadata: ParsedMetadata) -> str:
    """Render the present fields of ``metadata`` as canonical label lines."""
    lines = []
    for metadata_field in METADATA_FIELDS:
        value = getattr(metadata, metadata_field.attribute)
        if value is None:
            continue
        lines.append(f"{metadata_field.label}: {metadata_field.render(value)}".rstrip())
    return "\n".join(lines)
