#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""Playlistindex: enriched, filterable index of a YouTube channel's playlists."""

__version__ = "1.0.0"
