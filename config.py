#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Configuration module for Playlistindex.

Defines configuration parameters and loads values from environment variables.
"""

import os
import logging
from typing import Any, Dict

# Initialize a basic logger for config loading issues
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Upstream page size limit for every list endpoint we use
YOUTUBE_MAX_PAGE_SIZE = 50

# Default configuration values
_CONFIG_DEFAULTS: Dict[str, Any] = {
    # API Configuration
    "API_KEY": "",
    "API_KEY_ENV_VAR": "YOUTUBE_API_KEY",
    "CHANNEL_ID": "UCA1N1Jl-o8gnEenkvMdUrmw",

    # YouTube API Settings
    "BATCH_SIZE": YOUTUBE_MAX_PAGE_SIZE,  # Page size and video id batch size
    "VISIBILITY_SAMPLE_SIZE": 5,  # Items inspected by the visibility screen
    "API_TIMEOUT_SECONDS": 20.0,  # Timeout for a single API request
    "API_CONCURRENCY": 4,  # Max API requests handed to the executor at once

    # Collection view
    "ALL_FILTER_VALUE": "alle",  # Year/genre filter value meaning "no filter"
    "DEFAULT_SORT_MODE": "newest",

    # User-facing message for any failed refresh
    "QUOTA_EXHAUSTED_MESSAGE": (
        "Das Tageslimit der YouTube API wurde erreicht. "
        "Bitte versuche es morgen erneut."
    ),

    # Refresh behaviour
    "REFRESH_ON_STARTUP": True,

    # Logging
    "LOG_FILE": "playlistindex.log",

    # CORS
    "ALLOWED_ORIGINS": [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:8000",
    ],
}


class Config:
    """Configuration class that loads values from environment variables."""

    def __init__(self, load_from_env=True):
        """Initialize configuration with default values and optionally from environment.

        Args:
            load_from_env: Whether to load values from environment variables
        """
        for key, value in _CONFIG_DEFAULTS.items():
            # Copy mutable defaults so instances never share them
            setattr(self, key, list(value) if isinstance(value, list) else value)

        if load_from_env:
            self.load_from_env()

    def load_from_env(self):
        """Load configuration values from environment variables."""
        self.API_KEY = os.environ.get(self.API_KEY_ENV_VAR, self.API_KEY)
        self.CHANNEL_ID = os.environ.get("CHANNEL_ID", self.CHANNEL_ID).strip()
        self.LOG_FILE = os.environ.get("LOG_FILE", self.LOG_FILE)
        self.ALL_FILTER_VALUE = os.environ.get("ALL_FILTER_VALUE", self.ALL_FILTER_VALUE)
        self.QUOTA_EXHAUSTED_MESSAGE = os.environ.get("QUOTA_EXHAUSTED_MESSAGE", self.QUOTA_EXHAUSTED_MESSAGE)

        env_origins = os.environ.get("ALLOWED_ORIGINS", "")
        if env_origins:
            origins = [origin.strip() for origin in env_origins.split(",")]
            self.ALLOWED_ORIGINS = [o for o in origins if o]
            logger.info(f"CORS origins set from environment: {self.ALLOWED_ORIGINS}")

        self._load_int_from_env("BATCH_SIZE")
        self._load_int_from_env("VISIBILITY_SAMPLE_SIZE")
        self._load_int_from_env("API_CONCURRENCY")
        self._load_float_from_env("API_TIMEOUT_SECONDS")
        self._load_bool_from_env("REFRESH_ON_STARTUP")

        if not 1 <= self.BATCH_SIZE <= YOUTUBE_MAX_PAGE_SIZE:
            logger.warning(f"BATCH_SIZE {self.BATCH_SIZE} outside 1..{YOUTUBE_MAX_PAGE_SIZE}, clamping.")
            self.BATCH_SIZE = max(1, min(self.BATCH_SIZE, YOUTUBE_MAX_PAGE_SIZE))

        if self.API_CONCURRENCY < 1:
            logger.warning(f"API_CONCURRENCY {self.API_CONCURRENCY} is below 1, using 1.")
            self.API_CONCURRENCY = 1

        if not self.API_KEY:
            logger.warning(f"API key not found in env var {self.API_KEY_ENV_VAR}.")

    def _load_int_from_env(self, key):
        """Load an integer value from environment variable.

        Args:
            key: The configuration key to load

        Returns:
            bool: True if the value was loaded, False otherwise
        """
        env_value = os.environ.get(key)
        if env_value is not None:
            try:
                setattr(self, key, int(env_value))
                return True
            except ValueError:
                logger.warning(f"Invalid integer value for {key}: {env_value}")
        return False

    def _load_float_from_env(self, key):
        """Load a float value from environment variable."""
        env_value = os.environ.get(key)
        if env_value is not None:
            try:
                setattr(self, key, float(env_value))
                return True
            except ValueError:
                logger.warning(f"Invalid float value for {key}: {env_value}")
        return False

    def _load_bool_from_env(self, key):
        """Load a boolean flag ("true", "1", "yes", "on") from environment variable."""
        env_value = os.environ.get(key)
        if env_value is not None:
            setattr(self, key, env_value.strip().lower() in ("true", "1", "yes", "y", "on"))
            return True
        return False


# Create a single instance of Config to be imported by other modules
config = Config(load_from_env=True)
