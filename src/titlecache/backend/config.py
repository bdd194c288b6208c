"""Application configuration loaded from environment variables."""

from __future__ import annotations

import os
from typing import Any


class Config:
    """Default configuration for the Flask backend."""

    DEBUG = os.getenv("FLASK_DEBUG", "0") == "1"

    # CORS: origins allowed to call this API
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*").split(",")

    # YAML file with title cache overrides (store, cache, graph, ...)
    TITLECACHE_CONFIG = os.getenv("TITLECACHE_CONFIG", "")

    # Overrides applied on top of the file, mainly for tests
    TITLECACHE_OVERRIDES: dict[str, Any] = {}


class TestConfig(Config):
    """Configuration overrides for testing."""

    TESTING = True
    TITLECACHE_CONFIG = ""
    TITLECACHE_OVERRIDES: dict[str, Any] = {"cache": {"backend": "memory"}}
