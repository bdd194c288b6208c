"""Fixtures for backend tests."""

from __future__ import annotations

import os

import pytest

from titlecache.backend.app import create_app
from titlecache.backend.config import TestConfig

TITLES_TRIG = os.path.join(os.path.dirname(__file__), os.pardir, "test_data", "titles.trig")


class RdflibTestConfig(TestConfig):
    """Memory cache over the TriG fixture file."""

    TITLECACHE_OVERRIDES = {
        "cache": {"backend": "memory"},
        "store": {"backend": "rdflib", "rdflib": {"paths": [TITLES_TRIG]}},
    }


@pytest.fixture()
def app():
    """Create a test Flask application."""
    application = create_app(RdflibTestConfig)
    yield application


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()
