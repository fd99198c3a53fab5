"""Shared test fixtures and configuration."""

from __future__ import annotations

from typing import Any

import pytest

from querybridge.config.settings import Settings


@pytest.fixture
def settings() -> Settings:
    """Create a test Settings instance without reading .env."""
    return Settings(
        _env_file=None,  # type: ignore[call-arg]
        default_backend="mongodb",
        backends={
            "mongodb": {
                "endpoints": ["mongodb://localhost:27017"],
                "database": "querybridge_tests",
                "collection": "user",
                "timeout": 2,
            },
            "elasticsearch": {
                "endpoints": "http://localhost:9200",
                "collection": "user",
                "enabled": False,
            },
        },
    )


@pytest.fixture
def users() -> list[dict[str, Any]]:
    """Six user records: two named John, two older than 60, one Claire."""
    return [
        {"name": "John", "lastname": "Snow", "midlename": "Stark", "age": 25},
        {"name": "Marie", "lastname": "Claire", "midlename": "Anne", "age": 75},
        {"name": "John", "lastname": "Travolta", "midlename": "Joseph", "age": 65},
        {"name": "Peter", "lastname": "Parker", "midlename": "Benjamin", "age": 18},
        {"name": "Anakin", "lastname": "Skywalker", "midlename": "Vader", "age": 41},
        {"name": "Leia", "lastname": "Organa", "midlename": "Amidala", "age": 33},
    ]
