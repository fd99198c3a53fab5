"""Integration test fixtures — Live backends seeded with the user records.

Expects backends to be running locally, e.g.::

    docker run -d -p 9200:9200 -e discovery.type=single-node -e xpack.security.enabled=false elasticsearch:8.13.0
    docker run -d -p 9201:9200 -e discovery.type=single-node -e DISABLE_SECURITY_PLUGIN=true opensearchproject/opensearch:2
    docker run -d -p 27017:27017 mongo:7

Tests for a backend are skipped when it does not answer.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any

import httpx
import pytest
from pymongo import MongoClient
from pymongo.errors import PyMongoError

from querybridge.adapters.base.adapter import StorageAdapter

USER_INDEX = "querybridge-users"

USER_MAPPING: dict[str, Any] = {
    "mappings": {
        "properties": {
            "name": {"type": "keyword"},
            "lastname": {"type": "keyword"},
            "midlename": {"type": "keyword"},
            "age": {"type": "integer"},
        }
    }
}


def _wait_for_service(url: str, timeout: float = 30.0) -> bool:
    """Block until *url* returns HTTP 200, or timeout."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        try:
            r = httpx.get(url, timeout=5)
            if r.status_code == 200:
                return True
        except httpx.HTTPError:
            pass
        time.sleep(2)
    return False


async def _create_user_index(host: str, index: str = USER_INDEX) -> None:
    async with httpx.AsyncClient(base_url=host, timeout=30) as client:
        await client.delete(f"/{index}", params={"ignore_unavailable": "true"})
        resp = await client.put(f"/{index}", json=USER_MAPPING)
        resp.raise_for_status()


async def _load_users(adapter: StorageAdapter, users: list[dict[str, Any]]) -> list[dict[str, Any]]:
    cleared = await adapter.remove_all()
    assert not cleared.is_error, cleared.error
    stored = []
    for user in users:
        result = await adapter.insert(user)
        stored.append(result.unwrap_record())
    return stored


@pytest.fixture
def load_users():
    """Empty an adapter's target and insert every user, returning the stored records."""
    return _load_users


@pytest.fixture
def user_index() -> str:
    return USER_INDEX


# ── Elasticsearch ───────────────────────────────────────────────


@pytest.fixture(scope="session")
def elasticsearch_ready() -> str:
    """Ensure Elasticsearch is running and the user index exists."""
    host = "http://localhost:9200"
    if not _wait_for_service(host):
        pytest.skip("Elasticsearch not available at localhost:9200")
    asyncio.run(_create_user_index(host))
    return host


# ── OpenSearch ──────────────────────────────────────────────────


@pytest.fixture(scope="session")
def opensearch_ready() -> str:
    """Ensure OpenSearch is running and the user index exists."""
    host = "http://localhost:9201"
    if not _wait_for_service(host):
        pytest.skip("OpenSearch not available at localhost:9201")
    asyncio.run(_create_user_index(host))
    return host


# ── MongoDB ─────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def mongodb_ready() -> str:
    """Ensure MongoDB answers a ping."""
    uri = "mongodb://localhost:27017"
    client: MongoClient = MongoClient(uri, serverSelectionTimeoutMS=2000)
    try:
        client.admin.command("ping")
    except PyMongoError:
        pytest.skip("MongoDB not available at localhost:27017")
    finally:
        client.close()
    return uri
