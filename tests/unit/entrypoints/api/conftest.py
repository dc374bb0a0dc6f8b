"""Fixtures for API route tests."""

from __future__ import annotations

from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

from taskhive.adapters.audit import InMemoryAuditRepository
from taskhive.adapters.db import InMemoryStore, InMemoryTenancyRepository
from taskhive.config import Settings
from taskhive.entrypoints.api import create_app


@pytest.fixture
def api_store() -> InMemoryStore:
    """Return the store backing the test app."""
    return InMemoryStore()


@pytest.fixture
def api_audit() -> InMemoryAuditRepository:
    """Return the audit log of the test app."""
    return InMemoryAuditRepository()


def _client(
    store: InMemoryStore, audit: InMemoryAuditRepository, demo_mode: bool
) -> Iterator[TestClient]:
    settings = Settings(
        environment="test",
        store_backend="memory",
        bcrypt_rounds=10,
        demo_mode=demo_mode,
    )
    app = create_app(
        settings,
        repository=InMemoryTenancyRepository(store),
        audit_repository=audit,
    )
    with TestClient(app) as client:
        yield client


@pytest.fixture
def client(api_store: InMemoryStore, api_audit: InMemoryAuditRepository) -> Iterator[TestClient]:
    """Create test client over an empty store."""
    yield from _client(api_store, api_audit, demo_mode=False)


@pytest.fixture
def demo_client(
    api_store: InMemoryStore, api_audit: InMemoryAuditRepository
) -> Iterator[TestClient]:
    """Create test client over a store seeded with demo data."""
    yield from _client(api_store, api_audit, demo_mode=True)
