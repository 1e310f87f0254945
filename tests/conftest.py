"""
Shared pytest fixtures for agency-spine tests.

This module provides:
- A seeded sqlite store (Agents / Properties) in a temporary directory
- ``ResourceAccess`` bound to that store
- Store-guard cleanup so one failing test cannot block the next

Usage:
    def test_something(access):
        rows = access.list("Properties", {"status": "Available"})
"""

from __future__ import annotations

from collections.abc import Generator
from pathlib import Path

import pytest

from agency_spine.core.settings import StoreSettings
from agency_spine.core.store import StoreClient, reset_store_guard
from agency_spine.resources.protocol import ResourceAccess

# =============================================================================
# Schema & seed data
# =============================================================================

SCHEMA = [
    """
    CREATE TABLE Agents (
        agent_id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        email TEXT,
        phone TEXT
    )
    """,
    """
    CREATE TABLE Properties (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        property_id TEXT UNIQUE,
        address TEXT NOT NULL,
        city TEXT,
        price NUMERIC,
        bedrooms INTEGER,
        status TEXT DEFAULT 'Available',
        agent_id TEXT REFERENCES Agents(agent_id)
    )
    """,
]

AGENTS = [
    ("A01", "Maria Lopez", "maria@agency.test", "555-0101"),
    ("A02", "James Chen", "james@agency.test", "555-0102"),
]

PROPERTIES = [
    ("P001", "12 Harbor View", "Seattle", 725000, 3, "Available", "A01"),
    ("P002", "48 Pine St", "Seattle", 515000, 2, "Pending", "A02"),
    ("P003", "301 Lake Rd", "Tacoma", 389000, 3, "Available", "A02"),
    ("P004", "9 Elm Ct", "Tacoma", 612500, 4, "Sold", "A01"),
]


def seed(store: StoreClient) -> None:
    """Create and fill the Agents / Properties tables."""
    for ddl in SCHEMA:
        store.run(ddl)
    for agent_id, name, email, phone in AGENTS:
        store.run(
            "INSERT INTO Agents (agent_id, name, email, phone) VALUES (:a, :n, :e, :p)",
            {"a": agent_id, "n": name, "e": email, "p": phone},
        )
    for pid, address, city, price, bedrooms, status, agent_id in PROPERTIES:
        store.run(
            "INSERT INTO Properties (property_id, address, city, price, bedrooms, status, agent_id) "
            "VALUES (:pid, :address, :city, :price, :bedrooms, :status, :agent)",
            {
                "pid": pid,
                "address": address,
                "city": city,
                "price": price,
                "bedrooms": bedrooms,
                "status": status,
                "agent": agent_id,
            },
        )


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def _release_store_guard() -> Generator[None, None, None]:
    """Forget any store client a test left open."""
    yield
    reset_store_guard()


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "agency.db"


@pytest.fixture
def store_settings(db_path: Path) -> StoreSettings:
    return StoreSettings(backend="sqlite", path=str(db_path), drain_timeout=1.0)


@pytest.fixture
def store(store_settings: StoreSettings) -> Generator[StoreClient, None, None]:
    """Connected, seeded sqlite store."""
    client = StoreClient(store_settings)
    client.connect()
    seed(client)
    yield client
    client.close()


@pytest.fixture
def access(store: StoreClient) -> ResourceAccess:
    return ResourceAccess(store)


@pytest.fixture
def seeded_db(store_settings: StoreSettings, db_path: Path) -> Path:
    """Seeded sqlite file with no store left open (for code that opens its own)."""
    with StoreClient(store_settings) as client:
        seed(client)
    return db_path
