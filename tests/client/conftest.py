"""Fixtures for the client cache layer: a scripted transport and a manual clock."""

from __future__ import annotations

import asyncio

import pytest

from agency_spine.client import ResourceClient
from agency_spine.core.errors import StoreConnectionError
from agency_spine.resources.types import MutationOutcome


class ManualClock:
    """Monotonic clock the test moves by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ScriptedTransport:
    """In-memory transport that records every call.

    ``gate`` holds list calls until set; ``fail_list`` / ``fail_mutation``
    make the next calls raise.
    """

    def __init__(self):
        self.tables: dict[str, list[dict]] = {
            "Properties": [
                {"property_id": "P001", "status": "Available", "city": "Seattle"},
                {"property_id": "P002", "status": "Pending", "city": "Seattle"},
            ],
            "Agents": [{"agent_id": "A01", "name": "Maria Lopez"}],
        }
        self.calls: list[tuple] = []
        self.gate: asyncio.Event | None = None
        self.fail_list: Exception | None = None
        self.fail_mutation: Exception | None = None
        self.healthy = True
        self.closed = False

    def list_calls(self, resource: str | None = None) -> list[tuple]:
        return [c for c in self.calls if c[0] == "list" and (resource is None or c[1] == resource)]

    async def list(self, resource, filters=None):
        self.calls.append(("list", resource, dict(filters or {})))
        if self.gate is not None:
            await self.gate.wait()
        if self.fail_list is not None:
            raise self.fail_list
        return [
            dict(row)
            for row in self.tables.get(resource, [])
            if all(row.get(k) == v for k, v in (filters or {}).items())
        ]

    async def insert(self, resource, record):
        self.calls.append(("insert", resource, dict(record)))
        if self.fail_mutation is not None:
            raise self.fail_mutation
        self.tables.setdefault(resource, []).append(dict(record))
        return MutationOutcome(True, f"Record inserted into {resource}", 1)

    async def update(self, resource, id, record, id_field="id"):
        self.calls.append(("update", resource, id, dict(record), id_field))
        if self.fail_mutation is not None:
            raise self.fail_mutation
        hits = [r for r in self.tables.get(resource, []) if r.get(id_field) == id]
        for row in hits:
            row.update(record)
        return MutationOutcome(True, f"Record updated in {resource}", len(hits))

    async def delete(self, resource, id, id_field="id"):
        self.calls.append(("delete", resource, id, id_field))
        if self.fail_mutation is not None:
            raise self.fail_mutation
        rows = self.tables.get(resource, [])
        kept = [r for r in rows if r.get(id_field) != id]
        self.tables[resource] = kept
        if len(kept) == len(rows):
            return MutationOutcome(False, "No record found", 0)
        return MutationOutcome(True, "Record deleted successfully", len(rows) - len(kept))

    async def ping(self):
        if not self.healthy:
            raise StoreConnectionError("store unreachable")

    async def aclose(self):
        self.closed = True


async def _settle(rounds: int = 5) -> None:
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def transport() -> ScriptedTransport:
    return ScriptedTransport()


@pytest.fixture
def settle():
    """Coroutine that lets scheduled background tasks run."""
    return _settle


@pytest.fixture
def client(transport, clock) -> ResourceClient:
    return ResourceClient(transport, clock=clock)
