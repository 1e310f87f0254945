"""Tests for ``LocalTransport`` against a seeded sqlite store."""

from __future__ import annotations

import pytest

from agency_spine.client import LocalTransport, ResourceClient, Transport
from agency_spine.core.errors import ValidationError


@pytest.fixture
def local(access) -> LocalTransport:
    return LocalTransport(access)


class TestLocalTransport:
    def test_satisfies_protocol(self, local):
        assert isinstance(local, Transport)

    @pytest.mark.asyncio
    async def test_list(self, local):
        rows = await local.list("Properties", {"city": "Tacoma"})
        assert sorted(r["property_id"] for r in rows) == ["P003", "P004"]

    @pytest.mark.asyncio
    async def test_errors_propagate(self, local):
        with pytest.raises(ValidationError):
            await local.list("Nowhere")

    @pytest.mark.asyncio
    async def test_ping(self, local):
        await local.ping()


class TestClientOverStore:
    @pytest.mark.asyncio
    async def test_insert_then_refetch_sees_row(self, local):
        client = ResourceClient(local)
        before = await client.fetch_resource("Properties", {"status": "Available"})
        assert len(before.data) == 2

        await client.insert_record(
            "Properties",
            {"property_id": "P005", "address": "123 Oak", "price": 450000, "status": "Available"},
        )
        after = await client.fetch_resource("Properties", {"status": "Available"})

        assert len(after.data) == 3
        assert "123 Oak" in [r["address"] for r in after.data]

    @pytest.mark.asyncio
    async def test_update_then_refetch(self, local):
        client = ResourceClient(local)
        await client.fetch_resource("Properties", {"property_id": "P001"})
        outcome = await client.update_record("Properties", "P001", {"status": "Sold"}, id_field="property_id")
        assert outcome.affected_rows == 1

        result = await client.fetch_resource("Properties", {"property_id": "P001"})
        assert result.data[0]["status"] == "Sold"

    @pytest.mark.asyncio
    async def test_write_under_other_letter_case_is_seen(self, local):
        client = ResourceClient(local)
        before = await client.fetch_resource("properties")
        await client.insert_record("Properties", {"property_id": "P900", "address": "900 Bay St"})
        after = await client.fetch_resource("properties")

        assert len(before.data) == 4
        assert len(after.data) == 5
        assert after.is_stale is False
        assert "P900" in [r["property_id"] for r in after.data]

    @pytest.mark.asyncio
    async def test_unknown_resource_is_error_result(self, local):
        client = ResourceClient(local)
        result = await client.fetch_resource("Nowhere")
        assert result.is_error
        assert isinstance(result.error, ValidationError)

    @pytest.mark.asyncio
    async def test_health_follows_store(self, local, store):
        client = ResourceClient(local)
        assert await client.check_store_health() is True
        store.close()
        assert await client.check_store_health() is False
