"""Transports carry client calls to the Resource Access Protocol.

- ``LocalTransport`` wraps an in-process ``ResourceAccess``; the blocking
  store calls run in worker threads via ``asyncio.to_thread`` so the event
  loop is never blocked.
- ``HttpTransport`` talks to the boundary API with an ``httpx.AsyncClient``
  and turns problem responses back into the typed error hierarchy.
"""

from __future__ import annotations

import asyncio
from typing import Any, Protocol, runtime_checkable
from urllib.parse import quote

import httpx
from pydantic_core import to_jsonable_python

from agency_spine.core.errors import StoreConnectionError, StoreError, ValidationError
from agency_spine.resources.protocol import DEFAULT_ID_FIELD, ResourceAccess
from agency_spine.resources.types import Filters, MutationOutcome, Record, Scalar


@runtime_checkable
class Transport(Protocol):
    """Async view of the Resource Access Protocol used by ``ResourceClient``."""

    async def list(self, resource: str, filters: Filters | None = None) -> list[Record]: ...

    async def insert(self, resource: str, record: Record) -> MutationOutcome: ...

    async def update(
        self, resource: str, id: Scalar, record: Record, id_field: str = DEFAULT_ID_FIELD
    ) -> MutationOutcome: ...

    async def delete(
        self, resource: str, id: Scalar, id_field: str = DEFAULT_ID_FIELD
    ) -> MutationOutcome: ...

    async def ping(self) -> None: ...

    async def aclose(self) -> None: ...


class LocalTransport:
    """In-process transport over a ``ResourceAccess``."""

    def __init__(self, access: ResourceAccess):
        self._access = access

    async def list(self, resource: str, filters: Filters | None = None) -> list[Record]:
        return await asyncio.to_thread(self._access.list, resource, dict(filters or {}))

    async def insert(self, resource: str, record: Record) -> MutationOutcome:
        return await asyncio.to_thread(self._access.insert, resource, record)

    async def update(
        self, resource: str, id: Scalar, record: Record, id_field: str = DEFAULT_ID_FIELD
    ) -> MutationOutcome:
        return await asyncio.to_thread(self._access.update, resource, id, record, id_field)

    async def delete(
        self, resource: str, id: Scalar, id_field: str = DEFAULT_ID_FIELD
    ) -> MutationOutcome:
        return await asyncio.to_thread(self._access.delete, resource, id, id_field)

    async def ping(self) -> None:
        await asyncio.to_thread(self._access.store.ping)

    async def aclose(self) -> None:
        """The store client is owned by whoever built it; nothing to release."""


def _segment(value: Scalar) -> str:
    """Percent-encode one path segment, including ``/`` ``?`` and ``#``."""
    return quote(str(value), safe="")


def _query_value(field: str, value: Any) -> str:
    """Filter value as query-string text; booleans use JSON spelling."""
    if value is None:
        raise ValidationError(
            "Null filter values are not supported over HTTP",
            field=field,
        )
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _raise_for_problem(response: httpx.Response) -> None:
    """Map an error response from the boundary API onto the error hierarchy."""
    if response.is_success:
        return

    try:
        body = response.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}
    detail = body.get("detail") or body.get("error") or response.text
    context = {"status": response.status_code, "url": str(response.request.url)}

    if response.status_code in (400, 404, 422):
        raise ValidationError(str(detail), context=context)
    if response.status_code == 503:
        raise StoreConnectionError(str(detail), context=context)
    raise StoreError(str(detail), context=context)


class HttpTransport:
    """Remote transport against the boundary API (``/api/tables/...``)."""

    def __init__(
        self,
        base_url: str = "http://localhost:3001",
        *,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ):
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.TransportError as e:
            raise StoreConnectionError(f"API unreachable: {e}", cause=e) from e
        _raise_for_problem(response)
        return response

    @staticmethod
    def _outcome(body: dict[str, Any]) -> MutationOutcome:
        return MutationOutcome(
            success=bool(body.get("success")),
            message=str(body.get("message", "")),
            affected_rows=int(body.get("affected_rows", 0)),
        )

    async def list(self, resource: str, filters: Filters | None = None) -> list[Record]:
        params = {k: _query_value(k, v) for k, v in to_jsonable_python(dict(filters or {})).items()}
        response = await self._request("GET", f"/api/tables/{_segment(resource)}", params=params)
        return response.json()

    async def insert(self, resource: str, record: Record) -> MutationOutcome:
        response = await self._request(
            "POST", f"/api/tables/{_segment(resource)}", json=to_jsonable_python(record)
        )
        return self._outcome(response.json())

    async def update(
        self, resource: str, id: Scalar, record: Record, id_field: str = DEFAULT_ID_FIELD
    ) -> MutationOutcome:
        response = await self._request(
            "PUT",
            f"/api/tables/{_segment(resource)}/{_segment(id)}",
            params={"id_field": id_field},
            json=to_jsonable_python(record),
        )
        return self._outcome(response.json())

    async def delete(
        self, resource: str, id: Scalar, id_field: str = DEFAULT_ID_FIELD
    ) -> MutationOutcome:
        response = await self._request(
            "DELETE", f"/api/tables/{_segment(resource)}/{_segment(id)}", params={"id_field": id_field}
        )
        return self._outcome(response.json())

    async def execute(self, query: str, params: Any = None) -> list[Record]:
        """``POST /api/query``; not part of the cached surface."""
        response = await self._request(
            "POST", "/api/query", json={"query": query, "params": to_jsonable_python(params)}
        )
        return response.json()

    async def ping(self) -> None:
        response = await self._request("GET", "/api/health")
        if response.json().get("status") != "connected":
            raise StoreConnectionError("Store reported disconnected")

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


__all__ = [
    "HttpTransport",
    "LocalTransport",
    "Transport",
]
