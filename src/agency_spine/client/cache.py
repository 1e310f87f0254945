"""
Client cache & mutation layer.

Per-resource read cache in front of a ``Transport``. Reads are served from
memory while fresh, revalidated in the background once stale and dropped
after a longer garbage window. Concurrent reads of the same key share one
protocol call. Every successful mutation invalidates all cached filter sets
of its resource.

Manifesto:
    - **Fresh is free:** a fresh entry is returned without touching the store
    - **Stale while revalidate:** a stale entry is returned at once and a
      background refresh is scheduled
    - **One call per key:** concurrent fetches of a key in flight coalesce
    - **Mutations win:** an invalidation bumps the resource generation, so a
      fetch that started before it can never mark its entry fresh
    - **Errors are visible:** a failed read caches nothing and comes back as
      ``status=error``; a failed mutation leaves the cache untouched and
      re-raises

Architecture:
    ::

        entry state machine (per cache key)

        Absent ──fetch──▶ Loading ──ok──▶ Fresh ──staleness──▶ Stale
          ▲                  │                                  │
          │                  └──failure──▶ Absent                ▼
          │                                               Refreshing ──ok──▶ Fresh
          └──────────── gc window / invalidation ◀── Fresh | Stale

Examples:
    >>> client = ResourceClient(LocalTransport(access))
    >>> result = await client.fetch_resource("Properties", {"status": "Available"})
    >>> result.status
    <QueryStatus.SUCCESS: 'success'>
    >>> await client.insert_record("Properties", {"address": "9 Elm"})

Guardrails:
    ❌ DON'T: Share one ResourceClient across event loops
    ✅ DO: Build one per loop; it is single-threaded asyncio state

    ❌ DON'T: Mutate through the transport directly
    ✅ DO: Use insert_record / update_record / delete_record so the cache
       is invalidated

Tags:
    cache, stale-while-revalidate, coalescing, invalidation, asyncio,
    agency-spine

Doc-Types:
    - API Reference
    - Technical Design
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from agency_spine.core.errors import AgencyError
from agency_spine.core.logging import get_logger
from agency_spine.resources.protocol import DEFAULT_ID_FIELD
from agency_spine.resources.types import Filters, MutationOutcome, Record, Scalar

from .keys import cache_key, resource_scope
from .transports import Transport

logger = get_logger(__name__)

DEFAULT_STALENESS = 300.0  # 5 minutes
DEFAULT_GC_TIME = 600.0  # 10 minutes


class QueryStatus(str, Enum):
    """Status of a ``fetch_resource`` call."""

    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


class EntryState(str, Enum):
    """Lifecycle state of one cache key."""

    ABSENT = "absent"
    LOADING = "loading"
    FRESH = "fresh"
    STALE = "stale"
    REFRESHING = "refreshing"


@dataclass(frozen=True)
class QueryResult:
    """What a caller sees for one (resource, filters) read."""

    data: list[Record] | None
    status: QueryStatus
    error: Exception | None = None
    is_stale: bool = False
    fetched_at: float | None = None

    @property
    def is_success(self) -> bool:
        return self.status is QueryStatus.SUCCESS

    @property
    def is_error(self) -> bool:
        return self.status is QueryStatus.ERROR


@dataclass
class _Entry:
    resource: str
    data: list[Record]
    fetched_at: float
    staleness: float
    last_access: float

    def is_stale(self, now: float) -> bool:
        return now - self.fetched_at >= self.staleness


@dataclass
class _Flight:
    resource: str
    task: asyncio.Task
    generation: int


class ResourceClient:
    """Cached, coalescing, invalidating front for a ``Transport``."""

    def __init__(
        self,
        transport: Transport,
        *,
        staleness: float = DEFAULT_STALENESS,
        gc_time: float = DEFAULT_GC_TIME,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._transport = transport
        self._staleness = staleness
        self._gc_time = gc_time
        self._clock = clock
        self._entries: dict[str, _Entry] = {}
        self._flights: dict[str, _Flight] = {}
        self._generations: dict[str, int] = {}
        self._tasks: set[asyncio.Task] = set()

    @property
    def transport(self) -> Transport:
        return self._transport

    # ── Introspection ────────────────────────────────────────────────────

    def entry_state(self, resource: str, filters: Filters | None = None) -> EntryState:
        """Current state of the (resource, filters) key."""
        key = cache_key(resource, filters)
        entry = self._entries.get(key)
        in_flight = key in self._flights
        if entry is None:
            return EntryState.LOADING if in_flight else EntryState.ABSENT
        if in_flight:
            return EntryState.REFRESHING
        return EntryState.STALE if entry.is_stale(self._clock()) else EntryState.FRESH

    def cached_keys(self) -> list[str]:
        return sorted(self._entries)

    # ── Reads ────────────────────────────────────────────────────────────

    async def fetch_resource(
        self,
        resource: str,
        filters: Filters | None = None,
        *,
        staleness: float | None = None,
        enabled: bool = True,
    ) -> QueryResult:
        """Read ``resource`` through the cache.

        Fresh entries come back without a protocol call. Stale entries come
        back at once with ``is_stale=True`` while a background refresh runs.
        Absent entries are fetched in the foreground. ``enabled=False``
        fetches nothing and leaves any cached data as it is.
        """
        key = cache_key(resource, filters)
        now = self._clock()
        self.collect_garbage(now)
        entry = self._entries.get(key)

        if not enabled:
            if entry is None:
                return QueryResult(data=None, status=QueryStatus.IDLE)
            return self._result(entry, now)

        window = self._staleness if staleness is None else staleness
        if entry is not None:
            entry.last_access = now
            entry.staleness = window
            if not entry.is_stale(now):
                logger.debug("cache_hit", resource=resource, key=key)
                return self._result(entry, now)
            logger.debug("cache_stale", resource=resource, key=key)
            self._start_flight(key, resource, filters, window)
            return self._result(entry, now)

        logger.debug("cache_miss", resource=resource, key=key)
        flight = self._start_flight(key, resource, filters, window)
        try:
            data, fetched_at = await asyncio.shield(flight.task)
        except AgencyError as exc:
            return QueryResult(data=None, status=QueryStatus.ERROR, error=exc)
        return QueryResult(data=data, status=QueryStatus.SUCCESS, fetched_at=fetched_at)

    def _result(self, entry: _Entry, now: float) -> QueryResult:
        return QueryResult(
            data=entry.data,
            status=QueryStatus.SUCCESS,
            is_stale=entry.is_stale(now),
            fetched_at=entry.fetched_at,
        )

    def _start_flight(
        self,
        key: str,
        resource: str,
        filters: Filters | None,
        window: float,
    ) -> _Flight:
        flight = self._flights.get(key)
        if flight is not None:
            logger.debug("cache_coalesced", resource=resource, key=key)
            return flight

        scope = resource_scope(resource)
        generation = self._generations.get(scope, 0)
        task = asyncio.create_task(self._load(key, resource, dict(filters or {}), window, generation))
        flight = _Flight(resource=scope, task=task, generation=generation)
        self._flights[key] = flight
        self._tasks.add(task)
        task.add_done_callback(lambda t: self._finish_flight(key, t))
        return flight

    def _finish_flight(self, key: str, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        flight = self._flights.get(key)
        if flight is not None and flight.task is task:
            del self._flights[key]
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.warning("cache_fetch_failed", key=key, error=str(exc), error_type=type(exc).__name__)

    async def _load(
        self,
        key: str,
        resource: str,
        filters: dict[str, Any],
        window: float,
        generation: int,
    ) -> tuple[list[Record], float]:
        data = await self._transport.list(resource, filters)
        now = self._clock()

        scope = resource_scope(resource)
        if self._generations.get(scope, 0) != generation:
            # Invalidated while in flight; the result must not be cached.
            logger.debug("cache_fetch_superseded", resource=resource, key=key)
            return data, now

        entry = self._entries.get(key)
        if entry is None:
            self._entries[key] = _Entry(
                resource=scope,
                data=data,
                fetched_at=now,
                staleness=window,
                last_access=now,
            )
        else:
            entry.data = data
            entry.fetched_at = now
        logger.debug("cache_stored", resource=resource, key=key, rows=len(data))
        return data, now

    # ── Invalidation / eviction ──────────────────────────────────────────

    def invalidate(self, resource: str) -> int:
        """Drop every entry of ``resource``, whatever its filters or letter case.

        In-flight fetches of the resource are detached so their results are
        discarded. Returns the number of entries removed.
        """
        scope = resource_scope(resource)
        self._generations[scope] = self._generations.get(scope, 0) + 1
        stale_keys = [k for k, e in self._entries.items() if e.resource == scope]
        for k in stale_keys:
            del self._entries[k]
        for k in [k for k, f in self._flights.items() if f.resource == scope]:
            del self._flights[k]
        logger.info("cache_invalidated", resource=resource, entries=len(stale_keys))
        return len(stale_keys)

    def collect_garbage(self, now: float | None = None) -> int:
        """Evict entries not accessed within the garbage window."""
        now = self._clock() if now is None else now
        expired = [k for k, e in self._entries.items() if now - e.last_access >= self._gc_time]
        for k in expired:
            del self._entries[k]
        if expired:
            logger.debug("cache_evicted", entries=len(expired))
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()
        self._flights.clear()

    # ── Mutations ────────────────────────────────────────────────────────

    async def insert_record(self, resource: str, record: Record) -> MutationOutcome:
        outcome = await self._transport.insert(resource, record)
        self.invalidate(resource)
        return outcome

    async def update_record(
        self,
        resource: str,
        id: Scalar,
        record: Record,
        id_field: str = DEFAULT_ID_FIELD,
    ) -> MutationOutcome:
        outcome = await self._transport.update(resource, id, record, id_field)
        self.invalidate(resource)
        return outcome

    async def delete_record(
        self,
        resource: str,
        id: Scalar,
        id_field: str = DEFAULT_ID_FIELD,
    ) -> MutationOutcome:
        outcome = await self._transport.delete(resource, id, id_field)
        self.invalidate(resource)
        return outcome

    # ── Health ───────────────────────────────────────────────────────────

    async def check_store_health(self) -> bool:
        """Round trip to the store; ``False`` on any failure, never raises."""
        try:
            await self._transport.ping()
        except Exception as exc:  # noqa: BLE001
            logger.warning("store_health_failed", error=str(exc), error_type=type(exc).__name__)
            return False
        return True

    # ── Lifecycle ────────────────────────────────────────────────────────

    async def aclose(self) -> None:
        """Cancel background refreshes and close the transport."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self.clear()
        await self._transport.aclose()

    async def __aenter__(self) -> ResourceClient:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()


__all__ = [
    "DEFAULT_GC_TIME",
    "DEFAULT_STALENESS",
    "EntryState",
    "QueryResult",
    "QueryStatus",
    "ResourceClient",
]
