"""Tests for ``agency_spine.core.store.StoreClient``."""

from __future__ import annotations

import threading
import time
from unittest.mock import MagicMock

import pytest

from agency_spine.core.adapters import SQLiteAdapter, StatementResult
from agency_spine.core.errors import ConfigError, StoreConnectionError
from agency_spine.core.settings import StoreSettings
from agency_spine.core.store import StoreClient


def _sqlite_settings(tmp_path, **overrides) -> StoreSettings:
    return StoreSettings(backend="sqlite", path=str(tmp_path / "store.db"), **overrides)


class TestStoreClientLifecycle:
    def test_connect_run_close(self, tmp_path):
        store = StoreClient(_sqlite_settings(tmp_path))
        store.connect()
        assert store.is_open is True
        assert store.run("SELECT 1 AS one").rows == [{"one": 1}]
        store.close()
        assert store.is_open is False

    def test_context_manager(self, tmp_path):
        with StoreClient(_sqlite_settings(tmp_path)) as store:
            store.ping()
        assert store.is_open is False

    def test_close_is_idempotent(self, tmp_path):
        store = StoreClient(_sqlite_settings(tmp_path))
        store.connect()
        store.close()
        store.close()

    def test_database_name(self, tmp_path):
        with StoreClient(_sqlite_settings(tmp_path)) as store:
            assert store.database_name.endswith("store.db")
            assert store.dialect.name == "sqlite"

    def test_refuses_operations_after_close(self, tmp_path):
        store = StoreClient(_sqlite_settings(tmp_path))
        store.connect()
        store.close()
        with pytest.raises(StoreConnectionError, match="closed"):
            store.run("SELECT 1")
        with pytest.raises(StoreConnectionError):
            store.connect()


class TestOneClientPerProcess:
    def test_second_live_client_rejected(self, tmp_path):
        first = StoreClient(_sqlite_settings(tmp_path))
        with pytest.raises(ConfigError, match="already open"):
            StoreClient(_sqlite_settings(tmp_path))
        first.close()

    def test_new_client_after_close(self, tmp_path):
        StoreClient(_sqlite_settings(tmp_path)).close()
        second = StoreClient(_sqlite_settings(tmp_path))
        second.close()

    def test_failed_connect_releases_slot(self, tmp_path):
        adapter = MagicMock(spec=SQLiteAdapter)
        adapter.connect.side_effect = StoreConnectionError("unreachable")
        adapter.dialect.name = "sqlite"
        store = StoreClient(_sqlite_settings(tmp_path), adapter=adapter)

        with pytest.raises(StoreConnectionError, match="unreachable"):
            store.connect()

        # the slot is free again
        StoreClient(_sqlite_settings(tmp_path)).close()


class _SlowAdapter(SQLiteAdapter):
    """Holds every statement until released."""

    def __init__(self):
        super().__init__(":memory:")
        self.started = threading.Event()
        self.release = threading.Event()

    def run(self, sql, params=None):
        self.started.set()
        self.release.wait(timeout=5)
        return StatementResult(rows=[{"ok": 1}], rowcount=-1)


class TestGracefulClose:
    def test_close_waits_for_in_flight(self, tmp_path):
        adapter = _SlowAdapter()
        store = StoreClient(_sqlite_settings(tmp_path, drain_timeout=5.0), adapter=adapter)
        store.connect()

        results = []
        worker = threading.Thread(target=lambda: results.append(store.run("SELECT 1")))
        worker.start()
        assert adapter.started.wait(timeout=5)
        assert store.in_flight == 1

        closer = threading.Thread(target=store.close)
        closer.start()
        time.sleep(0.05)
        assert closer.is_alive()  # still draining

        with pytest.raises(StoreConnectionError):
            store.run("SELECT 2")

        adapter.release.set()
        worker.join(timeout=5)
        closer.join(timeout=5)
        assert results and results[0].rows == [{"ok": 1}]
        assert adapter.is_connected is False

    def test_close_gives_up_after_drain_timeout(self, tmp_path):
        adapter = _SlowAdapter()
        store = StoreClient(_sqlite_settings(tmp_path, drain_timeout=0.05), adapter=adapter)
        store.connect()

        worker = threading.Thread(target=lambda: store.run("SELECT 1"))
        worker.start()
        assert adapter.started.wait(timeout=5)

        started = time.monotonic()
        store.close()
        assert time.monotonic() - started < 2
        assert adapter.is_connected is False

        adapter.release.set()
        worker.join(timeout=5)
