# =============================================================================
# tests/conftest.py
# Pytest Configuration and Fixtures
# =============================================================================

import pytest
from datetime import date, timedelta
from typing import Any, Dict, List, Optional, Tuple
from unittest.mock import MagicMock

from tracker_core.data.supabase_client import InMemoryRemoteStore
from tracker_core.offline import (
    ConnectivityMonitor,
    InMemoryKeyValueStore,
    ManualConnectivitySource,
    OfflineStorage,
    SyncEngine,
    TrackerDataService,
)


# =============================================================================
# FAKE COLLABORATORS
# =============================================================================

class RecordingRemoteStore(InMemoryRemoteStore):
    """
    InMemoryRemoteStore that records every write and can be told to fail.

    fail_on: 1-based write numbers that raise (counted across all writes)
    """

    def __init__(self, fail_on: Optional[List[int]] = None):
        super().__init__()
        self.calls: List[Tuple[str, str, Any]] = []
        self.fail_on = set(fail_on or [])
        self.query_error: Optional[Exception] = None

    def _record(self, verb: str, collection: str, payload: Any) -> None:
        self.calls.append((verb, collection, payload))
        if len(self.calls) in self.fail_on:
            raise ConnectionError(f"remote unavailable on write #{len(self.calls)}")

    def insert(self, collection, record):
        self._record("insert", collection, record)
        return super().insert(collection, record)

    def update(self, collection, identifier, patch):
        self._record("update", collection, patch)
        return super().update(collection, identifier, patch)

    def delete(self, collection, identifier):
        self._record("delete", collection, {"id": identifier})
        return super().delete(collection, identifier)

    def query(self, collection, filters=None, order_by=None, ascending=True):
        if self.query_error is not None:
            raise self.query_error
        return super().query(collection, filters, order_by, ascending)


class FailingKeyValueStore:
    """
    KeyValueStore whose writes fail (quota exceeded and the like).

    fail_keys: keys whose writes fail; None means every key
    """

    def __init__(self, fail_keys: Optional[List[str]] = None):
        self.data: Dict[str, str] = {}
        self.fail_keys = set(fail_keys) if fail_keys is not None else None

    def _check(self, key):
        if self.fail_keys is None or key in self.fail_keys:
            raise OSError("quota exceeded")

    def get(self, key):
        return self.data.get(key)

    def set(self, key, value):
        self._check(key)
        self.data[key] = value

    def remove(self, key):
        self._check(key)
        self.data.pop(key, None)


# =============================================================================
# OFFLINE STACK FIXTURES
# =============================================================================

@pytest.fixture
def kv_store():
    return InMemoryKeyValueStore()


@pytest.fixture
def failing_store():
    return FailingKeyValueStore()


@pytest.fixture
def queue_failing_store():
    """Store where only the pending-sync queue cannot be written."""
    return FailingKeyValueStore(fail_keys=["pending_sync"])


@pytest.fixture
def connectivity():
    """Connectivity source that starts offline."""
    return ManualConnectivitySource(online=False)


@pytest.fixture
def monitor(connectivity):
    monitor = ConnectivityMonitor(connectivity)
    monitor.initialize()
    yield monitor
    monitor.shutdown()


@pytest.fixture
def storage(kv_store, monitor):
    return OfflineStorage(kv_store, monitor)


@pytest.fixture
def remote():
    return RecordingRemoteStore()


@pytest.fixture
def engine(storage, remote, monitor):
    engine = SyncEngine(storage, remote, monitor)
    engine.initialize()
    return engine


@pytest.fixture
def service(storage, remote, monitor):
    service = TrackerDataService(storage, remote, monitor)
    service.initialize()
    service.sign_in("user-1")
    return service


# =============================================================================
# SAMPLE DATA FIXTURES
# =============================================================================

@pytest.fixture
def today():
    return date(2024, 3, 10)


@pytest.fixture
def prayer_week(today):
    """Five prayers on each of the 3 days before today, nothing today."""
    records = []
    for offset in (3, 2, 1):
        day = (today - timedelta(days=offset)).isoformat()
        for name in ("Fajr", "Dhuhr", "Asr", "Maghrib", "Isha"):
            records.append({"prayer_name": name, "prayer_type": "jamat", "date": day})
    return records


# =============================================================================
# MOCK FIXTURES
# =============================================================================

@pytest.fixture
def mock_streamlit(monkeypatch):
    """Replace the `st` used by error handlers and settings with a MagicMock."""
    import tracker_core.config.settings as settings_module
    import tracker_core.errors.handlers as handlers_module

    mock_st = MagicMock()
    mock_st.session_state = {}
    mock_st.secrets = {}
    monkeypatch.setattr(handlers_module, "st", mock_st)
    monkeypatch.setattr(settings_module, "st", mock_st)
    return mock_st


@pytest.fixture
def mock_supabase():
    """Mock Supabase client"""
    mock_client = MagicMock()
    mock_client.table.return_value.select.return_value.execute.return_value.data = []
    mock_client.table.return_value.insert.return_value.execute.return_value.data = []
    mock_client.table.return_value.upsert.return_value.execute.return_value.data = []
    return mock_client
