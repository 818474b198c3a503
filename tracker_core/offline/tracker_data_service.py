# =============================================================================
# tracker_core/offline/tracker_data_service.py
# Tracker Data Service - Single API for Online/Offline Operations
# =============================================================================
"""
TrackerDataService - what the tracker pages talk to.

- Online writes go straight to the remote store. A failure comes back as a
  failed ServiceResult and is NOT queued; the user retries.
- Offline writes update the cached snapshot and join the pending-sync queue.
- Fetches read the remote store when online (refreshing the cache) and fall
  back to the cache when offline or when the remote read fails.

Usage:
------
from tracker_core.offline import get_tracker_service, OperationKind

service = get_tracker_service()
service.sign_in(user_id)
service.write("study_sessions", OperationKind.INSERT, {"subject": "Math", "duration": 1.5, "date": "2024-03-01"})
sessions = service.fetch("study_sessions")
service.pending_count
"""

from __future__ import annotations
import copy
import threading
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Union
import logging

import pandas as pd

from tracker_core.config import TrackerSettings, load_settings
from tracker_core.data.supabase_client import RemoteStore, build_remote_store
from tracker_core.errors import DataValidationError, LocalStorageError, TrackerError
from tracker_core.offline.connection_manager import (
    ConnectivityMonitor,
    SocketProbeConnectivitySource,
)
from tracker_core.offline.local_store import SQLiteKeyValueStore
from tracker_core.offline.offline_storage import (
    OfflineStorage,
    OperationKind,
    PendingOperation,
    PENDING_SYNC_KEY,
)
from tracker_core.offline.sync_engine import SyncEngine
from tracker_core.services.base_service import BaseService, ServiceResult

logger = logging.getLogger(__name__)

Record = Dict[str, Any]


@dataclass(frozen=True)
class DatasetSpec:
    """How a dataset is ordered when fetched."""
    order_by: str
    ascending: bool = False


DATASETS: Dict[str, DatasetSpec] = {
    "study_sessions": DatasetSpec("created_at"),
    "prayer_records": DatasetSpec("created_at"),
    "quran_sessions": DatasetSpec("created_at"),
    "habit_records": DatasetSpec("created_at"),
    "attendance_records": DatasetSpec("date"),
    "class_schedules": DatasetSpec("time", ascending=True),
    "sleep_records": DatasetSpec("date"),
    "exams": DatasetSpec("date", ascending=True),
}


class TrackerDataService(BaseService):
    """
    Unified online/offline data access for the tracker pages.

    Wires OfflineStorage, ConnectivityMonitor, SyncEngine and a RemoteStore
    together and exposes the UI-facing API.
    """

    def __init__(
        self,
        storage: OfflineStorage,
        remote: RemoteStore,
        monitor: ConnectivityMonitor,
    ):
        super().__init__()
        self._storage = storage
        self._remote = remote
        self._monitor = monitor
        self._user_id: Optional[str] = None
        self._sync_engine = SyncEngine(storage, remote, monitor, user_provider=lambda: self._user_id)

    def initialize(self) -> None:
        """Start listening for connectivity and drain anything left from last run."""
        self._monitor.initialize()
        self._sync_engine.start()

    # =========================================================================
    # SESSION
    # =========================================================================

    @property
    def current_user(self) -> Optional[str]:
        return self._user_id

    def sign_in(self, user_id: str) -> None:
        """Set the signed-in user and drain queued writes if online."""
        self._user_id = user_id
        self._sync_engine.on_session_change()

    def sign_out(self) -> None:
        self._user_id = None

    # =========================================================================
    # STATUS / UI API
    # =========================================================================

    @property
    def is_online(self) -> bool:
        return self._monitor.is_online

    @property
    def pending_sync(self) -> List[PendingOperation]:
        return self._storage.pending_sync

    @property
    def pending_count(self) -> int:
        return self._storage.pending_count

    @property
    def monitor(self) -> ConnectivityMonitor:
        return self._monitor

    @property
    def sync_engine(self) -> SyncEngine:
        return self._sync_engine

    def save_offline_data(self, dataset: str, records: List[Record]) -> None:
        self._storage.save_offline_data(dataset, records)

    def get_offline_data(self, dataset: str) -> Optional[List[Record]]:
        return self._storage.get_offline_data(dataset)

    def add_to_pending_sync(self, operation: PendingOperation) -> Optional[PendingOperation]:
        return self._storage.add_to_pending_sync(operation)

    def clear_pending_sync(self) -> None:
        self._storage.clear_pending_sync()

    def get_pending_sync(self) -> List[PendingOperation]:
        return self._storage.get_pending_sync()

    def sync_pending_data(self) -> bool:
        return self._sync_engine.sync_pending_data()

    # =========================================================================
    # WRITES
    # =========================================================================

    def write(
        self,
        dataset: str,
        kind: Union[OperationKind, str],
        record: Record,
    ) -> ServiceResult:
        """
        Insert, update or delete a record.

        Args:
            dataset: Remote collection name, e.g. "study_sessions"
            kind: insert / update / delete
            record: Full record (insert), patch with `id` (update), or
                at least {"id": ...} (delete)

        Returns:
            ServiceResult; metadata["queued"] is True for offline writes.
            Fails without touching the queue or cache when nobody is signed
            in or the queue cannot be persisted.
        """
        try:
            kind = OperationKind(kind)
        except ValueError:
            return ServiceResult.from_exception(
                DataValidationError(f"Unknown operation kind: {kind!r}", field="operation")
            )

        if not self._user_id:
            return ServiceResult.from_exception(
                DataValidationError(f"Sign in before writing to {dataset}", field="user_id")
            )

        record = copy.deepcopy(record)
        if kind is OperationKind.INSERT:
            record.setdefault("user_id", self._user_id)

        if self.is_online:
            result = self.safe_execute(
                f"Saving {kind.value} on {dataset}",
                self._write_remote, dataset, kind, record,
            )
            if result.success:
                result.metadata = {"queued": False}
            return result

        return self._write_offline(dataset, kind, record)

    def _write_remote(self, dataset: str, kind: OperationKind, record: Record) -> Optional[Record]:
        if kind is OperationKind.INSERT:
            return self._remote.insert(dataset, record)
        if "id" not in record:
            raise DataValidationError(f"{kind.value} on {dataset} needs an id", field="id")
        if kind is OperationKind.UPDATE:
            return self._remote.update(dataset, record["id"], record)
        self._remote.delete(dataset, record["id"])
        return None

    def _write_offline(self, dataset: str, kind: OperationKind, record: Record) -> ServiceResult:
        if kind is OperationKind.INSERT:
            # Later offline updates/deletes need something to point at
            record.setdefault("id", str(uuid.uuid4()))
            record.setdefault("created_at", datetime.now().isoformat())

        operation = PendingOperation(dataset, kind, record)
        try:
            operation.validate()
        except DataValidationError as e:
            return ServiceResult.from_exception(e)

        if self._storage.add_to_pending_sync(operation) is None:
            return ServiceResult.from_exception(
                LocalStorageError(f"Could not queue {kind.value} on {dataset}", key=PENDING_SYNC_KEY)
            )

        snapshot = self._storage.get_offline_data(dataset) or []
        self._storage.save_offline_data(dataset, apply_to_snapshot(snapshot, kind, record))

        logger.info(f"Offline: queued {kind.value} on {dataset} ({self.pending_count} pending)")
        return ServiceResult.ok(record, metadata={"queued": True})

    # =========================================================================
    # READS
    # =========================================================================

    def fetch(self, dataset: str, user_id: Optional[str] = None) -> List[Record]:
        """
        Fetch a dataset for a user.

        Online: remote query, which also overwrites the cached snapshot.
        Offline or on remote failure: the cached snapshot (or []).
        """
        user_id = user_id or self._user_id
        ordering = DATASETS.get(dataset, DatasetSpec("created_at"))

        if self.is_online:
            try:
                filters = {"user_id": user_id} if user_id else None
                records = self._remote.query(dataset, filters, ordering.order_by, ordering.ascending)
                self._storage.save_offline_data(dataset, records)
                logger.debug(f"Fetched {len(records)} rows from remote: {dataset}")
                return records
            except TrackerError as e:
                logger.warning(f"Online fetch failed for {dataset}, using cache: {e}")

        cached = self._storage.get_offline_data(dataset)
        return list(cached) if cached else []

    def fetch_frame(self, dataset: str, user_id: Optional[str] = None) -> pd.DataFrame:
        """fetch() as a DataFrame."""
        return pd.DataFrame(self.fetch(dataset, user_id))

    def preload_all(self, user_id: Optional[str] = None) -> Dict[str, Any]:
        """
        Fetch every known dataset (cache fallback per dataset).

        Returns:
            {dataset_name: records, ..., "last_updated": iso timestamp}
        """
        with self.log_operation("Preloading tracker data"):
            data: Dict[str, Any] = {
                dataset: self.fetch(dataset, user_id) for dataset in DATASETS
            }
        data["last_updated"] = datetime.now().isoformat()
        return data


def apply_to_snapshot(snapshot: List[Record], kind: OperationKind, record: Record) -> List[Record]:
    """
    Return a copy of a cached snapshot with one write applied.

    Inserts go to the front (snapshots are newest-first), updates merge by id,
    deletes drop by id.
    """
    rows = [dict(row) for row in snapshot]
    if kind is OperationKind.INSERT:
        return [dict(record)] + rows

    identifier = record.get("id")
    if kind is OperationKind.UPDATE:
        for row in rows:
            if row.get("id") == identifier:
                row.update(record)
        return rows

    return [row for row in rows if row.get("id") != identifier]


# =============================================================================
# SINGLETON ACCESSOR
# =============================================================================

_tracker_service: Optional[TrackerDataService] = None
_lock = threading.Lock()


def build_tracker_service(settings: TrackerSettings) -> TrackerDataService:
    """Assemble a TrackerDataService from settings."""
    store = SQLiteKeyValueStore(settings.local_db_path)
    monitor = ConnectivityMonitor(SocketProbeConnectivitySource(interval=settings.probe_interval))
    storage = OfflineStorage(store, monitor)
    return TrackerDataService(storage, build_remote_store(settings), monitor)


def get_tracker_service() -> TrackerDataService:
    """Get the process-wide TrackerDataService, creating it on first use."""
    global _tracker_service
    if _tracker_service is None:
        with _lock:
            if _tracker_service is None:
                service = build_tracker_service(load_settings())
                service.initialize()
                _tracker_service = service
    return _tracker_service
