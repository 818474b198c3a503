# =============================================================================
# tracker_core/offline/offline_storage.py
# Offline Cache and Pending-Sync Queue
# =============================================================================
"""
OfflineStorage - cached dataset snapshots plus the durable queue of writes
made while offline.

Persisted layout (two keys in the KeyValueStore, both JSON text):

    offline_data   {"study_sessions": [...records...], "sleep_records": [...]}
    pending_sync   [{"table": ..., "operation": ..., "data": ..., "timestamp": ...}, ...]

The queue is append-only. Nothing here reorders, deduplicates or removes
single entries; the only removal is clear_pending_sync(), which the
SyncEngine calls after a whole batch has been replayed.
"""

from __future__ import annotations
import json
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union
import logging

from tracker_core.errors import DataValidationError, LocalStorageError
from tracker_core.offline.connection_manager import ConnectivityMonitor
from tracker_core.offline.local_store import KeyValueStore

logger = logging.getLogger(__name__)

OFFLINE_DATA_KEY = "offline_data"
PENDING_SYNC_KEY = "pending_sync"


class OperationKind(str, Enum):
    """Write forms the remote store understands."""
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class PendingOperation:
    """
    A write made while offline, waiting to be replayed.

    `payload` is the full record for inserts, the patch (including `id`)
    for updates, and at least `{"id": ...}` for deletes.
    """
    target_collection: str
    kind: Union[OperationKind, str]
    payload: Dict[str, Any] = field(default_factory=dict)
    enqueued_at: Optional[int] = None   # epoch milliseconds

    @property
    def identifier(self) -> Any:
        return self.payload.get("id")

    def validate(self) -> None:
        """
        Raises:
            DataValidationError: If the operation cannot be replayed
        """
        if not self.target_collection:
            raise DataValidationError("Pending operation has no target collection", field="table")
        if not isinstance(self.kind, OperationKind):
            raise DataValidationError(
                f"Unknown operation kind: {self.kind!r}",
                field="operation",
                expected="insert | update | delete",
                actual=str(self.kind),
            )
        if self.kind in (OperationKind.UPDATE, OperationKind.DELETE) and self.identifier is None:
            raise DataValidationError(
                f"{self.kind.value} on {self.target_collection} needs payload['id']",
                field="id",
            )

    def to_dict(self) -> Dict[str, Any]:
        kind = self.kind.value if isinstance(self.kind, OperationKind) else self.kind
        return {
            "table": self.target_collection,
            "operation": kind,
            "data": self.payload,
            "timestamp": self.enqueued_at,
        }

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> PendingOperation:
        kind = raw.get("operation", "")
        try:
            kind = OperationKind(str(kind).lower())
        except ValueError:
            # Left as a string so the engine can log and skip it
            pass
        return cls(
            target_collection=raw.get("table", ""),
            kind=kind,
            payload=dict(raw.get("data") or {}),
            enqueued_at=raw.get("timestamp"),
        )


class OfflineStorage:
    """
    Offline cache and pending-sync queue over a KeyValueStore.

    Storage failures are logged and swallowed: a failed cache write leaves
    the old snapshot, a failed enqueue returns None.

    Usage:
        storage = OfflineStorage(SQLiteKeyValueStore(path), monitor)
        storage.save_offline_data("study_sessions", records)
        storage.add_to_pending_sync(PendingOperation("study_sessions", OperationKind.INSERT, record))
        len(storage.pending_sync)
    """

    def __init__(self, store: KeyValueStore, monitor: Optional[ConnectivityMonitor] = None):
        self._store = store
        self._monitor = monitor
        self._lock = threading.RLock()
        self._pending_mirror: List[PendingOperation] = self.get_pending_sync()

    # =========================================================================
    # STATUS
    # =========================================================================

    @property
    def is_online(self) -> bool:
        """Current connectivity; True when no monitor is attached."""
        return self._monitor.is_online if self._monitor is not None else True

    @property
    def pending_sync(self) -> List[PendingOperation]:
        """In-memory copy of the queue, for pending-count display."""
        return list(self._pending_mirror)

    @property
    def pending_count(self) -> int:
        return len(self._pending_mirror)

    # =========================================================================
    # RAW JSON ACCESS
    # =========================================================================

    def _read_json(self, key: str, default: Any) -> Any:
        try:
            raw = self._store.get(key)
        except Exception as e:
            raise LocalStorageError(f"Could not read {key}: {e}", key=key) from e
        if not raw:
            return default
        try:
            return json.loads(raw)
        except (TypeError, ValueError) as e:
            raise LocalStorageError(f"Corrupt JSON under {key}: {e}", key=key) from e

    def _write_json(self, key: str, value: Any) -> None:
        try:
            text = json.dumps(value, default=str)
        except (TypeError, ValueError) as e:
            raise LocalStorageError(f"Could not serialize {key}: {e}", key=key) from e
        try:
            self._store.set(key, text)
        except Exception as e:
            raise LocalStorageError(f"Could not write {key}: {e}", key=key) from e

    # =========================================================================
    # DATASET CACHE
    # =========================================================================

    def save_offline_data(self, dataset: str, records: List[Dict[str, Any]]) -> None:
        """Overwrite the cached snapshot for a dataset."""
        with self._lock:
            try:
                offline_data = self._read_json(OFFLINE_DATA_KEY, {})
                if not isinstance(offline_data, dict):
                    offline_data = {}
                offline_data[dataset] = list(records)
                self._write_json(OFFLINE_DATA_KEY, offline_data)
            except LocalStorageError as e:
                logger.error(f"Error saving offline data: {e}")

    def get_offline_data(self, dataset: str) -> Optional[List[Dict[str, Any]]]:
        """Return the cached snapshot for a dataset, or None."""
        with self._lock:
            try:
                offline_data = self._read_json(OFFLINE_DATA_KEY, {})
            except LocalStorageError as e:
                logger.error(f"Error getting offline data: {e}")
                return None
        if not isinstance(offline_data, dict):
            return None
        return offline_data.get(dataset)

    # =========================================================================
    # PENDING-SYNC QUEUE
    # =========================================================================

    def add_to_pending_sync(self, operation: PendingOperation) -> Optional[PendingOperation]:
        """
        Append an operation to the durable queue.

        Returns:
            The operation, stamped with enqueued_at; None if the queue could
            not be persisted (the failure is logged and the queue is unchanged)

        Raises:
            DataValidationError: If the operation cannot be replayed
        """
        operation.validate()
        operation.enqueued_at = _now_ms()

        with self._lock:
            try:
                pending = self._read_json(PENDING_SYNC_KEY, [])
                if not isinstance(pending, list):
                    pending = []
                pending.append(operation.to_dict())
                self._write_json(PENDING_SYNC_KEY, pending)
            except LocalStorageError as e:
                logger.error(f"Error queueing {operation.kind.value} on {operation.target_collection}: {e}")
                return None

            self._pending_mirror = [PendingOperation.from_dict(item) for item in pending]

        logger.debug(
            f"Queued {operation.kind.value} on {operation.target_collection} "
            f"({len(self._pending_mirror)} pending)"
        )
        return operation

    def get_pending_sync(self) -> List[PendingOperation]:
        """Return every queued operation in enqueue order."""
        with self._lock:
            try:
                pending = self._read_json(PENDING_SYNC_KEY, [])
            except LocalStorageError as e:
                logger.error(f"Error reading pending sync queue: {e}")
                return []
        if not isinstance(pending, list):
            return []
        return [PendingOperation.from_dict(item) for item in pending if isinstance(item, dict)]

    def clear_pending_sync(self, drained: Optional[int] = None) -> None:
        """
        Empty the queue. Only the SyncEngine calls this, after a full drain.

        Args:
            drained: Size of the batch that was replayed. Operations queued
                after that batch was read are kept for the next drain.
        """
        with self._lock:
            try:
                remaining = []
                if drained is not None:
                    pending = self._read_json(PENDING_SYNC_KEY, [])
                    if isinstance(pending, list):
                        remaining = pending[drained:]
                if remaining:
                    self._write_json(PENDING_SYNC_KEY, remaining)
                else:
                    self._store.remove(PENDING_SYNC_KEY)
            except Exception as e:
                logger.error(f"Error clearing pending sync queue: {e}")
                return
            self._pending_mirror = [PendingOperation.from_dict(item) for item in remaining]
