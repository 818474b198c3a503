# =============================================================================
# tracker_core/offline/sync_engine.py
# Pending-Sync Replay Engine
# =============================================================================
"""
SyncEngine - replays writes queued while offline once connectivity returns.

States:
    IDLE      nothing in flight; last drain (if any) succeeded
    DRAINING  replaying the queue
    FAILED    last drain stopped on an error; the queue is untouched

A drain replays the whole queue in enqueue order and clears it only if
every operation succeeded. Any failure leaves every entry in place, so the
next drain starts again from the first one, including the ones that already
reached the remote store (at-least-once delivery). Inserts carry an `id`,
which lets the remote store's upsert absorb the repeats.

Drains start on the offline -> online edge, on start() when already online
with a non-empty queue, on sign-in, or on a manual sync_pending_data().
"""

from __future__ import annotations
import threading
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional
import logging

from tracker_core.data.supabase_client import RemoteStore
from tracker_core.errors import SyncError
from tracker_core.offline.connection_manager import (
    ConnectionState,
    ConnectionStatus,
    ConnectivityMonitor,
)
from tracker_core.offline.offline_storage import (
    OfflineStorage,
    OperationKind,
    PendingOperation,
)

logger = logging.getLogger(__name__)


class SyncStatus(Enum):
    """Drain state."""
    IDLE = "idle"
    DRAINING = "draining"
    FAILED = "failed"


@dataclass
class SyncState:
    """Current sync state."""
    status: SyncStatus = SyncStatus.IDLE
    last_error: Optional[str] = None
    last_sync: Optional[datetime] = None
    last_sync_success: Optional[datetime] = None
    total_synced: int = 0
    drains: int = 0


class SyncEngine:
    """
    Drains OfflineStorage's pending queue against a RemoteStore.

    Usage:
        engine = SyncEngine(storage, remote, monitor, user_provider=lambda: user_id)
        engine.start()              # subscribe to connectivity, drain if needed
        engine.sync_pending_data()  # manual drain
    """

    def __init__(
        self,
        storage: OfflineStorage,
        remote: RemoteStore,
        monitor: ConnectivityMonitor,
        user_provider: Optional[Callable[[], Optional[str]]] = None,
    ):
        """
        Args:
            storage: Queue to drain
            remote: Store the queued writes are replayed against
            monitor: Connectivity signal
            user_provider: Returns the signed-in user id, or None when signed
                out. Omit for single-user setups that are always signed in.
        """
        self._storage = storage
        self._remote = remote
        self._monitor = monitor
        self._user_provider = user_provider
        self._state = SyncState()
        self._drain_lock = threading.Lock()
        self._callbacks: List[Callable[[SyncState], None]] = []
        self._initialized = False

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def status(self) -> SyncStatus:
        return self._state.status

    @property
    def is_syncing(self) -> bool:
        return self._state.status == SyncStatus.DRAINING

    def _signed_in(self) -> bool:
        if self._user_provider is None:
            return True
        return bool(self._user_provider())

    # =========================================================================
    # TRIGGERS
    # =========================================================================

    def initialize(self) -> None:
        """Register for connectivity changes."""
        if self._initialized:
            return
        self._monitor.register_callback(self._on_connection_change)
        self._initialized = True
        logger.info("SyncEngine initialized")

    def start(self) -> None:
        """Initialize, then drain if already online with queued writes."""
        self.initialize()
        if self._monitor.is_online and self._signed_in() and self._storage.get_pending_sync():
            logger.info("Online at start with queued writes, triggering sync")
            self.sync_pending_data()

    def stop(self) -> None:
        """Stop reacting to connectivity changes."""
        self._monitor.unregister_callback(self._on_connection_change)
        self._initialized = False

    def _on_connection_change(self, state: ConnectionState) -> None:
        if state.status != ConnectionStatus.ONLINE:
            return
        if not self._signed_in():
            logger.debug("Connection restored but no user signed in; not syncing")
            return
        logger.info("Connection restored, triggering sync")
        self.sync_pending_data()

    def on_session_change(self) -> None:
        """Call after sign-in; drains if online."""
        if self._monitor.is_online and self._signed_in():
            self.sync_pending_data()

    # =========================================================================
    # DRAIN
    # =========================================================================

    def sync_pending_data(self) -> bool:
        """
        Replay the whole queue in order.

        Returns:
            True if the queue is empty afterwards (nothing to do, or every
            operation replayed); False if offline, already draining, or an
            operation failed.
        """
        if not self._monitor.is_online:
            logger.debug("Cannot sync: offline")
            return False

        if not self._drain_lock.acquire(blocking=False):
            logger.debug("Sync already in progress")
            return False

        try:
            pending = self._storage.get_pending_sync()
            if not pending:
                self._set_status(SyncStatus.IDLE)
                return True

            logger.info(f"Syncing {len(pending)} pending operations")
            self._state.drains += 1
            self._set_status(SyncStatus.DRAINING)

            try:
                for position, operation in enumerate(pending):
                    self._replay(operation, position)
            except SyncError as e:
                logger.error(f"Error syncing offline data: {e}")
                self._state.last_error = str(e)
                self._set_status(SyncStatus.FAILED)
                return False

            self._storage.clear_pending_sync(drained=len(pending))
            self._state.total_synced += len(pending)
            self._state.last_error = None
            self._state.last_sync_success = datetime.now()
            self._set_status(SyncStatus.IDLE)
            logger.info("Offline data synced successfully")
            return True

        finally:
            self._state.last_sync = datetime.now()
            self._drain_lock.release()

    def _replay(self, operation: PendingOperation, position: int) -> None:
        """
        Send one queued operation to the remote store.

        Raises:
            SyncError: If the remote store rejects or fails the write
        """
        kind = operation.kind
        if not isinstance(kind, OperationKind):
            logger.warning(f"Unknown operation: {kind!r} on {operation.target_collection}; skipping")
            return

        collection = operation.target_collection
        payload = operation.payload
        try:
            if kind is OperationKind.INSERT:
                self._remote.insert(collection, payload)
            elif kind is OperationKind.UPDATE:
                self._remote.update(collection, payload["id"], payload)
            elif kind is OperationKind.DELETE:
                self._remote.delete(collection, payload["id"])
        except Exception as e:
            raise SyncError(
                f"Replay of {kind.value} on {collection} failed: {e}",
                collection=collection,
                kind=kind.value,
                position=position,
            ) from e

    # =========================================================================
    # CALLBACKS / DISPLAY
    # =========================================================================

    def _set_status(self, status: SyncStatus) -> None:
        if self._state.status == status:
            return
        self._state.status = status
        self._notify_callbacks()

    def register_callback(self, callback: Callable[[SyncState], None]) -> None:
        """Register a callback for sync state changes."""
        if callback not in self._callbacks:
            self._callbacks.append(callback)

    def unregister_callback(self, callback: Callable[[SyncState], None]) -> None:
        """Remove a registered callback."""
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    def _notify_callbacks(self) -> None:
        for callback in list(self._callbacks):
            try:
                callback(self._state)
            except Exception as e:
                logger.error(f"Error in sync callback: {e}")

    def get_status_display(self) -> Dict[str, Any]:
        """Get sync status for UI display."""
        return {
            "status": self._state.status.value,
            "is_syncing": self.is_syncing,
            "last_error": self._state.last_error,
            "last_sync": self._state.last_sync.isoformat() if self._state.last_sync else None,
            "last_success": self._state.last_sync_success.isoformat() if self._state.last_sync_success else None,
            "pending_count": self._storage.pending_count,
            "total_synced": self._state.total_synced,
            "drains": self._state.drains,
        }
