# =============================================================================
# tracker_core/offline/__init__.py
# Offline Support for Life Tracker
# =============================================================================
"""
Offline Support Module

Lets every tracker keep working without a connection. Writes made offline
are cached locally and queued; when the connection comes back the queue is
replayed against Supabase in the order it was written.

Architecture:
------------
    ┌──────────────────────────────────────────────┐
    │              TrackerDataService              │
    │        (pages use this API only)             │
    └──────────────────────────────────────────────┘
          │                  │                 │
          ▼                  ▼                 ▼
  ┌───────────────┐  ┌────────────────┐  ┌───────────┐
  │ Connectivity  │  │ OfflineStorage │  │ Supabase  │
  │   Monitor     │  │ cache + queue  │  │ (remote)  │
  └───────────────┘  └────────────────┘  └───────────┘
          │                  │                 ▲
          │   online edge    ▼                 │
          └──────────► ┌────────────┐  replay  │
                       │ SyncEngine │ ─────────┘
                       └────────────┘

Usage:
------
from tracker_core.offline import get_tracker_service

service = get_tracker_service()
print(service.is_online)       # True/False
print(service.pending_count)   # Number of queued writes
"""

from tracker_core.offline.connection_manager import (
    ConnectionState,
    ConnectionStatus,
    ConnectivityMonitor,
    ConnectivitySource,
    ManualConnectivitySource,
    SocketProbeConnectivitySource,
)

from tracker_core.offline.local_store import (
    KeyValueStore,
    InMemoryKeyValueStore,
    SQLiteKeyValueStore,
)

from tracker_core.offline.offline_storage import (
    OfflineStorage,
    OperationKind,
    PendingOperation,
)

from tracker_core.offline.sync_engine import (
    SyncEngine,
    SyncState,
    SyncStatus,
)

from tracker_core.offline.tracker_data_service import (
    DATASETS,
    TrackerDataService,
    build_tracker_service,
    get_tracker_service,
)

__all__ = [
    # Connectivity
    "ConnectionState",
    "ConnectionStatus",
    "ConnectivityMonitor",
    "ConnectivitySource",
    "ManualConnectivitySource",
    "SocketProbeConnectivitySource",
    # Local storage
    "KeyValueStore",
    "InMemoryKeyValueStore",
    "SQLiteKeyValueStore",
    # Cache + queue
    "OfflineStorage",
    "OperationKind",
    "PendingOperation",
    # Sync
    "SyncEngine",
    "SyncState",
    "SyncStatus",
    # Service (main API)
    "DATASETS",
    "TrackerDataService",
    "build_tracker_service",
    "get_tracker_service",
]
