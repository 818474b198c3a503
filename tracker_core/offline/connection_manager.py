# =============================================================================
# tracker_core/offline/connection_manager.py
# Connectivity Monitoring
# =============================================================================
"""
ConnectivityMonitor - exposes a single online/offline flag.

The monitor never checks the network itself. It listens to a
ConnectivitySource, which reports the runtime's view of connectivity:

- ManualConnectivitySource: flipped explicitly (tests, "work offline" toggle)
- SocketProbeConnectivitySource: a background thread that opens TCP
  connections to public DNS resolvers and reports when reachability changes

The runtime's view can differ from whether Supabase itself is reachable.
Writes attempted in that window fail like any other online write.
"""

from __future__ import annotations
import socket
import threading
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, List, Optional, Protocol, Sequence, Tuple
import logging

logger = logging.getLogger(__name__)

SourceCallback = Callable[[bool], None]


class ConnectionStatus(Enum):
    """Connection status states."""
    ONLINE = "online"
    OFFLINE = "offline"
    UNKNOWN = "unknown"         # Before initialize()


@dataclass
class ConnectionState:
    """Current connection state with metadata."""
    status: ConnectionStatus = ConnectionStatus.UNKNOWN
    last_change: Optional[datetime] = None
    last_online: Optional[datetime] = None
    transitions: int = 0


class ConnectivitySource(Protocol):
    """Runtime network-change notifications."""

    def is_online(self) -> bool: ...

    def subscribe(self, callback: SourceCallback) -> None: ...

    def unsubscribe(self, callback: SourceCallback) -> None: ...


class _CallbackRegistry:
    """Subscriber list shared by the built-in sources."""

    def __init__(self):
        self._subscribers: List[SourceCallback] = []

    def subscribe(self, callback: SourceCallback) -> None:
        if callback not in self._subscribers:
            self._subscribers.append(callback)

    def unsubscribe(self, callback: SourceCallback) -> None:
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def _emit(self, online: bool) -> None:
        for callback in list(self._subscribers):
            try:
                callback(online)
            except Exception as e:
                logger.error(f"Error in connectivity subscriber: {e}")


class ManualConnectivitySource(_CallbackRegistry):
    """Connectivity source driven by explicit set_online() calls."""

    def __init__(self, online: bool = True):
        super().__init__()
        self._online = online

    def is_online(self) -> bool:
        return self._online

    def set_online(self, online: bool) -> None:
        """Report a connectivity change to subscribers."""
        self._online = online
        self._emit(online)


class SocketProbeConnectivitySource(_CallbackRegistry):
    """
    Connectivity source backed by periodic TCP probes.

    Subscribers are only called when the probe result differs from the
    previous one.
    """

    PROBE_HOSTS: Sequence[Tuple[str, int]] = (
        ("8.8.8.8", 53),            # Google DNS
        ("1.1.1.1", 53),            # Cloudflare DNS
        ("208.67.222.222", 53),     # OpenDNS
    )
    CONNECTION_TIMEOUT = 3

    def __init__(self, interval: float = 15.0, hosts: Optional[Sequence[Tuple[str, int]]] = None):
        super().__init__()
        self.interval = interval
        self.hosts = tuple(hosts) if hosts else self.PROBE_HOSTS
        self._last: Optional[bool] = None
        self._thread: Optional[threading.Thread] = None
        self._stop = threading.Event()

    def probe(self) -> bool:
        """Return True if any probe host accepts a TCP connection."""
        for host, port in self.hosts:
            try:
                with socket.create_connection((host, port), timeout=self.CONNECTION_TIMEOUT):
                    return True
            except OSError:
                continue
        return False

    def is_online(self) -> bool:
        if self._last is None:
            self._last = self.probe()
        return self._last

    def subscribe(self, callback: SourceCallback) -> None:
        super().subscribe(callback)
        self._start()

    def unsubscribe(self, callback: SourceCallback) -> None:
        super().unsubscribe(callback)
        if not self._subscribers:
            self._stop_probing()

    def _start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return

        self._stop.clear()
        self._thread = threading.Thread(
            target=self._probe_loop,
            daemon=True,
            name="ConnectivityProbe",
        )
        self._thread.start()
        logger.debug("Connectivity probing started")

    def _stop_probing(self) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=self.CONNECTION_TIMEOUT * len(self.hosts) + 1)
        self._thread = None
        logger.debug("Connectivity probing stopped")

    def _probe_loop(self) -> None:
        while not self._stop.wait(timeout=self.interval):
            online = self.probe()
            if online != self._last:
                self._last = online
                self._emit(online)


class ConnectivityMonitor:
    """
    Edge-triggered online/offline flag.

    Usage:
        monitor = ConnectivityMonitor(ManualConnectivitySource(online=False))
        monitor.initialize()
        monitor.register_callback(lambda state: print(state.status))
        monitor.is_online  # False
    """

    def __init__(self, source: ConnectivitySource):
        self._source = source
        self._state = ConnectionState()
        self._callbacks: List[Callable[[ConnectionState], None]] = []
        self._lock = threading.Lock()
        self._initialized = False

    @property
    def state(self) -> ConnectionState:
        """Get current connection state."""
        return self._state

    @property
    def status(self) -> ConnectionStatus:
        """Get current status."""
        return self._state.status

    @property
    def is_online(self) -> bool:
        return self._state.status == ConnectionStatus.ONLINE

    @property
    def is_offline(self) -> bool:
        return self._state.status == ConnectionStatus.OFFLINE

    def initialize(self) -> None:
        """Take the initial reading and subscribe to the source."""
        if self._initialized:
            return

        self._apply(self._source.is_online(), notify=False)
        self._source.subscribe(self._on_source_change)
        self._initialized = True
        logger.info(f"ConnectivityMonitor initialized. Status: {self._state.status.value}")

    def shutdown(self) -> None:
        """Unsubscribe from the source."""
        if not self._initialized:
            return
        self._source.unsubscribe(self._on_source_change)
        self._initialized = False

    def _on_source_change(self, online: bool) -> None:
        self._apply(online, notify=True)

    def _apply(self, online: bool, notify: bool) -> None:
        new_status = ConnectionStatus.ONLINE if online else ConnectionStatus.OFFLINE
        with self._lock:
            old_status = self._state.status
            if old_status == new_status:
                return
            now = datetime.now()
            self._state.status = new_status
            self._state.last_change = now
            if online:
                self._state.last_online = now
            if old_status != ConnectionStatus.UNKNOWN:
                self._state.transitions += 1

        if notify:
            logger.info(f"Connection status changed: {old_status.value} -> {new_status.value}")
            self._notify_callbacks()

    def register_callback(self, callback: Callable[[ConnectionState], None]) -> None:
        """
        Register a callback for connection status changes.

        Args:
            callback: Function called with ConnectionState on each transition
        """
        if callback not in self._callbacks:
            self._callbacks.append(callback)

    def unregister_callback(self, callback: Callable[[ConnectionState], None]) -> None:
        """Remove a registered callback."""
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    def _notify_callbacks(self) -> None:
        for callback in list(self._callbacks):
            try:
                callback(self._state)
            except Exception as e:
                logger.error(f"Error in connection callback: {e}")

    def get_status_display(self) -> dict:
        """Get status information for UI display."""
        return {
            "status": self._state.status.value,
            "is_online": self.is_online,
            "last_change": self._state.last_change.isoformat() if self._state.last_change else None,
            "last_online": self._state.last_online.isoformat() if self._state.last_online else None,
            "transitions": self._state.transitions,
        }
