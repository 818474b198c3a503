# =============================================================================
# tracker_core/errors/__init__.py
# Centralized Error Handling for Life Tracker
# =============================================================================

from .exceptions import (
    TrackerError,
    RemoteStoreError,
    LocalStorageError,
    SyncError,
    DataValidationError,
    ConfigurationError,
)

from .handlers import (
    handle_error,
    safe_execute,
    ErrorContext,
    error_boundary,
)

__all__ = [
    # Exceptions
    "TrackerError",
    "RemoteStoreError",
    "LocalStorageError",
    "SyncError",
    "DataValidationError",
    "ConfigurationError",
    # Handlers
    "handle_error",
    "safe_execute",
    "ErrorContext",
    "error_boundary",
]
