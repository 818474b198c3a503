# =============================================================================
# tracker_core/data/__init__.py
# =============================================================================

from .supabase_client import (
    RemoteStore,
    SupabaseRemoteStore,
    InMemoryRemoteStore,
    get_supabase_client,
    build_remote_store,
)

__all__ = [
    "RemoteStore",
    "SupabaseRemoteStore",
    "InMemoryRemoteStore",
    "get_supabase_client",
    "build_remote_store",
]
