# =============================================================================
# tracker_core/data/supabase_client.py
# Remote Store Adapters (Supabase and in-memory)
# =============================================================================
"""
Remote data store used by the tracker.

The offline layer only needs four verbs, so anything that implements
`RemoteStore` can stand in for Supabase:

    insert(collection, record)            -> record
    update(collection, identifier, patch) -> record
    delete(collection, identifier)        -> None
    query(collection, filters, order_by)  -> list of records
"""

from __future__ import annotations
import copy
import threading
import uuid
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable
import logging

from supabase import Client, create_client

from tracker_core.config import TrackerSettings
from tracker_core.errors import RemoteStoreError

logger = logging.getLogger(__name__)

Record = Dict[str, Any]


@runtime_checkable
class RemoteStore(Protocol):
    """Per-collection CRUD capability the offline layer depends on."""

    def insert(self, collection: str, record: Record) -> Record: ...

    def update(self, collection: str, identifier: Any, patch: Record) -> Record: ...

    def delete(self, collection: str, identifier: Any) -> None: ...

    def query(
        self,
        collection: str,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None,
        ascending: bool = True,
    ) -> List[Record]: ...


def get_supabase_client(settings: TrackerSettings) -> Optional[Client]:
    """
    Create a Supabase client from settings.

    Returns:
        Supabase client instance or None if credentials are missing
    """
    if not settings.has_supabase:
        return None

    try:
        return create_client(settings.supabase_url, settings.supabase_key)
    except Exception as e:
        logger.error(f"Failed to initialize Supabase client: {e}")
        return None


class SupabaseRemoteStore:
    """
    RemoteStore backed by a Supabase (PostgREST) client.

    Inserts of records that already carry an `id` are sent as upserts so
    that replaying a queued insert twice leaves one row.
    """

    def __init__(self, client: Client, upsert_inserts: bool = True):
        self.client = client
        self.upsert_inserts = upsert_inserts

    def insert(self, collection: str, record: Record) -> Record:
        try:
            table = self.client.table(collection)
            if self.upsert_inserts and record.get("id") is not None:
                response = table.upsert(record, on_conflict="id").execute()
            else:
                response = table.insert(record).execute()
        except Exception as e:
            raise RemoteStoreError(
                f"Insert into {collection} failed: {e}",
                collection=collection,
                operation="insert",
            ) from e
        return response.data[0] if response.data else record

    def update(self, collection: str, identifier: Any, patch: Record) -> Record:
        try:
            response = (
                self.client.table(collection)
                .update(patch)
                .eq("id", identifier)
                .execute()
            )
        except Exception as e:
            raise RemoteStoreError(
                f"Update of {collection}/{identifier} failed: {e}",
                collection=collection,
                operation="update",
            ) from e
        return response.data[0] if response.data else patch

    def delete(self, collection: str, identifier: Any) -> None:
        try:
            self.client.table(collection).delete().eq("id", identifier).execute()
        except Exception as e:
            raise RemoteStoreError(
                f"Delete of {collection}/{identifier} failed: {e}",
                collection=collection,
                operation="delete",
            ) from e

    def query(
        self,
        collection: str,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None,
        ascending: bool = True,
    ) -> List[Record]:
        try:
            query = self.client.table(collection).select("*")
            for column, value in (filters or {}).items():
                query = query.eq(column, value)
            if order_by:
                query = query.order(order_by, desc=not ascending)
            response = query.execute()
        except Exception as e:
            raise RemoteStoreError(
                f"Query of {collection} failed: {e}",
                collection=collection,
                operation="query",
            ) from e
        return list(response.data or [])


class InMemoryRemoteStore:
    """
    Dict-backed RemoteStore.

    Used when Supabase is not configured (local demo mode) and in tests.
    Inserts are keyed on `id`: inserting a record whose id already exists
    replaces it.
    """

    def __init__(self, tables: Optional[Dict[str, List[Record]]] = None):
        self._tables: Dict[str, List[Record]] = copy.deepcopy(tables) if tables else {}
        self._lock = threading.Lock()

    def rows(self, collection: str) -> List[Record]:
        """Copy of every row in a collection, in insertion order."""
        with self._lock:
            return copy.deepcopy(self._tables.get(collection, []))

    def insert(self, collection: str, record: Record) -> Record:
        row = copy.deepcopy(record)
        row.setdefault("id", str(uuid.uuid4()))
        with self._lock:
            table = self._tables.setdefault(collection, [])
            for index, existing in enumerate(table):
                if existing.get("id") == row["id"]:
                    table[index] = row
                    break
            else:
                table.append(row)
        return copy.deepcopy(row)

    def update(self, collection: str, identifier: Any, patch: Record) -> Record:
        with self._lock:
            for row in self._tables.get(collection, []):
                if row.get("id") == identifier:
                    row.update(copy.deepcopy(patch))
                    return copy.deepcopy(row)
        # PostgREST updates that match nothing succeed with no rows
        return copy.deepcopy(patch)

    def delete(self, collection: str, identifier: Any) -> None:
        with self._lock:
            table = self._tables.get(collection, [])
            self._tables[collection] = [row for row in table if row.get("id") != identifier]

    def query(
        self,
        collection: str,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None,
        ascending: bool = True,
    ) -> List[Record]:
        rows = [
            row for row in self.rows(collection)
            if all(row.get(column) == value for column, value in (filters or {}).items())
        ]
        if order_by:
            rows.sort(
                key=lambda row: (row.get(order_by) is None, "" if row.get(order_by) is None else row.get(order_by)),
                reverse=not ascending,
            )
        return rows


def build_remote_store(settings: TrackerSettings) -> RemoteStore:
    """Supabase when configured, otherwise the in-memory store."""
    client = get_supabase_client(settings)
    if client is None:
        return InMemoryRemoteStore()
    return SupabaseRemoteStore(client)
