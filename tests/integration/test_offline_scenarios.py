# =============================================================================
# tests/integration/test_offline_scenarios.py
# End-to-End Offline Write / Resync Scenarios
# =============================================================================
"""
Drives TrackerDataService through connectivity changes with the in-memory
remote store and key-value store.
"""

import pytest
from unittest.mock import MagicMock

from tracker_core.analytics import consecutive_day_streak, percentage_progress
from tracker_core.errors import RemoteStoreError
from tracker_core.offline import (
    DATASETS,
    ConnectivityMonitor,
    ManualConnectivitySource,
    OfflineStorage,
    OperationKind,
    SQLiteKeyValueStore,
    SyncStatus,
    TrackerDataService,
)
from tracker_core.offline.tracker_data_service import apply_to_snapshot
from tracker_core.ui import indicator_text


MATH_SESSION = {"subject": "Math", "duration": 1.5, "date": "2024-03-01"}


class TestOfflineThenResync:
    """Offline write, reconnect, drain"""

    def test_offline_session_syncs_once(self, service, connectivity, remote):
        result = service.write("study_sessions", OperationKind.INSERT, MATH_SESSION)

        assert result.success
        assert result.metadata["queued"] is True
        assert service.pending_count == 1
        assert remote.rows("study_sessions") == []

        connectivity.set_online(True)

        assert service.get_pending_sync() == []
        rows = remote.rows("study_sessions")
        assert len(rows) == 1
        assert rows[0]["subject"] == "Math"
        assert rows[0]["duration"] == 1.5
        assert rows[0]["user_id"] == "user-1"
        assert rows[0]["id"] == result.data["id"]

    def test_offline_write_visible_in_cache_and_queue(self, service):
        service.write("study_sessions", OperationKind.INSERT, MATH_SESSION)

        cached = service.get_offline_data("study_sessions")
        assert [row["subject"] for row in cached] == ["Math"]
        assert service.fetch("study_sessions") == cached

        queued = service.pending_sync[0]
        assert queued.target_collection == "study_sessions"
        assert queued.kind is OperationKind.INSERT
        assert queued.payload["id"] == cached[0]["id"]

    def test_offline_update_and_delete_apply_to_cache(self, service, connectivity, remote):
        created = service.write("sleep_records", OperationKind.INSERT, {"duration": 6, "date": "2024-03-01"})
        record_id = created.data["id"]
        service.write("sleep_records", OperationKind.UPDATE, {"id": record_id, "duration": 7.5})
        assert service.get_offline_data("sleep_records")[0]["duration"] == 7.5

        service.write("exams", OperationKind.INSERT, {"id": "e1", "subject": "Math"})
        service.write("exams", OperationKind.DELETE, {"id": "e1"})
        assert service.get_offline_data("exams") == []
        assert service.pending_count == 4

        connectivity.set_online(True)

        assert remote.rows("sleep_records")[0]["duration"] == 7.5
        assert remote.rows("exams") == []
        assert service.pending_count == 0

    def test_offline_update_without_id_rejected(self, service):
        result = service.write("sleep_records", OperationKind.UPDATE, {"duration": 7})
        assert not result
        assert result.error_code == "DATA_001"
        assert service.pending_count == 0

    def test_failed_resync_keeps_queue_until_next_edge(self, service, connectivity, remote):
        service.write("study_sessions", OperationKind.INSERT, MATH_SESSION)
        service.write("study_sessions", OperationKind.INSERT, dict(MATH_SESSION, subject="Physics"))
        remote.fail_on = {2}

        connectivity.set_online(True)
        assert service.pending_count == 2
        assert service.sync_engine.status == SyncStatus.FAILED

        remote.fail_on = set()
        connectivity.set_online(False)
        connectivity.set_online(True)

        assert service.pending_count == 0
        assert sorted(row["subject"] for row in remote.rows("study_sessions")) == ["Math", "Physics"]

    def test_signed_out_write_rejected(self, storage, remote, monitor):
        service = TrackerDataService(storage, remote, monitor)
        service.initialize()

        result = service.write("study_sessions", OperationKind.INSERT, MATH_SESSION)

        assert not result
        assert result.error_code == "DATA_001"
        assert service.pending_count == 0
        assert service.get_offline_data("study_sessions") is None

    def test_queue_waits_for_sign_in(self, service, connectivity, remote):
        service.write("study_sessions", OperationKind.INSERT, MATH_SESSION)
        service.sign_out()

        connectivity.set_online(True)
        assert service.pending_count == 1

        service.sign_in("user-1")
        assert service.pending_count == 0
        rows = remote.rows("study_sessions")
        assert len(rows) == 1
        assert rows[0]["user_id"] == "user-1"
        assert service.fetch("study_sessions") == rows

    def test_failed_enqueue_leaves_cache_untouched(self, queue_failing_store, remote, monitor):
        service = TrackerDataService(OfflineStorage(queue_failing_store, monitor), remote, monitor)
        service.initialize()
        service.sign_in("user-1")

        result = service.write("study_sessions", OperationKind.INSERT, MATH_SESSION)

        assert not result
        assert result.error_code == "STORAGE_001"
        assert service.pending_count == 0
        assert service.get_offline_data("study_sessions") is None

    def test_queue_survives_restart(self, tmp_path, remote):
        db_path = tmp_path / "tracker.db"
        first = TrackerDataService(
            OfflineStorage(SQLiteKeyValueStore(db_path)),
            remote,
            ConnectivityMonitor(ManualConnectivitySource(online=False)),
        )
        first.initialize()
        first.sign_in("user-1")
        first.write("study_sessions", OperationKind.INSERT, MATH_SESSION)

        source = ManualConnectivitySource(online=True)
        monitor = ConnectivityMonitor(source)
        second = TrackerDataService(OfflineStorage(SQLiteKeyValueStore(db_path), monitor), remote, monitor)
        second.initialize()
        assert second.pending_count == 1

        second.sign_in("user-1")

        assert second.pending_count == 0
        assert len(remote.rows("study_sessions")) == 1


class TestOnlineBehaviour:
    """Online writes and reads"""

    @pytest.fixture
    def online(self, connectivity):
        connectivity.set_online(True)

    def test_online_write_goes_straight_to_remote(self, service, online, remote):
        result = service.write("study_sessions", OperationKind.INSERT, MATH_SESSION)

        assert result.success
        assert result.metadata == {"queued": False}
        assert len(remote.rows("study_sessions")) == 1
        assert service.pending_count == 0

    def test_online_failure_is_surfaced_not_queued(self, service, online, remote):
        remote.fail_on = {1}

        result = service.write("study_sessions", OperationKind.INSERT, MATH_SESSION)

        assert not result
        assert "remote unavailable" in result.error
        assert service.pending_count == 0

    def test_fetch_filters_by_user_and_refreshes_cache(self, service, online, remote):
        remote.insert("study_sessions", {"id": "a", "user_id": "user-1", "created_at": "2024-03-01T08:00"})
        remote.insert("study_sessions", {"id": "b", "user_id": "user-2", "created_at": "2024-03-01T09:00"})
        remote.insert("study_sessions", {"id": "c", "user_id": "user-1", "created_at": "2024-03-02T08:00"})

        rows = service.fetch("study_sessions")

        assert [row["id"] for row in rows] == ["c", "a"]
        assert service.get_offline_data("study_sessions") == rows

    def test_fetch_falls_back_to_cache(self, service, online, remote):
        service.save_offline_data("sleep_records", [{"id": "cached"}])
        remote.query_error = RemoteStoreError("down", collection="sleep_records", operation="query")

        assert service.fetch("sleep_records") == [{"id": "cached"}]

    def test_fetch_without_cache_returns_empty(self, service, online, remote):
        remote.query_error = RemoteStoreError("down")
        assert service.fetch("exams") == []

    def test_fetch_frame(self, service, online, remote):
        remote.insert("sleep_records", {"id": "s1", "user_id": "user-1", "duration": 8, "date": "2024-03-01"})
        frame = service.fetch_frame("sleep_records")
        assert list(frame["duration"]) == [8]

    def test_preload_all(self, service, online, remote):
        remote.insert("exams", {"id": "e1", "user_id": "user-1", "date": "2024-04-01"})

        data = service.preload_all()

        assert set(DATASETS) <= set(data)
        assert "last_updated" in data
        assert data["exams"][0]["id"] == "e1"

    def test_invalid_kind(self, service, online):
        result = service.write("study_sessions", "upsert", MATH_SESSION)
        assert not result
        assert result.error_code == "DATA_001"


class TestStreaksOverQueuedPrayers:
    def test_offline_prayers_count_toward_streak(self, service, today):
        for day in ("2024-03-08", "2024-03-09", "2024-03-10"):
            for name in ("Fajr", "Dhuhr", "Asr", "Maghrib", "Isha"):
                service.write("prayer_records", OperationKind.INSERT, {"prayer_name": name, "date": day})

        records = service.fetch("prayer_records")

        assert consecutive_day_streak(records, min_per_day=5, today=today) == 3
        assert percentage_progress(len(records), 10 * 5) == 30


class TestOfflineIndicator:
    def test_hidden_when_online_and_idle(self):
        assert indicator_text(True, 0) is None

    def test_offline_with_queue(self):
        assert indicator_text(False, 3) == "🔴 Offline · ☁️ (3)"

    def test_online_while_syncing(self):
        assert indicator_text(True, 2) == "🟢 Online · 🔄 (2)"

    def test_offline_empty(self):
        assert indicator_text(False, 0) == "🔴 Offline"

    def test_render_writes_markdown(self, monkeypatch):
        import tracker_core.ui.offline_indicator as indicator_module
        from tracker_core.ui import render_offline_indicator

        mock_st = MagicMock()
        monkeypatch.setattr(indicator_module, "st", mock_st)

        assert render_offline_indicator(False, 1) == "🔴 Offline · ☁️ (1)"
        assert "🔴 Offline" in mock_st.markdown.call_args[0][0]

    def test_render_hidden(self, monkeypatch):
        import tracker_core.ui.offline_indicator as indicator_module
        from tracker_core.ui import render_offline_indicator

        mock_st = MagicMock()
        monkeypatch.setattr(indicator_module, "st", mock_st)

        assert render_offline_indicator(True, 0) is None
        mock_st.markdown.assert_not_called()


def test_apply_to_snapshot_puts_inserts_first():
    snapshot = [{"id": "old"}]
    assert apply_to_snapshot(snapshot, OperationKind.INSERT, {"id": "new"}) == [{"id": "new"}, {"id": "old"}]
    assert snapshot == [{"id": "old"}]
