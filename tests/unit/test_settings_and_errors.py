# =============================================================================
# tests/unit/test_settings_and_errors.py
# Unit Tests for Settings Loading and Error Handling
# =============================================================================

import pytest
from pathlib import Path

from tracker_core.config import TrackerSettings, load_settings
from tracker_core.errors import (
    ConfigurationError,
    ErrorContext,
    RemoteStoreError,
    SyncError,
    TrackerError,
    error_boundary,
    handle_error,
    safe_execute,
)
from tracker_core.services import ServiceResult


class TestLoadSettings:
    """load_settings precedence: secrets, then environment, then defaults"""

    def test_defaults(self):
        settings = load_settings(secrets={}, environ={})
        assert settings == TrackerSettings()
        assert not settings.has_supabase

    def test_environment(self):
        settings = load_settings(secrets={}, environ={
            "SUPABASE_URL": "https://env.supabase.co",
            "SUPABASE_KEY": "env-key",
            "TRACKER_LOCAL_DB": "/tmp/env.db",
            "TRACKER_PROBE_INTERVAL": "30",
            "TRACKER_LOG_LEVEL": "DEBUG",
        })
        assert settings.has_supabase
        assert settings.local_db_path == Path("/tmp/env.db")
        assert settings.probe_interval == 30.0
        assert settings.log_level == "DEBUG"

    def test_secrets_win_over_environment(self):
        settings = load_settings(
            secrets={
                "supabase": {"url": "https://secret.supabase.co", "key": "secret-key"},
                "tracker": {"probe_interval": 5},
            },
            environ={"SUPABASE_URL": "https://env.supabase.co", "TRACKER_PROBE_INTERVAL": "30"},
        )
        assert settings.supabase_url == "https://secret.supabase.co"
        assert settings.probe_interval == 5.0

    def test_bad_probe_interval(self):
        with pytest.raises(ConfigurationError) as exc_info:
            load_settings(secrets={}, environ={"TRACKER_PROBE_INTERVAL": "soon"})
        assert exc_info.value.details["config_key"] == "probe_interval"
        assert not exc_info.value.recoverable

    def test_non_positive_probe_interval(self):
        with pytest.raises(ConfigurationError):
            load_settings(secrets={"tracker": {"probe_interval": 0}}, environ={})

    def test_reads_streamlit_secrets(self, mock_streamlit):
        mock_streamlit.secrets = {"supabase": {"url": "https://st.supabase.co", "key": "k"}}
        settings = load_settings(environ={})
        assert settings.supabase_url == "https://st.supabase.co"

    def test_missing_streamlit_secrets(self, mock_streamlit):
        assert load_settings(environ={}).supabase_url is None


class TestExceptions:
    def test_str_includes_code_and_details(self):
        error = SyncError("replay failed", collection="study_sessions", kind="insert", position=2)
        assert str(error).startswith("[SYNC_001] replay failed")
        assert error.details == {"collection": "study_sessions", "kind": "insert", "position": 2}

    def test_to_dict(self):
        error = RemoteStoreError("down", collection="exams", operation="query")
        data = error.to_dict()
        assert data["error_type"] == "RemoteStoreError"
        assert data["code"] == "REMOTE_001"
        assert data["recoverable"] is True

    def test_hierarchy(self):
        assert issubclass(SyncError, TrackerError)
        assert issubclass(ConfigurationError, TrackerError)


class TestHandlers:
    def test_handle_error_shows_message(self, mock_streamlit):
        handle_error(RemoteStoreError("down"))
        mock_streamlit.error.assert_called_once_with("Error: down")

    def test_handle_error_critical(self, mock_streamlit):
        handle_error(ConfigurationError("no url"))
        assert "Critical Error" in mock_streamlit.error.call_args[0][0]

    def test_handle_error_silent(self, mock_streamlit):
        handle_error(ValueError("x"), show_user_message=False)
        mock_streamlit.error.assert_not_called()

    def test_safe_execute_returns_default(self, mock_streamlit):
        def boom():
            raise RuntimeError("boom")

        assert safe_execute(boom, default=[]) == []
        mock_streamlit.error.assert_called_once()

    def test_safe_execute_passes_through(self, mock_streamlit):
        assert safe_execute(lambda a, b: a + b, 1, 2) == 3

    def test_error_context_suppresses_recoverable(self, mock_streamlit):
        with ErrorContext("Loading study sessions"):
            raise RemoteStoreError("down")
        mock_streamlit.error.assert_called_once()

    def test_error_context_reraises_unrecoverable(self, mock_streamlit):
        with pytest.raises(ValueError):
            with ErrorContext("Loading settings", recoverable=False):
                raise ValueError("bad")

    def test_error_boundary(self, mock_streamlit):
        @error_boundary(default_return="fallback", error_message="Status unavailable")
        def render():
            raise RuntimeError("boom")

        assert render() == "fallback"
        mock_streamlit.error.assert_called_once_with("Status unavailable")


class TestServiceResult:
    def test_ok(self):
        result = ServiceResult.ok([1], metadata={"queued": False})
        assert result
        assert result.data == [1]
        assert result.metadata == {"queued": False}

    def test_fail(self):
        result = ServiceResult.fail("nope")
        assert not result
        assert result.error == "nope"

    def test_from_exception(self):
        result = ServiceResult.from_exception(SyncError("replay failed"))
        assert not result
        assert "replay failed" in result.error
