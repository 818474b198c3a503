# =============================================================================
# tracker_core/config/settings.py
# Application Settings from Streamlit Secrets and Environment
# =============================================================================
"""
Settings loader.

Values are read from `.streamlit/secrets.toml` first, then from environment
variables, then from defaults:

    [supabase]
    url = "https://your-project.supabase.co"
    key = "your-anon-key"

    [tracker]
    local_db = "local_data/tracker.db"
    probe_interval = 15
    log_level = "INFO"

Environment equivalents: SUPABASE_URL, SUPABASE_KEY, TRACKER_LOCAL_DB,
TRACKER_PROBE_INTERVAL, TRACKER_LOG_LEVEL.
"""

from __future__ import annotations
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional
import logging

import streamlit as st

from tracker_core.errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_LOCAL_DB = Path("local_data") / "tracker.db"
DEFAULT_PROBE_INTERVAL = 15.0


@dataclass
class TrackerSettings:
    """Resolved application settings."""
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    local_db_path: Path = DEFAULT_LOCAL_DB
    probe_interval: float = DEFAULT_PROBE_INTERVAL
    log_level: str = "INFO"

    @property
    def has_supabase(self) -> bool:
        """True when both Supabase credentials are present."""
        return bool(self.supabase_url and self.supabase_key)


def _read_secrets() -> Dict[str, Dict[str, Any]]:
    """Return the supabase/tracker secret sections, or {} when none exist."""
    sections: Dict[str, Dict[str, Any]] = {}
    try:
        for name in ("supabase", "tracker"):
            if name in st.secrets:
                sections[name] = dict(st.secrets[name])
    except Exception as e:
        # No secrets.toml at all is the normal case outside `streamlit run`
        logger.debug(f"Streamlit secrets unavailable: {e}")
    return sections


def load_settings(
    secrets: Optional[Mapping[str, Mapping[str, Any]]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> TrackerSettings:
    """
    Build TrackerSettings.

    Args:
        secrets: Secret sections to use instead of st.secrets
        environ: Environment mapping to use instead of os.environ

    Raises:
        ConfigurationError: If probe_interval is not a positive number
    """
    secrets = _read_secrets() if secrets is None else secrets
    environ = os.environ if environ is None else environ

    supabase = secrets.get("supabase", {})
    tracker = secrets.get("tracker", {})

    raw_interval = tracker.get(
        "probe_interval", environ.get("TRACKER_PROBE_INTERVAL", DEFAULT_PROBE_INTERVAL)
    )
    try:
        probe_interval = float(raw_interval)
    except (TypeError, ValueError):
        raise ConfigurationError(
            f"Invalid probe interval: {raw_interval!r}",
            config_key="probe_interval",
            expected_type="number",
        )
    if probe_interval <= 0:
        raise ConfigurationError(
            "Probe interval must be positive",
            config_key="probe_interval",
            expected_type="number > 0",
        )

    settings = TrackerSettings(
        supabase_url=supabase.get("url") or environ.get("SUPABASE_URL"),
        supabase_key=supabase.get("key") or environ.get("SUPABASE_KEY"),
        local_db_path=Path(tracker.get("local_db") or environ.get("TRACKER_LOCAL_DB") or DEFAULT_LOCAL_DB),
        probe_interval=probe_interval,
        log_level=str(tracker.get("log_level") or environ.get("TRACKER_LOG_LEVEL") or "INFO"),
    )

    if not settings.has_supabase:
        logger.warning(
            "Supabase credentials not configured; using the in-memory store. "
            "Set [supabase] url/key in .streamlit/secrets.toml or SUPABASE_URL/SUPABASE_KEY."
        )

    return settings
