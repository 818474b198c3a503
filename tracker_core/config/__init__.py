# =============================================================================
# tracker_core/config/__init__.py
# =============================================================================

from .settings import TrackerSettings, load_settings

__all__ = ["TrackerSettings", "load_settings"]
