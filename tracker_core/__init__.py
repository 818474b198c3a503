# =============================================================================
# tracker_core/__init__.py
# Life Tracker core package
# =============================================================================
"""
Core package for the Life Tracker app.

Subpackages:
    offline    - connectivity monitor, durable pending-sync queue, resync engine
    analytics  - streak, consistency and per-tracker statistics
    data       - remote store (Supabase) adapters
    services   - service result container and base service
    config     - settings from Streamlit secrets / environment
    errors     - exception hierarchy and handlers
    logging    - logging configuration
    ui         - small Streamlit widgets
"""

__version__ = "0.1.0"
