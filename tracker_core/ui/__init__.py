# =============================================================================
# tracker_core/ui/__init__.py
# =============================================================================

from .charts import build_weekly_chart, render_weekly_chart
from .offline_indicator import indicator_text, render_offline_indicator

__all__ = [
    "build_weekly_chart",
    "render_weekly_chart",
    "indicator_text",
    "render_offline_indicator",
]
