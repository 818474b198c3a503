# =============================================================================
# tracker_core/ui/offline_indicator.py
# Online/Offline Status Badge
# =============================================================================
"""
Small status badge for the top of every page.

Hidden when online with nothing queued. Otherwise shows Online/Offline and,
when writes are waiting, how many.
"""
from __future__ import annotations
from typing import Optional
import streamlit as st

from tracker_core.errors import error_boundary


def indicator_text(is_online: bool, pending_count: int) -> Optional[str]:
    """Badge label, or None when there is nothing worth showing."""
    if is_online and pending_count == 0:
        return None
    label = "🟢 Online" if is_online else "🔴 Offline"
    if pending_count > 0:
        icon = "🔄" if is_online else "☁️"
        label += f" · {icon} ({pending_count})"
    return label


@error_boundary(default_return=None)
def render_offline_indicator(is_online: bool, pending_count: int) -> Optional[str]:
    """Render the badge; returns the label shown (None when hidden)."""
    label = indicator_text(is_online, pending_count)
    if label is None:
        return None

    background = "rgba(34,197,94,0.12)" if is_online else "rgba(239,68,68,0.12)"
    border = "rgba(34,197,94,0.45)" if is_online else "rgba(239,68,68,0.45)"
    st.markdown(
        f"""
        <div style="display:inline-block;padding:0.4rem 0.8rem;border-radius:8px;
                    background:{background};border:1px solid {border};
                    font-size:0.85rem;font-weight:600;">
            {label}
        </div>
        """,
        unsafe_allow_html=True,
    )
    return label
