# =============================================================================
# tracker_core/services/__init__.py
# Service Layer for Life Tracker
# =============================================================================

from .base_service import BaseService, ServiceResult

__all__ = ["BaseService", "ServiceResult"]
