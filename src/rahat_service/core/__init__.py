"""Core business logic: workflow engine and case manager."""

from .analytics import AnalyticsService
from .case_manager import CaseManager

__all__ = ["AnalyticsService", "CaseManager"]
