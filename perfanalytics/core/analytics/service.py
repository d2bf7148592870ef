from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional


class AnalyticsService(ABC):
    """Tracks user events and user profile properties."""

    @abstractmethod
    def track(self, event: str, properties: Optional[Dict[str, Any]] = None) -> None:
        """Track `event` with optional event-specific properties."""

    @abstractmethod
    def identify(self, user_id: str) -> None:
        """Attribute subsequent events to `user_id`."""

    @abstractmethod
    def identify_user(self, user_id: str, properties: Dict[str, Any]) -> None:
        """Identify `user_id` and set profile properties on it."""

    @abstractmethod
    def set_user_properties(self, properties: Dict[str, Any]) -> None:
        """Set profile properties on the current user."""
