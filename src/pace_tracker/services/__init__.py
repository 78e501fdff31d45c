"""Services for pace-tracker."""

from pace_tracker.services.activity_service import ActivityService

__all__ = ["ActivityService"]
