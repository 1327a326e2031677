"""Activity logging package."""

from rateease.activity.logger import ActivityLogger

__all__ = ["ActivityLogger"]
