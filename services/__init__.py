from __future__ import annotations

# Re-export key service classes for convenient imports
from .reminders import ReminderService

__all__ = ["ReminderService"]
