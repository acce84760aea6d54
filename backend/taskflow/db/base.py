"""Import all models for Alembic or metadata creation."""

from taskflow.models.analytics import AnalyticsDay
from taskflow.models.category import Category
from taskflow.models.notification import Notification
from taskflow.models.reminder import Reminder
from taskflow.models.subtask import Subtask
from taskflow.models.task import Task
from taskflow.models.user import Profile, User, UserRole

__all__ = [
    "User",
    "Profile",
    "UserRole",
    "Category",
    "Task",
    "Subtask",
    "Reminder",
    "Notification",
    "AnalyticsDay",
]
