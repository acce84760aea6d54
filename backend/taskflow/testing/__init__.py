"""
Shared test utilities and factories.

Re-exports all factory functions for convenient imports:
    from taskflow.testing import create_user, create_task, get_auth_headers
"""

from taskflow.testing.factories import (
    DEFAULT_PASSWORD,
    create_admin,
    create_analytics_day,
    create_category,
    create_notification,
    create_reminder,
    create_subtask,
    create_task,
    create_user,
    get_auth_headers,
    get_auth_token,
    user_context,
)

__all__ = [
    "DEFAULT_PASSWORD",
    "create_admin",
    "create_analytics_day",
    "create_category",
    "create_notification",
    "create_reminder",
    "create_subtask",
    "create_task",
    "create_user",
    "get_auth_headers",
    "get_auth_token",
    "user_context",
]
