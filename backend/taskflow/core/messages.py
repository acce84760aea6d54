"""User-facing error messages shared by endpoints and services."""


class AuthMessages:
    EMAIL_TAKEN = "Email already registered"
    BAD_CREDENTIALS = "Incorrect email or password"
    INACTIVE_USER = "Inactive user"
    INVALID_TOKEN = "Could not validate credentials"
    USER_NOT_FOUND = "User not found"


class AccessMessages:
    # Deliberately generic: never reveals whether the target row exists.
    PERMISSION_DENIED = "Permission denied"
    ADMIN_REQUIRED = "Admin privileges required"


class DataMessages:
    CONFLICT = "Conflicts with existing data"
    INVALID_REFERENCE = "Referenced record does not exist"


class CategoryMessages:
    NOT_FOUND = "Category not found"


class TaskMessages:
    NOT_FOUND = "Task not found"


class SubtaskMessages:
    NOT_FOUND = "Subtask not found"


class ReminderMessages:
    NOT_FOUND = "Reminder not found"
    CANNOT_UNSEND = "A sent reminder cannot be marked unsent"


class NotificationMessages:
    NOT_FOUND = "Notification not found"


class AnalyticsMessages:
    DAY_EXISTS = "Analytics already recorded for this date"


class RealtimeMessages:
    OWNER_MISMATCH = "Subscriptions are limited to your own rows"
    UNKNOWN_TABLE = "Table is not published for realtime delivery"
