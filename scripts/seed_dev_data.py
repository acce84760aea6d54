"""Dev data seeder for TaskFlow.

Usage:
    python seed_dev_data.py          # Create demo users and their tasks
    python seed_dev_data.py --clean  # Remove seeded demo data

Designed to run from the backend/ directory (CWD) so taskflow imports resolve.
Saves created IDs to .vscode/.dev_seed_ids.json for cleanup.

Creates an admin and two regular users, each with categories, tasks across
every status and priority, subtasks, reminders, notifications and a week of
analytics history. Everything is written as its owner, through the same
row-level security context the API uses.
"""

from __future__ import annotations

import asyncio
import datetime as dt
import json
import sys
import uuid
from pathlib import Path

# ---------------------------------------------------------------------------
# Bootstrap: add backend/ to sys.path so `taskflow.*` imports work when invoked
# as `python ../scripts/seed_dev_data.py` from the backend/ directory.
# ---------------------------------------------------------------------------
BACKEND_DIR = Path(__file__).resolve().parent.parent / "backend"
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from sqlmodel.ext.asyncio.session import AsyncSession  # noqa: E402

from taskflow.db.session import AsyncSessionLocal, clear_rls_context, set_rls_context  # noqa: E402
from taskflow.models.analytics import AnalyticsDay  # noqa: E402
from taskflow.models.task import TaskPriority, TaskStatus  # noqa: E402
from taskflow.models.user import AppRole, User  # noqa: E402
from taskflow.schemas.category import CategoryCreate  # noqa: E402
from taskflow.schemas.task import TaskCreate  # noqa: E402
from taskflow.services import admin as admin_service  # noqa: E402
from taskflow.services import categories as categories_service  # noqa: E402
from taskflow.services import notifications as notifications_service  # noqa: E402
from taskflow.services import reminders as reminders_service  # noqa: E402
from taskflow.services import subtasks as subtasks_service  # noqa: E402
from taskflow.services import tasks as tasks_service  # noqa: E402
from taskflow.services import users as users_service  # noqa: E402

STATE_FILE = Path(__file__).resolve().parent.parent / ".vscode" / ".dev_seed_ids.json"
PASSWORD = "taskflow-dev"

# Consistent "now" for seeding
NOW = dt.datetime.now(dt.timezone.utc)

USERS = [
    {"email": "admin@taskflow.dev", "display_name": "Admin User", "admin": True},
    {"email": "ada@taskflow.dev", "full_name": "Ada Lovelace", "admin": False},
    {"email": "grace@taskflow.dev", "full_name": "Grace Hopper", "admin": False},
]

CATEGORIES = [
    {"name": "Work", "color": "#f9a8d4", "icon": "briefcase"},
    {"name": "Personal", "color": "#a5b4fc", "icon": "home"},
    {"name": "Learning", "color": "#86efac", "icon": "book"},
]

# (title, category index or None, status, priority, due in days or None, tags, starred)
TASKS = [
    ("Draft quarterly report", 0, TaskStatus.in_progress, TaskPriority.high, 2, ["reports"], True),
    ("Review pull requests", 0, TaskStatus.pending, TaskPriority.medium, 0, ["code"], False),
    ("Prepare demo", 0, TaskStatus.pending, TaskPriority.urgent, -1, ["demo"], True),
    ("Book dentist appointment", 1, TaskStatus.completed, TaskPriority.low, None, [], False),
    ("Plan weekend trip", 1, TaskStatus.pending, TaskPriority.medium, 5, ["travel"], False),
    ("Cancel old gym membership", 1, TaskStatus.cancelled, TaskPriority.low, None, [], False),
    ("Finish SQL course chapter", 2, TaskStatus.completed, TaskPriority.medium, None, ["sql"], False),
    ("Read about row-level security", 2, TaskStatus.pending, TaskPriority.high, 7, ["sql", "security"], True),
    ("Water the plants", None, TaskStatus.pending, TaskPriority.low, 1, [], False),
]

SUBTASKS = ["Collect numbers", "Write summary", "Send for review"]


# ---------------------------------------------------------------------------
# State file helpers
# ---------------------------------------------------------------------------


def _save_state(state: dict) -> None:
    STATE_FILE.parent.mkdir(parents=True, exist_ok=True)
    STATE_FILE.write_text(json.dumps(state, indent=2))


def _load_state() -> dict | None:
    if not STATE_FILE.exists():
        return None
    return json.loads(STATE_FILE.read_text())


# ---------------------------------------------------------------------------
# Seeding steps
# ---------------------------------------------------------------------------


async def _create_users(session: AsyncSession) -> list[tuple[User, bool]]:
    created = []
    for entry in USERS:
        existing = await users_service.get_user_by_email(session, entry["email"])
        if existing:
            print(f"  User {entry['email']} already exists, skipping")
            continue
        metadata = {key: entry[key] for key in ("display_name", "full_name") if key in entry}
        user = await users_service.create_user(
            session, email=entry["email"], password=PASSWORD, metadata=metadata
        )
        created.append((user, entry["admin"]))
        print(f"  Created user {user.email}")
    return created


async def _seed_owner_data(session: AsyncSession, user: User) -> None:
    """Create one owner's categories, tasks and related rows as that owner."""
    await set_rls_context(session, user_id=user.id)
    try:
        categories = []
        for entry in CATEGORIES:
            category = await categories_service.create_category(
                session, user_id=user.id, category_in=CategoryCreate(**entry)
            )
            categories.append(category)

        for title, category_index, status, priority, due_in, tags, starred in TASKS:
            task = await tasks_service.create_task(
                session,
                user_id=user.id,
                task_in=TaskCreate(
                    title=title,
                    category_id=categories[category_index].id if category_index is not None else None,
                    status=status,
                    priority=priority,
                    due_date=NOW + dt.timedelta(days=due_in) if due_in is not None else None,
                    tags=tags,
                    is_starred=starred,
                ),
            )
            if status == TaskStatus.in_progress:
                for subtask_title in SUBTASKS:
                    await subtasks_service.create_subtask(session, task=task, title=subtask_title)
            if task.due_date is not None and status == TaskStatus.pending:
                await reminders_service.create_reminder(
                    session,
                    task=task,
                    remind_at=task.due_date - dt.timedelta(hours=1),
                    message=f"'{task.title}' is due soon",
                )
                await notifications_service.create_notification(
                    session,
                    user_id=user.id,
                    title="Upcoming task",
                    body=task.title,
                    task_id=task.id,
                )

        # A week of history ahead of today's live counters.
        for offset in range(7, 0, -1):
            session.add(
                AnalyticsDay(
                    user_id=user.id,
                    date=NOW.date() - dt.timedelta(days=offset),
                    tasks_created=offset % 4 + 1,
                    tasks_completed=offset % 3,
                    focus_minutes=25 * (offset % 3),
                    streak_days=0,
                )
            )
        await session.commit()
    finally:
        await clear_rls_context(session)


async def seed() -> None:
    if _load_state():
        print(f"Seed data already present ({STATE_FILE}); run with --clean first.")
        return

    state: dict[str, list[str]] = {"users": []}
    async with AsyncSessionLocal() as session:
        print("Creating users...")
        users = await _create_users(session)
        state["users"] = [str(user.id) for user, _ in users]
        _save_state(state)

        admins = [user for user, is_admin in users if is_admin]
        for user, _ in users:
            print(f"Seeding data for {user.email}...")
            await _seed_owner_data(session, user)

        for admin in admins:
            # Bootstrap grant runs on the owner connection: no admin exists yet.
            await admin_service.grant_role(session, user_id=admin.id, role=AppRole.admin)
            print(f"  Granted admin to {admin.email}")

    print(f"Done! Log in with any seeded email and password '{PASSWORD}'.")


async def clean() -> None:
    state = _load_state()
    if not state:
        print("No seed state found, nothing to clean.")
        return

    async with AsyncSessionLocal() as session:
        # Every owned row cascades from its user.
        for uid in state.get("users", []):
            obj = await session.get(User, uuid.UUID(uid))
            if obj:
                await session.delete(obj)
        await session.commit()
        print("  Removed users and their data")

    STATE_FILE.unlink(missing_ok=True)
    print("Done! All seeded data removed.")


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    if "--clean" in sys.argv:
        asyncio.run(clean())
    else:
        asyncio.run(seed())
