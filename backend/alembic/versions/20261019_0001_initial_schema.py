"""Initial schema: tables, row-level security, lifecycle triggers, realtime feed

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19

This migration:
1. Creates the app_role / task_priority / task_status enums and all tables
2. Creates the unprivileged app role every request runs as
3. Creates has_role(), a SECURITY DEFINER lookup that lets policies check
   the admin role without re-entering the user_roles policies
4. Enables RLS on every table with owner, admin-read and notification
   inbox policies
5. Installs the updated_at and new-user bootstrap triggers
6. Registers tasks and notifications for realtime change delivery

RLS is enabled but not forced: the table owner (the migration user) keeps
full access for identity bootstrap and the change feed relay, while request
sessions SET LOCAL ROLE to the app role and are filtered.

Forward-only: there is no downgrade.
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from taskflow.core.config import settings


revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None

APP_ROLE = settings.APP_DB_ROLE
CHANGE_CHANNEL = settings.REALTIME_CHANNEL
PUBLICATION = "taskflow_realtime"

# Session variable accessor (NULLIF-safe: unset or cleared -> NULL -> no rows)
CURRENT_USER_ID = "NULLIF(current_setting('app.current_user_id', true), '')::uuid"
IS_ADMIN = f"public.has_role({CURRENT_USER_ID}, 'admin'::public.app_role)"
IS_OWNER = f"user_id = {CURRENT_USER_ID}"

# Tables where the owner may do everything with their own rows
OWNER_ALL_TABLES = ["categories", "tasks", "subtasks", "reminders", "analytics"]
# Owned tables admins may read across all owners (never write)
ADMIN_READ_TABLES = ["categories", "tasks", "analytics"]
# Tables whose updated_at is maintained by trigger
TOUCH_TABLES = ["profiles", "categories", "tasks", "subtasks"]
# Tables published for realtime row-change delivery
REALTIME_TABLES = ["tasks", "notifications"]

APP_TABLES = [
    "profiles",
    "user_roles",
    "categories",
    "tasks",
    "subtasks",
    "reminders",
    "notifications",
    "analytics",
]
ALL_TABLES = ["users"] + APP_TABLES

app_role_enum = postgresql.ENUM("admin", "user", name="app_role", create_type=False)
task_priority_enum = postgresql.ENUM("low", "medium", "high", "urgent", name="task_priority", create_type=False)
task_status_enum = postgresql.ENUM(
    "pending", "in_progress", "completed", "cancelled", name="task_status", create_type=False
)


def _uuid_pk() -> sa.Column:
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=True),
        primary_key=True,
        server_default=sa.text("gen_random_uuid()"),
    )


def _owner_column() -> sa.Column:
    return sa.Column(
        "user_id",
        postgresql.UUID(as_uuid=True),
        sa.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )


def _timestamp(name: str) -> sa.Column:
    return sa.Column(name, sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()"))


def _create_enums() -> None:
    op.execute("CREATE TYPE public.app_role AS ENUM ('admin', 'user')")
    op.execute("CREATE TYPE public.task_priority AS ENUM ('low', 'medium', 'high', 'urgent')")
    op.execute("CREATE TYPE public.task_status AS ENUM ('pending', 'in_progress', 'completed', 'cancelled')")


def _create_tables() -> None:
    op.create_table(
        "users",
        _uuid_pk(),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("hashed_password", sa.String(), nullable=False),
        sa.Column(
            "raw_user_meta_data",
            postgresql.JSONB(),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        _timestamp("created_at"),
        _timestamp("updated_at"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "profiles",
        sa.Column(
            "id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("display_name", sa.Text(), nullable=True),
        sa.Column("avatar_url", sa.Text(), nullable=True),
        sa.Column("bio", sa.Text(), nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
    )

    op.create_table(
        "user_roles",
        _uuid_pk(),
        _owner_column(),
        sa.Column("role", app_role_enum, nullable=False),
        _timestamp("created_at"),
        sa.UniqueConstraint("user_id", "role", name="user_roles_user_id_role_key"),
    )
    op.create_index("ix_user_roles_user_id", "user_roles", ["user_id"])

    op.create_table(
        "categories",
        _uuid_pk(),
        _owner_column(),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("color", sa.Text(), nullable=False, server_default="#f9a8d4"),
        sa.Column("icon", sa.Text(), nullable=True, server_default="folder"),
        _timestamp("created_at"),
        _timestamp("updated_at"),
    )
    op.create_index("ix_categories_user_id", "categories", ["user_id"])

    op.create_table(
        "tasks",
        _uuid_pk(),
        _owner_column(),
        sa.Column(
            "category_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("categories.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", task_status_enum, nullable=False, server_default="pending"),
        sa.Column("priority", task_priority_enum, nullable=False, server_default="medium"),
        sa.Column("due_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "tags",
            postgresql.ARRAY(sa.Text()),
            nullable=True,
            server_default=sa.text("'{}'::text[]"),
        ),
        sa.Column("is_starred", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        _timestamp("created_at"),
        _timestamp("updated_at"),
    )
    op.create_index("ix_tasks_user_id", "tasks", ["user_id"])
    op.create_index("ix_tasks_category_id", "tasks", ["category_id"])
    op.create_index("ix_tasks_user_id_created_at", "tasks", ["user_id", "created_at"])

    op.create_table(
        "subtasks",
        _uuid_pk(),
        sa.Column(
            "task_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("tasks.id", ondelete="CASCADE"),
            nullable=False,
        ),
        _owner_column(),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("is_completed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        _timestamp("created_at"),
        _timestamp("updated_at"),
    )
    op.create_index("ix_subtasks_task_id", "subtasks", ["task_id"])
    op.create_index("ix_subtasks_user_id", "subtasks", ["user_id"])

    op.create_table(
        "reminders",
        _uuid_pk(),
        sa.Column(
            "task_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("tasks.id", ondelete="CASCADE"),
            nullable=False,
        ),
        _owner_column(),
        sa.Column("remind_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_sent", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("message", sa.Text(), nullable=True),
        _timestamp("created_at"),
    )
    op.create_index("ix_reminders_task_id", "reminders", ["task_id"])
    op.create_index("ix_reminders_user_id", "reminders", ["user_id"])

    op.create_table(
        "notifications",
        _uuid_pk(),
        _owner_column(),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("body", sa.Text(), nullable=True),
        sa.Column("type", sa.Text(), nullable=False, server_default="reminder"),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            "task_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("tasks.id", ondelete="SET NULL"),
            nullable=True,
        ),
        _timestamp("created_at"),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])
    op.create_index("ix_notifications_task_id", "notifications", ["task_id"])

    op.create_table(
        "analytics",
        _uuid_pk(),
        _owner_column(),
        sa.Column("date", sa.Date(), nullable=False, server_default=sa.text("CURRENT_DATE")),
        sa.Column("tasks_created", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("tasks_completed", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("tasks_cancelled", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("focus_minutes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("streak_days", sa.Integer(), nullable=False, server_default="0"),
        _timestamp("created_at"),
        sa.UniqueConstraint("user_id", "date", name="analytics_user_id_date_key"),
    )
    op.create_index("ix_analytics_user_id", "analytics", ["user_id"])


def _create_app_role() -> None:
    op.execute(f"""
        DO $$
        BEGIN
            IF NOT EXISTS (SELECT 1 FROM pg_roles WHERE rolname = '{APP_ROLE}') THEN
                CREATE ROLE {APP_ROLE} NOLOGIN NOINHERIT;
            END IF;
            -- The pool connects as the owner and switches with SET LOCAL ROLE,
            -- which needs membership unless the owner is a superuser.
            IF NOT pg_has_role(current_user, '{APP_ROLE}', 'MEMBER') THEN
                EXECUTE format('GRANT {APP_ROLE} TO %I', current_user);
            END IF;
        END $$
    """)
    op.execute(f"GRANT USAGE ON SCHEMA public TO {APP_ROLE}")
    op.execute(f"GRANT SELECT, INSERT, UPDATE, DELETE ON {', '.join(APP_TABLES)} TO {APP_ROLE}")
    # Identities are written by the authentication flow only.
    op.execute(f"GRANT SELECT ON users TO {APP_ROLE}")


def _create_has_role() -> None:
    # SECURITY DEFINER runs as the table owner, which is not subject to RLS,
    # so policies on user_roles can call this without recursing.
    op.execute("""
        CREATE OR REPLACE FUNCTION public.has_role(_user_id uuid, _role public.app_role)
        RETURNS boolean
        LANGUAGE sql
        STABLE
        SECURITY DEFINER
        SET search_path = public
        AS $$
            SELECT EXISTS (
                SELECT 1 FROM public.user_roles
                WHERE user_id = _user_id
                AND role = _role
            )
        $$
    """)
    op.execute("REVOKE EXECUTE ON FUNCTION public.has_role(uuid, public.app_role) FROM PUBLIC")
    op.execute(f"GRANT EXECUTE ON FUNCTION public.has_role(uuid, public.app_role) TO {APP_ROLE}")


def _create_owner_all_policy(table: str) -> None:
    op.execute(f"""
        CREATE POLICY {table}_owner_all ON {table}
        FOR ALL
        USING ({IS_OWNER})
        WITH CHECK ({IS_OWNER})
    """)


def _create_admin_read_policy(table: str) -> None:
    op.execute(f"""
        CREATE POLICY {table}_admin_read ON {table}
        FOR SELECT
        USING ({IS_ADMIN})
    """)


def _create_policies() -> None:
    for table in ALL_TABLES:
        op.execute(f"ALTER TABLE {table} ENABLE ROW LEVEL SECURITY")

    op.execute(f"""
        CREATE POLICY users_self_select ON users
        FOR SELECT
        USING (id = {CURRENT_USER_ID})
    """)
    _create_admin_read_policy("users")

    op.execute(f"""
        CREATE POLICY profiles_select_own ON profiles
        FOR SELECT
        USING (id = {CURRENT_USER_ID})
    """)
    op.execute(f"""
        CREATE POLICY profiles_insert_own ON profiles
        FOR INSERT
        WITH CHECK (id = {CURRENT_USER_ID})
    """)
    op.execute(f"""
        CREATE POLICY profiles_update_own ON profiles
        FOR UPDATE
        USING (id = {CURRENT_USER_ID})
        WITH CHECK (id = {CURRENT_USER_ID})
    """)

    op.execute(f"""
        CREATE POLICY user_roles_select_own ON user_roles
        FOR SELECT
        USING ({IS_OWNER})
    """)
    op.execute(f"""
        CREATE POLICY admins_manage_roles ON user_roles
        FOR ALL
        USING ({IS_ADMIN})
        WITH CHECK ({IS_ADMIN})
    """)

    for table in OWNER_ALL_TABLES:
        _create_owner_all_policy(table)
    for table in ADMIN_READ_TABLES:
        _create_admin_read_policy(table)

    # Notifications behave like an inbox: no owner-all shortcut.
    op.execute(f"""
        CREATE POLICY notifications_select_own ON notifications
        FOR SELECT
        USING ({IS_OWNER})
    """)
    op.execute(f"""
        CREATE POLICY notifications_update_own ON notifications
        FOR UPDATE
        USING ({IS_OWNER})
        WITH CHECK ({IS_OWNER})
    """)
    op.execute(f"""
        CREATE POLICY notifications_delete_own ON notifications
        FOR DELETE
        USING ({IS_OWNER})
    """)
    op.execute(f"""
        CREATE POLICY notifications_insert_own ON notifications
        FOR INSERT
        WITH CHECK ({IS_OWNER})
    """)


def _create_lifecycle_triggers() -> None:
    op.execute("""
        CREATE OR REPLACE FUNCTION public.update_updated_at_column()
        RETURNS trigger
        LANGUAGE plpgsql
        SET search_path = public
        AS $$
        BEGIN
            NEW.updated_at = now();
            RETURN NEW;
        END;
        $$
    """)
    for table in TOUCH_TABLES:
        op.execute(f"""
            CREATE TRIGGER update_{table}_updated_at
            BEFORE UPDATE ON {table}
            FOR EACH ROW EXECUTE FUNCTION public.update_updated_at_column()
        """)

    # Display name falls back display_name -> full_name -> email local part.
    op.execute("""
        CREATE OR REPLACE FUNCTION public.handle_new_user()
        RETURNS trigger
        LANGUAGE plpgsql
        SECURITY DEFINER
        SET search_path = public
        AS $$
        BEGIN
            INSERT INTO public.profiles (id, display_name, avatar_url)
            VALUES (
                NEW.id,
                COALESCE(
                    NULLIF(NEW.raw_user_meta_data->>'display_name', ''),
                    NULLIF(NEW.raw_user_meta_data->>'full_name', ''),
                    split_part(NEW.email, '@', 1)
                ),
                NEW.raw_user_meta_data->>'avatar_url'
            )
            ON CONFLICT (id) DO NOTHING;

            INSERT INTO public.user_roles (user_id, role)
            VALUES (NEW.id, 'user')
            ON CONFLICT (user_id, role) DO NOTHING;

            RETURN NEW;
        END;
        $$
    """)
    op.execute("""
        CREATE TRIGGER on_user_created
        AFTER INSERT ON users
        FOR EACH ROW EXECUTE FUNCTION public.handle_new_user()
    """)


def _create_realtime_feed() -> None:
    op.execute(f"""
        DO $$
        BEGIN
            IF NOT EXISTS (SELECT 1 FROM pg_publication WHERE pubname = '{PUBLICATION}') THEN
                CREATE PUBLICATION {PUBLICATION} FOR TABLE {', '.join(REALTIME_TABLES)};
            END IF;
        END $$
    """)

    # Payload carries keys only; NOTIFY payloads are capped at 8000 bytes.
    op.execute(f"""
        CREATE OR REPLACE FUNCTION public.notify_row_change()
        RETURNS trigger
        LANGUAGE plpgsql
        SET search_path = public
        AS $$
        DECLARE
            changed record;
        BEGIN
            IF TG_OP = 'DELETE' THEN
                changed := OLD;
            ELSE
                changed := NEW;
            END IF;
            PERFORM pg_notify(
                '{CHANGE_CHANNEL}',
                json_build_object(
                    'table', TG_TABLE_NAME,
                    'action', lower(TG_OP),
                    'id', changed.id,
                    'user_id', changed.user_id
                )::text
            );
            RETURN NULL;
        END;
        $$
    """)
    for table in REALTIME_TABLES:
        op.execute(f"""
            CREATE TRIGGER {table}_notify_change
            AFTER INSERT OR UPDATE OR DELETE ON {table}
            FOR EACH ROW EXECUTE FUNCTION public.notify_row_change()
        """)


def upgrade() -> None:
    op.execute('CREATE EXTENSION IF NOT EXISTS "pgcrypto"')
    _create_enums()
    _create_tables()
    _create_app_role()
    _create_has_role()
    _create_policies()
    _create_lifecycle_triggers()
    _create_realtime_feed()


def downgrade() -> None:
    raise NotImplementedError("20261019_0001 is forward-only")
