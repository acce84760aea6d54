"""Engine, sessions and the per-transaction row-level security context.

Every request that touches owned tables runs with two transaction-local
settings applied at the start of each transaction:

* ``SET LOCAL ROLE <APP_DB_ROLE>``: drops to the unprivileged role, so the
  policies installed by the initial migration apply even when the pool
  connects as the table owner.
* ``app.current_user_id``: the identity the policies compare owner columns
  against and pass to ``has_role``.

The context lives in ``session.info`` and is re-applied by an
``after_begin`` hook, so it survives ``commit()`` on the same session.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import AsyncGenerator
from dataclasses import dataclass
from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import event, text
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from taskflow.core.config import settings
from taskflow.db import base  # noqa: F401  # ensure models are imported for metadata

logger = logging.getLogger(__name__)

BACKEND_DIR = Path(__file__).resolve().parents[2]
RLS_CONTEXT_KEY = "rls_context"

engine = create_async_engine(settings.DATABASE_URL, echo=False, future=True, pool_pre_ping=True)

AsyncSessionLocal = sessionmaker(
    bind=engine,
    autoflush=False,
    expire_on_commit=False,
    class_=AsyncSession,
)


@dataclass(frozen=True)
class RLSContext:
    user_id: uuid.UUID
    db_role: str


def _apply_context(connection: Connection, context: RLSContext) -> None:
    # db_role is validated as a plain identifier in Settings.
    connection.execute(text(f"SET LOCAL ROLE {context.db_role}"))
    connection.execute(
        text("SELECT set_config('app.current_user_id', :user_id, true)"),
        {"user_id": str(context.user_id)},
    )


def _reset_context(connection: Connection) -> None:
    connection.execute(text("RESET ROLE"))
    connection.execute(text("SELECT set_config('app.current_user_id', '', true)"))


@event.listens_for(Session, "after_begin")
def _apply_rls_on_begin(session: Session, transaction, connection: Connection) -> None:
    context = session.info.get(RLS_CONTEXT_KEY)
    if context is not None:
        _apply_context(connection, context)


async def set_rls_context(
    session: AsyncSession,
    *,
    user_id: uuid.UUID,
    db_role: str | None = None,
) -> None:
    """Scope all following statements on ``session`` to ``user_id``."""
    context = RLSContext(user_id=user_id, db_role=db_role or settings.APP_DB_ROLE)
    already_open = session.in_transaction()
    session.info[RLS_CONTEXT_KEY] = context
    if already_open:
        connection = await session.connection()
        await connection.run_sync(_apply_context, context)


async def clear_rls_context(session: AsyncSession) -> None:
    """Return ``session`` to the owner connection's privileges."""
    context = session.info.pop(RLS_CONTEXT_KEY, None)
    if context is not None and session.in_transaction():
        connection = await session.connection()
        await connection.run_sync(_reset_context)


def current_rls_user(session: AsyncSession) -> uuid.UUID | None:
    context = session.info.get(RLS_CONTEXT_KEY)
    return context.user_id if context else None


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        yield session


def _get_alembic_config(database_url: str | None = None) -> Config:
    config = Config(str(BACKEND_DIR / "alembic.ini"))
    config.set_main_option("script_location", str(BACKEND_DIR / "alembic"))
    config.set_main_option("sqlalchemy.url", database_url or settings.DATABASE_URL)
    config.attributes["configure_logger"] = False
    config.attributes["url_configured"] = True
    return config


def upgrade_database(database_url: str | None = None) -> None:
    """Run ``alembic upgrade head`` synchronously."""
    command.upgrade(_get_alembic_config(database_url), "head")


async def run_migrations() -> None:
    # env.py drives its own event loop, so keep it off the running one.
    logger.info("Applying database migrations")
    await asyncio.to_thread(upgrade_database)
