"""Row-level security: role checks and the per-request database context.

Authorization lives in PostgreSQL. The initial migration installs:

  1. Ownership policies: every owned row is visible and writable only when
     its ``user_id`` equals ``app.current_user_id``.
  2. Admin read policies: ``has_role(uid, 'admin')`` additionally grants
     SELECT on users, categories, tasks and analytics. Admins never get
     write access to other owners' rows.
  3. Role management: ``user_roles`` rows are readable by their owner and
     fully manageable by admins.

This module is the application-side view of that layer. ``has_role`` here
calls the SQL function of the same name so there is a single definition of
what "is an admin" means.
"""

from __future__ import annotations

import uuid

from fastapi import HTTPException, status
from sqlalchemy import bindparam, text
from sqlmodel.ext.asyncio.session import AsyncSession

from taskflow.core.messages import AccessMessages
from taskflow.models.user import AppRole

# Re-export RLS context helpers so callers can import from a single place.
from taskflow.db.session import clear_rls_context, current_rls_user, set_rls_context  # noqa: F401

_HAS_ROLE = text("SELECT public.has_role(:user_id, CAST(:role AS public.app_role))").bindparams(
    bindparam("user_id"),
    bindparam("role"),
)


async def has_role(session: AsyncSession, user_id: uuid.UUID, role: AppRole) -> bool:
    """Return True when ``user_id`` holds ``role``, as the policies see it."""
    result = await session.execute(_HAS_ROLE, {"user_id": user_id, "role": role.value})
    return bool(result.scalar_one())


async def is_admin(session: AsyncSession, user_id: uuid.UUID) -> bool:
    return await has_role(session, user_id, AppRole.admin)


async def require_admin(session: AsyncSession, user_id: uuid.UUID) -> None:
    """Raise HTTPException(403) unless ``user_id`` holds the admin role."""
    if not await is_admin(session, user_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=AccessMessages.ADMIN_REQUIRED,
        )
