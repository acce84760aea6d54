"""Tests for the application-side view of row-level security.

Tests cover:
- has_role / is_admin agreeing with the SQL function
- require_admin raising 403 for non-admins
- the session context surviving commits and being cleared
"""

import pytest
from fastapi import HTTPException
from sqlalchemy import text
from sqlmodel.ext.asyncio.session import AsyncSession

from taskflow.core.config import settings
from taskflow.core.messages import AccessMessages
from taskflow.models.user import AppRole
from taskflow.services.rls import (
    clear_rls_context,
    current_rls_user,
    has_role,
    is_admin,
    require_admin,
    set_rls_context,
)
from taskflow.testing import create_admin, create_user, user_context


async def _current_setting(session: AsyncSession, name: str) -> str:
    result = await session.execute(text("SELECT current_setting(:name, true)"), {"name": name})
    return result.scalar_one()


async def _current_role(session: AsyncSession) -> str:
    result = await session.execute(text("SELECT current_user"))
    return result.scalar_one()


# ---------------------------------------------------------------------------
# Role checks
# ---------------------------------------------------------------------------


@pytest.mark.service
async def test_has_role_user_for_every_new_identity(session: AsyncSession):
    user = await create_user(session)

    assert await has_role(session, user.id, AppRole.user) is True
    assert await has_role(session, user.id, AppRole.admin) is False


@pytest.mark.service
async def test_is_admin_after_grant(session: AsyncSession):
    admin = await create_admin(session)

    assert await is_admin(session, admin.id) is True


@pytest.mark.service
async def test_has_role_callable_as_app_role(session: AsyncSession):
    admin = await create_admin(session)
    user = await create_user(session)

    # Evaluated as the restricted role, which cannot read other users' roles directly.
    async with user_context(session, user):
        assert await is_admin(session, admin.id) is True
        assert await is_admin(session, user.id) is False


@pytest.mark.service
async def test_require_admin_passes_for_admin(session: AsyncSession):
    admin = await create_admin(session)

    await require_admin(session, admin.id)  # should not raise


@pytest.mark.service
async def test_require_admin_raises_for_user(session: AsyncSession):
    user = await create_user(session)

    with pytest.raises(HTTPException) as exc_info:
        await require_admin(session, user.id)
    assert exc_info.value.status_code == 403
    assert exc_info.value.detail == AccessMessages.ADMIN_REQUIRED


# ---------------------------------------------------------------------------
# Session context
# ---------------------------------------------------------------------------


@pytest.mark.service
async def test_context_applies_role_and_identity(session: AsyncSession):
    user = await create_user(session)

    await set_rls_context(session, user_id=user.id)
    try:
        assert current_rls_user(session) == user.id
        assert await _current_role(session) == settings.APP_DB_ROLE
        assert await _current_setting(session, "app.current_user_id") == str(user.id)
    finally:
        await clear_rls_context(session)

    assert current_rls_user(session) is None
    assert await _current_role(session) != settings.APP_DB_ROLE


@pytest.mark.service
async def test_context_survives_commit(session: AsyncSession):
    user = await create_user(session)

    async with user_context(session, user):
        await session.commit()
        # New transaction: re-applied by the after_begin hook.
        assert await _current_role(session) == settings.APP_DB_ROLE
        assert await _current_setting(session, "app.current_user_id") == str(user.id)
