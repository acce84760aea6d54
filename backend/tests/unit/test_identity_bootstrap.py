"""
Tests for the ``on_user_created`` trigger.

Creating an identity must produce exactly one profile (id = identity id)
and exactly one ``user`` role row, in the same transaction.
"""

import pytest
from sqlalchemy import func
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from taskflow.models.user import AppRole, Profile, UserRole
from taskflow.testing import create_user


async def _roles(session: AsyncSession, user_id) -> list[AppRole]:
    result = await session.exec(select(UserRole.role).where(UserRole.user_id == user_id))
    return list(result.all())


@pytest.mark.unit
async def test_new_identity_gets_profile_and_user_role(session: AsyncSession):
    user = await create_user(session, metadata={"display_name": "Ada"})

    profile_count = await session.exec(select(func.count(Profile.id)).where(Profile.id == user.id))
    assert profile_count.one() == 1
    assert await _roles(session, user.id) == [AppRole.user]


@pytest.mark.unit
async def test_display_name_prefers_display_name_metadata(session: AsyncSession):
    user = await create_user(
        session,
        metadata={
            "display_name": "Ada",
            "full_name": "Ada Lovelace",
            "avatar_url": "https://example.com/ada.png",
        },
    )

    profile = await session.get(Profile, user.id)
    assert profile.display_name == "Ada"
    assert profile.avatar_url == "https://example.com/ada.png"


@pytest.mark.unit
async def test_display_name_falls_back_to_full_name(session: AsyncSession):
    user = await create_user(session, metadata={"full_name": "Grace Hopper"})

    profile = await session.get(Profile, user.id)
    assert profile.display_name == "Grace Hopper"
    assert profile.avatar_url is None


@pytest.mark.unit
async def test_display_name_falls_back_to_email_local_part(session: AsyncSession):
    user = await create_user(session, email="linus@example.com", metadata={})

    profile = await session.get(Profile, user.id)
    assert profile.display_name == "linus"


@pytest.mark.unit
async def test_each_identity_is_bootstrapped_once(session: AsyncSession):
    first = await create_user(session)
    second = await create_user(session)

    total_profiles = await session.exec(select(func.count(Profile.id)))
    total_roles = await session.exec(select(func.count(UserRole.id)))
    assert total_profiles.one() == 2
    assert total_roles.one() == 2
    assert await _roles(session, first.id) == [AppRole.user]
    assert await _roles(session, second.id) == [AppRole.user]
