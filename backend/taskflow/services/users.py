from __future__ import annotations

import logging
import uuid
from typing import Any, List, Optional

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from taskflow.core.security import get_password_hash, verify_password
from taskflow.models.user import AppRole, Profile, User, UserRole

logger = logging.getLogger(__name__)


async def get_user_by_email(session: AsyncSession, email: str) -> Optional[User]:
    stmt = select(User).where(User.email == email.lower().strip())
    result = await session.exec(stmt)
    return result.one_or_none()


async def get_user(session: AsyncSession, user_id: uuid.UUID) -> Optional[User]:
    return await session.get(User, user_id)


async def create_user(
    session: AsyncSession,
    *,
    email: str,
    password: str,
    metadata: Optional[dict[str, Any]] = None,
    commit: bool = True,
) -> User:
    """Insert an identity row.

    Must run on the owner session: ``app_user`` cannot write ``users``. The
    ``on_user_created`` trigger creates the profile and the ``user`` role in
    the same transaction.
    """
    user = User(
        email=email.lower().strip(),
        hashed_password=get_password_hash(password),
        raw_user_meta_data=metadata or {},
    )
    session.add(user)
    if commit:
        await session.commit()
        await session.refresh(user)
    else:
        await session.flush()
    logger.info("Registered user %s", user.id)
    return user


async def authenticate(session: AsyncSession, *, email: str, password: str) -> Optional[User]:
    user = await get_user_by_email(session, email)
    if user is None or not verify_password(password, user.hashed_password):
        return None
    return user


async def get_profile(session: AsyncSession, user_id: uuid.UUID) -> Optional[Profile]:
    return await session.get(Profile, user_id)


async def get_roles(session: AsyncSession, user_id: uuid.UUID) -> List[AppRole]:
    stmt = select(UserRole.role).where(UserRole.user_id == user_id).order_by(UserRole.role)
    result = await session.exec(stmt)
    return list(result.all())


async def update_profile(session: AsyncSession, profile: Profile, changes: dict[str, Any]) -> Profile:
    for field, value in changes.items():
        setattr(profile, field, value)
    session.add(profile)
    await session.commit()
    # updated_at is rewritten by trigger.
    await session.refresh(profile)
    return profile
