from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.exc import DBAPIError
from sqlmodel.ext.asyncio.session import AsyncSession

from taskflow.core.config import settings
from taskflow.core.messages import AuthMessages
from taskflow.core.security import decode_token_subject
from taskflow.db.session import clear_rls_context, get_session, set_rls_context
from taskflow.models.user import User
from taskflow.services import rls as rls_service

SessionDep = Annotated[AsyncSession, Depends(get_session)]

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_STR}/auth/token")


async def get_current_user(
    token: Annotated[str, Depends(oauth2_scheme)],
    session: SessionDep,
) -> User:
    user_id = decode_token_subject(token)
    if user_id is None:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=AuthMessages.INVALID_TOKEN)

    # Identity lookup runs on the owner connection, before any RLS context exists.
    user = await session.get(User, user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=AuthMessages.USER_NOT_FOUND)
    return user


async def get_current_active_user(
    current_user: Annotated[User, Depends(get_current_user)]
) -> User:
    if not current_user.is_active:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=AuthMessages.INACTIVE_USER)
    return current_user


CurrentUser = Annotated[User, Depends(get_current_active_user)]


async def get_user_session(
    session: SessionDep,
    current_user: CurrentUser,
) -> AsyncGenerator[AsyncSession, None]:
    """The request session, scoped to the caller for row-level security."""
    await set_rls_context(session, user_id=current_user.id)
    try:
        yield session
    except DBAPIError:
        await session.rollback()
        raise
    finally:
        await clear_rls_context(session)


UserSessionDep = Annotated[AsyncSession, Depends(get_user_session)]


async def get_admin_user(session: UserSessionDep, current_user: CurrentUser) -> User:
    await rls_service.require_admin(session, current_user.id)
    return current_user


AdminUser = Annotated[User, Depends(get_admin_user)]
