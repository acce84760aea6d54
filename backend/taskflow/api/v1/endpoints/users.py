from fastapi import APIRouter, HTTPException, status

from taskflow.api.deps import CurrentUser, UserSessionDep
from taskflow.core.messages import AuthMessages
from taskflow.schemas.user import ProfileRead, ProfileUpdate, UserRead
from taskflow.services import users as users_service

router = APIRouter()


@router.get("/me", response_model=UserRead)
async def read_users_me(current_user: CurrentUser, session: UserSessionDep) -> UserRead:
    profile = await users_service.get_profile(session, current_user.id)
    roles = await users_service.get_roles(session, current_user.id)
    return UserRead(
        id=current_user.id,
        email=current_user.email,
        is_active=current_user.is_active,
        created_at=current_user.created_at,
        roles=roles,
        profile=ProfileRead.model_validate(profile) if profile else None,
    )


@router.patch("/me/profile", response_model=ProfileRead)
async def update_my_profile(
    profile_in: ProfileUpdate,
    current_user: CurrentUser,
    session: UserSessionDep,
) -> ProfileRead:
    profile = await users_service.get_profile(session, current_user.id)
    if profile is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=AuthMessages.USER_NOT_FOUND)
    profile = await users_service.update_profile(session, profile, profile_in.model_dump(exclude_unset=True))
    return ProfileRead.model_validate(profile)
