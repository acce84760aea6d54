import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordRequestForm

from taskflow.api.deps import SessionDep
from taskflow.core.messages import AuthMessages
from taskflow.core.rate_limit import auth_rate_limit, auth_rate_limit_key, limiter
from taskflow.core.security import create_access_token
from taskflow.models.user import AppRole
from taskflow.schemas.token import Token
from taskflow.schemas.user import ProfileRead, UserCreate, UserRead
from taskflow.services import users as users_service

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/register", response_model=UserRead, status_code=status.HTTP_201_CREATED)
@limiter.limit(auth_rate_limit, key_func=auth_rate_limit_key)
async def register_user(request: Request, user_in: UserCreate, session: SessionDep) -> UserRead:
    if await users_service.get_user_by_email(session, user_in.email):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=AuthMessages.EMAIL_TAKEN)

    user = await users_service.create_user(
        session,
        email=user_in.email,
        password=user_in.password,
        metadata=user_in.signup_metadata(),
    )
    profile = await users_service.get_profile(session, user.id)
    return UserRead(
        id=user.id,
        email=user.email,
        is_active=user.is_active,
        created_at=user.created_at,
        roles=[AppRole.user],
        profile=ProfileRead.model_validate(profile) if profile else None,
    )


@router.post("/token", response_model=Token)
@limiter.limit(auth_rate_limit, key_func=auth_rate_limit_key)
async def login_access_token(
    request: Request,
    session: SessionDep,
    form_data: OAuth2PasswordRequestForm = Depends(),
) -> Token:
    user = await users_service.authenticate(session, email=form_data.username, password=form_data.password)
    if not user:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=AuthMessages.BAD_CREDENTIALS)
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=AuthMessages.INACTIVE_USER)

    return Token(access_token=create_access_token(subject=str(user.id)))
