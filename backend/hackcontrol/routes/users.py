from __future__ import annotations
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from hackcontrol.db import get_session
from hackcontrol.auth_deps import get_current_user
from hackcontrol.schemas.user import UserPublic, UserPrivate, ProfileUpdate, RoleUpdate, AccessUpdate
from hackcontrol.services import users as user_service

router = APIRouter(prefix="/users", tags=["users"])

@router.get("/me", response_model=UserPrivate)
async def read_me(user=Depends(get_current_user)):
    return UserPrivate.model_validate(user)

@router.patch("/me", response_model=UserPrivate)
async def edit_me(payload: ProfileUpdate, session: AsyncSession = Depends(get_session), user=Depends(get_current_user)):
    return UserPrivate.model_validate(await user_service.update_profile(session, user, payload))

@router.get("", response_model=list[UserPrivate])
async def list_users(
    session: AsyncSession = Depends(get_session),
    user=Depends(get_current_user),
    limit: int = Query(default=100, ge=1, le=500),
):
    return [UserPrivate.model_validate(u) for u in await user_service.list_users(session, user, limit)]

@router.get("/{username}", response_model=UserPublic)
async def read_user(username: str, session: AsyncSession = Depends(get_session)):
    return UserPublic.model_validate(await user_service.get_by_username(session, username))

@router.patch("/{username}/role", response_model=UserPrivate)
async def change_role(username: str, payload: RoleUpdate, session: AsyncSession = Depends(get_session), user=Depends(get_current_user)):
    return UserPrivate.model_validate(await user_service.set_role(session, user, username, payload.role))

@router.patch("/{username}/access", response_model=UserPrivate)
async def change_access(username: str, payload: AccessUpdate, session: AsyncSession = Depends(get_session), user=Depends(get_current_user)):
    return UserPrivate.model_validate(await user_service.set_access(session, user, username, payload.has_access))
