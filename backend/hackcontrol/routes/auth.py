from __future__ import annotations
import uuid
from fastapi import APIRouter, Depends, HTTPException, Header
from jwt import PyJWTError
from sqlalchemy.ext.asyncio import AsyncSession
from hackcontrol.db import get_session
from hackcontrol.auth_deps import get_current_user
from hackcontrol.models.user import User
from hackcontrol.schemas.auth import OAuthProfile, TokenPair
from hackcontrol.schemas.user import UserPrivate
from hackcontrol.security import make_access_token, make_refresh_token, decode_token, provider_secret_ok
from hackcontrol.services.users import upsert_from_profile

router = APIRouter(prefix="/auth", tags=["auth"])

@router.post("/session", response_model=TokenPair)
async def open_session(
    payload: OAuthProfile,
    x_auth_secret: str | None = Header(default=None, alias="X-Auth-Secret"),
    session: AsyncSession = Depends(get_session),
):
    """Exchange a provider profile verified by the OAuth front for API tokens."""
    if not provider_secret_ok(x_auth_secret):
        raise HTTPException(status_code=401, detail="Unknown authentication provider")
    user = await upsert_from_profile(session, payload)
    return TokenPair(access=make_access_token(str(user.id)), refresh=make_refresh_token(str(user.id)))

@router.post("/refresh", response_model=TokenPair)
async def refresh(authorization: str | None = Header(None), session: AsyncSession = Depends(get_session)):
    if not authorization or not authorization.lower().startswith("bearer "):
        raise HTTPException(status_code=401, detail="Missing refresh token")
    token = authorization.split(" ", 1)[1]
    try:
        data = decode_token(token)
    except PyJWTError:
        raise HTTPException(status_code=401, detail="Invalid token")
    if data.get("type") != "refresh":
        raise HTTPException(status_code=401, detail="Wrong token type")
    sub = data.get("sub")
    try:
        user = await session.get(User, uuid.UUID(str(sub)))
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid token")
    if not user:
        raise HTTPException(status_code=401, detail="User not found")
    if not user.has_access:
        raise HTTPException(status_code=403, detail="Access revoked")
    return TokenPair(access=make_access_token(sub), refresh=make_refresh_token(sub))

@router.get("/me", response_model=UserPrivate)
async def me(user: User = Depends(get_current_user)):
    return UserPrivate.model_validate(user)
