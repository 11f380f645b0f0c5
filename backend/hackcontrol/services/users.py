from __future__ import annotations
import re
import structlog
from sqlalchemy import select, exists, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from hackcontrol.config import settings
from hackcontrol.errors import NotFound, Forbidden, Conflict
from hackcontrol.models.user import User
from hackcontrol.models.participation import Participation
from hackcontrol.schemas.auth import OAuthProfile
from hackcontrol.schemas.user import ProfileUpdate
from hackcontrol.services.access import Capability, require

log = structlog.get_logger()

USERNAME_MAX = 40


def normalize_username(login: str) -> str:
    name = re.sub(r"[^a-z0-9_-]+", "", login.lower())
    return name[:USERNAME_MAX] or "user"


async def _free_username(session: AsyncSession, base: str) -> str:
    candidate, n = base, 1
    while await session.scalar(select(exists().where(User.username == candidate))):
        n += 1
        tail = str(n)
        candidate = f"{base[:USERNAME_MAX - len(tail)]}{tail}"
    return candidate


async def upsert_from_profile(session: AsyncSession, profile: OAuthProfile) -> User:
    """Create the user on first sign-in; refresh the avatar afterwards."""
    email = profile.email.lower()
    user = await session.scalar(select(User).where(User.email == email))
    if user:
        if not user.has_access:
            raise Forbidden("Access revoked")
        if profile.image and profile.image != user.image:
            user.image = profile.image
            await session.commit()
        return user

    user = User(
        email=email,
        username=await _free_username(session, normalize_username(profile.login)),
        name=profile.name,
        image=profile.image,
        role="ADMIN" if email in settings.admin_emails else "USER",
    )
    session.add(user)
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise Conflict("Account is being created by another request; retry sign-in")
    log.info("user_created", user_id=str(user.id), username=user.username, provider=profile.provider)
    return user


async def get_by_username(session: AsyncSession, username: str) -> User:
    user = await session.scalar(select(User).where(User.username == username.lower()))
    if not user:
        raise NotFound("User not found")
    return user


async def update_profile(session: AsyncSession, actor: User, payload: ProfileUpdate) -> User:
    fields = payload.model_dump(exclude_unset=True)
    renamed = "name" in fields and fields["name"] != actor.name
    for key, value in fields.items():
        setattr(actor, key, value)
    if renamed:
        await session.execute(
            update(Participation)
            .where(Participation.creator_id == actor.id)
            .values(creator_name=actor.display_name)
        )
    await session.commit()
    log.info("profile_updated", user_id=str(actor.id), fields=sorted(fields))
    return actor


async def list_users(session: AsyncSession, actor: User, limit: int = 100) -> list[User]:
    await require(session, Capability.ADMIN, actor)
    rows = (await session.execute(select(User).order_by(User.created_at.asc(), User.id).limit(limit))).scalars().all()
    return list(rows)


async def set_role(session: AsyncSession, actor: User, username: str, role: str) -> User:
    await require(session, Capability.ADMIN, actor)
    user = await get_by_username(session, username)
    user.role = role
    await session.commit()
    log.info("user_role_changed", user_id=str(user.id), role=role, by=str(actor.id))
    return user


async def set_access(session: AsyncSession, actor: User, username: str, has_access: bool) -> User:
    await require(session, Capability.ADMIN, actor)
    user = await get_by_username(session, username)
    if user.id == actor.id and not has_access:
        raise Forbidden("Admins cannot revoke their own access")
    user.has_access = has_access
    await session.commit()
    log.info("user_access_changed", user_id=str(user.id), has_access=has_access, by=str(actor.id))
    return user
