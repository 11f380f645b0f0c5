"""
Central capability checks.

Every mutation names the capability it needs and calls ``require``; nothing
else in the service layer branches on roles.
"""
from __future__ import annotations
import enum
from sqlalchemy import select, exists
from sqlalchemy.ext.asyncio import AsyncSession

from hackcontrol.errors import Forbidden
from hackcontrol.models.user import User
from hackcontrol.models.hackathon import Hackathon, Judge


class Capability(str, enum.Enum):
    ADMIN = "admin"                        # admin only
    CREATE_HACKATHON = "create_hackathon"  # organizer or admin
    MANAGE_HACKATHON = "manage_hackathon"  # owner or admin
    REVIEW = "review"                      # owner, admin or assigned judge
    SCORE = "score"                        # assigned judge


def is_authenticated(user: User | None) -> bool:
    return user is not None and bool(user.has_access)

def is_admin(user: User | None) -> bool:
    return is_authenticated(user) and user.role == "ADMIN"

def is_organizer(user: User | None) -> bool:
    return is_authenticated(user) and user.role in ("ORGANIZER", "ADMIN")

def is_owner(user: User | None, hackathon: Hackathon) -> bool:
    return is_authenticated(user) and hackathon.owner_id == user.id

async def is_assigned_judge(session: AsyncSession, user: User | None, hackathon: Hackathon) -> bool:
    if not is_authenticated(user):
        return False
    return bool(await session.scalar(
        select(exists().where(Judge.user_id == user.id, Judge.hackathon_id == hackathon.id))
    ))


async def allowed(session: AsyncSession, cap: Capability, user: User | None, hackathon: Hackathon | None = None) -> bool:
    if cap is Capability.ADMIN:
        return is_admin(user)
    if cap is Capability.CREATE_HACKATHON:
        return is_organizer(user)
    if hackathon is None:
        raise ValueError(f"{cap.value} needs a hackathon")
    if cap is Capability.MANAGE_HACKATHON:
        return is_admin(user) or is_owner(user, hackathon)
    if cap is Capability.REVIEW:
        return is_admin(user) or is_owner(user, hackathon) or await is_assigned_judge(session, user, hackathon)
    if cap is Capability.SCORE:
        return await is_assigned_judge(session, user, hackathon)
    raise ValueError(f"unknown capability {cap!r}")


async def require(session: AsyncSession, cap: Capability, user: User | None, hackathon: Hackathon | None = None) -> None:
    if not await allowed(session, cap, user, hackathon):
        raise Forbidden(_MESSAGES[cap])


_MESSAGES = {
    Capability.ADMIN: "Admin role required",
    Capability.CREATE_HACKATHON: "Organizer role required",
    Capability.MANAGE_HACKATHON: "Only the hackathon owner or an admin can do this",
    Capability.REVIEW: "Only the owner, an admin or an assigned judge can see reviews",
    Capability.SCORE: "Not a judge of this hackathon",
}
