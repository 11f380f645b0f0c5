from __future__ import annotations
from uuid import UUID
import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hackcontrol.errors import NotFound, ValidationFailed
from hackcontrol.models.user import User
from hackcontrol.models.hackathon import Hackathon, Announcement
from hackcontrol.schemas.announcement import AnnouncementCreate, AnnouncementUpdate
from hackcontrol.services.access import Capability, require
from hackcontrol.services.hackathons import get_by_url

log = structlog.get_logger()


async def list_announcements(session: AsyncSession, hackathon_url: str) -> list[Announcement]:
    h = await get_by_url(session, hackathon_url)
    rows = (await session.execute(
        select(Announcement)
        .where(Announcement.hackathon_id == h.id)
        .order_by(Announcement.highlighted.desc(), Announcement.created_at.desc(), Announcement.id)
    )).scalars().all()
    return list(rows)


async def create_announcement(session: AsyncSession, actor: User, hackathon_url: str, payload: AnnouncementCreate) -> Announcement:
    h = await get_by_url(session, hackathon_url)
    await require(session, Capability.MANAGE_HACKATHON, actor, h)
    a = Announcement(
        hackathon_id=h.id,
        author_id=actor.id,
        title=payload.title,
        content=payload.content,
        highlighted=payload.highlighted,
    )
    session.add(a)
    await session.commit()
    log.info("announcement_created", announcement_id=str(a.id), hackathon_id=str(h.id))
    return a


async def _load(session: AsyncSession, actor: User, announcement_id: UUID) -> Announcement:
    a = await session.get(Announcement, announcement_id)
    if not a:
        raise NotFound("Announcement not found")
    h = await session.get(Hackathon, a.hackathon_id)
    await require(session, Capability.MANAGE_HACKATHON, actor, h)
    return a


async def update_announcement(session: AsyncSession, actor: User, announcement_id: UUID, payload: AnnouncementUpdate) -> Announcement:
    a = await _load(session, actor, announcement_id)
    fields = payload.model_dump(exclude_unset=True)
    for key, value in fields.items():
        if value is None:
            raise ValidationFailed(f"{key} cannot be null")
        setattr(a, key, value)
    await session.commit()
    log.info("announcement_updated", announcement_id=str(a.id), fields=sorted(fields))
    return a


async def delete_announcement(session: AsyncSession, actor: User, announcement_id: UUID) -> None:
    a = await _load(session, actor, announcement_id)
    await session.delete(a)
    await session.commit()
    log.info("announcement_deleted", announcement_id=str(announcement_id))
