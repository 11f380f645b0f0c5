from __future__ import annotations
from uuid import UUID
import structlog
from sqlalchemy import select, exists, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from hackcontrol.config import settings
from hackcontrol.errors import NotFound, Conflict, ValidationFailed
from hackcontrol.models.user import User
from hackcontrol.models.hackathon import Hackathon, Judge
from hackcontrol.models.participation import Participation
from hackcontrol.schemas.hackathon import HackathonCreate, HackathonUpdate
from hackcontrol.services.access import Capability, require
from hackcontrol.services.slugs import slugify, with_suffix

log = structlog.get_logger()

SLUG_ATTEMPTS = 5
# Path segments under /hackathons that a slug must not shadow
RESERVED_URLS = frozenset({"mine", "judging"})


async def get_by_url(session: AsyncSession, url: str, *, for_update: bool = False) -> Hackathon:
    q = select(Hackathon).where(Hackathon.url == url)
    if for_update:
        q = q.with_for_update()
    h = await session.scalar(q)
    if not h:
        raise NotFound("Hackathon not found")
    return h


async def _url_taken(session: AsyncSession, url: str) -> bool:
    if url in RESERVED_URLS:
        return True
    return bool(await session.scalar(select(exists().where(Hackathon.url == url))))


async def create_hackathon(session: AsyncSession, actor: User, payload: HackathonCreate) -> Hackathon:
    await require(session, Capability.CREATE_HACKATHON, actor)
    owner_id = actor.id
    score_min = payload.score_min if payload.score_min is not None else settings.default_score_min
    score_max = payload.score_max if payload.score_max is not None else settings.default_score_max
    if score_min >= score_max:
        raise ValidationFailed("score_min must be lower than score_max")

    explicit = payload.url is not None
    base = payload.url or slugify(payload.name)
    for attempt in range(SLUG_ATTEMPTS):
        url = base if attempt == 0 else with_suffix(base)
        if await _url_taken(session, url):
            if explicit:
                raise Conflict("Hackathon url already taken")
            continue
        h = Hackathon(
            owner_id=owner_id,
            name=payload.name,
            url=url,
            description=payload.description,
            rules=payload.rules,
            criteria=payload.criteria,
            min_judges_required=payload.min_judges_required or settings.default_min_judges,
            score_min=score_min,
            score_max=score_max,
        )
        session.add(h)
        try:
            await session.commit()
        except IntegrityError:
            await session.rollback()
            if explicit:
                raise Conflict("Hackathon url already taken")
            continue
        log.info("hackathon_created", hackathon_id=str(h.id), url=h.url, owner_id=str(owner_id))
        return h
    raise Conflict("Failed to generate a unique hackathon url")


async def list_hackathons(
    session: AsyncSession,
    *,
    verified: bool | None = None,
    finished: bool | None = None,
    owner_id: UUID | None = None,
    limit: int = 50,
) -> list[Hackathon]:
    q = select(Hackathon)
    if verified is not None:
        q = q.where(Hackathon.verified == verified)
    if finished is not None:
        q = q.where(Hackathon.is_finished == finished)
    if owner_id is not None:
        q = q.where(Hackathon.owner_id == owner_id)
    q = q.order_by(Hackathon.created_at.desc(), Hackathon.id).limit(limit)
    return list((await session.execute(q)).scalars().all())


async def list_judging(session: AsyncSession, actor: User) -> list[Hackathon]:
    q = (
        select(Hackathon)
        .join(Judge, Judge.hackathon_id == Hackathon.id)
        .where(Judge.user_id == actor.id)
        .order_by(Hackathon.created_at.desc(), Hackathon.id)
    )
    return list((await session.execute(q)).scalars().all())


async def update_hackathon(session: AsyncSession, actor: User, url: str, payload: HackathonUpdate) -> Hackathon:
    h = await get_by_url(session, url)
    await require(session, Capability.MANAGE_HACKATHON, actor, h)
    fields = payload.model_dump(exclude_unset=True)
    for key in ("name", "min_judges_required", "score_min", "score_max"):
        if key in fields and fields[key] is None:
            raise ValidationFailed(f"{key} cannot be null")

    score_min = fields.get("score_min", h.score_min)
    score_max = fields.get("score_max", h.score_max)
    if score_min >= score_max:
        raise ValidationFailed("score_min must be lower than score_max")

    renamed = "name" in fields and fields["name"] != h.name
    for key, value in fields.items():
        setattr(h, key, value)
    if renamed:
        # Keep the copies on participations in step with the new name
        await session.execute(
            update(Participation)
            .where(Participation.hackathon_id == h.id)
            .values(hackathon_name=h.name)
        )
    await session.commit()
    log.info("hackathon_updated", hackathon_id=str(h.id), fields=sorted(fields))
    return h


async def verify_hackathon(session: AsyncSession, actor: User, url: str, verified: bool) -> Hackathon:
    h = await get_by_url(session, url)
    await require(session, Capability.ADMIN, actor)
    h.verified = verified
    await session.commit()
    log.info("hackathon_verified", hackathon_id=str(h.id), verified=verified)
    return h


async def delete_hackathon(session: AsyncSession, actor: User, url: str) -> None:
    h = await get_by_url(session, url)
    await require(session, Capability.MANAGE_HACKATHON, actor, h)
    hackathon_id = h.id
    await session.delete(h)
    await session.commit()
    log.info("hackathon_deleted", hackathon_id=str(hackathon_id), url=url)
