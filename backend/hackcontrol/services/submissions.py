"""
Participation lifecycle: submit, edit, read and withdraw project submissions.

A user has at most one participation per hackathon (enforced by the
``uq_participation_one_per_user`` constraint), and nothing about a
participation may change once its hackathon is finished.
"""
from __future__ import annotations
from uuid import UUID
import structlog
from sqlalchemy import select, exists, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from hackcontrol.errors import NotFound, Forbidden, Conflict, Locked, ValidationFailed
from hackcontrol.models.user import User
from hackcontrol.models.hackathon import Hackathon
from hackcontrol.models.participation import Participation
from hackcontrol.schemas.participation import ParticipationCreate, ParticipationUpdate
from hackcontrol.services.access import Capability, allowed, require, is_admin, is_owner
from hackcontrol.services.hackathons import get_by_url

log = structlog.get_logger()


def ensure_open(h: Hackathon) -> None:
    if h.is_finished:
        raise Locked("Hackathon is finished")


async def hold_open(session: AsyncSession, h: Hackathon) -> None:
    """Re-check ``is_finished`` inside the current write transaction.

    Must run before the caller's own writes. The no-op guarded UPDATE takes the
    hackathon row's write lock, so a concurrent ``finish`` either committed
    first (rowcount 0, Locked) or waits until this transaction ends.
    """
    res = await session.execute(
        update(Hackathon)
        .where(Hackathon.id == h.id, Hackathon.is_finished.is_(False))
        .values(updated_at=Hackathon.updated_at)
        .execution_options(synchronize_session=False)
    )
    if res.rowcount == 0:
        await session.rollback()
        raise Locked("Hackathon is finished")


async def get_participation(session: AsyncSession, participation_id: UUID) -> tuple[Participation, Hackathon]:
    p = await session.get(Participation, participation_id)
    if not p:
        raise NotFound("Participation not found")
    h = await session.get(Hackathon, p.hackathon_id)
    return p, h


async def submit(session: AsyncSession, actor: User, hackathon_url: str, payload: ParticipationCreate) -> Participation:
    h = await get_by_url(session, hackathon_url)
    ensure_open(h)

    already = await session.scalar(
        select(exists().where(Participation.creator_id == actor.id, Participation.hackathon_url == h.url))
    )
    if already:
        raise Conflict("You already have a submission for this hackathon")

    await hold_open(session, h)
    p = Participation(
        hackathon_id=h.id,
        hackathon_name=h.name,
        hackathon_url=h.url,
        creator_id=actor.id,
        creator_name=actor.display_name,
        title=payload.title,
        description=payload.description,
        project_url=payload.project_url,
        team_members=[m.model_dump(mode="json") for m in payload.team_members],
    )
    session.add(p)
    try:
        await session.commit()
    except IntegrityError:
        # Lost a race against a concurrent submit from the same user
        await session.rollback()
        raise Conflict("You already have a submission for this hackathon")
    log.info("participation_submitted", participation_id=str(p.id), hackathon_id=str(p.hackathon_id), creator_id=str(p.creator_id))
    return p


async def update_submission(session: AsyncSession, actor: User, participation_id: UUID, payload: ParticipationUpdate) -> Participation:
    p, h = await get_participation(session, participation_id)
    if p.creator_id != actor.id:
        raise Forbidden("Only the creator can edit this submission")
    ensure_open(h)

    fields = payload.model_dump(exclude_unset=True, mode="json")
    if "title" in fields and fields["title"] is None:
        raise ValidationFailed("title cannot be null")
    if "team_members" in fields and fields["team_members"] is None:
        fields["team_members"] = []
    await hold_open(session, h)
    for key, value in fields.items():
        setattr(p, key, value)
    await session.commit()
    log.info("participation_updated", participation_id=str(p.id), fields=sorted(fields))
    return p


async def delete_submission(session: AsyncSession, actor: User, participation_id: UUID) -> None:
    p, h = await get_participation(session, participation_id)
    if p.creator_id != actor.id and not (is_admin(actor) or is_owner(actor, h)):
        raise Forbidden("Only the creator, the hackathon owner or an admin can withdraw this submission")
    ensure_open(h)
    pid = p.id
    await hold_open(session, h)
    await session.delete(p)
    await session.commit()
    log.info("participation_deleted", participation_id=str(pid), hackathon_id=str(h.id))


async def read_submission(session: AsyncSession, actor: User, participation_id: UUID) -> tuple[Participation, Hackathon]:
    p, h = await get_participation(session, participation_id)
    if p.creator_id != actor.id and not await allowed(session, Capability.REVIEW, actor, h):
        raise Forbidden("Not allowed to see this submission")
    return p, h


async def list_for_hackathon(session: AsyncSession, actor: User, hackathon_url: str) -> tuple[Hackathon, list[Participation]]:
    h = await get_by_url(session, hackathon_url)
    await require(session, Capability.REVIEW, actor, h)
    rows = (await session.execute(
        select(Participation)
        .where(Participation.hackathon_id == h.id)
        .order_by(Participation.created_at.asc(), Participation.id)
    )).scalars().all()
    return h, list(rows)


async def list_mine(session: AsyncSession, actor: User) -> list[Participation]:
    rows = (await session.execute(
        select(Participation)
        .where(Participation.creator_id == actor.id)
        .order_by(Participation.created_at.desc())
    )).scalars().all()
    return list(rows)


async def list_winners(session: AsyncSession, hackathon_url: str) -> list[Participation]:
    h = await get_by_url(session, hackathon_url)
    if not h.is_finished:
        return []
    rows = (await session.execute(
        select(Participation)
        .where(Participation.hackathon_id == h.id, Participation.is_winner.is_(True))
        .order_by(Participation.created_at.asc(), Participation.id)
    )).scalars().all()
    return list(rows)
