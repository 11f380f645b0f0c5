"""
Judge assignment, score ingestion and the leaderboard.

Scores are keyed by (judge assignment, participation); a judge re-scoring a
submission overwrites the previous value. The leaderboard is computed in a
single grouped query so its ordering depends only on the stored rows:

    average_score DESC (participations without scores last),
    created_at ASC, id ASC
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable
from uuid import UUID, uuid4
import structlog
from sqlalchemy import select, func, case, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from hackcontrol.errors import NotFound, Forbidden, Conflict, ValidationFailed
from hackcontrol.models.user import User, utcnow
from hackcontrol.models.hackathon import Hackathon, Judge
from hackcontrol.models.participation import Participation, Score
from hackcontrol.services.access import Capability, require
from hackcontrol.services.hackathons import get_by_url
from hackcontrol.services.submissions import ensure_open, hold_open

log = structlog.get_logger()


@dataclass(frozen=True)
class LeaderboardEntry:
    rank: int
    participation: Participation
    average_score: float | None
    judge_count: int
    meets_min_judges: bool


# ---------- judges ----------

async def _user_by_username(session: AsyncSession, username: str) -> User:
    u = await session.scalar(select(User).where(User.username == username.lower()))
    if not u:
        raise NotFound("User not found")
    return u


async def assign_judge(session: AsyncSession, actor: User, hackathon_url: str, judge_username: str) -> tuple[Judge, User]:
    h = await get_by_url(session, hackathon_url)
    await require(session, Capability.MANAGE_HACKATHON, actor, h)
    ensure_open(h)
    target = await _user_by_username(session, judge_username)
    hackathon_id, target_id, inviter_id = h.id, target.id, actor.id

    existing = await session.scalar(select(Judge).where(Judge.user_id == target_id, Judge.hackathon_id == hackathon_id))
    if existing:
        return existing, target

    await hold_open(session, h)
    j = Judge(user_id=target_id, hackathon_id=hackathon_id, invited_by_id=inviter_id)
    session.add(j)
    try:
        await session.commit()
    except IntegrityError:
        # Concurrent assignment of the same judge; the other request won
        await session.rollback()
        j = await session.scalar(select(Judge).where(Judge.user_id == target_id, Judge.hackathon_id == hackathon_id))
        target = await session.get(User, target_id)
        if not j:
            raise Conflict("Judge assignment failed")
        return j, target
    log.info("judge_assigned", hackathon_id=str(hackathon_id), judge_user_id=str(target_id), invited_by=str(inviter_id))
    return j, target


async def unassign_judge(session: AsyncSession, actor: User, hackathon_url: str, judge_username: str) -> None:
    h = await get_by_url(session, hackathon_url)
    await require(session, Capability.MANAGE_HACKATHON, actor, h)
    ensure_open(h)
    target = await _user_by_username(session, judge_username)
    j = await session.scalar(select(Judge).where(Judge.user_id == target.id, Judge.hackathon_id == h.id))
    if not j:
        raise NotFound("User is not a judge of this hackathon")
    judge_id = j.id
    await hold_open(session, h)
    await session.delete(j)
    await session.flush()
    # Scores by this judge are gone with the assignment
    await session.execute(
        update(Participation)
        .where(Participation.hackathon_id == h.id)
        .values(is_reviewed=select(Score.id).where(Score.participation_id == Participation.id).correlate(Participation).exists())
        .execution_options(synchronize_session=False)
    )
    await session.commit()
    log.info("judge_unassigned", hackathon_id=str(h.id), judge_id=str(judge_id))


async def list_judges(session: AsyncSession, actor: User, hackathon_url: str) -> list[tuple[Judge, User]]:
    h = await get_by_url(session, hackathon_url)
    await require(session, Capability.REVIEW, actor, h)
    rows = (await session.execute(
        select(Judge, User)
        .join(User, User.id == Judge.user_id)
        .where(Judge.hackathon_id == h.id)
        .order_by(Judge.created_at.asc(), Judge.id)
    )).all()
    return [(j, u) for (j, u) in rows]


# ---------- scores ----------

def _insert_for(session: AsyncSession):
    name = session.get_bind().dialect.name
    if name == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
        return insert
    if name == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
        return insert
    return None


async def _upsert_score(session: AsyncSession, judge_id: UUID, participation_id: UUID, value: float) -> None:
    now = utcnow()
    insert = _insert_for(session)
    if insert is None:
        current = await session.scalar(
            select(Score).where(Score.judge_id == judge_id, Score.participation_id == participation_id)
        )
        if current:
            current.score = value
        else:
            session.add(Score(judge_id=judge_id, participation_id=participation_id, score=value))
        await session.flush()
        return
    stmt = insert(Score).values(
        id=uuid4(), judge_id=judge_id, participation_id=participation_id,
        score=value, created_at=now, updated_at=now,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[Score.judge_id, Score.participation_id],
        set_={"score": stmt.excluded.score, "updated_at": stmt.excluded.updated_at},
    )
    await session.execute(stmt)


async def _judge_row(session: AsyncSession, user: User, h: Hackathon) -> Judge | None:
    return await session.scalar(select(Judge).where(Judge.user_id == user.id, Judge.hackathon_id == h.id))


async def record_score(session: AsyncSession, actor: User, participation_id: UUID, value: float) -> Score:
    p = await session.get(Participation, participation_id)
    if not p:
        raise NotFound("Participation not found")
    h = await session.get(Hackathon, p.hackathon_id)
    await require(session, Capability.SCORE, actor, h)
    ensure_open(h)
    if not (h.score_min <= value <= h.score_max):
        raise ValidationFailed(f"Score must be between {h.score_min:g} and {h.score_max:g}")

    await hold_open(session, h)
    # Re-read under the lock: an unassign or withdraw may have committed since the checks above
    judge = await _judge_row(session, actor, h)
    if judge is None:
        await session.rollback()
        raise Forbidden("Not a judge of this hackathon")
    if await session.scalar(select(Participation.id).where(Participation.id == p.id)) is None:
        await session.rollback()
        raise NotFound("Participation not found")
    await _upsert_score(session, judge.id, p.id, value)

    p.is_reviewed = True
    await session.flush()
    s = await session.scalar(
        select(Score)
        .where(Score.judge_id == judge.id, Score.participation_id == p.id)
        .execution_options(populate_existing=True)
    )
    await session.commit()
    log.info("score_recorded", participation_id=str(p.id), judge_id=str(judge.id), score=value)
    return s


async def score_summary(session: AsyncSession, hackathon_id: UUID, judge_user_id: UUID | None = None) -> dict[UUID, tuple[float | None, int, float | None]]:
    """participation id -> (average, count, score given by judge_user_id)"""
    rows = (await session.execute(
        select(Score.participation_id, func.avg(Score.score), func.count(Score.id))
        .join(Participation, Participation.id == Score.participation_id)
        .where(Participation.hackathon_id == hackathon_id)
        .group_by(Score.participation_id)
    )).all()
    out = {pid: (float(avg) if avg is not None else None, int(cnt), None) for (pid, avg, cnt) in rows}
    if judge_user_id is not None:
        mine = (await session.execute(
            select(Score.participation_id, Score.score)
            .join(Judge, Judge.id == Score.judge_id)
            .where(Judge.user_id == judge_user_id, Judge.hackathon_id == hackathon_id)
        )).all()
        for pid, value in mine:
            avg, cnt, _ = out.get(pid, (None, 0, None))
            out[pid] = (avg, cnt, float(value))
    return out


# ---------- leaderboard ----------

async def leaderboard_for(session: AsyncSession, h: Hackathon) -> list[LeaderboardEntry]:
    avg_score = func.avg(Score.score)
    judge_count = func.count(Score.id)
    q = (
        select(Participation, avg_score.label("average_score"), judge_count.label("judge_count"))
        .outerjoin(Score, Score.participation_id == Participation.id)
        .where(Participation.hackathon_id == h.id)
        .group_by(Participation.id)
        .order_by(
            case((judge_count == 0, 1), else_=0),
            avg_score.desc(),
            Participation.created_at.asc(),
            Participation.id.asc(),
        )
    )
    rows = (await session.execute(q)).all()
    return [
        LeaderboardEntry(
            rank=i,
            participation=p,
            average_score=float(avg) if avg is not None else None,
            judge_count=int(cnt),
            meets_min_judges=int(cnt) >= h.min_judges_required,
        )
        for i, (p, avg, cnt) in enumerate(rows, start=1)
    ]


async def compute_leaderboard(session: AsyncSession, actor: User, hackathon_url: str) -> list[LeaderboardEntry]:
    h = await get_by_url(session, hackathon_url)
    await require(session, Capability.REVIEW, actor, h)
    return await leaderboard_for(session, h)


# ---------- terminal transition ----------

async def finish(session: AsyncSession, actor: User, hackathon_url: str) -> Hackathon:
    h = await get_by_url(session, hackathon_url, for_update=True)
    await require(session, Capability.MANAGE_HACKATHON, actor, h)
    # Writers holding the row via hold_open() commit before this update lands
    res = await session.execute(
        update(Hackathon)
        .where(Hackathon.id == h.id, Hackathon.is_finished.is_(False))
        .values(is_finished=True)
        .execution_options(synchronize_session=False)
    )
    await session.commit()
    await session.refresh(h)
    if res.rowcount:
        log.info("hackathon_finished", hackathon_id=str(h.id), by=str(actor.id))
    return h


async def mark_winners(session: AsyncSession, actor: User, hackathon_url: str, participation_ids: Iterable[UUID]) -> list[Participation]:
    h = await get_by_url(session, hackathon_url, for_update=True)
    await require(session, Capability.MANAGE_HACKATHON, actor, h)
    if not h.is_finished:
        raise Conflict("Finish the hackathon before marking winners")
    ids = list(dict.fromkeys(participation_ids))
    rows = (await session.execute(
        select(Participation)
        .where(Participation.id.in_(ids), Participation.hackathon_id == h.id)
        .order_by(Participation.created_at.asc(), Participation.id)
    )).scalars().all()
    if len(rows) != len(ids):
        raise NotFound("Participation not found in this hackathon")
    for p in rows:
        p.is_winner = True
    await session.commit()
    log.info("winners_marked", hackathon_id=str(h.id), participation_ids=[str(i) for i in ids])
    return list(rows)
