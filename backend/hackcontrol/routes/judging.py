from __future__ import annotations
from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from hackcontrol.db import get_session
from hackcontrol.auth_deps import get_current_user
from hackcontrol.models.hackathon import Judge
from hackcontrol.models.user import User
from hackcontrol.schemas.participation import JudgeAssign, JudgePublic, LeaderboardRow, ParticipationPublic, WinnersRequest
from hackcontrol.services import scoring
from hackcontrol.services.submissions import list_winners

router = APIRouter(prefix="/hackathons/{url}", tags=["judging"])

def _judge_pub(j: Judge, u: User) -> JudgePublic:
    return JudgePublic(
        id=j.id,
        hackathon_id=j.hackathon_id,
        user_id=u.id,
        username=u.username,
        name=u.name,
        invited_by_id=j.invited_by_id,
        created_at=j.created_at,
    )

@router.post("/judges", response_model=JudgePublic)
async def assign_judge(url: str, payload: JudgeAssign, session: AsyncSession = Depends(get_session), user=Depends(get_current_user)):
    j, u = await scoring.assign_judge(session, user, url, payload.username)
    return _judge_pub(j, u)

@router.get("/judges", response_model=list[JudgePublic])
async def list_judges(url: str, session: AsyncSession = Depends(get_session), user=Depends(get_current_user)):
    return [_judge_pub(j, u) for (j, u) in await scoring.list_judges(session, user, url)]

@router.delete("/judges/{username}", status_code=204)
async def unassign_judge(url: str, username: str, session: AsyncSession = Depends(get_session), user=Depends(get_current_user)):
    await scoring.unassign_judge(session, user, url, username)
    return Response(status_code=204)

@router.get("/leaderboard", response_model=list[LeaderboardRow])
async def leaderboard(url: str, session: AsyncSession = Depends(get_session), user=Depends(get_current_user)):
    rows = await scoring.compute_leaderboard(session, user, url)
    return [
        LeaderboardRow(
            rank=e.rank,
            participation=ParticipationPublic.model_validate(e.participation),
            average_score=e.average_score,
            judge_count=e.judge_count,
            meets_min_judges=e.meets_min_judges,
        ) for e in rows
    ]

@router.post("/winners", response_model=list[ParticipationPublic])
async def mark_winners(url: str, payload: WinnersRequest, session: AsyncSession = Depends(get_session), user=Depends(get_current_user)):
    rows = await scoring.mark_winners(session, user, url, payload.participation_ids)
    return [ParticipationPublic.model_validate(p) for p in rows]

@router.get("/winners", response_model=list[ParticipationPublic])
async def winners(url: str, session: AsyncSession = Depends(get_session)):
    return [ParticipationPublic.model_validate(p) for p in await list_winners(session, url)]
