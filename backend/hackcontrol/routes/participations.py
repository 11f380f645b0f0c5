from __future__ import annotations
from uuid import UUID
from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from hackcontrol.db import get_session
from hackcontrol.auth_deps import get_current_user
from hackcontrol.models.participation import Participation
from hackcontrol.schemas.participation import (
    ParticipationCreate, ParticipationUpdate, ParticipationPublic, ParticipationReview, ScoreUpsert, ScorePublic,
)
from hackcontrol.services import submissions
from hackcontrol.services.access import Capability, allowed
from hackcontrol.services.scoring import record_score, score_summary

router = APIRouter(tags=["participations"])

def _review(p: Participation, summary: dict) -> ParticipationReview:
    avg, cnt, mine = summary.get(p.id, (None, 0, None))
    return ParticipationReview(
        **ParticipationPublic.model_validate(p).model_dump(),
        average_score=avg,
        judge_count=cnt,
        my_score=mine,
    )

@router.post("/hackathons/{url}/participations", response_model=ParticipationPublic, status_code=201)
async def submit_participation(url: str, payload: ParticipationCreate, session: AsyncSession = Depends(get_session), user=Depends(get_current_user)):
    return ParticipationPublic.model_validate(await submissions.submit(session, user, url, payload))

@router.get("/hackathons/{url}/participations", response_model=list[ParticipationReview])
async def list_participations(url: str, session: AsyncSession = Depends(get_session), user=Depends(get_current_user)):
    h, rows = await submissions.list_for_hackathon(session, user, url)
    summary = await score_summary(session, h.id, user.id)
    return [_review(p, summary) for p in rows]

@router.get("/participations/mine", response_model=list[ParticipationPublic])
async def list_my_participations(session: AsyncSession = Depends(get_session), user=Depends(get_current_user)):
    return [ParticipationPublic.model_validate(p) for p in await submissions.list_mine(session, user)]

@router.get("/participations/{participation_id}", response_model=ParticipationReview)
async def get_participation(participation_id: UUID, session: AsyncSession = Depends(get_session), user=Depends(get_current_user)):
    p, h = await submissions.read_submission(session, user, participation_id)
    # Creators see their submission, not the judges' scores
    if await allowed(session, Capability.REVIEW, user, h):
        return _review(p, await score_summary(session, h.id, user.id))
    return ParticipationReview(**ParticipationPublic.model_validate(p).model_dump())

@router.patch("/participations/{participation_id}", response_model=ParticipationPublic)
async def edit_participation(participation_id: UUID, payload: ParticipationUpdate, session: AsyncSession = Depends(get_session), user=Depends(get_current_user)):
    return ParticipationPublic.model_validate(await submissions.update_submission(session, user, participation_id, payload))

@router.delete("/participations/{participation_id}", status_code=204)
async def withdraw_participation(participation_id: UUID, session: AsyncSession = Depends(get_session), user=Depends(get_current_user)):
    await submissions.delete_submission(session, user, participation_id)
    return Response(status_code=204)

@router.put("/participations/{participation_id}/score", response_model=ScorePublic)
async def score_participation(participation_id: UUID, payload: ScoreUpsert, session: AsyncSession = Depends(get_session), user=Depends(get_current_user)):
    return ScorePublic.model_validate(await record_score(session, user, participation_id, payload.score))
