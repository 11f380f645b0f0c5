from __future__ import annotations
from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession
from hackcontrol.db import get_session
from hackcontrol.auth_deps import get_current_user
from hackcontrol.schemas.hackathon import HackathonCreate, HackathonUpdate, HackathonVerify, HackathonPublic
from hackcontrol.services import hackathons as hackathon_service
from hackcontrol.services.scoring import finish

router = APIRouter(prefix="/hackathons", tags=["hackathons"])

@router.post("", response_model=HackathonPublic, status_code=201)
async def create_hackathon(payload: HackathonCreate, session: AsyncSession = Depends(get_session), user=Depends(get_current_user)):
    return HackathonPublic.model_validate(await hackathon_service.create_hackathon(session, user, payload))

@router.get("", response_model=list[HackathonPublic])
async def list_hackathons(
    session: AsyncSession = Depends(get_session),
    verified: bool | None = Query(default=None),
    finished: bool | None = Query(default=None),
    limit: int = Query(default=50, ge=1, le=200),
):
    rows = await hackathon_service.list_hackathons(session, verified=verified, finished=finished, limit=limit)
    return [HackathonPublic.model_validate(h) for h in rows]

@router.get("/mine", response_model=list[HackathonPublic])
async def list_my_hackathons(session: AsyncSession = Depends(get_session), user=Depends(get_current_user)):
    rows = await hackathon_service.list_hackathons(session, owner_id=user.id, limit=200)
    return [HackathonPublic.model_validate(h) for h in rows]

@router.get("/judging", response_model=list[HackathonPublic])
async def list_judging(session: AsyncSession = Depends(get_session), user=Depends(get_current_user)):
    return [HackathonPublic.model_validate(h) for h in await hackathon_service.list_judging(session, user)]

@router.get("/{url}", response_model=HackathonPublic)
async def get_hackathon(url: str, session: AsyncSession = Depends(get_session)):
    return HackathonPublic.model_validate(await hackathon_service.get_by_url(session, url))

@router.patch("/{url}", response_model=HackathonPublic)
async def update_hackathon(url: str, payload: HackathonUpdate, session: AsyncSession = Depends(get_session), user=Depends(get_current_user)):
    return HackathonPublic.model_validate(await hackathon_service.update_hackathon(session, user, url, payload))

@router.delete("/{url}", status_code=204)
async def delete_hackathon(url: str, session: AsyncSession = Depends(get_session), user=Depends(get_current_user)):
    await hackathon_service.delete_hackathon(session, user, url)
    return Response(status_code=204)

@router.post("/{url}/verify", response_model=HackathonPublic)
async def verify_hackathon(url: str, payload: HackathonVerify, session: AsyncSession = Depends(get_session), user=Depends(get_current_user)):
    return HackathonPublic.model_validate(await hackathon_service.verify_hackathon(session, user, url, payload.verified))

@router.post("/{url}/finish", response_model=HackathonPublic)
async def finish_hackathon(url: str, session: AsyncSession = Depends(get_session), user=Depends(get_current_user)):
    return HackathonPublic.model_validate(await finish(session, user, url))
