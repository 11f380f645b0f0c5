from __future__ import annotations
from uuid import UUID
from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from hackcontrol.db import get_session
from hackcontrol.auth_deps import get_current_user
from hackcontrol.schemas.announcement import AnnouncementCreate, AnnouncementUpdate, AnnouncementPublic
from hackcontrol.services import announcements as announcement_service

router = APIRouter(tags=["announcements"])

@router.get("/hackathons/{url}/announcements", response_model=list[AnnouncementPublic])
async def list_announcements(url: str, session: AsyncSession = Depends(get_session)):
    return [AnnouncementPublic.model_validate(a) for a in await announcement_service.list_announcements(session, url)]

@router.post("/hackathons/{url}/announcements", response_model=AnnouncementPublic, status_code=201)
async def create_announcement(url: str, payload: AnnouncementCreate, session: AsyncSession = Depends(get_session), user=Depends(get_current_user)):
    return AnnouncementPublic.model_validate(await announcement_service.create_announcement(session, user, url, payload))

@router.patch("/announcements/{announcement_id}", response_model=AnnouncementPublic)
async def update_announcement(announcement_id: UUID, payload: AnnouncementUpdate, session: AsyncSession = Depends(get_session), user=Depends(get_current_user)):
    return AnnouncementPublic.model_validate(await announcement_service.update_announcement(session, user, announcement_id, payload))

@router.delete("/announcements/{announcement_id}", status_code=204)
async def delete_announcement(announcement_id: UUID, session: AsyncSession = Depends(get_session), user=Depends(get_current_user)):
    await announcement_service.delete_announcement(session, user, announcement_id)
    return Response(status_code=204)
