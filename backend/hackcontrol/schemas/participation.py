from __future__ import annotations
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from typing import List
from uuid import UUID
from datetime import datetime


class TeamMember(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    email: EmailStr | None = None
    github: str | None = Field(default=None, max_length=40)


class ParticipationCreate(BaseModel):
    title: str = Field(min_length=1, max_length=160)
    description: str | None = None
    project_url: str | None = Field(default=None, max_length=512)
    team_members: List[TeamMember] = Field(default_factory=list, max_length=20)


class ParticipationUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: str | None = Field(default=None, min_length=1, max_length=160)
    description: str | None = None
    project_url: str | None = Field(default=None, max_length=512)
    team_members: List[TeamMember] | None = Field(default=None, max_length=20)


class ParticipationPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    hackathon_id: UUID
    hackathon_name: str
    hackathon_url: str
    creator_id: UUID
    creator_name: str
    title: str
    description: str | None
    project_url: str | None
    team_members: List[TeamMember]
    is_reviewed: bool
    is_winner: bool
    created_at: datetime
    updated_at: datetime


class ScoreUpsert(BaseModel):
    score: float = Field(allow_inf_nan=False)


class ScorePublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    judge_id: UUID
    participation_id: UUID
    score: float = Field(allow_inf_nan=False)
    updated_at: datetime


class ParticipationReview(ParticipationPublic):
    average_score: float | None = None
    judge_count: int = 0
    my_score: float | None = None


class LeaderboardRow(BaseModel):
    rank: int
    participation: ParticipationPublic
    average_score: float | None
    judge_count: int
    meets_min_judges: bool


class JudgeAssign(BaseModel):
    username: str = Field(min_length=1, max_length=40)


class JudgePublic(BaseModel):
    id: UUID
    hackathon_id: UUID
    user_id: UUID
    username: str
    name: str | None
    invited_by_id: UUID | None
    created_at: datetime


class WinnersRequest(BaseModel):
    participation_ids: List[UUID] = Field(min_length=1)
