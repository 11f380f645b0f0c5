from __future__ import annotations
from pydantic import BaseModel, ConfigDict, Field, model_validator
from uuid import UUID
from datetime import datetime

SLUG_PATTERN = r"^[a-z0-9]+(?:-[a-z0-9]+)*$"

class HackathonCreate(BaseModel):
    name: str = Field(min_length=3, max_length=120)
    url: str | None = Field(default=None, min_length=3, max_length=80, pattern=SLUG_PATTERN)
    description: str | None = None
    rules: str | None = None
    criteria: str | None = None
    min_judges_required: int | None = Field(default=None, ge=1)
    score_min: float | None = None
    score_max: float | None = None

    @model_validator(mode="after")
    def bounds_ordered(self):
        if self.score_min is not None and self.score_max is not None and self.score_min >= self.score_max:
            raise ValueError("score_min must be lower than score_max")
        return self

class HackathonUpdate(BaseModel):
    # url is deliberately absent: it never changes after creation
    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, min_length=3, max_length=120)
    description: str | None = None
    rules: str | None = None
    criteria: str | None = None
    min_judges_required: int | None = Field(default=None, ge=1)
    score_min: float | None = None
    score_max: float | None = None

class HackathonVerify(BaseModel):
    verified: bool = True

class HackathonPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    owner_id: UUID
    name: str
    url: str
    description: str | None
    rules: str | None
    criteria: str | None
    is_finished: bool
    verified: bool
    min_judges_required: int
    score_min: float
    score_max: float
    created_at: datetime
