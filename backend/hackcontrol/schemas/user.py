from __future__ import annotations
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from typing import Literal
from uuid import UUID
from datetime import datetime

Role = Literal["USER", "ORGANIZER", "ADMIN"]

class UserPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str | None
    username: str
    image: str | None
    role: Role

class UserPrivate(UserPublic):
    email: EmailStr
    has_access: bool
    created_at: datetime

class ProfileUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=120)
    image: str | None = Field(default=None, max_length=512)

class RoleUpdate(BaseModel):
    role: Role

class AccessUpdate(BaseModel):
    has_access: bool
