from __future__ import annotations
from pydantic import BaseModel, EmailStr, Field

class OAuthProfile(BaseModel):
    """Profile of a provider login, already verified by the OAuth front."""
    provider: str = Field(default="github", min_length=1, max_length=32)
    login: str = Field(min_length=1, max_length=40)
    email: EmailStr
    name: str | None = Field(default=None, max_length=120)
    image: str | None = Field(default=None, max_length=512)

class TokenPair(BaseModel):
    access: str
    refresh: str
