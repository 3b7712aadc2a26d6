"""Candidate Pydantic v2 schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class CandidateCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    position: str = Field(min_length=1, max_length=100)
    party: str | None = Field(default=None, max_length=100)
    avatar_url: str | None = None
    scope: str | None = Field(
        default=None,
        max_length=100,
        description="Voting location the candidate is restricted to; blank or 'all' for everyone",
    )


class CandidateUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    position: str | None = Field(default=None, min_length=1, max_length=100)
    party: str | None = Field(default=None, max_length=100)
    avatar_url: str | None = None
    scope: str | None = Field(default=None, max_length=100)


class CandidateResponse(BaseModel):
    id: UUID
    name: str
    position: str
    party: str | None = None
    avatar_url: str | None = None
    scope: str
    created_at: datetime

    model_config = {"from_attributes": True}
