"""Ballot retrieval and submission schemas."""

from datetime import datetime

from pydantic import BaseModel, Field

from ballot_api.schemas.candidate import CandidateResponse


class BallotPosition(BaseModel):
    position: str
    candidates: list[CandidateResponse]


class BallotResponse(BaseModel):
    """The positions and candidates a voter is eligible to vote on."""

    election_title: str
    voter_name: str
    voting_location: str | None = None
    positions: list[BallotPosition]


class BallotSubmitRequest(BaseModel):
    selections: dict[str, str] = Field(description="Position -> candidate id, one entry per position")


class BallotReceiptResponse(BaseModel):
    cast_at: datetime
    positions: int
