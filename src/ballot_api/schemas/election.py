"""Election state, settings, phase and results schemas."""

from datetime import datetime

from pydantic import BaseModel, Field

from ballot_api.lib.phase import ElectionPhase


class ElectionStatusResponse(BaseModel):
    """Public view of the election: title, phase and schedule."""

    election_title: str
    organization_name: str
    phase: ElectionPhase
    phase_changed_at: datetime | None = None
    enable_auto_schedule: bool
    verification_start: datetime | None = None
    verification_end: datetime | None = None
    voting_start: datetime | None = None
    voting_end: datetime | None = None
    voting_locations: list[str] = Field(default_factory=list)


class ElectionSettingsResponse(ElectionStatusResponse):
    """Admin view; the SMS API key itself is never returned."""

    sms_sender_id: str | None = None
    sms_configured: bool
    updated_at: datetime


class ElectionSettingsUpdateRequest(BaseModel):
    """Partial settings update. Send ``sms_api_key: ""`` to clear the key."""

    election_title: str | None = Field(default=None, min_length=1, max_length=200)
    organization_name: str | None = Field(default=None, min_length=1, max_length=200)
    sms_api_key: str | None = Field(default=None, max_length=255)
    sms_sender_id: str | None = Field(default=None, max_length=20)
    enable_auto_schedule: bool | None = None
    verification_start: datetime | None = None
    verification_end: datetime | None = None
    voting_start: datetime | None = None
    voting_end: datetime | None = None


class PhaseChangeRequest(BaseModel):
    phase: ElectionPhase
    acknowledged: bool = Field(
        default=False,
        description="Set after confirming the warning returned for the target phase",
    )


class PhaseChangeResponse(BaseModel):
    phase: ElectionPhase
    previous_phase: ElectionPhase
    changed: bool
    phase_changed_at: datetime | None = None


class PhaseWarningResponse(BaseModel):
    phase: ElectionPhase
    warning: str


class ResetVotesResponse(BaseModel):
    votes_deleted: int
    voters_reverted: int


class FactoryResetRequest(BaseModel):
    confirm: bool = Field(description="Must be true; deletes all voters, candidates and votes")


class FactoryResetResponse(BaseModel):
    votes_deleted: int
    voters_deleted: int
    candidates_deleted: int


class CandidateTally(BaseModel):
    candidate_id: str
    name: str
    party: str | None = None
    votes: int


class PositionTally(BaseModel):
    position: str
    candidates: list[CandidateTally]


class ElectionResultsResponse(BaseModel):
    election_title: str
    phase: ElectionPhase
    total_ballots: int
    positions: list[PositionTally]
