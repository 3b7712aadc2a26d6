"""Turnout analytics schemas."""

from datetime import date

from pydantic import BaseModel


class StatusCounts(BaseModel):
    total: int
    unverified: int
    verified: int
    voted: int


class WardTurnout(BaseModel):
    ward: str
    total: int
    voted: int
    turnout_percent: float


class LocationCount(BaseModel):
    voting_location: str
    verified: int


class DailyVerifications(BaseModel):
    day: date
    verified: int
    cumulative: int


class VoterStatsResponse(BaseModel):
    status: StatusCounts
    turnout_by_ward: list[WardTurnout]
    verified_by_location: list[LocationCount]
    verification_timeline: list[DailyVerifications]
