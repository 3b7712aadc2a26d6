"""Turnout analytics over the voter registry."""

from loguru import logger
from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ballot_api.core.clock import ensure_utc
from ballot_api.models.voter import Voter, VoterStatus
from ballot_api.schemas.voter_stats import (
    DailyVerifications,
    LocationCount,
    StatusCounts,
    VoterStatsResponse,
    WardTurnout,
)

UNASSIGNED = "Unassigned"


async def get_status_counts(session: AsyncSession) -> StatusCounts:
    result = await session.execute(select(Voter.status, func.count(Voter.id)).group_by(Voter.status))
    counts = {status: count for status, count in result.all()}
    return StatusCounts(
        total=sum(counts.values()),
        unverified=counts.get(VoterStatus.UNVERIFIED.value, 0),
        verified=counts.get(VoterStatus.VERIFIED.value, 0),
        voted=counts.get(VoterStatus.VOTED.value, 0),
    )


async def get_ward_turnout(session: AsyncSession) -> list[WardTurnout]:
    """Per ward: registered voters, ballots cast and turnout percentage."""
    voted = func.sum(case((Voter.status == VoterStatus.VOTED.value, 1), else_=0))
    result = await session.execute(
        select(Voter.ward, func.count(Voter.id), voted).group_by(Voter.ward).order_by(Voter.ward)
    )
    rows = []
    for ward, total, voted_count in result.all():
        voted_count = int(voted_count or 0)
        rows.append(
            WardTurnout(
                ward=ward or UNASSIGNED,
                total=total,
                voted=voted_count,
                turnout_percent=round(voted_count * 100 / total, 1) if total else 0.0,
            )
        )
    return rows


async def get_verified_by_location(session: AsyncSession) -> list[LocationCount]:
    """Verified voters (including those who went on to vote) per voting location."""
    result = await session.execute(
        select(Voter.voting_location, func.count(Voter.id))
        .where(Voter.status.in_([VoterStatus.VERIFIED.value, VoterStatus.VOTED.value]))
        .group_by(Voter.voting_location)
        .order_by(func.count(Voter.id).desc())
    )
    return [LocationCount(voting_location=location or UNASSIGNED, verified=count) for location, count in result.all()]


async def get_verification_timeline(session: AsyncSession) -> list[DailyVerifications]:
    """Verifications per UTC day with a running total."""
    result = await session.execute(select(Voter.verified_at).where(Voter.verified_at.is_not(None)))
    per_day: dict = {}
    for verified_at in result.scalars():
        day = ensure_utc(verified_at).date()
        per_day[day] = per_day.get(day, 0) + 1

    timeline = []
    cumulative = 0
    for day in sorted(per_day):
        cumulative += per_day[day]
        timeline.append(DailyVerifications(day=day, verified=per_day[day], cumulative=cumulative))
    return timeline


async def get_voter_stats(session: AsyncSession) -> VoterStatsResponse:
    stats = VoterStatsResponse(
        status=await get_status_counts(session),
        turnout_by_ward=await get_ward_turnout(session),
        verified_by_location=await get_verified_by_location(session),
        verification_timeline=await get_verification_timeline(session),
    )
    logger.debug("Computed voter stats for {} voter(s)", stats.status.total)
    return stats
