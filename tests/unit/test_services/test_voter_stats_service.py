"""Tests for turnout analytics."""

from datetime import UTC, datetime

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from ballot_api.models.voter import VoterStatus
from ballot_api.services import voter_stats_service


@pytest.fixture
async def registry(make_voter) -> None:
    day1 = datetime(2026, 3, 2, 9, 0, tzinfo=UTC)
    day2 = datetime(2026, 3, 3, 15, 30, tzinfo=UTC)
    await make_voter("MEM001", phone="0700000001", ward="Kilimani", status=VoterStatus.VOTED,
                     voting_location="Nairobi", verified_at=day1)
    await make_voter("MEM002", phone="0700000002", ward="Kilimani", status=VoterStatus.VERIFIED,
                     voting_location="Nairobi", verified_at=day1)
    await make_voter("MEM003", phone="0700000003", ward="Nyali", status=VoterStatus.VERIFIED,
                     voting_location="Mombasa", verified_at=day2)
    await make_voter("MEM004", phone="0700000004", ward="Nyali")
    await make_voter("MEM005", phone="0700000005")


class TestVoterStats:
    """Tests for the voter statistics queries."""

    @pytest.mark.asyncio
    async def test_status_counts(self, async_session: AsyncSession, registry) -> None:
        counts = await voter_stats_service.get_status_counts(async_session)
        assert (counts.total, counts.unverified, counts.verified, counts.voted) == (5, 2, 2, 1)

    @pytest.mark.asyncio
    async def test_ward_turnout(self, async_session: AsyncSession, registry) -> None:
        rows = {row.ward: row for row in await voter_stats_service.get_ward_turnout(async_session)}
        assert rows["Kilimani"].total == 2
        assert rows["Kilimani"].voted == 1
        assert rows["Kilimani"].turnout_percent == 50.0
        assert rows["Nyali"].turnout_percent == 0.0
        assert rows["Unassigned"].total == 1

    @pytest.mark.asyncio
    async def test_verified_by_location_includes_voted(self, async_session: AsyncSession, registry) -> None:
        rows = await voter_stats_service.get_verified_by_location(async_session)
        assert [(r.voting_location, r.verified) for r in rows] == [("Nairobi", 2), ("Mombasa", 1)]

    @pytest.mark.asyncio
    async def test_verification_timeline(self, async_session: AsyncSession, registry) -> None:
        timeline = await voter_stats_service.get_verification_timeline(async_session)
        assert [(str(d.day), d.verified, d.cumulative) for d in timeline] == [
            ("2026-03-02", 2, 2),
            ("2026-03-03", 1, 3),
        ]

    @pytest.mark.asyncio
    async def test_empty_registry(self, async_session: AsyncSession) -> None:
        stats = await voter_stats_service.get_voter_stats(async_session)
        assert stats.status.total == 0
        assert stats.turnout_by_ward == []
        assert stats.verification_timeline == []
