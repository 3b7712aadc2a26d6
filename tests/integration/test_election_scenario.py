"""The MEM001 election walked through the service layer, from registry entry to a single cast ballot."""

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ballot_api.core.config import Settings
from ballot_api.core.errors import AlreadyVoted, IncompleteBallot
from ballot_api.core.security import derive_voter_token
from ballot_api.lib.phase import ElectionPhase
from ballot_api.models.vote import Vote
from ballot_api.models.voter import VoterStatus
from ballot_api.services import ballot_service, otc_service


@pytest.mark.asyncio
async def test_member_registers_and_votes_once(
    async_session: AsyncSession, settings: Settings, set_phase, make_voter, make_candidate
) -> None:
    voter = await make_voter("MEM001", phone="+15550000")
    c1 = await make_candidate("Amina Hassan", "Chairperson")
    await make_candidate("Brian Mwangi", "Chairperson")
    c3 = await make_candidate("Carol Achieng", "Treasurer")

    await set_phase(ElectionPhase.VERIFICATION)
    voter, issued = await otc_service.start_registration(async_session, "MEM001", settings=settings)
    assert issued.simulated
    voter = await otc_service.complete_registration(
        async_session, "MEM001", voter.otc_code, "Nairobi", settings=settings
    )
    assert voter.status == VoterStatus.VERIFIED
    assert voter.voting_location == "Nairobi"
    assert voter.otc_code is None

    await set_phase(ElectionPhase.VOTING)
    with pytest.raises(IncompleteBallot) as exc_info:
        await ballot_service.submit_ballot(async_session, voter.id, {"Chairperson": str(c1.id)}, settings=settings)
    assert exc_info.value.missing == ["Treasurer"]

    selections = {"Chairperson": str(c1.id), "Treasurer": str(c3.id)}
    vote = await ballot_service.submit_ballot(async_session, voter.id, selections, settings=settings)
    assert vote.selections == selections

    with pytest.raises(AlreadyVoted):
        await ballot_service.submit_ballot(async_session, voter.id, selections, settings=settings)

    await async_session.refresh(voter)
    assert voter.status == VoterStatus.VOTED
    votes = (await async_session.execute(select(Vote))).scalars().all()
    assert len(votes) == 1
    assert votes[0].selections == selections
    assert votes[0].voter_token == derive_voter_token(str(voter.id), settings.ballot_token_key)
